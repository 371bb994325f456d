# -*- coding: utf-8 -*-
"""
Polywarp Exception Hierarchy - Domain-specific exceptions and warnings.

Lets callers (typically an interactive viewer) catch landmark and solver
errors distinctly from Python built-in exceptions. Every exception
subclasses both ``PolywarpError`` and the matching built-in exception, so
code that already catches ``ValueError`` or ``RuntimeError`` keeps working.

Recoverable numerical conditions (singular projections, term cap reached
without meeting the error bound) are reported as warnings, not errors.

Author
------
polywarp contributors

License
-------
MIT License
Copyright (c) 2026 polywarp contributors
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""


class PolywarpError(Exception):
    """Base exception for all polywarp errors."""


class ValidationError(PolywarpError, ValueError):
    """Invalid input data, parameters, or configuration.

    Raised for out-of-range configuration values, malformed landmark
    state text, and bad array shapes.
    """


class LandmarkError(ValidationError):
    """A landmark operation was rejected."""


class LandmarkStoreFullError(LandmarkError):
    """The landmark set already holds ``max_landmarks`` pairs."""


class DuplicateLandmarkError(LandmarkError):
    """The pushed pair is identical to the most recently pushed pair."""


class InsufficientLandmarksError(LandmarkError):
    """Too few landmarks for the requested computation."""


class ProcessorError(PolywarpError, RuntimeError):
    """Algorithm failure during a solve or evaluation."""


class SolveCancelledError(ProcessorError):
    """A warp solve was cancelled between term-count iterations."""


class SingularProjectionWarning(UserWarning):
    """An orthogonal term had a (near-)zero weighted norm and was dropped.

    Coincident or colinear control points make some terms linearly
    dependent on lower ones. The affected coefficient is set to zero.
    """


class NoConvergenceWarning(UserWarning):
    """The term cap was reached without meeting the per-point error bound.

    The fit at the maximum term count is still returned.
    """
