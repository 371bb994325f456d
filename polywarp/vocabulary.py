# -*- coding: utf-8 -*-
"""
Polywarp Vocabulary - Enumerations shared across the library.

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

# Standard library
from enum import Enum


class WarpAxis(Enum):
    """Output axis of a polynomial surface.

    ``X`` fits the target x2 coordinate (the ``aU`` surface), ``Y`` fits
    the target y2 coordinate (the ``bV`` surface).
    """

    X = "x"
    Y = "y"


class SolveStatus(Enum):
    """Outcome of an adaptive term-count solve."""

    CONVERGED = "converged"
    NO_CONVERGENCE = "no_convergence"
    EMPTY = "empty"


class LandmarkSide(Enum):
    """Which image's landmark coordinates to remap after a warp."""

    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"
