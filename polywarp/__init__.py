# -*- coding: utf-8 -*-
"""
Polywarp - Landmark-based polynomial image warp estimation.

Estimates a non-linear coordinate mapping between two 2-D images from
user-supplied point correspondences (landmarks), using weighted
least-squares fitting over an orthogonal polynomial basis.

Dependencies
------------
numpy
scipy
pyyaml

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

__version__ = "0.1.0"

from polywarp.exceptions import (
    PolywarpError,
    ValidationError,
    LandmarkError,
    LandmarkStoreFullError,
    DuplicateLandmarkError,
    InsufficientLandmarksError,
    ProcessorError,
    SolveCancelledError,
    SingularProjectionWarning,
    NoConvergenceWarning,
)
from polywarp.vocabulary import LandmarkSide, SolveStatus, WarpAxis
from polywarp.config import MXTERMS, WarpConfig
from polywarp.landmarks import LandmarkPair, LandmarkSet
from polywarp.warp import (
    CoefficientMatrix,
    CoefficientSolver,
    SurfaceEvaluator,
    WarpEngine,
    WarpResult,
    eval_poly,
)

__all__ = [
    'PolywarpError',
    'ValidationError',
    'LandmarkError',
    'LandmarkStoreFullError',
    'DuplicateLandmarkError',
    'InsufficientLandmarksError',
    'ProcessorError',
    'SolveCancelledError',
    'SingularProjectionWarning',
    'NoConvergenceWarning',
    'LandmarkSide',
    'SolveStatus',
    'WarpAxis',
    'MXTERMS',
    'WarpConfig',
    'LandmarkPair',
    'LandmarkSet',
    'CoefficientMatrix',
    'CoefficientSolver',
    'SurfaceEvaluator',
    'WarpEngine',
    'WarpResult',
    'eval_poly',
]
