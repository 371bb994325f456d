# -*- coding: utf-8 -*-
"""
Warp Module - Landmark-driven polynomial warp estimation.

Fits two weighted least-squares surfaces over an orthogonal polynomial
basis, one for each target axis, from the landmark correspondences.

Key Classes
-----------
- WarpEngine: Solves both axes from a LandmarkSet
- WarpResult: Solved warp with point, grid and landmark mapping
- CoefficientSolver: Projection and adaptive term-count selection
- CoefficientMatrix: Triangular orthogonal-basis expansion (aU / bV)
- SurfaceEvaluator: Local and cached-grid evaluation of one axis

Usage
-----
    >>> from polywarp.landmarks import LandmarkSet
    >>> from polywarp.warp import WarpEngine
    >>> lms = LandmarkSet()
    >>> for pair in [(10, 10, 12, 11), (50, 10, 53, 9), (10, 50, 9, 52)]:
    ...     _ = lms.push(*pair)
    >>> result = WarpEngine(lms).solve()
    >>> xs, ys = result.evaluate_grid(64, 64)

Dependencies
------------
scipy

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

from polywarp.warp.basis import (
    MONOMIAL_POWERS,
    OrthogonalBasis,
    basis,
    basis_matrix,
    build_orthogonal_basis,
)
from polywarp.warp.weights import compute_weights
from polywarp.warp.solver import (
    AxisSolution,
    CoefficientMatrix,
    CoefficientSolver,
    project_coefficients,
)
from polywarp.warp.surface import SurfaceEvaluator, eval_poly
from polywarp.warp.engine import WarpEngine, WarpResult

__all__ = [
    'MONOMIAL_POWERS',
    'OrthogonalBasis',
    'basis',
    'basis_matrix',
    'build_orthogonal_basis',
    'compute_weights',
    'AxisSolution',
    'CoefficientMatrix',
    'CoefficientSolver',
    'project_coefficients',
    'SurfaceEvaluator',
    'eval_poly',
    'WarpEngine',
    'WarpResult',
]
