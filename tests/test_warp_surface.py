# -*- coding: utf-8 -*-
"""
Tests for surface evaluation and the closed-form coarse mapping.

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

import numpy as np
import pytest

from polywarp.config import WarpConfig
from polywarp.exceptions import (
    InsufficientLandmarksError,
    NoConvergenceWarning,
    ValidationError,
)
from polywarp.warp.solver import CoefficientSolver
from polywarp.warp.surface import SurfaceEvaluator, eval_poly


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def triangle_solution():
    """x' surface of the plane through three landmarks.

    The plane is x' = 2.5 + 1.025 x - 0.075 y.
    """
    control = np.array([[10.0, 10.0], [50.0, 10.0], [10.0, 50.0]])
    targets = np.array([12.0, 53.0, 9.0])
    return CoefficientSolver().solve(control, targets)


def _plane(x, y):
    return 2.5 + 1.025 * x - 0.075 * y


# ---------------------------------------------------------------------------
# SurfaceEvaluator
# ---------------------------------------------------------------------------

class TestSurfaceEvaluator:

    def test_properties(self, triangle_solution):
        surface = SurfaceEvaluator(triangle_solution)
        assert surface.term_count == 3
        assert surface.solution is triangle_solution
        assert surface.coefficient_matrix is triangle_solution.coefficient_matrix

    def test_evaluate_at_control_point(self, triangle_solution):
        surface = SurfaceEvaluator(triangle_solution)
        assert surface.evaluate_at(50, 10) == pytest.approx(53.0)
        assert surface.evaluate_at(10, 50) == pytest.approx(9.0)

    def test_evaluate_points(self, triangle_solution):
        surface = SurfaceEvaluator(triangle_solution)
        pts = np.array([[20.0, 30.0], [0.0, 0.0], [64.0, 12.0]])
        np.testing.assert_allclose(
            surface.evaluate_points(pts), _plane(pts[:, 0], pts[:, 1]),
            atol=1e-8,
        )

    def test_evaluate_points_empty(self, triangle_solution):
        surface = SurfaceEvaluator(triangle_solution)
        assert surface.evaluate_points(np.zeros((0, 2))).shape == (0,)

    def test_evaluate_points_bad_shape(self, triangle_solution):
        surface = SurfaceEvaluator(triangle_solution)
        with pytest.raises(ValidationError):
            surface.evaluate_points(np.zeros((4, 3)))

    def test_grid_layout(self, triangle_solution):
        surface = SurfaceEvaluator(triangle_solution)
        grid = surface.evaluate_grid(7, 5)
        assert grid.shape == (5, 7)
        assert grid[3, 6] == pytest.approx(surface.evaluate_at(6, 3))

    def test_local_and_global_grid_agree(self, triangle_solution):
        surface = SurfaceEvaluator(
            triangle_solution, WarpConfig(chunk_size=1000))
        fractions = []
        local = surface.evaluate_grid(60, 60, progress_callback=fractions.append)
        cached = surface.evaluate_grid(60, 60, local=False)
        np.testing.assert_allclose(local, cached, atol=1e-6)
        ys, xs = np.mgrid[0:60, 0:60]
        np.testing.assert_allclose(cached, _plane(xs, ys), atol=1e-8)
        assert len(fractions) == 4
        assert fractions[-1] == 1.0

    def test_negative_grid(self, triangle_solution):
        with pytest.raises(ValidationError):
            SurfaceEvaluator(triangle_solution).evaluate_grid(-1, 4)

    def test_solution_delta_wins(self):
        control = np.array([[0.0, 0.0], [30.0, 0.0], [0.0, 30.0], [30.0, 30.0]])
        targets = np.array([0.0, 1.0, 1.0, 5.0])
        with pytest.warns(NoConvergenceWarning):
            sol = CoefficientSolver(
                WarpConfig(delta=9.0, max_terms=3)).solve(control, targets)
        surface = SurfaceEvaluator(sol, WarpConfig(delta=0.0))
        smooth = CoefficientSolver(WarpConfig(delta=9.0)).evaluate_local(
            control, targets, np.array([[30.0, 30.0]]), sol.term_count)
        assert surface.evaluate_at(30, 30) == pytest.approx(smooth[0])

    def test_empty_solution(self):
        sol = CoefficientSolver().solve(np.zeros((0, 2)), np.zeros(0))
        with pytest.raises(InsufficientLandmarksError):
            SurfaceEvaluator(sol)


# ---------------------------------------------------------------------------
# eval_poly
# ---------------------------------------------------------------------------

class TestEvalPoly:

    def test_power_matrix(self):
        c = np.zeros((4, 4))
        c[0, 0] = 2.7
        c[1, 0] = 1.0
        assert eval_poly(10, 20, c) == 12

    def test_window_only(self):
        c = np.zeros((4, 4))
        c[0, 0] = 1.0
        c[1, 1] = 0.5
        c[2, 0] = 0.25
        c[0, 2] = 100.0
        c[3, 0] = 100.0
        # 1 + 0.5 * 4 * 2 + 0.25 * 16
        assert eval_poly(4, 2, c) == 9

    def test_truncates_toward_zero(self):
        c = np.zeros((3, 2))
        c[0, 0] = -0.75
        assert eval_poly(0, 0, c) == 0
        c[0, 0] = -1.5
        assert eval_poly(0, 0, c) == -1

    def test_array_input(self):
        c = np.zeros((3, 2))
        c[1, 0] = 1.0
        c[0, 1] = 2.0
        out = eval_poly(np.array([1, 2, 3]), np.array([1, 1, 1]), c)
        assert out.dtype == np.int64
        np.testing.assert_array_equal(out, [3, 4, 5])

    def test_returns_int(self):
        c = np.zeros((3, 2))
        assert isinstance(eval_poly(1, 1, c), int)

    def test_coefficient_matrix(self, triangle_solution):
        # 2.5 + 20.5 - 2.25 = 20.75
        assert eval_poly(20, 30, triangle_solution.coefficient_matrix) == 20

    def test_too_small(self):
        with pytest.raises(ValidationError, match="3x2"):
            eval_poly(1, 1, np.zeros((2, 2)))
