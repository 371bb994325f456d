# -*- coding: utf-8 -*-
"""
Tests for coefficient projection and adaptive term-count solving.

Uses small synthetic landmark layouts whose exact fits are known: three
non-colinear points (any plane interpolates them), a regular grid with
affine targets, coincident and colinear control points.

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

import threading
import warnings

import numpy as np
import pytest

from polywarp.config import WarpConfig
from polywarp.exceptions import (
    NoConvergenceWarning,
    SingularProjectionWarning,
    SolveCancelledError,
    ValidationError,
)
from polywarp.vocabulary import SolveStatus, WarpAxis
from polywarp.warp.solver import CoefficientMatrix, CoefficientSolver


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def triangle():
    """Three non-colinear control points and their target x coordinates."""
    control = np.array([[10.0, 10.0], [50.0, 10.0], [10.0, 50.0]])
    targets = np.array([12.0, 53.0, 9.0])
    return control, targets


@pytest.fixture
def affine_grid():
    """4x4 grid with targets x' = 3 + 1.1 x - 0.2 y."""
    xs, ys = np.meshgrid([0.0, 10.0, 25.0, 40.0], [5.0, 15.0, 20.0, 35.0])
    control = np.column_stack([xs.ravel(), ys.ravel()])
    targets = 3.0 + 1.1 * control[:, 0] - 0.2 * control[:, 1]
    return control, targets


# ---------------------------------------------------------------------------
# Local evaluation
# ---------------------------------------------------------------------------

class TestEvaluateLocal:

    def test_interpolates_control_points(self, triangle):
        control, targets = triangle
        fitted = CoefficientSolver().evaluate_local(control, targets, control, 3)
        np.testing.assert_allclose(fitted, targets, atol=1e-9)

    def test_affine_reproduced_at_every_term_count(self, affine_grid):
        control, targets = affine_grid
        solver = CoefficientSolver(WarpConfig(delta=25.0))
        query = np.array([[7.0, 12.0], [33.0, 30.0], [25.0, 20.0]])
        expected = 3.0 + 1.1 * query[:, 0] - 0.2 * query[:, 1]
        for terms in range(3, 11):
            fitted = solver.evaluate_local(control, targets, control, terms)
            np.testing.assert_allclose(fitted, targets, atol=1e-6)
            at_query = solver.evaluate_local(control, targets, query, terms)
            np.testing.assert_allclose(at_query, expected, atol=1e-6)

    def test_chunked_matches_single_batch(self, affine_grid):
        control, targets = affine_grid
        rng = np.random.default_rng(11)
        query = rng.random((50, 2)) * 40.0
        noisy = targets + rng.normal(0, 2.0, targets.shape)
        whole = CoefficientSolver(WarpConfig(delta=4.0)).evaluate_local(
            control, noisy, query, 6)
        chunked = CoefficientSolver(
            WarpConfig(delta=4.0, chunk_size=7)).evaluate_local(
            control, noisy, query, 6)
        np.testing.assert_allclose(chunked, whole, rtol=1e-10, atol=1e-10)

    def test_progress_reaches_one(self, affine_grid):
        control, targets = affine_grid
        fractions = []
        CoefficientSolver(WarpConfig(chunk_size=5)).evaluate_local(
            control, targets, control, 3, progress_callback=fractions.append)
        assert len(fractions) == 4
        assert fractions[-1] == 1.0

    def test_requires_control_points(self):
        with pytest.raises(ValidationError):
            CoefficientSolver().evaluate_local(
                np.zeros((0, 2)), np.zeros(0), np.zeros((1, 2)), 3)

    def test_term_count_range(self, triangle):
        control, targets = triangle
        with pytest.raises(ValidationError):
            CoefficientSolver().evaluate_local(control, targets, control, 0)
        with pytest.raises(ValidationError):
            CoefficientSolver().evaluate_local(control, targets, control, 11)

    def test_target_count_mismatch(self, triangle):
        control, _ = triangle
        with pytest.raises(ValidationError, match="targets"):
            CoefficientSolver().evaluate_local(
                control, np.zeros(2), control, 3)


# ---------------------------------------------------------------------------
# Coefficient matrices
# ---------------------------------------------------------------------------

class TestCoefficientMatrix:

    def test_global_interpolates_triangle(self, triangle):
        control, targets = triangle
        matrix = CoefficientSolver().coefficient_matrix(control, targets, 3)
        assert isinstance(matrix, CoefficientMatrix)
        assert matrix.term_count == 3
        assert matrix.reference is None
        assert matrix.singular_terms == ()
        values = matrix.evaluate(control[:, 0], control[:, 1])
        np.testing.assert_allclose(values, targets, atol=1e-9)

    def test_scalar_evaluate(self, triangle):
        control, targets = triangle
        matrix = CoefficientSolver().coefficient_matrix(control, targets, 3)
        value = matrix.evaluate(50, 10)
        assert isinstance(value, float)
        assert value == pytest.approx(53.0)

    def test_triangular_rows(self, affine_grid):
        control, targets = affine_grid
        matrix = CoefficientSolver().coefficient_matrix(control, targets, 6)
        assert [len(r) for r in matrix.rows] == [1, 2, 3, 4, 5, 6]
        assert matrix.alpha(0, 0) == 1.0
        assert matrix.alpha(1, 3) == 0.0
        dense = matrix.as_array()
        assert dense.shape == (10, 10)
        np.testing.assert_array_equal(np.triu(dense, 1), 0.0)
        assert 5 in matrix.singular_terms

    def test_as_array_too_small(self, triangle):
        control, targets = triangle
        matrix = CoefficientSolver().coefficient_matrix(control, targets, 3)
        with pytest.raises(ValidationError):
            matrix.as_array(size=2)

    def test_rows_read_only(self, triangle):
        control, targets = triangle
        matrix = CoefficientSolver().coefficient_matrix(control, targets, 3)
        with pytest.raises(ValueError):
            matrix.coefficients[0] = 1.0

    def test_to_monomial(self, affine_grid):
        control, targets = affine_grid
        matrix = CoefficientSolver().coefficient_matrix(control, targets, 3)
        power = matrix.to_monomial()
        expected = np.zeros((4, 4))
        expected[0, 0] = 3.0
        expected[1, 0] = 1.1
        expected[0, 1] = -0.2
        np.testing.assert_allclose(power, expected, atol=1e-9)

    def test_reference_weights(self, affine_grid):
        control, targets = affine_grid
        solver = CoefficientSolver(WarpConfig(delta=1.0))
        matrix = solver.coefficient_matrix(
            control, targets, 3, reference=(12.0, 18.0))
        assert matrix.reference == (12.0, 18.0)
        assert matrix.evaluate(12.0, 18.0) == pytest.approx(
            3.0 + 1.1 * 12.0 - 0.2 * 18.0)


# ---------------------------------------------------------------------------
# Adaptive solve
# ---------------------------------------------------------------------------

class TestSolve:

    def test_triangle_converges_at_three(self, triangle):
        control, targets = triangle
        sol = CoefficientSolver().solve(control, targets, WarpAxis.X)
        assert sol.axis is WarpAxis.X
        assert sol.term_count == 3
        assert sol.status is SolveStatus.CONVERGED
        assert sol.converged
        assert sol.num_points == 3
        assert sol.max_error < 1e-9
        assert sol.coefficient_matrix.evaluate(50, 10) == pytest.approx(53.0)

    def test_min_terms_respected(self, affine_grid):
        control, targets = affine_grid
        cfg = WarpConfig(min_terms=5, max_terms=8, delta=25.0)
        sol = CoefficientSolver(cfg).solve(control, targets)
        assert sol.term_count == 5
        assert sol.converged

    def test_no_convergence_warns(self):
        rng = np.random.default_rng(5)
        control = rng.random((20, 2)) * 100.0
        targets = rng.normal(0.0, 50.0, 20)
        cfg = WarpConfig(min_terms=3, max_terms=3, delta=100.0)
        with pytest.warns(NoConvergenceWarning):
            sol = CoefficientSolver(cfg).solve(control, targets)
        assert sol.status is SolveStatus.NO_CONVERGENCE
        assert sol.term_count == 3
        assert sol.max_error > cfg.error_bound

    def test_curved_targets_need_fourth_term(self):
        rng = np.random.default_rng(4)
        control = rng.random((12, 2)) * 100.0
        x, y = control[:, 0], control[:, 1]
        targets = 5.0 + 1.2 * x - 0.3 * y + 0.01 * x ** 2
        sol = CoefficientSolver().solve(control, targets)
        assert sol.term_count == 4
        assert sol.converged
        fitted = sol.coefficient_matrix.evaluate(x, y)
        assert np.max(np.abs(fitted - targets)) <= 0.5

    def test_errors_measured_on_returned_matrix(self, affine_grid):
        control, targets = affine_grid
        rng = np.random.default_rng(9)
        noisy = targets + rng.normal(0.0, 3.0, targets.shape)
        cfg = WarpConfig(max_terms=6, error_bound=20.0)
        sol = CoefficientSolver(cfg).solve(control, noisy)
        assert sol.converged
        fitted = sol.coefficient_matrix.evaluate(control[:, 0], control[:, 1])
        np.testing.assert_allclose(sol.errors, np.abs(fitted - noisy))
        assert sol.max_error <= cfg.error_bound

    @pytest.mark.parametrize('error_bound', [0.5, 15.0])
    def test_more_terms_never_worse(self, error_bound):
        rng = np.random.default_rng(8)
        control = rng.random((15, 2)) * 100.0
        targets = 40.0 + 0.5 * control[:, 0] + rng.normal(0.0, 8.0, 15)
        previous = np.inf
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', NoConvergenceWarning)
            for max_terms in range(3, 11):
                cfg = WarpConfig(delta=50.0, max_terms=max_terms,
                                 error_bound=error_bound)
                sol = CoefficientSolver(cfg).solve(control, targets)
                assert sol.term_count <= max_terms
                assert sol.max_error <= previous + 1e-6
                if sol.converged:
                    assert sol.max_error <= error_bound
                fitted = sol.coefficient_matrix.evaluate(
                    control[:, 0], control[:, 1])
                np.testing.assert_allclose(
                    sol.errors, np.abs(fitted - targets))
                previous = sol.max_error

    def test_coincident_points(self):
        control = np.array([[5.0, 5.0], [20.0, 30.0], [5.0, 5.0], [40.0, 10.0]])
        targets = np.array([5.0, 22.0, 5.0, 41.0])
        with warnings.catch_warnings():
            warnings.simplefilter('error', SingularProjectionWarning)
            sol = CoefficientSolver().solve(control, targets)
        assert sol.converged
        np.testing.assert_allclose(sol.errors, 0.0, atol=1e-9)

    def test_colinear_points_warn_singular(self):
        control = np.array([[0.0, 0.0], [10.0, 0.0], [20.0, 0.0]])
        targets = np.array([1.0, 11.0, 21.0])
        with pytest.warns(SingularProjectionWarning):
            sol = CoefficientSolver().solve(control, targets)
        assert 2 in sol.coefficient_matrix.singular_terms
        assert sol.coefficient_matrix.evaluate(15.0, 0.0) == pytest.approx(16.0)

    def test_empty(self):
        sol = CoefficientSolver().solve(np.zeros((0, 2)), np.zeros(0))
        assert sol.term_count == 0
        assert sol.status is SolveStatus.EMPTY
        assert sol.coefficient_matrix is None
        assert sol.max_error == 0.0

    def test_cancelled(self, triangle):
        control, targets = triangle
        event = threading.Event()
        event.set()
        with pytest.raises(SolveCancelledError):
            CoefficientSolver().solve(control, targets, cancel_event=event)

    def test_progress(self):
        rng = np.random.default_rng(5)
        control = rng.random((10, 2)) * 100.0
        targets = rng.normal(0.0, 50.0, 10)
        fractions = []
        cfg = WarpConfig(min_terms=3, max_terms=4, delta=100.0)
        with pytest.warns(NoConvergenceWarning):
            CoefficientSolver(cfg).solve(
                control, targets, progress_callback=fractions.append)
        assert fractions == [0.5, 1.0]

    def test_progress_on_convergence(self, triangle):
        control, targets = triangle
        fractions = []
        CoefficientSolver().solve(
            control, targets, progress_callback=fractions.append)
        assert fractions == [1.0]
