# -*- coding: utf-8 -*-
"""
Coefficient Solver - Weighted projection and adaptive term-count selection.

Projects target values onto the weighted orthogonal basis::

    a_k = sum(w * z * poly_k) / sum(w * poly_k**2)

and sums ``a_k * poly_k`` to evaluate the local fit. The solve for one
axis grows the term count from ``min_terms`` until the global surface
(unit weights over all control points) reproduces every control point
within ``error_bound``, or ``max_terms`` is reached. Local fits at a
control point interpolate it whenever ``delta == 0``, so they cannot
drive the term count.

A term with a vanishing weighted norm (coincident or colinear control
points, or the duplicated ``y²`` slot) gets coefficient 0 instead of a
division by zero.

Dependencies
------------
numpy

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
import logging
import threading
import warnings
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, Union

# Third-party
import numpy as np

# polywarp internal
from polywarp.config import MXTERMS, WarpConfig
from polywarp.exceptions import (
    NoConvergenceWarning,
    SingularProjectionWarning,
    SolveCancelledError,
    ValidationError,
)
from polywarp.vocabulary import SolveStatus, WarpAxis
from polywarp.warp.basis import (
    MONOMIAL_POWERS,
    OrthogonalBasis,
    basis_matrix,
    build_orthogonal_basis,
    coordinate_scale,
)
from polywarp.warp.weights import compute_weights

logger = logging.getLogger(__name__)

#: Raw slots that repeat an earlier monomial and are singular by construction.
DUPLICATE_TERMS = (5,)

# Relative slack when comparing worst errors of successive term counts.
_ERROR_EPS = 1e-9

ProgressCallback = Callable[[float], None]


def project_coefficients(
    orth: OrthogonalBasis,
    weights: np.ndarray,
    targets: np.ndarray,
) -> np.ndarray:
    """Projection coefficient of each orthogonal term.

    Parameters
    ----------
    orth : OrthogonalBasis
        Basis built from *weights*.
    weights : np.ndarray
        Shape (P, N).
    targets : np.ndarray
        Target value per control point, shape (N,).

    Returns
    -------
    np.ndarray
        Shape (P, T). Singular terms are 0.
    """
    W = np.atleast_2d(weights)
    num = np.einsum('pn,n,pnt->pt', W, targets, orth.values)
    live = ~orth.singular
    return np.where(live, num / np.where(live, orth.norms, 1.0), 0.0)


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, dtype=np.float64)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class CoefficientMatrix:
    """Orthogonal-basis expansion of a fitted surface.

    Row ``k`` of ``rows`` holds ``aM[k][0..k]``, the recursion
    coefficients of ``poly_k``. ``coefficients[k]`` is the projection
    coefficient ``a_k``. The weights the basis was built with were taken
    relative to ``reference``, or were all 1 when ``reference`` is None.
    Raw monomials are evaluated on coordinates divided by ``scale``.

    Attributes
    ----------
    rows : Tuple[np.ndarray, ...]
        Triangular recursion coefficients, ``len(rows[k]) == k + 1``.
    coefficients : np.ndarray
        Shape (term_count,).
    scale : float
    reference : Optional[Tuple[float, float]]
    singular_terms : Tuple[int, ...]
        Terms whose projection was skipped.
    """

    rows: Tuple[np.ndarray, ...]
    coefficients: np.ndarray
    scale: float
    reference: Optional[Tuple[float, float]]
    singular_terms: Tuple[int, ...] = ()

    @classmethod
    def from_basis(
        cls,
        orth: OrthogonalBasis,
        coefficients: np.ndarray,
        scale: float,
        reference: Optional[Sequence[float]],
        row: int = 0,
    ) -> 'CoefficientMatrix':
        """Extract batch row *row* of a built basis."""
        t = orth.term_count
        alpha = orth.alpha[row]
        return cls(
            rows=tuple(_readonly(alpha[k, :k + 1]) for k in range(t)),
            coefficients=_readonly(coefficients[row]),
            scale=float(scale),
            reference=(
                None if reference is None
                else (float(reference[0]), float(reference[1]))
            ),
            singular_terms=tuple(
                int(k) for k in np.flatnonzero(orth.singular[row])
            ),
        )

    @property
    def term_count(self) -> int:
        return len(self.rows)

    def alpha(self, k: int, j: int) -> float:
        """``aM[k][j]``; zero above the diagonal."""
        return float(self.rows[k][j]) if j <= k else 0.0

    def as_array(self, size: int = MXTERMS) -> np.ndarray:
        """Dense ``size x size`` recursion matrix, upper triangle zero."""
        if size < self.term_count:
            raise ValidationError(
                f"size must be >= term_count ({self.term_count}), got {size}"
            )
        dense = np.zeros((size, size), dtype=np.float64)
        for k, row in enumerate(self.rows):
            dense[k, :k + 1] = row
        return dense

    def evaluate(self, x, y) -> Union[float, np.ndarray]:
        """Value of ``sum(a_k * poly_k)`` at ``(x, y)``.

        Accepts scalars or equally shaped arrays.
        """
        xa = np.asarray(x, dtype=np.float64)
        ya = np.asarray(y, dtype=np.float64)
        shape = np.broadcast(xa, ya).shape
        pts = np.column_stack([
            np.broadcast_to(xa, shape).ravel(),
            np.broadcast_to(ya, shape).ravel(),
        ])
        raw = basis_matrix(pts, self.term_count, self.scale)
        poly = np.zeros_like(raw)
        for k, row in enumerate(self.rows):
            poly[:, k] = row[k] * raw[:, k] + poly[:, :k] @ row[:k]
        values = poly @ self.coefficients
        if shape == ():
            return float(values[0])
        return values.reshape(shape)

    def to_monomial(self, size: int = 4) -> np.ndarray:
        """Power-series coefficients ``c[i, j]`` of ``x**i * y**j``.

        Expands every orthogonal term back onto the raw monomials and
        undoes the coordinate scale.
        """
        t = self.term_count
        expansion = np.zeros((t, t), dtype=np.float64)
        for k, row in enumerate(self.rows):
            expansion[k] = row[:k] @ expansion[:k]
            expansion[k, k] += row[k]
        slots = self.coefficients @ expansion

        power = np.zeros((size, size), dtype=np.float64)
        for m in range(t):
            px, py = MONOMIAL_POWERS[m]
            if px < size and py < size:
                power[px, py] += slots[m] / self.scale ** (px + py)
        return power


@dataclass(frozen=True, eq=False)
class AxisSolution:
    """Solved surface for one output axis.

    Attributes
    ----------
    axis : WarpAxis
    control_points : np.ndarray
        Source coordinates, shape (N, 2).
    targets : np.ndarray
        Target coordinate on this axis, shape (N,).
    term_count : int
        Terms of the best fit found by the adaptive loop; 0 when there
        were no points.
    status : SolveStatus
    errors : np.ndarray
        Absolute error of ``coefficient_matrix`` at each control point,
        shape (N,).
    coefficient_matrix : Optional[CoefficientMatrix]
        Global expansion over all control points with unit weights.
    delta : float
        Weight smoothing constant used.
    scale : float
        Coordinate scale used for the raw monomials.
    """

    axis: WarpAxis
    control_points: np.ndarray
    targets: np.ndarray
    term_count: int
    status: SolveStatus
    errors: np.ndarray
    coefficient_matrix: Optional[CoefficientMatrix]
    delta: float
    scale: float

    @property
    def converged(self) -> bool:
        return self.status is SolveStatus.CONVERGED

    @property
    def max_error(self) -> float:
        return float(self.errors.max()) if self.errors.size else 0.0

    @property
    def num_points(self) -> int:
        return int(self.control_points.shape[0])


def _check_control(control_points, targets) -> Tuple[np.ndarray, np.ndarray]:
    control = np.asarray(control_points, dtype=np.float64)
    if control.size == 0:
        control = control.reshape(0, 2)
    z = np.asarray(targets, dtype=np.float64).ravel()
    if control.ndim != 2 or control.shape[1] != 2:
        raise ValidationError(
            f"Control points must have shape (N, 2), got {control.shape}"
        )
    if control.shape[0] != z.shape[0]:
        raise ValidationError(
            f"Got {control.shape[0]} control points but {z.shape[0]} targets"
        )
    return control, z


class CoefficientSolver:
    """Weighted least-squares orthogonal polynomial fitting.

    Parameters
    ----------
    config : Optional[WarpConfig]
        Term limits, error bound, smoothing, singular tolerance and
        batch size. Defaults to ``WarpConfig()``.

    Examples
    --------
    >>> solver = CoefficientSolver()
    >>> pts = np.array([[10, 10], [50, 10], [10, 50]], dtype=float)
    >>> sol = solver.solve(pts, np.array([12.0, 53.0, 9.0]))
    >>> sol.term_count
    3
    """

    def __init__(self, config: Optional[WarpConfig] = None) -> None:
        self._config = config or WarpConfig()

    @property
    def config(self) -> WarpConfig:
        return self._config

    def evaluate_local(
        self,
        control_points: np.ndarray,
        targets: np.ndarray,
        query_points: np.ndarray,
        term_count: int,
        scale: Optional[float] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> np.ndarray:
        """Fit and evaluate the local surface at every query point.

        For each query point the weights are taken relative to that
        point, the orthogonal basis is rebuilt, the targets projected and
        the expansion evaluated there. Queries are processed in chunks of
        ``config.chunk_size``.

        Parameters
        ----------
        control_points : np.ndarray
            Shape (N, 2), N >= 1.
        targets : np.ndarray
            Shape (N,).
        query_points : np.ndarray
            Shape (P, 2).
        term_count : int
            Number of orthogonal terms, 1..MXTERMS.
        scale : Optional[float]
            Coordinate scale. Derived from the control points when None.
        progress_callback : Optional[Callable[[float], None]]
            Called with the completed fraction after every chunk.

        Returns
        -------
        np.ndarray
            Fitted value per query point, shape (P,).
        """
        control, z = _check_control(control_points, targets)
        if control.shape[0] == 0:
            raise ValidationError("At least one control point is required")
        if not 1 <= term_count <= MXTERMS:
            raise ValidationError(
                f"term_count must be in [1, {MXTERMS}], got {term_count}"
            )
        if scale is None:
            scale = coordinate_scale(control)

        query = np.atleast_2d(np.asarray(query_points, dtype=np.float64))
        n_query = query.shape[0]
        out = np.empty(n_query, dtype=np.float64)
        control_basis = basis_matrix(control, term_count, scale)
        chunk = self._config.chunk_size
        singular_rows = 0

        for start in range(0, n_query, chunk):
            q = query[start:start + chunk]
            W = compute_weights(q, control, self._config.delta)
            orth = build_orthogonal_basis(
                control_basis, W, self._config.singular_tol
            )
            coef = project_coefficients(orth, W, z)
            poly_q = orth.evaluate(basis_matrix(q, term_count, scale))
            out[start:start + q.shape[0]] = np.einsum('pt,pt->p', coef, poly_q)

            dropped = orth.singular.copy()
            dropped[:, [d for d in DUPLICATE_TERMS if d < term_count]] = False
            singular_rows += int(dropped.any(axis=1).sum())
            if progress_callback is not None:
                progress_callback(min(start + chunk, n_query) / n_query)

        if singular_rows:
            logger.debug(
                "%d of %d local fits skipped singular terms",
                singular_rows, n_query,
            )
        return out

    def coefficient_matrix(
        self,
        control_points: np.ndarray,
        targets: np.ndarray,
        term_count: int,
        reference: Optional[Sequence[float]] = None,
        scale: Optional[float] = None,
    ) -> CoefficientMatrix:
        """Build a single coefficient matrix.

        Parameters
        ----------
        control_points : np.ndarray
            Shape (N, 2).
        targets : np.ndarray
            Shape (N,).
        term_count : int
            Number of orthogonal terms.
        reference : Optional[Sequence[float]]
            Point the inverse-distance weights are taken from. When None
            every control point has weight 1, giving the global
            least-squares surface.
        scale : Optional[float]
            Coordinate scale. Derived from the control points when None.

        Returns
        -------
        CoefficientMatrix
        """
        control, z = _check_control(control_points, targets)
        if control.shape[0] == 0:
            raise ValidationError("At least one control point is required")
        if scale is None:
            scale = coordinate_scale(control)
        if reference is None:
            W = np.ones((1, control.shape[0]), dtype=np.float64)
        else:
            ref = np.asarray(reference, dtype=np.float64).reshape(1, 2)
            W = compute_weights(ref, control, self._config.delta)
        orth = build_orthogonal_basis(
            basis_matrix(control, term_count, scale),
            W,
            self._config.singular_tol,
        )
        coef = project_coefficients(orth, W, z)
        return CoefficientMatrix.from_basis(orth, coef, scale, reference)

    def solve(
        self,
        control_points: np.ndarray,
        targets: np.ndarray,
        axis: WarpAxis = WarpAxis.X,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AxisSolution:
        """Choose the term count and solve one axis.

        Term counts ``min_terms .. max_terms`` are tried in order. Each
        attempt builds the global coefficient matrix and measures its
        error at every control point; the loop stops once all errors are
        within ``error_bound``. An attempt whose worst error exceeds that
        of an earlier attempt is not adopted, so the returned fit is the
        best one seen and ``CONVERGED`` always describes the returned
        matrix.

        Parameters
        ----------
        control_points : np.ndarray
            Source coordinates, shape (N, 2).
        targets : np.ndarray
            Target coordinate per point for this axis, shape (N,).
        axis : WarpAxis
            Label carried into the result and log messages.
        cancel_event : Optional[threading.Event]
            Checked before every term-count attempt.
        progress_callback : Optional[Callable[[float], None]]
            Called with the completed fraction after every attempt;
            1.0 once the bound is met.

        Returns
        -------
        AxisSolution
            ``term_count == 0`` and status ``EMPTY`` when there are no
            control points.

        Raises
        ------
        SolveCancelledError
            If *cancel_event* is set between attempts.
        """
        cfg = self._config
        control, z = _check_control(control_points, targets)
        n = control.shape[0]
        if n == 0:
            return AxisSolution(
                axis=axis,
                control_points=control,
                targets=z,
                term_count=0,
                status=SolveStatus.EMPTY,
                errors=np.zeros(0),
                coefficient_matrix=None,
                delta=cfg.delta,
                scale=1.0,
            )

        scale = coordinate_scale(control)
        candidates = range(cfg.min_terms, cfg.max_terms + 1)
        tol = _ERROR_EPS * max(1.0, float(np.max(np.abs(z))))
        status = SolveStatus.NO_CONVERGENCE
        best: Optional[Tuple[int, CoefficientMatrix, np.ndarray]] = None

        for i, attempt in enumerate(candidates):
            if cancel_event is not None and cancel_event.is_set():
                raise SolveCancelledError(
                    f"{axis.value}-axis solve cancelled before {attempt} terms"
                )
            candidate = self.coefficient_matrix(control, z, attempt, scale=scale)
            errors = np.abs(z - candidate.evaluate(control[:, 0], control[:, 1]))
            worst = float(errors.max())
            logger.debug(
                "%s-axis: %d terms, max error %.4g", axis.value, attempt, worst,
            )
            if best is None or worst <= float(best[2].max()) + tol:
                best = (attempt, candidate, errors)
            else:
                logger.debug(
                    "%s-axis: keeping %d terms, %d terms fit worse",
                    axis.value, best[0], attempt,
                )
            done = bool(np.all(best[2] <= cfg.error_bound))
            if progress_callback is not None:
                progress_callback(1.0 if done else (i + 1) / len(candidates))
            if done:
                status = SolveStatus.CONVERGED
                break

        terms, matrix, errors = best
        if status is SolveStatus.NO_CONVERGENCE:
            warnings.warn(
                f"{axis.value}-axis fit tried up to {cfg.max_terms} terms; "
                f"best is {terms} terms with max error "
                f"{float(errors.max()):.3f} > {cfg.error_bound}",
                NoConvergenceWarning,
                stacklevel=2,
            )

        unexpected = [k for k in matrix.singular_terms
                      if k not in DUPLICATE_TERMS]
        if unexpected:
            warnings.warn(
                f"{axis.value}-axis terms {unexpected} are singular for "
                f"{n} control points and were dropped",
                SingularProjectionWarning,
                stacklevel=2,
            )

        logger.info(
            "%s-axis solved: %d points, %d terms, %s",
            axis.value, n, terms, status.value,
        )
        return AxisSolution(
            axis=axis,
            control_points=control,
            targets=z,
            term_count=terms,
            status=status,
            errors=errors,
            coefficient_matrix=matrix,
            delta=cfg.delta,
            scale=scale,
        )
