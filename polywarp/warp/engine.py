# -*- coding: utf-8 -*-
"""
Warp Engine - Solve the forward landmark warp for both axes.

``WarpEngine`` reads a ``LandmarkSet`` and runs two independent solves
from the same control points: the x' surface (targets ``x2``, matrix
``aU``) and the y' surface (targets ``y2``, matrix ``bV``). The result is
a ``WarpResult`` that maps source pixels to target pixels.

A solve can take a while for many landmarks. It can be handed to a
``concurrent.futures`` executor with ``submit`` and cancelled between
term-count iterations through a ``threading.Event``.

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
from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, Optional, Tuple, Union

# Third-party
import numpy as np

# polywarp internal
from polywarp.config import WarpConfig
from polywarp.exceptions import (
    InsufficientLandmarksError,
    ProcessorError,
    ValidationError,
)
from polywarp.landmarks.store import LandmarkSet
from polywarp.vocabulary import LandmarkSide, WarpAxis
from polywarp.warp.solver import AxisSolution, CoefficientMatrix, CoefficientSolver
from polywarp.warp.surface import SurfaceEvaluator
from polywarp.warp.utils import clip_points, compute_residuals, compute_rms

logger = logging.getLogger(__name__)


class WarpResult:
    """Solved forward warp (source pixel -> target pixel).

    Parameters
    ----------
    x_solution : AxisSolution
        Solution of the x' surface.
    y_solution : AxisSolution
        Solution of the y' surface.
    config : Optional[WarpConfig]
        Configuration used for local evaluation.
    metadata : Optional[Dict[str, Any]]
        Free-form details about the solve.

    Attributes
    ----------
    residuals : np.ndarray
        Euclidean distance between each landmark's target and its mapped
        source, shape (N,).
    residual_rms : float
    num_landmarks : int
    metadata : Dict[str, Any]
    """

    def __init__(
        self,
        x_solution: AxisSolution,
        y_solution: AxisSolution,
        config: Optional[WarpConfig] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.x = SurfaceEvaluator(x_solution, config)
        self.y = SurfaceEvaluator(y_solution, config)
        self.num_landmarks = x_solution.num_points
        self.metadata = metadata or {}

        sources = x_solution.control_points
        targets = np.column_stack([x_solution.targets, y_solution.targets])
        self.residuals = compute_residuals(targets, self.transform_points(sources))
        self.residual_rms = compute_rms(self.residuals)

    @property
    def aU(self) -> CoefficientMatrix:
        """Coefficient matrix of the x' surface."""
        return self.x.coefficient_matrix

    @property
    def bV(self) -> CoefficientMatrix:
        """Coefficient matrix of the y' surface."""
        return self.y.coefficient_matrix

    @property
    def term_counts(self) -> Tuple[int, int]:
        return (self.x.term_count, self.y.term_count)

    @property
    def converged(self) -> bool:
        return self.x.solution.converged and self.y.solution.converged

    def evaluate_at(
        self,
        x: float,
        y: float,
        shape: Optional[Tuple[int, int]] = None,
    ) -> Tuple[float, float]:
        """Map one source pixel to ``(x', y')``.

        When ``shape = (rows, cols)`` is given, the result is clamped
        into that image.
        """
        mapped = self.transform_points(np.array([[x, y]]), shape=shape)
        return (float(mapped[0, 0]), float(mapped[0, 1]))

    def transform_points(
        self,
        points: np.ndarray,
        local: bool = True,
        shape: Optional[Tuple[int, int]] = None,
    ) -> np.ndarray:
        """Map source points to the target image.

        Parameters
        ----------
        points : np.ndarray
            Shape (N, 2), columns are (x, y).
        local : bool
            Use the per-point local fit (True) or the global
            coefficient matrices (False).
        shape : Optional[Tuple[int, int]]
            ``(rows, cols)`` to clamp the result into.

        Returns
        -------
        np.ndarray
            Shape (N, 2), columns are (x', y').
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if local:
            mapped = np.column_stack([
                self.x.evaluate_points(pts),
                self.y.evaluate_points(pts),
            ])
        else:
            mapped = np.column_stack([
                self.aU.evaluate(pts[:, 0], pts[:, 1]),
                self.bV.evaluate(pts[:, 0], pts[:, 1]),
            ])
        if shape is not None:
            mapped = clip_points(mapped, shape)
        return mapped

    def evaluate_grid(
        self,
        width: int,
        height: int,
        local: bool = True,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Mapped ``(x', y')`` for every cell of a ``width x height`` grid.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            Two (height, width) arrays.
        """
        x_cb = y_cb = None
        if progress_callback is not None:
            x_cb = lambda f: progress_callback(0.5 * f)
            y_cb = lambda f: progress_callback(0.5 + 0.5 * f)
        xs = self.x.evaluate_grid(width, height, local, x_cb)
        ys = self.y.evaluate_grid(width, height, local, y_cb)
        return xs, ys

    def remap_landmarks(
        self,
        landmarks: LandmarkSet,
        side: Union[LandmarkSide, str] = LandmarkSide.BOTH,
        shape: Optional[Tuple[int, int]] = None,
    ) -> None:
        """Store warped landmark positions as display coordinates.

        Each pair's display coordinates are first reset to its input
        coordinates; then the source (``left``) and/or target
        (``right``) coordinate is pushed through the warp, rounded to a
        pixel, and stored in ``(ox1, oy1)`` / ``(ox2, oy2)``.
        """
        side = LandmarkSide(side)
        pairs = landmarks.snapshot()
        if not pairs:
            return
        left = np.array([(p.x1, p.y1) for p in pairs], dtype=np.float64)
        right = np.array([(p.x2, p.y2) for p in pairs], dtype=np.float64)

        out_left = left.astype(np.int64)
        out_right = right.astype(np.int64)
        if side in (LandmarkSide.LEFT, LandmarkSide.BOTH):
            out_left = np.rint(self.transform_points(left, shape=shape)).astype(np.int64)
        if side in (LandmarkSide.RIGHT, LandmarkSide.BOTH):
            out_right = np.rint(self.transform_points(right, shape=shape)).astype(np.int64)

        for i in range(len(pairs)):
            landmarks.set_output(
                i,
                int(out_left[i, 0]), int(out_left[i, 1]),
                int(out_right[i, 0]), int(out_right[i, 1]),
            )

    def __repr__(self) -> str:
        return (
            f"WarpResult(landmarks={self.num_landmarks}, "
            f"terms={self.term_counts}, "
            f"rms={self.residual_rms:.4f}px, "
            f"converged={self.converged})"
        )


class WarpEngine:
    """Polynomial warp estimation from a landmark set.

    Parameters
    ----------
    landmarks : LandmarkSet
        Correspondences to fit. The engine reads a snapshot at the start
        of each solve and never modifies the set.
    config : Optional[WarpConfig]
        Solver configuration. Defaults to ``WarpConfig()``.

    Examples
    --------
    >>> lms = LandmarkSet()
    >>> for pair in [(10, 10, 12, 11), (50, 10, 53, 9), (10, 50, 9, 52)]:
    ...     _ = lms.push(*pair)
    >>> engine = WarpEngine(lms)
    >>> result = engine.solve()
    >>> round(result.aU.evaluate(50, 10))
    53
    """

    def __init__(
        self,
        landmarks: LandmarkSet,
        config: Optional[WarpConfig] = None,
    ) -> None:
        if not isinstance(landmarks, LandmarkSet):
            raise ValidationError(
                f"landmarks must be a LandmarkSet, got {type(landmarks).__name__}"
            )
        self._landmarks = landmarks
        self._config = config or WarpConfig()
        self._solver = CoefficientSolver(self._config)
        self._result: Optional[WarpResult] = None

    @property
    def landmarks(self) -> LandmarkSet:
        return self._landmarks

    @property
    def config(self) -> WarpConfig:
        return self._config

    @property
    def result(self) -> Optional[WarpResult]:
        """Result of the last successful solve, or None."""
        return self._result

    def _require_result(self) -> WarpResult:
        if self._result is None:
            raise ProcessorError("Warp has not been solved; call solve() first")
        return self._result

    @property
    def aU(self) -> CoefficientMatrix:
        return self._require_result().aU

    @property
    def bV(self) -> CoefficientMatrix:
        return self._require_result().bV

    @property
    def term_counts(self) -> Tuple[int, int]:
        return self._require_result().term_counts

    def solve(
        self,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> WarpResult:
        """Solve the x' and y' surfaces from the current landmarks.

        Parameters
        ----------
        cancel_event : Optional[threading.Event]
            When set, the solve stops before its next term-count
            iteration with ``SolveCancelledError``.
        progress_callback : Optional[Callable[[float], None]]
            Called with the overall completed fraction.

        Returns
        -------
        WarpResult

        Raises
        ------
        InsufficientLandmarksError
            If the landmark set is empty.
        SolveCancelledError
            If *cancel_event* was set.
        """
        pairs = self._landmarks.snapshot()
        if not pairs:
            raise InsufficientLandmarksError(
                "At least one landmark is required to solve a warp"
            )
        sources = np.array([(p.x1, p.y1) for p in pairs], dtype=np.float64)
        x_targets = np.array([p.x2 for p in pairs], dtype=np.float64)
        y_targets = np.array([p.y2 for p in pairs], dtype=np.float64)

        x_cb = y_cb = None
        if progress_callback is not None:
            x_cb = lambda f: progress_callback(0.5 * f)
            y_cb = lambda f: progress_callback(0.5 + 0.5 * f)

        logger.debug("Solving polynomial warp from %d landmarks", len(pairs))
        x_sol = self._solver.solve(
            sources, x_targets, WarpAxis.X, cancel_event, x_cb
        )
        y_sol = self._solver.solve(
            sources, y_targets, WarpAxis.Y, cancel_event, y_cb
        )

        result = WarpResult(
            x_sol,
            y_sol,
            self._config,
            metadata={
                'method': 'weighted_orthogonal_polynomial',
                'delta': self._config.delta,
                'max_error_x': x_sol.max_error,
                'max_error_y': y_sol.max_error,
            },
        )
        self._result = result
        logger.info("Warp solved: %r", result)
        return result

    def submit(
        self,
        executor: Executor,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> 'Future[WarpResult]':
        """Run ``solve`` on *executor* and return its future."""
        return executor.submit(self.solve, cancel_event, progress_callback)

    def evaluate_at(self, x: float, y: float) -> Tuple[float, float]:
        """Map one source pixel with the last solved warp."""
        return self._require_result().evaluate_at(x, y)

    def evaluate_grid(
        self,
        width: int,
        height: int,
        local: bool = True,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Mapped grid from the last solved warp."""
        return self._require_result().evaluate_grid(
            width, height, local, progress_callback
        )
