# -*- coding: utf-8 -*-
"""
Surface Evaluator - Evaluate a solved warp surface at points or over a grid.

Local evaluation rebuilds the weighted orthogonal basis for every query
point, because the weights depend on the distance from the query to each
control point. ``evaluate_grid(local=False)`` instead reuses the cached
global coefficient matrix for every cell, trading the local adaptivity
for a single vectorized polynomial evaluation.

``eval_poly`` is the cheap closed-form coarse mapping: a fixed 3x2 window
of power-series coefficients, ``sum c[i, j] * x**i * y**j`` for
``i <= 2, j <= 1``, truncated to an integer pixel.

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
from typing import Callable, Optional, Union

# Third-party
import numpy as np

# polywarp internal
from polywarp.config import WarpConfig
from polywarp.exceptions import InsufficientLandmarksError, ValidationError
from polywarp.warp.solver import AxisSolution, CoefficientMatrix, CoefficientSolver

logger = logging.getLogger(__name__)


def eval_poly(
    x: Union[int, np.ndarray],
    y: Union[int, np.ndarray],
    coefficients: Union[CoefficientMatrix, np.ndarray],
) -> Union[int, np.ndarray]:
    """Closed-form coarse mapping of ``(x, y)``.

    Parameters
    ----------
    x, y : int or np.ndarray
        Pixel coordinates.
    coefficients : CoefficientMatrix or np.ndarray
        A solved matrix (converted with ``to_monomial``) or a power
        matrix whose ``[i, j]`` entry multiplies ``x**i * y**j``. Only
        the ``[0:3, 0:2]`` window is used.

    Returns
    -------
    int or np.ndarray
        Mapped coordinate, truncated toward zero.
    """
    if isinstance(coefficients, CoefficientMatrix):
        power = coefficients.to_monomial()
    else:
        power = np.asarray(coefficients, dtype=np.float64)
    if power.ndim != 2 or power.shape[0] < 3 or power.shape[1] < 2:
        raise ValidationError(
            f"Power matrix must be at least 3x2, got {power.shape}"
        )

    xf = np.asarray(x, dtype=np.float64)
    yf = np.asarray(y, dtype=np.float64)
    val = np.zeros(np.broadcast(xf, yf).shape, dtype=np.float64)
    for i in range(3):
        for j in range(2):
            val = val + power[i, j] * xf ** i * yf ** j

    mapped = np.trunc(val).astype(np.int64)
    if mapped.ndim == 0:
        return int(mapped)
    return mapped


class SurfaceEvaluator:
    """Evaluates the fitted surface of one axis.

    Parameters
    ----------
    solution : AxisSolution
        Result of ``CoefficientSolver.solve``.
    config : Optional[WarpConfig]
        Smoothing, tolerance and batch size for local evaluation. The
        solution's ``delta`` always takes precedence.

    Raises
    ------
    InsufficientLandmarksError
        If the solution has no control points.
    """

    def __init__(
        self,
        solution: AxisSolution,
        config: Optional[WarpConfig] = None,
    ) -> None:
        if solution.term_count == 0 or solution.coefficient_matrix is None:
            raise InsufficientLandmarksError(
                f"{solution.axis.value}-axis surface has no control points"
            )
        config = config or WarpConfig()
        if config.delta != solution.delta:
            config = config.replace(delta=solution.delta)
        self._solution = solution
        self._solver = CoefficientSolver(config)

    @property
    def solution(self) -> AxisSolution:
        return self._solution

    @property
    def term_count(self) -> int:
        return self._solution.term_count

    @property
    def coefficient_matrix(self) -> CoefficientMatrix:
        return self._solution.coefficient_matrix

    def evaluate_at(self, x: float, y: float) -> float:
        """Local surface value at ``(x, y)``."""
        return float(self.evaluate_points(np.array([[x, y]]))[0])

    def evaluate_points(
        self,
        points: np.ndarray,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> np.ndarray:
        """Local surface values at many points.

        Parameters
        ----------
        points : np.ndarray
            Shape (P, 2), columns are (x, y).
        progress_callback : Optional[Callable[[float], None]]
            Called with the completed fraction after each batch.

        Returns
        -------
        np.ndarray
            Shape (P,).
        """
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ValidationError(
                f"Points must have shape (P, 2), got {pts.shape}"
            )
        if pts.shape[0] == 0:
            return np.zeros(0, dtype=np.float64)
        sol = self._solution
        return self._solver.evaluate_local(
            sol.control_points,
            sol.targets,
            pts,
            sol.term_count,
            scale=sol.scale,
            progress_callback=progress_callback,
        )

    def evaluate_grid(
        self,
        width: int,
        height: int,
        local: bool = True,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> np.ndarray:
        """Surface values for every pixel of a ``width x height`` grid.

        Parameters
        ----------
        width, height : int
            Grid size. Cell ``(x, y)`` covers ``0 <= x < width``,
            ``0 <= y < height``.
        local : bool
            True rebuilds the weighted fit per cell. False evaluates the
            cached global coefficient matrix everywhere.
        progress_callback : Optional[Callable[[float], None]]
            Called with the completed fraction (local mode only).

        Returns
        -------
        np.ndarray
            Shape (height, width); ``out[y, x]`` is the value at
            ``(x, y)``. Flattened, the order is y-major.
        """
        if width < 0 or height < 0:
            raise ValidationError(
                f"Grid size must be non-negative, got {width}x{height}"
            )
        ys, xs = np.mgrid[0:height, 0:width]
        if not local:
            return self.coefficient_matrix.evaluate(
                xs.astype(np.float64), ys.astype(np.float64)
            )
        logger.debug(
            "Evaluating %s-axis surface over %dx%d grid",
            self._solution.axis.value, width, height,
        )
        points = np.column_stack([xs.ravel(), ys.ravel()])
        values = self.evaluate_points(points, progress_callback)
        return values.reshape(height, width)
