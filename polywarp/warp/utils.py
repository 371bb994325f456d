# -*- coding: utf-8 -*-
"""
Warp Utilities - Residual metrics and coordinate clipping.

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
from typing import Tuple

# Third-party
import numpy as np


def compute_residuals(
    fixed_points: np.ndarray,
    mapped_points: np.ndarray,
) -> np.ndarray:
    """Per-point Euclidean distance between expected and mapped points.

    Parameters
    ----------
    fixed_points : np.ndarray
        Expected (target image) points. Shape (N, 2), columns (x, y).
    mapped_points : np.ndarray
        Source points pushed through the warp. Shape (N, 2).

    Returns
    -------
    np.ndarray
        Residuals in pixels. Shape (N,).
    """
    diff = np.asarray(fixed_points, dtype=np.float64) - mapped_points
    return np.sqrt(np.sum(diff ** 2, axis=1))


def compute_rms(residuals: np.ndarray) -> float:
    """Root mean square of *residuals*; 0.0 for an empty array."""
    if residuals.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(residuals ** 2)))


def clip_points(points: np.ndarray, shape: Tuple[int, int]) -> np.ndarray:
    """Clamp ``(x, y)`` points into an image of ``shape = (rows, cols)``.

    x is limited to ``[0, cols - 1]`` and y to ``[0, rows - 1]``.
    """
    rows, cols = shape
    pts = np.array(points, dtype=np.float64)
    pts[..., 0] = np.clip(pts[..., 0], 0, cols - 1)
    pts[..., 1] = np.clip(pts[..., 1], 0, rows - 1)
    return pts
