# -*- coding: utf-8 -*-
"""
Inverse-Distance Weights - Control point influence around an evaluation point.

The weight of control point ``i`` seen from evaluation point ``q`` is::

    w_i = 1 / sqrt((x_i - x_q)**2 + (y_i - y_q)**2 + delta)

where ``delta >= 0`` smooths the fit (``delta == 0`` is not smooth). The
evaluation point is always the point being fitted or queried: each
control point in turn while choosing the term count, and the query pixel
while evaluating a surface.

With ``delta == 0`` a query that coincides with control points has an
infinite weight for them. That row is replaced by the limit of the
weighted fit: coincident points get weight 1, all others 0.

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

# Third-party
import numpy as np
from scipy.spatial.distance import cdist

# polywarp internal
from polywarp.exceptions import ValidationError


def compute_weights(
    query_points: np.ndarray,
    control_points: np.ndarray,
    delta: float = 0.0,
) -> np.ndarray:
    """Inverse-distance weights of every control point for each query.

    Parameters
    ----------
    query_points : np.ndarray
        Evaluation points. Shape (P, 2) or (2,), columns are (x, y).
    control_points : np.ndarray
        Control points. Shape (N, 2), columns are (x, y).
    delta : float
        Non-negative smoothing constant added to the squared distance.

    Returns
    -------
    np.ndarray
        Weights, shape (P, N). Row ``p`` is the weight vector for
        ``query_points[p]``. All entries are finite and non-negative.

    Raises
    ------
    ValidationError
        If ``delta`` is negative or the arrays are not (·, 2).
    """
    if delta < 0:
        raise ValidationError(f"delta must be >= 0, got {delta}")
    query = np.atleast_2d(np.asarray(query_points, dtype=np.float64))
    control = np.asarray(control_points, dtype=np.float64)
    if query.shape[-1] != 2 or control.ndim != 2 or control.shape[1] != 2:
        raise ValidationError(
            f"Points must have shape (N, 2), got query {query.shape} "
            f"and control {control.shape}"
        )
    if control.shape[0] == 0:
        return np.zeros((query.shape[0], 0), dtype=np.float64)

    d2 = cdist(query, control, 'sqeuclidean') + delta
    coincident = d2 <= 0.0
    weights = 1.0 / np.sqrt(np.where(coincident, 1.0, d2))

    hit = coincident.any(axis=1)
    if hit.any():
        weights[hit] = coincident[hit].astype(np.float64)
    return weights
