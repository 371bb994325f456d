# -*- coding: utf-8 -*-
"""
Orthogonal Polynomial Basis - Raw monomials and weighted Gram-Schmidt.

The raw basis is a fixed list of low-degree bivariate monomials::

    slot   0  1  2  3   4   5   6   7    8    9
    h_k    1  x  y  x²  y²  y²  x³  x²y  xy²  y³

(slot 5 repeats ``y²``; it is always linearly dependent on slot 4 and
ends up singular once reached.)

For a weight vector ``w`` over the control points the orthogonal
polynomials are built recursively::

    poly_k(x, y) = sum_{j<k} aM[k][j] * poly_j(x, y) + aM[k][k] * h_k(x, y)

with ``aM[0][0] = 1``, ``aM[k][k] = -sum(w) / sum(w * h_k)`` and the
off-diagonal entries cancelling the weighted projection of ``h_k`` onto
each earlier ``poly_j``. The recursion is unrolled into an explicit table
of ``poly_k`` values per control point, so building ``T`` terms over
``N`` points costs ``O(T**2 * N)``.

Everything here is batched over ``P`` weight vectors (one per evaluation
point), so one call orthogonalizes for many query points at once.

Reference: Goshtasby, A., "Image registration by local approximation
methods", Image and Vision Computing 6(4), 1988; Wolberg, G., *Digital
Image Warping*, section 3.6.

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
from dataclasses import dataclass
from typing import Tuple, Union

# Third-party
import numpy as np

# polywarp internal
from polywarp.config import MXTERMS
from polywarp.exceptions import ValidationError

#: ``(power of x, power of y)`` for each raw basis slot.
MONOMIAL_POWERS: Tuple[Tuple[int, int], ...] = (
    (0, 0), (1, 0), (0, 1), (2, 0), (0, 2),
    (0, 2), (3, 0), (2, 1), (1, 2), (0, 3),
)

# Relative size below which sum(w * h_k) counts as zero when choosing aM[k][k].
_DIAG_EPS = 1e-12

ArrayOrFloat = Union[float, np.ndarray]


def _check_terms(term_count: int) -> None:
    if not 0 <= term_count <= MXTERMS:
        raise ValidationError(
            f"term_count must be in [0, {MXTERMS}], got {term_count}"
        )


def basis(term: int, x: ArrayOrFloat, y: ArrayOrFloat) -> ArrayOrFloat:
    """Value of raw basis slot *term* at ``(x, y)``.

    Raises
    ------
    ValidationError
        If *term* is not in ``[0, MXTERMS)``.
    """
    if not 0 <= term < MXTERMS:
        raise ValidationError(
            f"Basis term must be in [0, {MXTERMS}), got {term}"
        )
    px, py = MONOMIAL_POWERS[term]
    return (x ** px) * (y ** py)


def basis_matrix(points: np.ndarray, term_count: int,
                 scale: float = 1.0) -> np.ndarray:
    """Raw basis values for every point.

    Parameters
    ----------
    points : np.ndarray
        Shape (N, 2), columns are (x, y).
    term_count : int
        Number of leading slots to evaluate.
    scale : float
        Coordinates are divided by this before evaluation.

    Returns
    -------
    np.ndarray
        Shape (N, term_count).
    """
    _check_terms(term_count)
    pts = np.atleast_2d(np.asarray(points, dtype=np.float64))
    x = pts[:, 0] / scale
    y = pts[:, 1] / scale
    out = np.empty((pts.shape[0], term_count), dtype=np.float64)
    for k in range(term_count):
        px, py = MONOMIAL_POWERS[k]
        out[:, k] = (x ** px) * (y ** py)
    return out


def coordinate_scale(points: np.ndarray) -> float:
    """Largest absolute coordinate of *points*, or 1.0 if all are zero.

    Dividing by a single scale maps every monomial onto a multiple of
    itself, so the fitted function space is unchanged while the basis
    stays well conditioned for large pixel coordinates.
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.size == 0:
        return 1.0
    scale = float(np.max(np.abs(pts)))
    return scale if scale > 0.0 else 1.0


@dataclass(frozen=True, eq=False)
class OrthogonalBasis:
    """Orthogonal polynomial tables for a batch of weight vectors.

    Attributes
    ----------
    alpha : np.ndarray
        Recursion coefficients ``aM``, shape (P, T, T), lower triangular.
    values : np.ndarray
        ``poly_k`` at each control point, shape (P, N, T).
    norms : np.ndarray
        Weighted squared norms ``sum(w * poly_k**2)``, shape (P, T).
    singular : np.ndarray
        True where a term's norm vanished, shape (P, T).
    """

    alpha: np.ndarray
    values: np.ndarray
    norms: np.ndarray
    singular: np.ndarray

    @property
    def term_count(self) -> int:
        return self.alpha.shape[1]

    @property
    def batch_size(self) -> int:
        return self.alpha.shape[0]

    def evaluate(self, query_basis: np.ndarray) -> np.ndarray:
        """Orthogonal polynomial values at the query points.

        Parameters
        ----------
        query_basis : np.ndarray
            Raw basis values at one query point per batch row,
            shape (P, T).

        Returns
        -------
        np.ndarray
            ``poly_k`` values, shape (P, T).
        """
        raw = np.atleast_2d(np.asarray(query_basis, dtype=np.float64))
        out = np.zeros_like(raw)
        for k in range(self.term_count):
            out[:, k] = (
                self.alpha[:, k, k] * raw[:, k]
                + np.einsum('pj,pj->p', self.alpha[:, k, :k], out[:, :k])
            )
        return out


def build_orthogonal_basis(
    control_basis: np.ndarray,
    weights: np.ndarray,
    singular_tol: float = 1e-10,
) -> OrthogonalBasis:
    """Orthogonalize the raw basis over the control points.

    Parameters
    ----------
    control_basis : np.ndarray
        Raw basis values at the control points, shape (N, T).
    weights : np.ndarray
        One weight vector per batch row, shape (P, N) or (N,).
    singular_tol : float
        A term is singular when its weighted norm is at most
        ``singular_tol`` times the norm of its uncorrected raw term.
        Singular terms are skipped by every later projection.

    Returns
    -------
    OrthogonalBasis
    """
    H = np.asarray(control_basis, dtype=np.float64)
    W = np.atleast_2d(np.asarray(weights, dtype=np.float64))
    n, t = H.shape
    if W.shape[1] != n:
        raise ValidationError(
            f"Weights cover {W.shape[1]} control points, basis has {n}"
        )
    _check_terms(t)
    p = W.shape[0]

    alpha = np.zeros((p, t, t), dtype=np.float64)
    values = np.zeros((p, n, t), dtype=np.float64)
    norms = np.zeros((p, t), dtype=np.float64)
    singular = np.zeros((p, t), dtype=bool)
    w_sum = W.sum(axis=1)

    for k in range(t):
        h = H[:, k]
        if k == 0:
            diag = np.ones(p, dtype=np.float64)
        else:
            wh = W @ h
            ok = np.abs(wh) > _DIAG_EPS * (W @ np.abs(h))
            diag = np.where(ok, -w_sum / np.where(ok, wh, 1.0), 1.0)
        alpha[:, k, k] = diag

        poly = diag[:, None] * h[None, :]
        for j in range(k):
            live = ~singular[:, j]
            # Modified Gram-Schmidt: project the partially corrected term.
            proj = np.einsum('pn,pn,pn->p', W, values[:, :, j], poly)
            a = np.where(live, -proj / np.where(live, norms[:, j], 1.0), 0.0)
            alpha[:, k, j] = a
            poly = poly + a[:, None] * values[:, :, j]

        values[:, :, k] = poly
        norms[:, k] = np.einsum('pn,pn->p', W, poly * poly)
        raw_norm = diag ** 2 * (W @ (h * h))
        singular[:, k] = norms[:, k] <= singular_tol * raw_norm

    return OrthogonalBasis(alpha, values, norms, singular)
