"""
Numerically stable Gaussian likelihood
======================================
For ``X`` whose columns are i.i.d. ``N(0, σ²A)`` the log-likelihood,
maximised analytically in σ, is (up to an additive constant)

    ℓ(A; X) = −½ (|X| · log(tr Xᵀ A⁻¹ X) + N · log det A)

with ``N`` the number of columns and ``|X|`` the number of elements.  Only
the shape matrix ``A`` needs refreshing inside an optimisation loop.

``A`` is eigendecomposed once, ``A = U diag(S) Uᵀ``; eigen-pairs with
``S ≤ eps`` or within round-off of zero (small negative values included) are
discarded, which acts as a rank truncation for nearly singular matrices
instead of an error:

    tr Xᵀ A⁻¹ X ≈ Σᵢ (Uᵢᵀ X)² / Sᵢ         log det A ≈ Σᵢ log Sᵢ
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike
from scipy import linalg

from .errors import require

__all__ = [
    "safe_eigen",
    "quadratic_form",
    "log_determinant",
    "log_likelihood",
    "profiled_sigma",
]

logger = logging.getLogger(__name__)

SYMMETRY_RTOL = 1e-8
PSD_RTOL = 1e-6


def _check_shapes(A: np.ndarray, X: np.ndarray) -> None:
    require(X.ndim in (1, 2), f"observations must be a vector or matrix, got {X.ndim}-d")
    require(
        X.shape[0] == A.shape[0],
        f"observation length {X.shape[0]} does not match covariance size {A.shape[0]}",
    )


def safe_eigen(A: ArrayLike, eps: float = 0.0) -> tuple[np.ndarray, np.ndarray]:
    """Eigenvalues above ``eps`` of the symmetric PSD matrix ``A`` and their vectors.

    Eigenvalues below ``n·machine-eps·max|S|`` are treated as zero whatever
    ``eps`` is.

    Raises
    ------
    ContractError
        ``A`` is not square, not symmetric or has an eigenvalue below
        ``−PSD_RTOL·max|S|``.
    """

    A = np.asarray(A, dtype=float)
    require(
        A.ndim == 2 and A.shape[0] == A.shape[1],
        f"covariance must be a square matrix, got shape {A.shape}",
    )
    scale = max(float(np.max(np.abs(A))), np.finfo(float).tiny) if A.size else 1.0
    require(
        np.allclose(A, A.T, rtol=SYMMETRY_RTOL, atol=SYMMETRY_RTOL * scale),
        "covariance matrix is not symmetric",
    )
    S, U = linalg.eigh(0.5 * (A + A.T))
    if S.size == 0:
        return S, U
    top = float(np.max(np.abs(S)))
    # eigenvalues this close to zero are round-off of a rank-deficient matrix
    noise = S.size * np.finfo(float).eps * top
    require(
        S[0] >= -(PSD_RTOL * top + noise),
        f"covariance matrix is not positive semi-definite (min eigenvalue {S[0]:.3e})",
    )
    cutoff = max(eps, noise)
    keep = S > cutoff
    if not keep.all():
        logger.debug("discarding %d of %d eigen-pairs below %g", (~keep).sum(), S.size, cutoff)
    return S[keep], U[:, keep]


def quadratic_form(A: ArrayLike, X: ArrayLike, eps: float = 0.0) -> float:
    """``tr(Xᵀ A⁻¹ X)`` restricted to the eigen-pairs of ``A`` above ``eps``."""
    X = np.asarray(X, dtype=float)
    S, U = safe_eigen(A, eps)
    _check_shapes(np.asarray(A), X)
    return _quadratic(S, U, X)


def _quadratic(S: np.ndarray, U: np.ndarray, X: np.ndarray) -> float:
    proj = U.T @ X
    if proj.ndim == 1:
        return float(np.sum(proj**2 / S))
    return float(np.sum(proj**2 / S[:, None]))


def log_determinant(A: ArrayLike, eps: float = 0.0) -> float:
    """``log det A`` restricted to the eigenvalues above ``eps``."""
    S, _ = safe_eigen(A, eps)
    return float(np.sum(np.log(S)))


def log_likelihood(A: ArrayLike, X: ArrayLike, eps: float = 0.0) -> float:
    """Scale-profiled log-likelihood of observations ``X`` under shape ``A``.

    Parameters
    ----------
    A : (d, d) array
        Symmetric positive semi-definite covariance shape.
    X : (d,) or (d, N) array
        One observation vector or ``N`` i.i.d. columns.
    eps : float, default 0
        Eigenvalue cut-off.
    """

    X = np.asarray(X, dtype=float)
    S, U = safe_eigen(A, eps)
    _check_shapes(np.asarray(A), X)
    N = X.shape[1] if X.ndim > 1 else 1
    return float(-0.5 * (X.size * np.log(_quadratic(S, U, X)) + N * np.sum(np.log(S))))


def profiled_sigma(A: ArrayLike, X: ArrayLike, eps: float = 0.0) -> float:
    """MLE of the volatility σ once the shape ``A`` is known."""
    X = np.asarray(X, dtype=float)
    return float(np.sqrt(quadratic_form(A, X, eps) / X.size))
