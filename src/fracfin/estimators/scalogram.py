"""
Scalogram regression estimators
===============================
Fast O(J) alternatives to the wavelet MLE with the same ``(H, σ)`` output.

B-spline scalogram
    ``Var W(a) = σ² C1ρ(0, 1) a^{2H+1}``: regress ``log S`` on ``log a²``,
    ``H = slope − ½``.

Generalized scalogram
    Along the line ``a_j / a_i = r = p/q`` of the coefficient covariance
    matrix, ``Cov(W(a_{qj}), W(a_{pj})) = σ² C1ρ(0, r) (a_{qj} a_{pj})^{H+½}``:
    regress ``log |Σ[qj, pj]|`` on ``log(a_{qj} a_{pj})``.  For ``r > 1`` the
    scales must be ``a_k = k a_1`` so that the line hits the grid.

Both put the statsmodels OLS results in ``diagnostics``.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Sequence

import numpy as np
import statsmodels.api as sm
from numpy.typing import ArrayLike

from ..errors import IncompatibleScalesError, require
from ..wavelet import ConvolutionMode, c1rho
from ._base import HurstEstimate

__all__ = [
    "scalogram",
    "bspline_scalogram_estim",
    "gen_bspline_scalogram_estim",
]


def scalogram(W: ArrayLike | Sequence[ArrayLike]) -> np.ndarray:
    """Per-scale sample variance (ddof=1) of wavelet coefficients.

    ``W`` is a ``J × N`` matrix (rows = scales) or a list of per-scale
    coefficient arrays of possibly different lengths.
    """

    if isinstance(W, np.ndarray) and W.ndim == 2:
        return np.var(W, axis=1, ddof=1)
    return np.array([np.var(np.asarray(w, dtype=float), ddof=1) for w in W])


def _regress(x: np.ndarray, y: np.ndarray, hurst_offset: float):
    ols = sm.OLS(y, sm.add_constant(x)).fit()
    intercept, slope = ols.params
    return float(slope - hurst_offset), float(intercept), ols


def bspline_scalogram_estim(
    S: ArrayLike | Sequence[ArrayLike],
    sclrng: Sequence[int],
    v: int,
    *,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
) -> HurstEstimate:
    """B-spline scalogram estimator of the Hurst exponent and volatility.

    Parameters
    ----------
    S : array or list of arrays
        Scalogram vector (one variance per scale), or the coefficients it is
        computed from (see :func:`scalogram`).
    sclrng : sequence of int
        Wavelet scales, one per entry of ``S``.
    v : int
        Vanishing moments of the B-spline wavelet.
    """

    S = np.asarray(S, dtype=float) if _is_vector(S) else scalogram(S)
    a = np.asarray(sclrng, dtype=float)
    require(S.size == a.size, f"{S.size} scalogram values for {a.size} scales")
    require(a.size >= 2, "scalogram regression needs at least two scales")
    require(bool(np.all(S > 0)), "scalogram values must be positive")

    hurst, intercept, ols = _regress(np.log(a**2), np.log(S), 0.5)
    C1 = c1rho(0, 1, _clip_hurst(hurst), v, mode)
    sigma = float(np.exp((intercept - np.log(abs(C1))) / 2))
    return HurstEstimate(hurst, sigma, ols)


def gen_bspline_scalogram_estim(
    Sigma: ArrayLike,
    sclrng: Sequence[int],
    v: int,
    r: Fraction | int = Fraction(1),
    *,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
) -> HurstEstimate:
    """Generalized B-spline scalogram estimator on the line of ratio ``r``.

    Raises
    ------
    IncompatibleScalesError
        ``r > 1`` but the scales are not an arithmetic progression
        ``a_k = k a_1``.
    ContractError
        ``Sigma`` not symmetric or not ``J × J``, ``r < 1`` or ``J < 2p``.
    """

    Sigma = np.asarray(Sigma, dtype=float)
    a = np.asarray(sclrng, dtype=float)
    r = Fraction(r)
    N = a.size
    require(Sigma.shape == (N, N), f"covariance shape {Sigma.shape} does not match {N} scales")
    require(np.allclose(Sigma, Sigma.T), "covariance matrix of coefficients is not symmetric")
    require(r >= 1, f"scale ratio must be at least 1, got {r}")
    if r > 1 and not np.allclose(np.diff(a / a[0]), 1):
        raise IncompatibleScalesError(
            "incompatible scales: the ratio between the k-th and the 1st scale must be k"
        )
    p, q = r.numerator, r.denominator
    require(N >= 2 * p, f"{N} scales are too few for the ratio {r} (need {2 * p})")

    # 1-based scale indices (q·j, p·j) on the line of ratio r
    js = [j for j in range(1, N + 1) if p * j <= N]
    yr = np.log([abs(Sigma[q * j - 1, p * j - 1]) for j in js])
    xr = np.log([a[q * j - 1] * a[p * j - 1] for j in js])

    hurst, intercept, ols = _regress(xr, yr, 0.5)
    C1 = c1rho(0, float(r), _clip_hurst(hurst), v, mode)
    sigma = float(np.exp((intercept - np.log(abs(C1))) / 2))
    return HurstEstimate(hurst, sigma, ols)


# ------------------------------------------------------------------ #
def _is_vector(S) -> bool:
    if isinstance(S, np.ndarray):
        return S.ndim == 1
    return all(np.ndim(s) == 0 for s in S)


def _clip_hurst(h: float) -> float:
    # the normalising constant is only defined on (0, 1)
    return float(np.clip(h, 1e-6, 1 - 1e-6))
