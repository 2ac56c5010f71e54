"""Wavelet-domain maximum-likelihood estimators for fBm.

Observations are B-spline DCWT coefficients (see :mod:`fracfin.wavelet`):
for ``J`` scales and ``L`` consecutive time lags an observation column has
``J·L`` entries, time-major (``L`` blocks of ``J`` scales).

* full model      – :func:`bspline_covmat`, :func:`bspline_log_likelihood`,
  :func:`bspline_mle` (1-D bounded search, σ profiled out);
* partial model   – single time lag, :func:`partial_wavelet_log_likelihood`
  (σ profiled out) and :func:`partial_wavelet_mle` (2-D boxed search over
  ``(H, σ)``).
"""

from __future__ import annotations

import enum
import logging
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike

from ..errors import require
from ..likelihood import log_likelihood, profiled_sigma, safe_eigen
from ..wavelet import ConvolutionMode, c1rho
from ._base import (
    CancellationToken,
    HurstEstimate,
    OptimMethod,
    as_observations,
    minimize_bounded,
    minimize_boxed,
)

__all__ = [
    "FitVariables",
    "bspline_covmat",
    "partial_bspline_covmat",
    "bspline_log_likelihood",
    "bspline_mle",
    "partial_wavelet_log_likelihood",
    "partial_wavelet_objective",
    "partial_wavelet_mle",
]

logger = logging.getLogger(__name__)

BOX_EPS = 1e-8


class FitVariables(enum.Enum):
    ALL = "all"
    HURST = "hurst"
    SIGMA = "sigma"


def _scales(sclrng: Sequence[int]) -> np.ndarray:
    a = np.asarray(sclrng, dtype=float).ravel()
    require(a.size > 0, "scale list must not be empty")
    require(bool(np.all(a > 0)), "scales must be positive")
    return a


# ------------------------------------------------------------------ #
def bspline_covmat(
    l: int,
    sclrng: Sequence[int],
    v: int,
    hurst: float,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
) -> np.ndarray:
    """Covariance of B-spline DCWT coefficients of unit-volatility fBm.

    The result is the ``J(l+1)``-square matrix of the coefficients at
    ``J = len(sclrng)`` scales and time lags ``0..l``.  Block ``(r, c)`` is
    ``Σ_{c−r}`` when ``c ≥ r`` and ``Σ_{r−c}ᵀ`` otherwise, with

        Σ_d[i, j] = C1ρ(d/√(a_i a_j), a_j/a_i) · (a_i a_j)^{H+½}
    """

    require(l >= 0, f"maximum time lag must be non-negative, got {l}")
    a = _scales(sclrng)
    J = a.size
    A = np.sqrt(np.outer(a, a)) ** (2 * hurst + 1)
    blocks = [
        np.array(
            [[c1rho(d / np.sqrt(ai * aj), aj / ai, hurst, v, mode) for aj in a] for ai in a]
        )
        * A
        for d in range(l + 1)
    ]

    sigma = np.empty(((l + 1) * J, (l + 1) * J))
    for r in range(l + 1):
        for c in range(l + 1):
            block = blocks[c - r] if c >= r else blocks[r - c].T
            sigma[r * J : (r + 1) * J, c * J : (c + 1) * J] = block
    return 0.5 * (sigma + sigma.T)


def partial_bspline_covmat(
    sclrng: Sequence[int],
    v: int,
    hurst: float,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
) -> np.ndarray:
    """Single-lag (``J × J``) covariance of B-spline DCWT coefficients."""
    return bspline_covmat(0, sclrng, v, hurst, mode)


# ------------------------------------------------------------------ #
def _lag_count(X: np.ndarray, J: int) -> int:
    require(
        X.shape[0] % J == 0,
        f"observation length {X.shape[0]} is not a multiple of the {J} scales",
    )
    return X.shape[0] // J


def bspline_log_likelihood(
    X: ArrayLike,
    sclrng: Sequence[int],
    v: int,
    hurst: float,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
) -> float:
    require(0 < hurst < 1, f"Hurst exponent must lie in (0, 1), got {hurst}")
    X = np.asarray(X, dtype=float)
    L = _lag_count(X, len(sclrng))
    return log_likelihood(bspline_covmat(L - 1, sclrng, v, hurst, mode), X)


def bspline_mle(
    X: ArrayLike,
    sclrng: Sequence[int],
    v: int,
    *,
    eps: float = 1e-3,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
    method: OptimMethod = OptimMethod.BOUNDED,
    token: CancellationToken | None = None,
) -> HurstEstimate:
    """B-spline wavelet MLE of (H, σ) using the full multi-lag model."""

    X = as_observations(X)
    L = _lag_count(X, len(sclrng))
    require(0 < eps < 0.5, f"eps must lie in (0, 1/2), got {eps}")

    hurst, diagnostics = minimize_bounded(
        lambda h: -bspline_log_likelihood(X, sclrng, v, h, mode),
        eps,
        1 - eps,
        method=method,
        step=eps,
        token=token,
    )
    sigma = profiled_sigma(bspline_covmat(L - 1, sclrng, v, hurst, mode), X)
    logger.debug("wavelet MLE on %s (%d lags): H=%.4f sigma=%.4g", X.shape, L, hurst, sigma)
    return HurstEstimate(hurst, sigma, diagnostics)


# ------------------------------------------------------------------ #
def _check_partial(X: np.ndarray, sclrng: Sequence[int]) -> None:
    require(
        X.shape[0] == len(sclrng),
        f"expected one row per scale ({len(sclrng)}), got {X.shape[0]}",
    )


def partial_wavelet_log_likelihood(
    X: ArrayLike,
    sclrng: Sequence[int],
    v: int,
    hurst: float,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
) -> float:
    """Scale-profiled log-likelihood of ``J × N`` coefficients, one lag."""
    require(0 < hurst < 1, f"Hurst exponent must lie in (0, 1), got {hurst}")
    X = np.asarray(X, dtype=float)
    _check_partial(X, sclrng)
    return log_likelihood(partial_bspline_covmat(sclrng, v, hurst, mode), X)


def partial_wavelet_objective(
    X: ArrayLike,
    sclrng: Sequence[int],
    v: int,
    hurst: float,
    sigma: float,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
) -> float:
    """Gaussian log-likelihood of ``J × N`` coefficients at explicit (H, σ)."""

    X = np.asarray(X, dtype=float)
    _check_partial(X, sclrng)
    d, N = X.shape[0], (X.shape[1] if X.ndim > 1 else 1)
    S, U = safe_eigen(partial_bspline_covmat(sclrng, v, hurst, mode))
    proj = (U.T @ X.reshape(d, N)) ** 2
    quad = float(np.sum(proj / S[:, None])) / sigma**2
    logdet = float(np.sum(np.log(S))) + S.size * np.log(sigma**2)
    return -0.5 * (quad + N * logdet + N * d * np.log(2 * np.pi))


def partial_wavelet_mle(
    X: ArrayLike,
    sclrng: Sequence[int],
    v: int,
    *,
    variables: FitVariables = FitVariables.ALL,
    init: tuple[float, float] = (0.5, 1.0),
    mode: ConvolutionMode = ConvolutionMode.CENTER,
    token: CancellationToken | None = None,
) -> HurstEstimate:
    """Joint (H, σ) wavelet MLE by boxed optimisation.

    ``variables`` selects the free coordinates; the others stay at ``init``.
    The box is ``[ε, 1−ε] × [ε, 1/ε]`` with ``ε = 1e-8``.
    """

    X = as_observations(X)
    _check_partial(X, sclrng)
    require(len(init) == 2, "init must be a (hurst, sigma) pair")
    h0, s0 = (float(x) for x in init)
    h_box = (BOX_EPS, 1 - BOX_EPS)
    s_box = (BOX_EPS, 1 / BOX_EPS)

    def nll(h: float, s: float) -> float:
        return -partial_wavelet_objective(X, sclrng, v, h, s, mode)

    if variables is FitVariables.ALL:
        res = minimize_boxed(lambda x: nll(x[0], x[1]), [h0, s0], [h_box, s_box], token=token)
        hurst, sigma = res.x
    elif variables is FitVariables.HURST:
        res = minimize_boxed(lambda x: nll(x[0], s0), [h0], [h_box], token=token)
        hurst, sigma = res.x[0], s0
    elif variables is FitVariables.SIGMA:
        res = minimize_boxed(lambda x: nll(h0, x[0]), [s0], [s_box], token=token)
        hurst, sigma = h0, res.x[0]
    else:
        raise ValueError(f"unknown fit variables: {variables!r}")

    return HurstEstimate(float(hurst), float(sigma), res)
