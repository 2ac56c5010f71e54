"""Time-domain estimators of (H, σ) for fractional Brownian motion.

* :func:`fgn_mle`      – maximum likelihood on fractional Gaussian noise,
  volatility profiled out and recovered in closed form.
* :func:`powlaw_estim` – power-law regression of the absolute increment
  moments of an fBm path.

``fgn_mle`` eigendecomposes an ``N × N`` matrix at every objective
evaluation, so it costs O(N³) per step.  Beyond a few hundred points, cut the
path into short i.i.d. columns (see :mod:`fracfin.estimators.rolling`).
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import statsmodels.api as sm
from numpy.typing import ArrayLike
from scipy.special import gamma

from ..covariance import autocov_matrix
from ..errors import require
from ..likelihood import log_likelihood, profiled_sigma
from ..models import FractionalGaussianNoise
from ._base import (
    CancellationToken,
    HurstEstimate,
    OptimMethod,
    as_observations,
    minimize_bounded,
)

__all__ = [
    "fgn_covariance",
    "fgn_log_likelihood",
    "fgn_mle",
    "powlaw_estim",
]

logger = logging.getLogger(__name__)


def fgn_covariance(hurst: float, n: int) -> np.ndarray:
    """Toeplitz covariance matrix of unit-volatility fGn on ``1..n``."""
    return autocov_matrix(FractionalGaussianNoise(hurst, 1.0), n)


def fgn_log_likelihood(X: ArrayLike, hurst: float) -> float:
    require(0 < hurst < 1, f"Hurst exponent must lie in (0, 1), got {hurst}")
    X = np.asarray(X, dtype=float)
    return log_likelihood(fgn_covariance(hurst, X.shape[0]), X)


def fgn_mle(
    X: ArrayLike,
    *,
    method: OptimMethod = OptimMethod.BOUNDED,
    eps: float = 1e-2,
    token: CancellationToken | None = None,
) -> HurstEstimate:
    """fGn maximum-likelihood estimate of the Hurst exponent and volatility.

    Parameters
    ----------
    X : (N,) or (N, M) array
        fGn observation; each column of a matrix is an i.i.d. realization.
    method : OptimMethod
        ``BOUNDED`` for the derivative-free bounded search, ``GRID`` for a
        scan of ``[eps, 1 - eps]`` at step ``eps``.
    eps : float, default 1e-2
        Distance of the search interval to 0 and 1.
    token : CancellationToken, optional
        Aborts the search with :class:`~fracfin.errors.EstimationCancelled`.
    """

    X = as_observations(X, min_length=2)
    require(0 < eps < 0.5, f"eps must lie in (0, 1/2), got {eps}")

    hurst, diagnostics = minimize_bounded(
        lambda h: -fgn_log_likelihood(X, h),
        eps,
        1 - eps,
        method=method,
        step=eps,
        token=token,
    )
    sigma = profiled_sigma(fgn_covariance(hurst, X.shape[0]), X)
    logger.debug("fGn MLE on %s: H=%.4f sigma=%.4g", X.shape, hurst, sigma)
    return HurstEstimate(hurst, sigma, diagnostics)


# ------------------------------------------------------------------ #
def _moment_increment(x: np.ndarray, lag: int, p: float) -> float:
    """p-th absolute moment of the increments of ``x`` at ``lag``."""
    return float(np.mean(np.abs(x[lag:] - x[:-lag]) ** p))


def powlaw_estim(
    X: ArrayLike,
    lags: Sequence[int],
    p: float = 2.0,
) -> HurstEstimate:
    """Power-law estimator on an fBm sample path.

    ``E|B(t+d) − B(t)|^p = C_p σ^p d^{pH}`` so regressing the log-moments on
    ``p·log d`` gives ``H`` as slope and ``σ`` from the intercept, with
    ``C_p = 2^{p/2} Γ((p+1)/2) / √π``.
    """

    x = as_observations(X)
    require(x.ndim == 1, "power-law estimator expects a single sample path")
    lags = np.asarray(lags, dtype=int)
    require(
        np.unique(lags).size > 1 and np.unique(lags).size == lags.size,
        "power-law estimator needs at least two distinct lags",
    )
    require(bool(np.all(lags >= 1)), "lags must be positive")
    require(int(lags.max()) < x.size, "largest lag exceeds the path length")
    require(p > 0, f"moment order must be positive, got {p}")

    c_p = 2 ** (p / 2) * gamma((p + 1) / 2) / np.sqrt(np.pi)
    yp = np.log([_moment_increment(x, int(d), p) for d in lags])
    xp = p * np.log(lags)

    ols = sm.OLS(yp, sm.add_constant(xp)).fit()
    beta, hurst = ols.params
    sigma = float(np.exp((beta - np.log(c_p)) / p))
    return HurstEstimate(float(hurst), sigma, ols)
