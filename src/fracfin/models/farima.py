"""Fractionally integrated noise FARIMA(0, d, 0).

Discrete-time stationary process with

    γ(k)  = σ² Γ(1−2d)/Γ(1−d)² · Γ(k+d)Γ(1−d) / (Γ(k−d+1)Γ(d))
    φ_kk  = d / (k − d)

for ``−1/2 < d < 1/2``; the Hurst exponent is ``H = d + 1/2``.  The closed
form partial correlation makes it the reference process for the
Levinson–Durbin recursion.
"""

from __future__ import annotations

import numpy as np
from scipy.special import gamma, gammaln, rgamma

from ..errors import require
from .base import Capability, StationaryProcess, TimeStyle

__all__ = ["FractionalIntegrated"]


def _as_lag(k: float) -> int:
    require(float(k).is_integer(), f"FARIMA lags must be integers, got {k}")
    return abs(int(k))


class FractionalIntegrated(StationaryProcess):
    time_style = TimeStyle.DISCRETE
    capabilities = StationaryProcess.capabilities | {Capability.PARTIAL_CORRELATION}

    def __init__(self, d: float, sigma: float = 1.0) -> None:
        require(-0.5 < d < 0.5, f"fractional order must lie in (-1/2, 1/2), got {d}")
        require(sigma >= 0, f"volatility must be non-negative, got {sigma}")
        self.d = float(d)
        self.sigma = float(sigma)

    @property
    def hurst(self) -> float:
        return self.d + 0.5

    def autocov_lag(self, lag: float) -> float:
        k = _as_lag(lag)
        d = self.d
        var = self.sigma**2 * gamma(1 - 2 * d) / gamma(1 - d) ** 2
        if k == 0:
            return float(var)
        rho = gamma(1 - d) * rgamma(d) * np.exp(gammaln(k + d) - gammaln(k + 1 - d))
        return float(var * rho)

    def partcorr(self, k: int) -> float:
        k = _as_lag(k)
        require(k >= 1, "partial correlation is defined for lags >= 1")
        return self.d / (k - self.d)

    def _params(self) -> dict[str, object]:
        return {"d": self.d, "sigma": self.sigma}
