"""
Fractional Brownian Motion (fBm) and Fractional Gaussian Noise (fGn)
====================================================================
fBm      : continuous time, self-similar with exponent H, stationary
           increments,

               Cov(B(t), B(s)) = σ²/2 (|t|^{2H} + |s|^{2H} − |t−s|^{2H})

fGn      : discrete time, X(n) = B(n) − B(n − δ), i.e. a differential
           process of fBm with gap δ.  Its lag autocovariance has the closed
           form

               γ(k) = σ²/2 (|k+δ|^{2H} + |k−δ|^{2H} − 2|k|^{2H})

           which agrees with the generic filtered-process derivation.

References
----------
Mandelbrot & Van Ness (1968); Dieker (2004)
"""

from __future__ import annotations

from ..errors import CapabilityError, require
from .base import Capability, DifferentialProcess, SelfSimilarProcess, TimeStyle

__all__ = ["FractionalBrownianMotion", "FractionalGaussianNoise"]


def _check_params(hurst: float, sigma: float) -> None:
    require(0 < hurst < 1, f"Hurst exponent must lie in (0, 1), got {hurst}")
    require(sigma >= 0, f"volatility must be non-negative, got {sigma}")


# ------------------------------------------------------------------ #
class FractionalBrownianMotion(SelfSimilarProcess):
    capabilities = frozenset(
        {Capability.AUTOCOV, Capability.SELF_SIMILAR, Capability.INCREMENT_STATIONARY}
    )

    def __init__(self, hurst: float, sigma: float = 1.0) -> None:
        _check_params(hurst, sigma)
        self.hurst = float(hurst)
        self.sigma = float(sigma)

    @property
    def ss_exponent(self) -> float:
        return self.hurst

    def autocov(self, t: float, s: float | None = None) -> float:
        if s is None:
            raise CapabilityError(
                self, "a lag autocovariance", "fBm is not stationary"
            )
        h2 = 2 * self.hurst
        return 0.5 * self.sigma**2 * (abs(t) ** h2 + abs(s) ** h2 - abs(t - s) ** h2)

    def _params(self) -> dict[str, object]:
        return {"hurst": self.hurst, "sigma": self.sigma}


# ------------------------------------------------------------------ #
class FractionalGaussianNoise(DifferentialProcess):
    time_style = TimeStyle.DISCRETE

    def __init__(self, hurst: float, sigma: float = 1.0, step: float = 1) -> None:
        _check_params(hurst, sigma)
        super().__init__(FractionalBrownianMotion(hurst, sigma), lag=step)
        self.time_style = TimeStyle.DISCRETE
        self.hurst = float(hurst)
        self.sigma = float(sigma)

    def autocov_lag(self, lag: float) -> float:
        h2 = 2 * self.hurst
        d = self.step
        return 0.5 * self.sigma**2 * (
            abs(lag + d) ** h2 + abs(lag - d) ** h2 - 2 * abs(lag) ** h2
        )

    def autocov(self, t: float, s: float | None = None) -> float:
        if s is None:
            return self.autocov_lag(t)
        return self.autocov_lag(t - s)

    def _params(self) -> dict[str, object]:
        return {"hurst": self.hurst, "sigma": self.sigma, "step": self.step}
