"""
B-spline wavelet and its fBm covariance kernel
==============================================
The mother wavelet with ``v`` vanishing moments is

    ψ_v = Δᵛ β_v      (v-th unit backward difference of the order-v B-spline)

i.e. the v-fold self-convolution of the Haar function on ``[0, 2)``.  It is
supported on ``[0, 2v]`` (``causal`` mode) or shifted to ``[−v, v]``
(``center`` mode).

For fBm with Hurst H and volatility σ, the coefficients at scales ``a_i``,
``a_j`` and time lag ``d`` satisfy

    Cov = σ² (a_i a_j)^{H+½} · C1ρ(d / √(a_i a_j), a_j / a_i)

    C1ρ(τ, ρ) = −½ ∫∫ ψ(u) ψ(w) |τ + u/√ρ − √ρ w|^{2H} du dw

Integrating the B-spline boxes analytically turns the double integral into
a finite double sum of the 2v-th antiderivative of ``|x|^{2H}``:

    C1ρ = −½ (−1)ᵛ Γ(2H+1)/Γ(2H+2v+1)
          Σ_{s,t=0}^{2v} (−1)^{s+t} C(2v,s) C(2v,t) |τ + s'/√ρ − t'√ρ|^{2H+2v}

with ``s' = s − shift``, ``t' = t − shift`` and ``shift = v`` in center mode.
The double difference cancels catastrophically at large ``|τ|``; there the
sum is expanded in powers of ``1/τ`` instead (:func:`_far_field`).

:func:`bspline_dcwt` applies the same wavelet at integer scales to a sample
path (midpoint rule), so that its output follows the kernel above.
"""

from __future__ import annotations

import enum
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike
from scipy.interpolate import BSpline
from scipy.special import binom, comb, gamma

from .errors import require

__all__ = [
    "ConvolutionMode",
    "bspline_wavelet",
    "c1rho",
    "bspline_filter",
    "bspline_dcwt",
    "stack_lags",
]

# lags beyond this multiple of the kernel reach use the far-field series
FAR_FIELD = 1.5


class ConvolutionMode(enum.Enum):
    CENTER = "center"
    CAUSAL = "causal"


def _shift(v: int, mode: ConvolutionMode) -> int:
    if mode is ConvolutionMode.CENTER:
        return v
    if mode is ConvolutionMode.CAUSAL:
        return 0
    raise ValueError(f"unknown convolution mode: {mode!r}")


def _check_order(v: int) -> None:
    require(int(v) == v and v >= 1, f"vanishing moments must be a positive integer, got {v}")


# ------------------------------------------------------------------ #
def bspline_wavelet(u: ArrayLike, v: int) -> np.ndarray:
    """Evaluate the causal wavelet ``ψ_v`` (support ``[0, 2v]``) at ``u``."""

    _check_order(v)
    v = int(v)
    u = np.asarray(u, dtype=float)
    spline = BSpline.basis_element(np.arange(v + 1, dtype=float), extrapolate=False)
    out = np.zeros_like(u)
    for k in range(v + 1):
        out += (-1) ** k * comb(v, k, exact=True) * np.nan_to_num(spline(u - k))
    return out


def c1rho(
    tau: float,
    rho: float,
    hurst: float,
    v: int,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
) -> float:
    """Normalised covariance kernel of B-spline DCWT coefficients of fBm."""

    _check_order(v)
    require(rho > 0, f"scale ratio must be positive, got {rho}")
    require(0 < hurst < 1, f"Hurst exponent must lie in (0, 1), got {hurst}")
    v = int(v)

    s = np.arange(2 * v + 1)
    coef = (-1.0) ** s * comb(2 * v, s)
    shift = _shift(v, mode)
    sr = np.sqrt(rho)
    delta = ((s[:, None] - shift) / sr - (s[None, :] - shift) * sr).ravel()
    weight = np.outer(coef, coef).ravel()
    p = 2 * hurst + 2 * v
    reach = float(np.max(np.abs(delta)))
    if abs(tau) > FAR_FIELD * reach:
        total = _far_field(tau, delta, weight, p, 4 * v, reach / abs(tau))
    else:
        total = np.sum(weight * np.abs(tau + delta) ** p)
    norm = gamma(2 * hurst + 1) / gamma(2 * hurst + 2 * v + 1)
    return float(-0.5 * (-1) ** v * norm * total)


def _far_field(
    tau: float, delta: np.ndarray, weight: np.ndarray, p: float, k0: int, ratio: float
) -> float:
    """``Σ w |τ + δ|^p`` as a binomial series in ``δ/τ``.

    ``|τ + δ|^p = |τ|^p Σ_k C(p, k) (δ/τ)^k`` for ``|δ| < |τ|``; the weights
    are a double 2v-th difference, so every term below ``k0 = 4v`` vanishes
    identically and is skipped.
    """

    terms = int(np.ceil(np.log(np.finfo(float).eps) / np.log(ratio))) + 1
    k = np.arange(k0, k0 + terms)
    z = delta / tau
    moments = (z[None, :] ** k[:, None]) @ weight
    return float(abs(tau) ** p * np.sum(binom(p, k) * moments))


# ------------------------------------------------------------------ #
def bspline_filter(scale: int, v: int) -> np.ndarray:
    """Discrete filter ``a^{-1/2} ψ((k + ½)/a)``, ``k = 0..2va−1``."""

    require(int(scale) == scale and scale >= 1, f"scales must be positive integers, got {scale}")
    scale = int(scale)
    k = np.arange(2 * int(v) * scale)
    return bspline_wavelet((k + 0.5) / scale, v) / np.sqrt(scale)


def bspline_dcwt(
    x: ArrayLike,
    sclrng: Sequence[int],
    v: int,
    mode: ConvolutionMode = ConvolutionMode.CENTER,
) -> np.ndarray:
    """B-spline DCWT of a sample path at integer scales.

    ``W[j, b] = Σ_k h_j[k] x[b − k + shift·a_j]`` for the time indices ``b``
    where every scale's filter stays inside the path.  Rows follow
    ``sclrng``, columns follow time; ``x`` is the path itself (levels), not
    its increments.
    """

    x = np.asarray(x, dtype=float)
    require(x.ndim == 1, "DCWT expects a one-dimensional sample path")
    require(len(sclrng) > 0, "scale list must not be empty")
    shift = _shift(int(v), mode)

    filters = [bspline_filter(a, v) for a in sclrng]
    # first output time index of each valid convolution
    starts = [h.size - 1 - shift * a for h, a in zip(filters, sclrng)]
    lo = max(starts)
    hi = x.size - 1 - max(shift * a for a in sclrng)
    require(hi >= lo, f"sample path of length {x.size} is too short for scale {max(sclrng)}")

    W = np.empty((len(sclrng), hi - lo + 1))
    for j, (h, b0) in enumerate(zip(filters, starts)):
        conv = np.convolve(x, h, mode="valid")
        W[j] = conv[lo - b0 : hi - b0 + 1]
    return W


def stack_lags(W: ArrayLike, lags: int) -> np.ndarray:
    """Stack ``lags`` consecutive columns of ``W`` into one observation.

    Column ``b`` of the result is ``W[:, b:b+lags]`` flattened time-major,
    matching the block layout of
    :func:`fracfin.estimators.wavelet.bspline_covmat` with ``l = lags − 1``.
    """

    W = np.asarray(W, dtype=float)
    require(W.ndim == 2, "wavelet coefficients must be a (scales, time) matrix")
    require(1 <= lags <= W.shape[1], f"lags must lie in [1, {W.shape[1]}], got {lags}")
    n = W.shape[1] - lags + 1
    return np.column_stack([W[:, b : b + lags].ravel(order="F") for b in range(n)])
