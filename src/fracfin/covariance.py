"""
Covariance protocol
===================
Generic algorithms turning any process of :mod:`fracfin.models` into
covariance matrices and sequences.

* :func:`autocov_matrix`      – symmetric matrix on one grid (Toeplitz fast
  path for stationary behaviour on a regular grid) or rectangular
  cross-covariance on two grids.
* :func:`autocov_sequence`    – lag autocovariances on a regular grid.
* :func:`conditional_mean_and_covariance` – Gaussian conditioning.
* :func:`levinson_durbin` / :func:`partial_autocorrelation`.

A grid is a 1-D array of time points; an integer ``N`` stands for ``1..N``.
Nothing is cached, every call evaluates the process afresh.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike
from scipy import linalg

from .errors import CapabilityError, ContractError, require
from .models.base import Capability, StochasticProcess, TimeStyle, check_capability

__all__ = [
    "is_regular_grid",
    "autocov_matrix",
    "autocov_sequence",
    "GaussianConditioning",
    "conditional_mean_and_covariance",
    "conditional_mean",
    "conditional_covariance",
    "LevinsonDurbinResult",
    "levinson_durbin",
    "PartialCorrelationMethod",
    "partial_autocorrelation",
]

logger = logging.getLogger(__name__)

GRID_ATOL = 1e-10


# ------------------------------------------------------------------ #
def _as_grid(grid: ArrayLike | int) -> np.ndarray:
    if isinstance(grid, (int, np.integer)):
        require(grid > 0, f"grid size must be positive, got {grid}")
        return np.arange(1, int(grid) + 1)
    g = np.asarray(grid)
    if g.ndim == 0:
        g = g.reshape(1)
    require(g.ndim == 1, f"sampling grid must be one-dimensional, got shape {g.shape}")
    require(g.size > 0, "sampling grid must not be empty")
    return g


def _check_time_style(process: StochasticProcess, grid: np.ndarray) -> None:
    if process.time_style is TimeStyle.DISCRETE:
        require(
            bool(np.all(np.mod(grid, 1) == 0)),
            f"{type(process).__name__} is a discrete-time process; "
            "its grid must contain integers",
        )


def is_regular_grid(grid: ArrayLike) -> bool:
    """Constant step within ``1e-10``; grids of length ≤ 2 are regular."""
    g = np.asarray(grid, dtype=float).ravel()
    if g.size <= 2:
        return True
    return bool(np.max(np.abs(np.diff(g, n=2))) <= GRID_ATOL)


# ------------------------------------------------------------------ #
def autocov_sequence(process: StochasticProcess, grid: ArrayLike | int) -> np.ndarray:
    """Return ``S[n] = autocov(grid[n] - grid[0])`` on a regular grid."""

    g = _as_grid(grid)
    _check_time_style(process, g)
    op = check_capability(process, Capability.STATIONARY)
    if not op:
        raise CapabilityError(process, "a lag autocovariance", op.reason)
    require(is_regular_grid(g), "autocovariance sequences need a regular grid")
    return np.array([op.value(g[n] - g[0]) for n in range(g.size)], dtype=float)


def _dense_autocov_matrix(process: StochasticProcess, g: np.ndarray) -> np.ndarray:
    N = g.size
    C = np.empty((N, N), dtype=float)
    for c in range(N):
        for r in range(c + 1):
            C[r, c] = process.autocov(g[r], g[c])
    il = np.tril_indices(N, -1)
    C[il] = C.T[il]
    return C


def autocov_matrix(
    process: StochasticProcess,
    grid: ArrayLike | int,
    grid2: ArrayLike | int | None = None,
) -> np.ndarray:
    """Autocovariance matrix of ``process`` on ``grid`` (or ``grid`` × ``grid2``).

    With one grid the result is symmetric.  A process that behaves as
    stationary on a regular grid costs ``N`` process evaluations (the
    Toeplitz expansion of :func:`autocov_sequence`); anything else falls back
    to ``N(N+1)/2`` pairwise evaluations.  The two-grid form evaluates every
    pair and exploits no symmetry.
    """

    g1 = _as_grid(grid)
    _check_time_style(process, g1)

    if grid2 is not None:
        g2 = _as_grid(grid2)
        _check_time_style(process, g2)
        C = np.empty((g1.size, g2.size), dtype=float)
        for r in range(g1.size):
            for c in range(g2.size):
                C[r, c] = process.autocov(g1[r], g2[c])
        return C

    regular = is_regular_grid(g1)
    if regular and process.behaves_as_stationary:
        logger.debug("Toeplitz covariance for %r on %d points", process, g1.size)
        return linalg.toeplitz(autocov_sequence(process, g1))

    logger.debug(
        "dense covariance for %r on %d points (regular=%s)", process, g1.size, regular
    )
    return _dense_autocov_matrix(process, g1)


# ------------------------------------------------------------------ #
@dataclass(frozen=True, slots=True)
class GaussianConditioning:
    mean: np.ndarray
    covariance: np.ndarray
    gain: np.ndarray


def conditional_mean_and_covariance(
    process: StochasticProcess,
    target: ArrayLike | float,
    observed: ArrayLike,
    values: ArrayLike,
) -> GaussianConditioning:
    """Law of ``process`` on ``target`` given ``values`` observed on ``observed``.

    The gain ``Σxy Σyy⁺`` uses the Moore–Penrose pseudo-inverse so that a
    nearly singular observation covariance does not blow up.
    """

    gx = _as_grid(np.atleast_1d(target))
    gy = _as_grid(observed)
    y = np.asarray(values, dtype=float).ravel()
    require(
        y.size == gy.size,
        f"observation grid has {gy.size} points but {y.size} values were given",
    )
    s_xx = autocov_matrix(process, gx)
    s_xy = autocov_matrix(process, gx, gy)
    s_yy = autocov_matrix(process, gy)
    gain = s_xy @ linalg.pinv(s_yy)
    return GaussianConditioning(
        mean=gain @ y,
        covariance=s_xx - gain @ s_xy.T,
        gain=gain,
    )


def conditional_mean(process, target, observed, values) -> np.ndarray:
    return conditional_mean_and_covariance(process, target, observed, values).mean


def conditional_covariance(process, target, observed, values) -> np.ndarray:
    return conditional_mean_and_covariance(process, target, observed, values).covariance


# ------------------------------------------------------------------ #
@dataclass(frozen=True, slots=True)
class LevinsonDurbinResult:
    """Output of :func:`levinson_durbin` for a sequence of length ``N``.

    coefficients          : ``coefficients[n-1]`` is the order-``n`` forward
                            prediction filter ``φ_{n,1..n}``, n = 1..N−1
    variances             : prediction-error variances ``σ²_0..σ²_{N−1}``
    partial_correlations  : ``φ_{n,n}``, n = 1..N−1
    """

    coefficients: list[np.ndarray]
    variances: np.ndarray
    partial_correlations: np.ndarray


def levinson_durbin(sequence: ArrayLike) -> LevinsonDurbinResult:
    """Levinson–Durbin recursion on an autocovariance sequence."""

    gamma = np.asarray(sequence, dtype=float).ravel()
    require(gamma.size >= 1, "autocovariance sequence must not be empty")
    require(gamma[0] > 0, "autocovariance at lag 0 must be positive")

    N = gamma.size
    variances = np.empty(N)
    variances[0] = gamma[0]
    partial = np.empty(N - 1)
    coefficients: list[np.ndarray] = []
    phi = np.zeros(0)

    for n in range(1, N):
        k = (gamma[n] - phi @ gamma[n - 1 : 0 : -1]) / variances[n - 1]
        phi = np.concatenate([phi - k * phi[::-1], [k]])
        variances[n] = variances[n - 1] * (1.0 - k**2)
        if variances[n] <= 0:
            raise ContractError(
                "autocovariance sequence is not positive definite "
                f"(prediction-error variance vanished at order {n})"
            )
        partial[n - 1] = k
        coefficients.append(phi)

    return LevinsonDurbinResult(coefficients, variances, partial)


class PartialCorrelationMethod(enum.Enum):
    DIRECT = "direct"
    LEVINSON_DURBIN = "levinson_durbin"


def partial_autocorrelation(
    process: StochasticProcess,
    grid: ArrayLike | int,
    method: PartialCorrelationMethod = PartialCorrelationMethod.LEVINSON_DURBIN,
) -> np.ndarray:
    """Partial correlations at lags ``1..len(grid)`` for a unit-step grid.

    ``DIRECT`` asks the process for its closed form at ``grid[n] - grid[0] + 1``;
    ``LEVINSON_DURBIN`` only needs the autocovariance sequence, taken on the
    grid extended by one step.
    """

    g = _as_grid(grid)
    require(is_regular_grid(g), "partial autocorrelation needs a regular grid")

    if method is PartialCorrelationMethod.DIRECT:
        op = check_capability(process, Capability.PARTIAL_CORRELATION)
        if not op:
            raise CapabilityError(
                process,
                "a closed-form partial autocorrelation",
                "use PartialCorrelationMethod.LEVINSON_DURBIN instead",
            )
        _check_time_style(process, g)
        return np.array([op.value(g[n] - g[0] + 1) for n in range(g.size)])
    if method is PartialCorrelationMethod.LEVINSON_DURBIN:
        step = g[1] - g[0] if g.size > 1 else 1
        extended = np.append(g, g[-1] + step)
        return levinson_durbin(autocov_sequence(process, extended)).partial_correlations
    raise ContractError(f"unknown partial correlation method: {method!r}")
