"""
Common plumbing for all Hurst / volatility estimators
=====================================================
* Accepts a pandas Series / DataFrame **or** a NumPy vector / matrix as an
  observation batch; columns are i.i.d. realizations.
* Every estimator returns a :class:`HurstEstimate` ``(hurst, sigma)`` with
  the optimiser or regression object attached as ``diagnostics``.
* The optimisation drivers (:func:`minimize_bounded`,
  :func:`minimize_boxed`) are shared by the time-domain and wavelet MLEs and
  honour an optional :class:`CancellationToken`.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Sequence

import numpy as np
import pandas as pd
from scipy import optimize

from ..errors import EstimationCancelled, require

__all__ = [
    "HurstEstimate",
    "OptimMethod",
    "GridScanResult",
    "CancellationToken",
    "as_observations",
    "minimize_bounded",
    "minimize_boxed",
]

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
@dataclass(frozen=True, slots=True)
class HurstEstimate:
    """Estimated Hurst exponent and volatility; unpacks as ``(hurst, sigma)``."""

    hurst: float
    sigma: float
    diagnostics: Any = field(default=None, repr=False, compare=False)

    def __iter__(self) -> Iterator[float]:
        yield self.hurst
        yield self.sigma


class OptimMethod(enum.Enum):
    BOUNDED = "bounded"  # derivative-free bounded scalar minimisation
    GRID = "grid"  # exhaustive scan, also used to cross-check BOUNDED


@dataclass(frozen=True, slots=True)
class GridScanResult:
    x: float
    fun: float
    grid: np.ndarray = field(repr=False)
    values: np.ndarray = field(repr=False)
    success: bool = True


# ------------------------------------------------------------------ #
class CancellationToken:
    """Cooperative cancellation for the optimisation loops.

    ``timeout`` (seconds) arms a deadline measured from construction;
    :meth:`cancel` fires the token explicitly.  Drivers call :meth:`check`
    before every objective evaluation.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._deadline = None if timeout is None else time.monotonic() + float(timeout)
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._cancelled

    def check(self) -> None:
        if self.cancelled:
            raise EstimationCancelled("estimation cancelled before convergence")


def _guarded(func: Callable, token: CancellationToken | None) -> Callable:
    if token is None:
        return func

    def wrapped(x):
        token.check()
        return func(x)

    return wrapped


# ------------------------------------------------------------------ #
def as_observations(
    X: pd.Series | pd.DataFrame | np.ndarray | Sequence[float],
    *,
    min_length: int = 1,
) -> np.ndarray:
    """Coerce an observation batch to a read-only float vector or matrix."""

    if isinstance(X, (pd.Series, pd.DataFrame)):
        arr = X.astype(float).to_numpy()
    else:
        arr = np.array(X, dtype=float)

    require(arr.ndim in (1, 2), f"observations must be a vector or matrix, got {arr.ndim}-d")
    require(
        arr.shape[0] >= min_length,
        f"observations need at least {min_length} rows, got {arr.shape[0]}",
    )
    require(bool(np.all(np.isfinite(arr))), "observations contain non-finite values")
    arr.setflags(write=False)
    return arr


def minimize_bounded(
    func: Callable[[float], float],
    lower: float,
    upper: float,
    *,
    method: OptimMethod = OptimMethod.BOUNDED,
    step: float | None = None,
    xatol: float = 1e-4,
    token: CancellationToken | None = None,
) -> tuple[float, Any]:
    """Minimise a scalar objective on ``[lower, upper]``.

    Returns the minimiser and the optimiser state; non-convergence is logged
    and returned, never raised.
    """

    require(lower < upper, f"empty search interval [{lower}, {upper}]")
    objective = _guarded(func, token)

    if method is OptimMethod.BOUNDED:
        res = optimize.minimize_scalar(
            objective,
            bounds=(lower, upper),
            method="bounded",
            options={"xatol": xatol},
        )
        if not res.success or not np.isfinite(res.fun):
            logger.warning("bounded search did not converge: %s", res.message)
        return float(res.x), res

    if method is OptimMethod.GRID:
        step = step or (upper - lower) / 100
        grid = np.arange(lower, upper + 0.5 * step, step)
        values = np.array([objective(x) for x in grid])
        best = int(np.nanargmin(values))
        res = GridScanResult(float(grid[best]), float(values[best]), grid, values)
        return res.x, res

    raise ValueError(f"unknown optimisation method: {method!r}")


def minimize_boxed(
    func: Callable[[np.ndarray], float],
    x0: Sequence[float],
    bounds: Sequence[tuple[float, float]],
    *,
    token: CancellationToken | None = None,
) -> optimize.OptimizeResult:
    """Quasi-Newton minimisation inside a box (L-BFGS-B, numerical gradient)."""

    x0 = np.asarray(x0, dtype=float)
    lo = np.array([b[0] for b in bounds])
    hi = np.array([b[1] for b in bounds])
    require(x0.size == len(bounds), "initial point and bounds differ in dimension")
    x0 = np.clip(x0, lo, hi)

    res = optimize.minimize(
        _guarded(func, token), x0, method="L-BFGS-B", bounds=list(bounds)
    )
    if not res.success:
        logger.warning("boxed search did not converge: %s", res.message)
    return res
