"""
Rolling-window estimation
=========================
Applies any estimator ``func(batch) -> estimate`` on a window rolling over a
univariate or multivariate series every ``stride`` steps.

The rolling window of length ``L = (n−1)·d + w`` is cut into ``n`` (possibly
overlapping) sub-windows of width ``w`` spaced ``d`` apart.  For a
``q``-variate series each sub-window is flattened time-major into a column of
length ``w·q``; the ``n`` columns (earliest first) form the ``(w·q) × n``
batch handed to the estimator, which treats them as i.i.d. observations.

Traversal
    CAUSAL      window end points ``t = T, T−p, …``; the window is
                ``[t−L, t)`` and ``t`` is reported.
    ANTICAUSAL  window start points ``t = 0, p, …, T−L``; the window is
                ``[t, t+L)`` and ``t`` is reported.

Windows that would cross either end of the series are skipped, so a series
shorter than ``L`` yields no estimate.  Results are always returned in
ascending index order.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Sequence

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike

from ..errors import require

__all__ = ["Traversal", "rolling_estimate", "rolling_frame"]

logger = logging.getLogger(__name__)


class Traversal(enum.Enum):
    CAUSAL = "causal"
    ANTICAUSAL = "anticausal"


def _as_variates(series: ArrayLike | pd.Series | pd.DataFrame) -> np.ndarray:
    """Rows = variates, columns = time."""
    if isinstance(series, pd.DataFrame):
        return series.astype(float).to_numpy().T
    if isinstance(series, pd.Series):
        return series.astype(float).to_numpy()[None, :]
    X = np.asarray(series, dtype=float)
    require(X.ndim in (1, 2), f"series must be a vector or matrix, got {X.ndim}-d")
    return X.reshape(1, -1) if X.ndim == 1 else X


def _batch(X: np.ndarray, start: int, w: int, d: int, n: int) -> np.ndarray:
    return np.column_stack(
        [X[:, start + i * d : start + i * d + w].ravel(order="F") for i in range(n)]
    )


def rolling_estimate(
    func: Callable[[np.ndarray], Any],
    series: ArrayLike | pd.Series | pd.DataFrame,
    stride: int,
    window: tuple[int, int, int],
    *,
    mode: Traversal = Traversal.CAUSAL,
) -> list[tuple[int, Any]]:
    """Apply ``func`` on a rolling window and collect ``(index, estimate)``.

    Parameters
    ----------
    func : callable
        Estimator taking a ``(w·q) × n`` batch of i.i.d. columns.
    series : array, Series or DataFrame
        1-D series, or a ``q × T`` matrix (rows = variates).  A DataFrame is
        read with time along its index and variates along its columns.
    stride : int
        Step ``p`` between two consecutive windows.
    window : (w, d, n)
        Sub-window width, spacing between sub-windows (irrelevant when
        ``n == 1``) and number of sub-windows.
    mode : Traversal
        ``CAUSAL`` reports window ends, ``ANTICAUSAL`` window starts.
    """

    w, d, n = (int(x) for x in window)
    require(stride >= 1, f"stride must be a positive integer, got {stride}")
    require(w >= 1 and n >= 1, f"window width and count must be positive, got {window}")
    require(d >= 0, f"sub-window spacing must be non-negative, got {d}")

    X = _as_variates(series)
    T = X.shape[1]
    L = (n - 1) * d + w
    results: list[tuple[int, Any]] = []

    if mode is Traversal.CAUSAL:
        for t in range(T, 0, -stride):
            if t < L:
                break
            results.append((t, func(_batch(X, t - L, w, d, n))))
        results.reverse()
    elif mode is Traversal.ANTICAUSAL:
        for t in range(0, T - L + 1, stride):
            results.append((t, func(_batch(X, t, w, d, n))))
    else:
        raise ValueError(f"unknown traversal mode: {mode!r}")

    logger.debug(
        "rolling %s: %d windows of length %d over %d samples",
        mode.value,
        len(results),
        L,
        T,
    )
    return results


def rolling_frame(
    results: Sequence[tuple[int, Any]],
    index: Sequence[Any] | pd.Index | None = None,
    *,
    mode: Traversal = Traversal.CAUSAL,
) -> pd.DataFrame:
    """Tabulate rolling ``(hurst, sigma)`` estimates.

    With ``index`` (one per sample of the series, e.g. timestamps) each row
    is labelled by the last sample of its window (``CAUSAL``) or the first
    one (``ANTICAUSAL``); otherwise by the raw index.
    """

    idx = [t for t, _ in results]
    rows = [tuple(est)[:2] for _, est in results]
    frame = pd.DataFrame(rows, columns=["hurst", "sigma"], dtype=float)
    if index is None:
        frame.index = pd.Index(idx, name="index")
        return frame

    labels = pd.Index(index)
    offset = 1 if mode is Traversal.CAUSAL else 0
    frame.index = labels[[t - offset for t in idx]]
    return frame
