"""
Process capability model
========================
A process is described by a time style and a set of :class:`Capability`
flags rather than by its place in a class hierarchy.  The generic
covariance algorithms in :mod:`fracfin.covariance` only ask

* ``autocov(t, s)``        – two-point autocovariance (every process);
* ``autocov_lag(lag)``     – lag autocovariance, whenever
  :attr:`StochasticProcess.behaves_as_stationary` is true;
* ``partcorr(k)``          – closed-form partial correlation, only with
  :attr:`Capability.PARTIAL_CORRELATION`.

Missing pieces raise :class:`~fracfin.errors.CapabilityError`;
:func:`check_capability` answers the same question without raising.

Filtered processes
------------------
``FilteredProcess(parent, kernel, causal, step)`` is the linear filtration

    causal      : Y(t) = Σ a[n] X(t − nδ)
    anti-causal : Y(t) = Σ a[n] X(t + nδ)

of a parent process it references but does not own.  It is not declared
stationary; it *behaves* as stationary when the parent does, or when the
kernel has zero sum and the parent has stationary increments (fGn from fBm).
"""

from __future__ import annotations

import enum
from typing import Callable, Sequence

import numpy as np

from ..errors import CapabilityError, Supported, Unsupported, require

__all__ = [
    "TimeStyle",
    "Capability",
    "StochasticProcess",
    "StationaryProcess",
    "SelfSimilarProcess",
    "FilteredProcess",
    "DifferentialProcess",
    "check_capability",
]


class TimeStyle(enum.Enum):
    CONTINUOUS = "continuous"
    DISCRETE = "discrete"


class Capability(enum.Enum):
    AUTOCOV = "autocov"
    STATIONARY = "stationary"
    INCREMENT_STATIONARY = "increment_stationary"
    SELF_SIMILAR = "self_similar"
    FILTERED = "filtered"
    DIFFERENTIAL = "differential"
    PARTIAL_CORRELATION = "partial_correlation"


# ------------------------------------------------------------------ #
class StochasticProcess:
    """Zero-mean real-valued process; concrete classes fill in ``autocov``."""

    time_style: TimeStyle = TimeStyle.CONTINUOUS
    capabilities: frozenset[Capability] = frozenset()

    # ................................................................. #
    def autocov(self, t: float, s: float | None = None) -> float:
        raise CapabilityError(self, "a two-point autocovariance")

    def autocov_lag(self, lag: float) -> float:
        raise CapabilityError(
            self,
            "a lag autocovariance",
            "only processes that behave as stationary have one",
        )

    def partcorr(self, k: int) -> float:
        raise CapabilityError(
            self,
            "a closed-form partial autocorrelation",
            "use PartialCorrelationMethod.LEVINSON_DURBIN instead",
        )

    # ................................................................. #
    @property
    def is_stationary(self) -> bool:
        return Capability.STATIONARY in self.capabilities

    @property
    def is_increment_stationary(self) -> bool:
        return bool(
            {Capability.STATIONARY, Capability.INCREMENT_STATIONARY}
            & self.capabilities
        )

    @property
    def behaves_as_stationary(self) -> bool:
        """True when the autocovariance depends on ``t - s`` only."""
        return self.is_stationary

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self._params().items())
        return f"{type(self).__name__}({params})"

    def _params(self) -> dict[str, object]:
        return {}


# ------------------------------------------------------------------ #
class StationaryProcess(StochasticProcess):
    """Stationary process: subclasses implement :meth:`autocov_lag`."""

    capabilities = frozenset(
        {Capability.AUTOCOV, Capability.STATIONARY, Capability.INCREMENT_STATIONARY}
    )

    def autocov(self, t: float, s: float | None = None) -> float:
        # one argument: ``t`` is already a lag
        if s is None:
            return self.autocov_lag(t)
        return self.autocov_lag(t - s)


class SelfSimilarProcess(StochasticProcess):
    """Continuous-time self-similar process with exponent :attr:`ss_exponent`."""

    time_style = TimeStyle.CONTINUOUS
    capabilities = frozenset({Capability.AUTOCOV, Capability.SELF_SIMILAR})

    @property
    def ss_exponent(self) -> float:
        raise CapabilityError(self, "a self-similarity exponent")


# ------------------------------------------------------------------ #
class FilteredProcess(StochasticProcess):
    """Linear filtration of ``parent`` by ``kernel`` at pace ``step``."""

    def __init__(
        self,
        parent: StochasticProcess,
        kernel: Sequence[float],
        *,
        causal: bool = True,
        step: float = 1,
    ) -> None:
        kernel = tuple(float(a) for a in kernel)
        require(len(kernel) > 0, "filter kernel must not be empty")
        require(step > 0, f"filter step must be positive, got {step}")
        self.parent = parent
        self.kernel = kernel
        self.causal = bool(causal)
        self.step = step
        self.time_style = parent.time_style

        caps = {Capability.AUTOCOV, Capability.FILTERED}
        if self.behaves_as_stationary:
            caps.add(Capability.INCREMENT_STATIONARY)
        self.capabilities = frozenset(caps)

    # ................................................................. #
    @property
    def behaves_as_stationary(self) -> bool:
        if self.parent.behaves_as_stationary:
            return True
        return self.parent.is_increment_stationary and bool(
            np.isclose(sum(self.kernel), 0.0, atol=1e-12)
        )

    def autocov(self, t: float, s: float | None = None) -> float:
        if s is None:
            return self.autocov_lag(t)
        sign = -1 if self.causal else 1
        delta = sign * self.step
        total = 0.0
        for i, a in enumerate(self.kernel):
            for j, b in enumerate(self.kernel):
                total += a * b * self.parent.autocov(t + i * delta, s + j * delta)
        return total

    def autocov_lag(self, lag: float) -> float:
        if not self.behaves_as_stationary:
            return super().autocov_lag(lag)
        return self.autocov(lag, 0)

    def _params(self) -> dict[str, object]:
        return {
            "parent": self.parent,
            "kernel": self.kernel,
            "causal": self.causal,
            "step": self.step,
        }


class DifferentialProcess(FilteredProcess):
    """First-order difference ``X(t) - X(t - lag)`` of ``parent``."""

    def __init__(
        self, parent: StochasticProcess, lag: float = 1, *, causal: bool = True
    ) -> None:
        super().__init__(parent, (1.0, -1.0), causal=causal, step=lag)
        self.capabilities = self.capabilities | {Capability.DIFFERENTIAL}

    @property
    def gap(self) -> float:
        return self.step


# ------------------------------------------------------------------ #
_OPERATIONS: dict[Capability, Callable[[StochasticProcess], Callable | None]] = {
    Capability.AUTOCOV: lambda p: p.autocov,
    Capability.STATIONARY: lambda p: p.autocov_lag if p.behaves_as_stationary else None,
    Capability.PARTIAL_CORRELATION: lambda p: p.partcorr,
}


def check_capability(
    process: StochasticProcess, capability: Capability
) -> Supported | Unsupported:
    """Return the bound operation behind ``capability`` or the reason it is missing.

    ``Capability.STATIONARY`` is answered through
    :attr:`StochasticProcess.behaves_as_stationary`, so a filtered process
    that acts stationary is granted the lag autocovariance.
    """

    name = type(process).__name__
    if capability is Capability.STATIONARY:
        op = _OPERATIONS[capability](process)
        if op is None:
            return Unsupported(f"{name} does not behave as a stationary process")
        return Supported(op)
    if capability not in process.capabilities:
        return Unsupported(f"{name} does not provide {capability.value}")
    getter = _OPERATIONS.get(capability)
    return Supported(getter(process) if getter else process)
