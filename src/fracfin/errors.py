"""Error taxonomy shared by the covariance layer and the estimators.

* :class:`ContractError` – a violated precondition (shapes, symmetry,
  positive semi-definiteness, parameter ranges).  It is both a
  ``ValueError`` and an ``AssertionError`` so callers used to either idiom
  catch it.
* :class:`IncompatibleScalesError` – scale lists that a scalogram estimator
  cannot work with.
* :class:`CapabilityError` – a process variant that does not provide a piece
  of the covariance contract.
* :class:`EstimationCancelled` – an optimisation loop stopped by its
  cancellation token.

Numerical degeneracy is never an error (see :mod:`fracfin.likelihood`), and
optimiser non-convergence is reported through the returned diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

__all__ = [
    "FracFinError",
    "ContractError",
    "IncompatibleScalesError",
    "CapabilityError",
    "EstimationCancelled",
    "Supported",
    "Unsupported",
    "require",
]

T = TypeVar("T")


class FracFinError(Exception):
    """Base class of every error raised by :mod:`fracfin`."""


class ContractError(FracFinError, ValueError, AssertionError):
    """A precondition of the called operation does not hold."""


class IncompatibleScalesError(ContractError):
    """The wavelet scales do not fit the requested scale ratio."""


class CapabilityError(FracFinError, NotImplementedError):
    """The process does not implement the requested part of the contract."""

    def __init__(self, process: object, capability: str, hint: str | None = None):
        name = type(process).__name__
        msg = f"{name} does not provide {capability}"
        if hint:
            msg = f"{msg}; {hint}"
        super().__init__(msg)
        self.process = process
        self.capability = capability


class EstimationCancelled(FracFinError, RuntimeError):
    """The optimisation was cancelled or ran past its deadline."""


# ------------------------------------------------------------------ #
@dataclass(frozen=True, slots=True)
class Supported(Generic[T]):
    """Capability lookup succeeded; ``value`` carries the bound operation."""

    value: T

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Unsupported:
    """Capability lookup failed; ``reason`` says what is missing."""

    reason: str

    def __bool__(self) -> bool:
        return False


def require(condition: bool, message: str) -> None:
    """Raise :class:`ContractError` with ``message`` unless ``condition``."""
    if not condition:
        raise ContractError(message)
