"""
Public API re-exports for ``fracfin.models``.
"""

from __future__ import annotations

from .base import (
    Capability,
    DifferentialProcess,
    FilteredProcess,
    SelfSimilarProcess,
    StationaryProcess,
    StochasticProcess,
    TimeStyle,
    check_capability,
)
from .farima import FractionalIntegrated
from .fbm import FractionalBrownianMotion, FractionalGaussianNoise

__all__ = [
    # capability model
    "TimeStyle",
    "Capability",
    "check_capability",
    # abstract processes
    "StochasticProcess",
    "StationaryProcess",
    "SelfSimilarProcess",
    "FilteredProcess",
    "DifferentialProcess",
    # concrete processes
    "FractionalBrownianMotion",
    "FractionalGaussianNoise",
    "FractionalIntegrated",
]
