"""
fracfin.config
==============
Structured OmegaConf configuration for the command-line driver.

Defaults live in :class:`EstimationConfig`; a YAML file and ``key=value``
dot-list overrides are merged on top, e.g.::

    load_config("fgn.yaml", ["method=grid", "window=[128,1,1]"])

Enum-valued settings are kept as their string values so that YAML files and
overrides stay plain text; :func:`validate` checks and converts them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from omegaconf import DictConfig, OmegaConf

from .errors import require
from .estimators import OptimMethod, Traversal
from .wavelet import ConvolutionMode

__all__ = ["EstimationConfig", "load_config", "validate"]


@dataclass
class EstimationConfig:
    # likelihood search
    method: str = "bounded"
    eps: float = 1e-2
    # wavelet / scalogram
    sclrng: List[int] = field(default_factory=lambda: [2, 4, 6, 8, 10, 12, 14, 16])
    vanishing_moments: int = 2
    mode: str = "center"
    ratio: str = "1"
    # rolling window
    stride: int = 1
    window: List[int] = field(default_factory=lambda: [64, 1, 1])
    traversal: str = "causal"
    timeout: Optional[float] = None


def load_config(
    path: str | Path | None = None,
    overrides: Sequence[str] = (),
) -> DictConfig:
    """Merge defaults, an optional YAML file and dot-list overrides."""

    cfg = OmegaConf.structured(EstimationConfig)
    if path is not None:
        cfg = OmegaConf.merge(cfg, OmegaConf.load(Path(path)))
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
    validate(cfg)
    return cfg


def validate(cfg: DictConfig) -> None:
    """Check value ranges and enum names of a merged configuration."""

    _choice(OptimMethod, cfg.method, "method")
    _choice(ConvolutionMode, cfg.mode, "mode")
    _choice(Traversal, cfg.traversal, "traversal")
    require(0 < cfg.eps < 0.5, f"eps must lie in (0, 1/2), got {cfg.eps}")
    require(len(cfg.sclrng) >= 2, "at least two wavelet scales are needed")
    require(all(a >= 1 for a in cfg.sclrng), "wavelet scales must be positive integers")
    require(cfg.vanishing_moments >= 1, "vanishing moments must be positive")
    require(cfg.stride >= 1, f"stride must be positive, got {cfg.stride}")
    require(len(cfg.window) == 3, "window must be [width, spacing, count]")
    require(cfg.timeout is None or cfg.timeout > 0, "timeout must be positive")


def _choice(enum_cls, value: str, name: str):
    values = [m.value for m in enum_cls]
    require(value in values, f"{name} must be one of {values}, got {value!r}")
    return enum_cls(value)
