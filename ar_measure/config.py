"""Tunable constants for the fitters and the depth sampler.

Both fitters share one pipeline; the settings below pin down the convention
each call site uses (iteration cap, convergence epsilon, third-axis mode).
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict

from .obb import MIN_POINTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeasureConfig:
    min_points: int = 4
    # anchor-based volumes: few points, cross-product third axis
    anchor_max_iters: int = 50
    anchor_eps: float = 1e-6
    anchor_third_axis: str = "cross"
    # depth-point measurement: ~1000 points, third axis iterated
    depth_max_iters: int = 20
    depth_eps: float = 1e-6
    depth_third_axis: str = "iterate"
    # depth sampling
    target_samples: int = 1000
    min_depth: float = 0.0
    max_depth: float = 10.0
    mask_threshold: int = 127
    # confidence saturates at these values
    confidence_full_points: int = 500
    confidence_full_variance: float = 0.1

    def __post_init__(self):
        if self.min_points < MIN_POINTS:
            raise ValueError(f"min_points must be >= {MIN_POINTS}")
        for name in ("anchor_max_iters", "depth_max_iters", "target_samples", "confidence_full_points"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        for name in ("anchor_eps", "depth_eps", "confidence_full_variance"):
            if not getattr(self, name) > 0:
                raise ValueError(f"{name} must be > 0")
        for name in ("anchor_third_axis", "depth_third_axis"):
            if getattr(self, name) not in ("iterate", "cross"):
                raise ValueError(f"{name} must be 'iterate' or 'cross'")
        if not self.max_depth > self.min_depth:
            raise ValueError("max_depth must be greater than min_depth")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **kwargs: Any) -> "MeasureConfig":
        return replace(self, **kwargs)


DEFAULT_CONFIG = MeasureConfig()


def load_config(path: str = "ar_measure.json") -> MeasureConfig:
    """Load settings from a JSON object; a missing file yields the defaults."""
    if not os.path.isfile(path):
        logger.debug("config file %s not found, using defaults", path)
        return DEFAULT_CONFIG
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")

    known = {f.name for f in fields(MeasureConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("ignoring unknown config keys in %s: %s", path, ", ".join(unknown))
    return MeasureConfig(**{k: v for k, v in data.items() if k in known})


def save_config(config: MeasureConfig, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
