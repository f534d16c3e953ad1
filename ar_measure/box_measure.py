from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .config import DEFAULT_CONFIG, MeasureConfig
from .obb import OrientedBox, fit_obb


@dataclass(frozen=True)
class BoundingVolume:
    """Box built from user-placed anchors; sizes follow the PCA axes (x, y, z)."""
    center: Tuple[float, float, float]
    width: float
    height: float
    depth: float
    rotation: Tuple[float, float, float, float]  # quaternion (x, y, z, w)
    is_stable: bool

    @property
    def volume(self) -> float:
        return self.width * self.height * self.depth


@dataclass(frozen=True)
class ObjectMeasurement:
    """Measured object; width >= height >= depth."""
    width: float
    height: float
    depth: float
    center: Tuple[float, float, float]
    axes: Tuple[float, ...]  # 9 values, one principal axis after another
    confidence: float
    point_count: int


def measurement_confidence(
    point_count,
    total_variance,
    full_points=DEFAULT_CONFIG.confidence_full_points,
    full_variance=DEFAULT_CONFIG.confidence_full_variance,
):
    # density term times spread term, each saturating at 1
    density = min(1.0, point_count / float(full_points))
    spread = min(1.0, total_variance / float(full_variance))
    return float(np.clip(density * spread, 0.0, 1.0))


def to_volume(box: OrientedBox) -> BoundingVolume:
    w, h, d = (float(e) for e in box.extents)
    return BoundingVolume(
        center=tuple(float(c) for c in box.center),
        width=w,
        height=h,
        depth=d,
        rotation=box.rotation,
        is_stable=box.is_stable,
    )


def to_object_measurement(
    box: OrientedBox,
    full_points=DEFAULT_CONFIG.confidence_full_points,
    full_variance=DEFAULT_CONFIG.confidence_full_variance,
) -> ObjectMeasurement:
    dims = sorted((float(e) for e in box.extents), reverse=True)
    return ObjectMeasurement(
        width=dims[0],
        height=dims[1],
        depth=dims[2],
        center=tuple(float(c) for c in box.center),
        axes=tuple(float(a) for a in box.axes.ravel()),
        confidence=measurement_confidence(
            box.point_count, box.total_variance, full_points, full_variance
        ),
        point_count=box.point_count,
    )


def fit_anchor_box(points, config: MeasureConfig = DEFAULT_CONFIG) -> Optional[OrientedBox]:
    return fit_obb(
        points,
        max_iters=config.anchor_max_iters,
        eps=config.anchor_eps,
        third_axis=config.anchor_third_axis,
        min_points=config.min_points,
    )


def fit_depth_box(points, config: MeasureConfig = DEFAULT_CONFIG) -> Optional[OrientedBox]:
    return fit_obb(
        points,
        max_iters=config.depth_max_iters,
        eps=config.depth_eps,
        third_axis=config.depth_third_axis,
        min_points=config.min_points,
    )


def measure_points(points, config: MeasureConfig = DEFAULT_CONFIG) -> Optional[ObjectMeasurement]:
    box = fit_depth_box(points, config)
    if box is None:
        return None
    return to_object_measurement(
        box, config.confidence_full_points, config.confidence_full_variance
    )
