import logging
from typing import Optional

import numpy as np

from .box_measure import ObjectMeasurement, measure_points
from .config import DEFAULT_CONFIG, MeasureConfig
from .depth import DepthFrame, sample_depth_points
from .masks import SegmentationMask

logger = logging.getLogger(__name__)


class SegmentationResult:
    """
    One segmented object in one captured frame.

    The depth points are sampled once and cached for the lifetime of this
    result, so repeated measure() calls are cheap and return the same value.
    """

    def __init__(self, mask, frame: DepthFrame, config: MeasureConfig = DEFAULT_CONFIG):
        if not isinstance(mask, SegmentationMask):
            mask = SegmentationMask(mask, threshold=config.mask_threshold)
        self.mask = mask
        self.frame = frame
        self.config = config
        self._cached_points: Optional[np.ndarray] = None

    @property
    def success(self) -> bool:
        return self.mask.pixel_count > 0

    @property
    def bounding_box(self):
        return self.mask.bounding_box

    @property
    def mask_pixel_count(self) -> int:
        return self.mask.pixel_count

    def depth_points(self) -> np.ndarray:
        if self._cached_points is None:
            self._cached_points = sample_depth_points(
                self.mask,
                self.frame.depth,
                self.frame.intrinsics,
                self.frame.camera_transform,
                image_size=self.frame.image_size,
                target_points=self.config.target_samples,
                min_depth=self.config.min_depth,
                max_depth=self.config.max_depth,
            )
        else:
            logger.debug("returning %d cached depth points", self._cached_points.shape[0])
        return self._cached_points.copy()

    def measure(self) -> Optional[ObjectMeasurement]:
        return measure_points(self.depth_points(), self.config)
