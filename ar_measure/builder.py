import logging
from typing import List, Optional, Tuple

import numpy as np

from .anchors import Anchor
from .box_measure import BoundingVolume, fit_anchor_box, to_volume
from .config import DEFAULT_CONFIG, MeasureConfig

logger = logging.getLogger(__name__)


class BoundingBoxBuilder:
    """
    Collects base anchors placed by the user and fits a bounding volume to them.

    The volume reports width/height/depth along the PCA axes as found (not
    sorted) and always uses a right-handed orientation.
    """

    def __init__(self, config: MeasureConfig = DEFAULT_CONFIG):
        self.config = config
        self._anchors: List[Anchor] = []

    def add_base_anchor(self, anchor) -> None:
        if not isinstance(anchor, Anchor):
            anchor = Anchor.at(anchor)
        self._anchors.append(anchor)
        logger.debug("added base anchor %s (%d total)", anchor.identifier, len(self._anchors))

    @property
    def anchors(self) -> Tuple[Anchor, ...]:
        return tuple(self._anchors)

    @property
    def can_build(self) -> bool:
        return len(self._anchors) >= self.config.min_points

    def reset(self) -> None:
        self._anchors.clear()

    def build(self) -> Optional[BoundingVolume]:
        if not self.can_build:
            logger.debug("build requested with only %d anchors", len(self._anchors))
            return None
        positions = np.stack([a.position for a in self._anchors])
        box = fit_anchor_box(positions, self.config)
        return to_volume(box)
