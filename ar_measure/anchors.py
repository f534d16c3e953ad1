"""Anchors placed by the user and two-anchor tape measurements.

Anchors come from the AR session (a hit-test or raycast result turned into a
world transform); here they are plain values carrying that transform.
"""
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .geometry import point_distance, quaternion_from_matrix


def _new_identifier() -> str:
    return str(uuid.uuid4()).upper()


@dataclass(frozen=True, eq=False)
class Anchor:
    transform: np.ndarray  # (4, 4) anchor-to-world, translation in the last column
    identifier: str = field(default_factory=_new_identifier)
    label: Optional[str] = None
    tracked: bool = True

    def __post_init__(self):
        t = np.array(self.transform, dtype=np.float64)
        if t.shape != (4, 4):
            raise ValueError(f"anchor transform must be 4x4, got {t.shape}")
        object.__setattr__(self, "transform", t)

    @classmethod
    def at(cls, position, label=None, tracked=True) -> "Anchor":
        p = np.asarray(position, dtype=np.float64)
        if p.shape != (3,):
            raise ValueError(f"anchor position must have 3 components, got {p.shape}")
        t = np.eye(4)
        t[:3, 3] = p
        return cls(transform=t, label=label, tracked=tracked)

    @property
    def position(self) -> np.ndarray:
        return self.transform[:3, 3].copy()

    @property
    def rotation(self) -> Tuple[float, float, float, float]:
        return quaternion_from_matrix(self.transform[:3, :3])

    @property
    def flat_transform(self) -> Tuple[float, ...]:
        # column-major, 16 values
        return tuple(float(v) for v in self.transform.T.ravel())


@dataclass(frozen=True)
class LineMeasurement:
    start: Anchor
    end: Anchor

    @property
    def length(self) -> float:
        return point_distance(self.start.position, self.end.position)

    @property
    def is_valid(self) -> bool:
        return self.start.tracked and self.end.tracked
