import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .eigen import DEFAULT_EPS, DEFAULT_MAX_ITERS, eigendecompose
from .geometry import quaternion_from_axes, right_handed

logger = logging.getLogger(__name__)

MIN_POINTS = 4


@dataclass(frozen=True, eq=False)
class OrientedBox:
    center: np.ndarray  # (3,) world space
    extents: np.ndarray  # (3,) full size along each axis, PCA order
    axes: np.ndarray  # (3, 3) one unit axis per row, right-handed
    eigenvalues: np.ndarray  # (3,)
    is_stable: bool
    point_count: int

    @property
    def rotation_matrix(self) -> np.ndarray:
        return self.axes.T

    @property
    def rotation(self) -> Tuple[float, float, float, float]:
        """Orientation quaternion (x, y, z, w)."""
        return quaternion_from_axes(self.axes)

    @property
    def half_extents(self) -> np.ndarray:
        return self.extents / 2.0

    @property
    def total_variance(self) -> float:
        return float(self.eigenvalues.sum())

    def corners(self) -> np.ndarray:
        """(8, 3) world-space corners, local sign pattern in binary order."""
        signs = np.array(
            [[sx, sy, sz] for sx in (-1, 1) for sy in (-1, 1) for sz in (-1, 1)],
            dtype=np.float64,
        )
        local = signs * self.half_extents
        return self.center + local @ self.axes


def as_point_cloud(points) -> np.ndarray:
    """(N, 3) float64 copy of `points`; a flat [x0, y0, z0, x1, ...] list is accepted."""
    pts = np.array(points, dtype=np.float64)
    if pts.ndim == 1:
        if pts.size % 3 != 0:
            raise ValueError(f"flat point list length must be a multiple of 3, got {pts.size}")
        pts = pts.reshape(-1, 3)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"expected points of shape (N, 3), got {pts.shape}")
    return pts


def covariance_matrix(centered: np.ndarray) -> np.ndarray:
    # population covariance (1/N) of already centered points
    return np.cov(centered.T, bias=True).reshape(3, 3)


def fit_obb(
    points,
    max_iters: int = DEFAULT_MAX_ITERS,
    eps: float = DEFAULT_EPS,
    third_axis: str = "iterate",
    min_points: int = MIN_POINTS,
) -> Optional[OrientedBox]:
    """
    PCA oriented bounding box of a point cloud:
    1) centroid and covariance of the points
    2) principal axes from the power-iteration eigensolver, forced right-handed
    3) project onto the axes, min/max give the extents
    4) midpoint of the local box mapped back to world space
    Returns None for fewer than `min_points` points.
    """
    pts = as_point_cloud(points)
    n = pts.shape[0]
    if n < min_points:
        logger.debug("cannot fit box: %d points, need at least %d", n, min_points)
        return None

    # centre the cloud
    centroid = pts.mean(axis=0)
    X = pts - centroid
    C = covariance_matrix(X)  # spread of the centred points

    eig = eigendecompose(C, max_iters=max_iters, eps=eps, third_axis=third_axis)
    if not eig.is_stable:
        logger.debug("unstable eigensolve for %d points, eigenvalues %s", n, eig.eigenvalues)
    axes = right_handed(eig.axes)  # rows are the box axes

    Y = X @ axes.T  # local coordinates
    mins = Y.min(axis=0)  # bounds along each axis
    maxs = Y.max(axis=0)
    local_center = (mins + maxs) / 2.0
    center = axes.T @ local_center + centroid  # back to world space

    return OrientedBox(
        center=center,
        extents=maxs - mins,
        axes=axes,
        eigenvalues=eig.eigenvalues,
        is_stable=eig.is_stable,
        point_count=n,
    )
