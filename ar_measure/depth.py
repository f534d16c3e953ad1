import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CameraIntrinsics:
    fx: float
    fy: float
    cx: float
    cy: float

    @classmethod
    def from_matrix(cls, K) -> "CameraIntrinsics":
        # row-major pinhole matrix [[fx, 0, cx], [0, fy, cy], [0, 0, 1]]
        K = np.asarray(K, dtype=np.float64)
        if K.shape != (3, 3):
            raise ValueError(f"intrinsics matrix must be 3x3, got {K.shape}")
        return cls(fx=float(K[0, 0]), fy=float(K[1, 1]), cx=float(K[0, 2]), cy=float(K[1, 2]))


class DepthData:
    """Depth map in meters (H, W) with an optional per-pixel confidence map (0-2)."""

    def __init__(self, depth_map, confidence_map=None):
        self.depth_map = np.asarray(depth_map, dtype=np.float32)
        if self.depth_map.ndim != 2:
            raise ValueError(f"depth map must be 2D, got shape {self.depth_map.shape}")
        self.confidence_map = None
        if confidence_map is not None:
            self.confidence_map = np.asarray(confidence_map, dtype=np.uint8)
            if self.confidence_map.shape != self.depth_map.shape:
                raise ValueError("confidence map must match the depth map shape")

    @property
    def width(self):
        return self.depth_map.shape[1]

    @property
    def height(self):
        return self.depth_map.shape[0]

    @staticmethod
    def _sample(buffer, x, y):
        h, w = buffer.shape
        px = int(x * (w - 1))
        py = int(y * (h - 1))
        if not (0 <= px < w and 0 <= py < h):
            return 0.0
        return float(buffer[py, px])

    def depth_at(self, x, y):
        """Depth at normalized coordinate (x, y); 0 outside the map."""
        return self._sample(self.depth_map, x, y)

    def confidence_at(self, x, y):
        if self.confidence_map is None:
            return 0.0
        return self._sample(self.confidence_map, x, y)


@dataclass(frozen=True, eq=False)
class DepthFrame:
    """Everything captured with one camera frame that unprojection needs."""
    depth: DepthData
    intrinsics: CameraIntrinsics
    camera_transform: np.ndarray  # (4, 4) camera-to-world
    image_size: Optional[Tuple[int, int]] = None  # (width, height) of the image the intrinsics refer to


def _check_transform(camera_transform):
    T = np.asarray(camera_transform, dtype=np.float64)
    if T.shape != (4, 4):
        raise ValueError(f"camera transform must be 4x4, got {T.shape}")
    return T


def unproject_pixel(px, py, depth, intrinsics, camera_transform):
    """
    Pixel + depth -> world point. The camera looks down -Z with +Y up, so the
    pinhole coordinates get their Y and Z flipped before applying the pose.
    """
    T = _check_transform(camera_transform)
    x = (px - intrinsics.cx) * depth / intrinsics.fx
    y = (py - intrinsics.cy) * depth / intrinsics.fy
    p = T @ np.array([x, -y, -depth, 1.0])
    return p[:3]


def sampling_stride(mask_pixel_count, target_points=1000):
    if target_points < 1:
        raise ValueError("target_points must be >= 1")
    return max(1, int(math.sqrt(mask_pixel_count / target_points)))


def sample_depth_points(
    mask,
    depth,
    intrinsics,
    camera_transform,
    image_size=None,
    target_points=1000,
    min_depth=0.0,
    max_depth=10.0,
):
    """
    World-space points for the masked object, roughly `target_points` of them.

    `mask` is a boolean (H, W) array (or SegmentationMask), `depth` a depth map
    in meters (or DepthData) that may have a different resolution. The mask is
    scanned row by row on a regular stride; samples outside (min_depth,
    max_depth) are dropped. When `image_size` is given, intrinsics are taken to
    be in that image's pixel grid and depth pixels are rescaled into it.
    Returns an (N, 3) float64 array, possibly empty.
    """
    m = np.asarray(getattr(mask, "values", mask), dtype=bool)
    d = np.asarray(getattr(depth, "depth_map", depth))
    T = _check_transform(camera_transform)
    mh, mw = m.shape
    dh, dw = d.shape

    stride = sampling_stride(int(m.sum()), target_points)
    ys, xs = np.mgrid[0:mh:stride, 0:mw:stride]  # regular sampling grid
    ys = ys.ravel()
    xs = xs.ravel()
    inside = m[ys, xs]  # keep masked pixels only
    xs, ys = xs[inside], ys[inside]

    # mask grid -> depth grid
    dx = xs * dw // mw
    dy = ys * dh // mh
    ok = (dx < dw) & (dy < dh)
    dx, dy = dx[ok], dy[ok]

    z = d[dy, dx].astype(np.float64)
    valid = np.isfinite(z) & (z > min_depth) & (z < max_depth)  # open depth range
    dx, dy, z = dx[valid], dy[valid], z[valid]

    # depth pixels into the intrinsics grid
    if image_size is not None:
        iw, ih = image_size
        px = dx * (iw / dw)
        py = dy * (ih / dh)
    else:
        px = dx.astype(np.float64)
        py = dy.astype(np.float64)

    # pinhole back-projection
    x = (px - intrinsics.cx) * z / intrinsics.fx
    y = (py - intrinsics.cy) * z / intrinsics.fy
    cam = np.stack([x, -y, -z, np.ones_like(z)], axis=1)  # image frame to camera frame, Y and Z flipped
    pts = (cam @ T.T)[:, :3]  # camera to world

    logger.debug(
        "sampled %d points (stride %d, mask %dx%d, depth %dx%d)",
        pts.shape[0], stride, mw, mh, dw, dh,
    )
    if pts.shape[0]:
        logger.debug("point cloud extents: %s", pts.max(axis=0) - pts.min(axis=0))
    return pts
