import os
from pathlib import Path

import numpy as np
from scipy.io import loadmat

from .obb import as_point_cloud


def ensure_dir(path):
    os.makedirs(path, exist_ok=True)
    return path


def load_points(path, key="points"):
    """
    Load an (N, 3) point cloud from .npy, .txt/.csv (x, y, z per row) or a .mat
    file holding the array under `key`.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"No point file found: {path}")
    suffix = p.suffix.lower()
    if suffix == ".npy":
        data = np.load(p)
    elif suffix in (".txt", ".csv"):
        data = np.loadtxt(p, delimiter="," if suffix == ".csv" else None, ndmin=2)
    elif suffix == ".mat":
        mat = loadmat(p)
        if key not in mat:
            raise ValueError(f"{path}: no variable named {key!r}")
        data = mat[key]
    else:
        raise ValueError(f"unsupported point file type: {suffix}")
    return as_point_cloud(data)


def save_points(path, points):
    pts = as_point_cloud(points)
    suffix = Path(path).suffix.lower()
    if suffix == ".npy":
        np.save(path, pts)
    elif suffix == ".csv":
        np.savetxt(path, pts, delimiter=",")
    else:
        np.savetxt(path, pts)
    return path
