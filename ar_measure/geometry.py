import numpy as np
from scipy.spatial.transform import Rotation

# Vectors are float64 (3,) arrays; axis sets are (3, 3) with one axis per row.

_BASIS = np.eye(3, dtype=np.float64)


def normalize(v, eps=1e-12):
    n = np.linalg.norm(v)
    if n < eps:
        return None
    return v / n


def project_out(v, axes):
    # Gram-Schmidt: remove the components of v along each (unit) axis
    out = np.array(v, dtype=np.float64)
    for a in axes:
        out = out - np.dot(out, a) * a
    return out


def orthogonal_seed(index, axes, min_residual=0.1):
    """
    Unit seed for axis `index`, orthogonal to the already extracted `axes`.

    The coordinate axis e_index is preferred. When it is (nearly) parallel to
    the span of `axes`, the coordinate axis with the largest orthogonal
    residual is used instead, which always has length >= 1/sqrt(3).
    """
    seed = project_out(_BASIS[index], axes)
    if np.linalg.norm(seed) >= min_residual:
        return seed / np.linalg.norm(seed)
    residuals = [project_out(e, axes) for e in _BASIS]
    best = max(residuals, key=np.linalg.norm)
    return best / np.linalg.norm(best)


def right_handed(axes):
    """Flip the third axis when the rows of `axes` form a left-handed frame."""
    axes = np.array(axes, dtype=np.float64)
    if np.linalg.det(axes.T) < 0:
        axes[2] = -axes[2]
    return axes


def quaternion_from_axes(axes):
    # rotation matrix has the principal axes as columns; scipy returns (x, y, z, w)
    q = Rotation.from_matrix(np.asarray(axes, dtype=np.float64).T).as_quat()
    return tuple(float(c) for c in q)


def quaternion_from_matrix(R):
    q = Rotation.from_matrix(np.asarray(R, dtype=np.float64)).as_quat()
    return tuple(float(c) for c in q)


def point_distance(a, b):
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)))
