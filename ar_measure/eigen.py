import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .geometry import normalize, orthogonal_seed, project_out

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERS = 50
DEFAULT_EPS = 1e-6
THIRD_AXIS_MODES = ("iterate", "cross")


@dataclass(frozen=True, eq=False)
class EigenDecomposition:
    axes: np.ndarray  # (3, 3), one unit eigenvector per row, extraction order
    eigenvalues: np.ndarray  # (3,)
    is_stable: bool
    iterations: Tuple[int, int, int]

    def sorted_by_eigenvalue(self) -> "EigenDecomposition":
        order = np.argsort(self.eigenvalues)[::-1]
        return EigenDecomposition(
            axes=self.axes[order],
            eigenvalues=self.eigenvalues[order],
            is_stable=self.is_stable,
            iterations=tuple(self.iterations[i] for i in order),
        )


def _as_symmetric(matrix) -> np.ndarray:
    m = np.asarray(matrix, dtype=np.float64)
    if m.shape != (3, 3):
        raise ValueError(f"expected a 3x3 matrix, got shape {m.shape}")
    if not np.all(np.isfinite(m)):
        raise ValueError("matrix contains non-finite values")
    if not np.allclose(m, m.T):
        logger.debug("symmetrizing non-symmetric input matrix")
        m = 0.5 * (m + m.T)
    return m


def _power_iterate(m, seed, prior, max_iters, eps):
    """
    Power iteration restricted to the orthogonal complement of `prior`.
    Returns (vector, iterations, stable).
    """
    v = seed
    for it in range(1, max_iters + 1):
        nxt = project_out(m @ v, prior)
        length = np.linalg.norm(nxt)
        if length < eps:
            # degenerate direction: v is already unit length and orthogonal to prior
            return v, it, False
        nxt = nxt / length
        if np.linalg.norm(nxt - v) < eps:
            return nxt, it, True
        v = nxt
    return v, max_iters, True


def eigendecompose(matrix, max_iters=DEFAULT_MAX_ITERS, eps=DEFAULT_EPS, third_axis="iterate"):
    """
    Eigenvectors of a symmetric 3x3 matrix by power iteration with deflation.

    Axes are extracted dominant first, each one in the orthogonal complement of
    the previous ones (Gram-Schmidt), starting from the coordinate axes. They are
    returned in extraction order, not re-sorted. With third_axis="cross" the last
    axis is v1 x v2 instead of a third iteration.

    Degenerate directions (projected vector shorter than eps) never raise: the
    run is flagged unstable and an orthogonal fallback axis is kept.
    """
    if third_axis not in THIRD_AXIS_MODES:
        raise ValueError(f"third_axis must be one of {THIRD_AXIS_MODES}, got {third_axis!r}")
    if max_iters < 1:
        raise ValueError("max_iters must be a positive integer")
    m = _as_symmetric(matrix)

    axes = []
    iterations = []
    stable = True
    for i in range(3):
        if i == 2 and third_axis == "cross":
            v = normalize(np.cross(axes[0], axes[1]))
            axes.append(v)
            iterations.append(0)
            continue
        seed = orthogonal_seed(i, axes)
        v, n_iter, ok = _power_iterate(m, seed, axes, max_iters, eps)
        if not ok:
            logger.debug("degenerate direction while extracting axis %d", i)
            stable = False
        axes.append(v)
        iterations.append(n_iter)

    axes = np.stack(axes)
    # Rayleigh quotient per axis
    eigenvalues = np.einsum("ij,jk,ik->i", axes, m, axes)
    return EigenDecomposition(
        axes=axes,
        eigenvalues=eigenvalues,
        is_stable=stable,
        iterations=tuple(iterations),
    )
