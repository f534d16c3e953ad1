"""Shared fixtures for the measurement tests."""
import logging

import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("matplotlib").setLevel(logging.WARNING)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def unit_cube_corners():
    """8 corners of a unit cube centered at the origin."""
    return np.array(
        [[x, y, z] for x in (-0.5, 0.5) for y in (-0.5, 0.5) for z in (-0.5, 0.5)],
        dtype=np.float64,
    )


@pytest.fixture
def random_rotation(rng):
    # proper rotation from the QR decomposition of a random matrix
    q, r = np.linalg.qr(rng.normal(size=(3, 3)))
    q = q * np.sign(np.diag(r))
    if np.linalg.det(q) < 0:
        q[:, 2] = -q[:, 2]
    return q
