import numpy as np
import pytest
from scipy.io import savemat

from ar_measure.io_utils import ensure_dir, load_points, save_points


@pytest.mark.parametrize("name", ["cloud.npy", "cloud.csv", "cloud.txt"])
def test_save_and_load(tmp_path, rng, name):
    pts = rng.normal(size=(20, 3))
    path = save_points(str(tmp_path / name), pts)
    np.testing.assert_allclose(load_points(path), pts)


def test_load_mat(tmp_path, rng):
    pts = rng.normal(size=(7, 3))
    path = tmp_path / "cloud.mat"
    savemat(str(path), {"points": pts})
    np.testing.assert_allclose(load_points(str(path)), pts)
    with pytest.raises(ValueError):
        load_points(str(path), key="depth")


def test_missing_and_unsupported_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_points(str(tmp_path / "missing.npy"))
    other = tmp_path / "cloud.ply"
    other.write_text("ply\n")
    with pytest.raises(ValueError):
        load_points(str(other))


def test_ensure_dir_is_repeatable(tmp_path):
    target = str(tmp_path / "a" / "b")
    assert ensure_dir(target) == target
    assert ensure_dir(target) == target
