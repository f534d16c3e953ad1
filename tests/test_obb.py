import numpy as np
import pytest

from ar_measure.obb import as_point_cloud, covariance_matrix, fit_obb


def _box_corners(dims, R, center):
    signs = np.array([[x, y, z] for x in (-0.5, 0.5) for y in (-0.5, 0.5) for z in (-0.5, 0.5)])
    return (signs * np.asarray(dims)) @ R.T + np.asarray(center)


def test_unit_cube_scenario(unit_cube_corners):
    box = fit_obb(unit_cube_corners)
    assert box is not None
    np.testing.assert_allclose(box.center, 0.0, atol=1e-9)
    np.testing.assert_allclose(box.extents, 1.0, atol=1e-3)
    # axes are the coordinate axes in some order
    np.testing.assert_allclose(np.sort(np.abs(box.axes), axis=1), [[0, 0, 1]] * 3, atol=1e-9)
    assert box.is_stable
    assert box.point_count == 8


def test_cube_corners_reproduced(unit_cube_corners):
    box = fit_obb(unit_cube_corners)
    got = sorted(map(tuple, np.round(box.corners(), 9)))
    want = sorted(map(tuple, np.round(unit_cube_corners, 9)))
    assert got == want


def test_rotated_box_dimensions_and_center(random_rotation):
    center = np.array([0.3, -1.2, 2.5])
    pts = _box_corners((0.4, 0.2, 0.1), random_rotation, center)
    box = fit_obb(pts)

    np.testing.assert_allclose(np.sort(box.extents)[::-1], [0.4, 0.2, 0.1], atol=1e-4)
    np.testing.assert_allclose(box.center, center, atol=1e-6)
    assert box.total_variance == pytest.approx((0.16 + 0.04 + 0.01) / 4.0, rel=1e-6)


def test_minimum_points_boundary():
    pts = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
    assert fit_obb(pts[:3]) is None
    assert fit_obb(pts[:1]) is None
    assert fit_obb(np.empty((0, 3))) is None

    box = fit_obb(pts)
    assert box is not None
    assert box.point_count == 4


def test_flat_point_list_is_accepted(unit_cube_corners):
    flat = unit_cube_corners.ravel().tolist()
    a = fit_obb(flat)
    b = fit_obb(unit_cube_corners)
    np.testing.assert_array_equal(a.extents, b.extents)


@pytest.mark.parametrize("bad", [[1.0, 2.0], np.zeros((4, 2)), np.zeros((2, 3, 3))])
def test_malformed_points_raise(bad):
    with pytest.raises(ValueError):
        as_point_cloud(bad)


def test_fit_is_idempotent_and_leaves_input_untouched(rng):
    pts = rng.normal(size=(200, 3)) * [0.3, 0.1, 0.05]
    before = pts.copy()
    a = fit_obb(pts)
    b = fit_obb(pts)
    np.testing.assert_array_equal(pts, before)
    for name in ("center", "extents", "axes", "eigenvalues"):
        np.testing.assert_array_equal(getattr(a, name), getattr(b, name))
    assert a.is_stable == b.is_stable


@pytest.mark.parametrize("third_axis", ["iterate", "cross"])
def test_output_frame_is_right_handed(rng, third_axis):
    for _ in range(30):
        pts = rng.normal(size=(50, 3)) * rng.uniform(0.01, 1.0, size=3)
        box = fit_obb(pts, third_axis=third_axis)
        assert np.linalg.det(box.rotation_matrix) > 0
        np.testing.assert_allclose(box.axes @ box.axes.T, np.eye(3), atol=1e-4)


def test_all_points_identical():
    pts = np.tile([1.0, 2.0, 3.0], (6, 1))
    box = fit_obb(pts)
    assert box is not None
    assert not box.is_stable
    np.testing.assert_allclose(box.center, [1.0, 2.0, 3.0])
    np.testing.assert_allclose(box.extents, 0.0, atol=1e-12)
    np.testing.assert_allclose(box.eigenvalues, 0.0, atol=1e-12)


def test_collinear_points():
    direction = np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0)
    pts = np.linspace(0.0, 1.0, 10)[:, None] * direction + [0.5, 0.0, -1.0]
    box = fit_obb(pts)

    assert not box.is_stable
    assert box.extents[0] == pytest.approx(1.0, abs=1e-9)
    np.testing.assert_allclose(box.extents[1:], 0.0, atol=1e-9)
    np.testing.assert_allclose(box.eigenvalues[1:], 0.0, atol=1e-12)
    np.testing.assert_allclose(box.center, [0.5 + 0.5 / np.sqrt(2), 0.5 / np.sqrt(2), -1.0], atol=1e-9)


def test_coplanar_points():
    pts = np.array(
        [[0, 0, 0], [1, 0, 0], [0, 2, 0], [1, 2, 0], [0.5, 1, 0], [0.2, 1.5, 0]],
        dtype=float,
    )
    box = fit_obb(pts)

    flat = int(np.argmin(np.abs(box.eigenvalues)))
    assert abs(box.eigenvalues[flat]) < 1e-12
    assert box.extents[flat] < 1e-9
    assert abs(box.axes[flat][2]) == pytest.approx(1.0)
    assert not box.is_stable


def test_covariance_is_symmetric_population_covariance(rng):
    pts = rng.normal(size=(100, 3))
    X = pts - pts.mean(axis=0)
    C = covariance_matrix(X)
    np.testing.assert_allclose(C, C.T)
    np.testing.assert_allclose(C, X.T @ X / len(X))


def test_rotation_quaternion_identity_for_axis_aligned_box():
    pts = _box_corners((0.4, 0.2, 0.1), np.eye(3), (0, 0, 0))
    box = fit_obb(pts)
    q = np.array(box.rotation)
    assert abs(q[3]) == pytest.approx(1.0, abs=1e-9)
