import numpy as np
import pytest

from ar_measure.masks import SegmentationMask


def test_grayscale_mask_uses_threshold():
    values = np.array([[0, 100, 127], [128, 200, 255]], dtype=np.uint8)
    m = SegmentationMask(values)
    assert m.pixel_count == 3
    assert not m.contains(2, 0)
    assert m.contains(0, 1)

    assert SegmentationMask(values, threshold=50).pixel_count == 5


def test_contains_outside_image_is_false():
    m = SegmentationMask(np.ones((4, 4), dtype=bool))
    assert m.contains(3, 3)
    assert not m.contains(4, 0)
    assert not m.contains(-1, 2)


def test_mask_values_are_read_only():
    m = SegmentationMask(np.ones((2, 2), dtype=bool))
    with pytest.raises(ValueError):
        m.values[0, 0] = False


def test_bounding_box_is_normalized():
    values = np.zeros((10, 20), dtype=bool)
    values[2:6, 4:10] = True
    m = SegmentationMask(values)
    assert (m.width, m.height) == (20, 10)
    assert m.bounding_box == pytest.approx([0.2, 0.2, 0.25, 0.3])


def test_empty_mask_bounding_box_defaults_to_full_frame():
    m = SegmentationMask(np.zeros((5, 5), dtype=bool))
    assert m.pixel_count == 0
    assert m.bounding_box == [0.0, 0.0, 1.0, 1.0]


def test_instance_under_tap_point():
    labels = np.zeros((10, 10), dtype=np.int32)
    labels[:5, :5] = 1
    labels[5:, 5:] = 2

    m = SegmentationMask.from_instance_labels(labels, 0.8, 0.8)
    assert m.pixel_count == 25
    assert m.contains(9, 9)
    assert not m.contains(0, 0)

    background = SegmentationMask.from_instance_labels(labels, 0.1, 0.9)
    assert background.pixel_count == 0


def test_largest_region_keeps_biggest_blob():
    values = np.zeros((10, 10), dtype=bool)
    values[0:2, 0:2] = True
    values[5:8, 5:8] = True
    m = SegmentationMask(values).largest_region()
    assert m.pixel_count == 9
    assert m.contains(6, 6)


def test_cleaned_drops_speckles():
    values = np.zeros((12, 12), dtype=bool)
    values[3:9, 2:8] = True
    values[1, 10] = True
    m = SegmentationMask(values).cleaned(open_size=3, close_size=3)
    assert not m.contains(10, 1)
    assert m.contains(5, 6)
