import numpy as np
from scipy.ndimage import binary_closing, binary_opening, find_objects, generate_binary_structure, label


class SegmentationMask:
    """
    Binary object mask from the segmentation model.

    Accepts a boolean array or a grayscale (uint8) array, where values above
    `threshold` are inside the object.
    """

    def __init__(self, values, threshold=127):
        values = np.asarray(values)
        if values.ndim != 2:
            raise ValueError(f"mask must be 2D, got shape {values.shape}")
        if values.dtype == bool:
            self.values = values.copy()
        else:
            self.values = values > threshold  # grayscale to binary
        self.values.setflags(write=False)

    @classmethod
    def from_instance_labels(cls, labels, x, y):
        """
        Mask of the labelled instance under the normalized point (x, y).
        Label 0 is background; tapping background gives an empty mask.
        """
        labels = np.asarray(labels)
        h, w = labels.shape
        # normalized tap to pixel, clamped to the image
        px = min(max(int(x * w), 0), w - 1)
        py = min(max(int(y * h), 0), h - 1)
        k = labels[py, px]
        if k == 0:
            return cls(np.zeros_like(labels, dtype=bool))
        return cls(labels == k)

    @property
    def width(self):
        return self.values.shape[1]

    @property
    def height(self):
        return self.values.shape[0]

    @property
    def pixel_count(self):
        return int(self.values.sum())

    def contains(self, x, y):
        # pixel coordinates
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        return bool(self.values[int(y), int(x)])

    @property
    def bounding_box(self):
        """Normalized [x, y, width, height]; [0, 0, 1, 1] for an empty mask."""
        slices = find_objects(self.values.astype(np.int32))
        if not slices or slices[0] is None:
            return [0.0, 0.0, 1.0, 1.0]
        rows, cols = slices[0]
        # extents between the extreme inside pixels, not pixel counts
        return [
            cols.start / self.width,
            rows.start / self.height,
            (cols.stop - 1 - cols.start) / self.width,
            (rows.stop - 1 - rows.start) / self.height,
        ]

    def cleaned(self, open_size=3, close_size=5):
        # opening drops speckles, closing fills small holes
        selem = generate_binary_structure(2, 1)  # cross-shaped 3x3
        m = binary_opening(self.values, iterations=max(1, open_size // 2), structure=selem)
        m = binary_closing(m, iterations=max(1, close_size // 2), structure=selem)
        return SegmentationMask(m)

    def largest_region(self):
        lbl, n = label(self.values)  # 4-connected regions
        if n == 0:
            return SegmentationMask(self.values)
        counts = np.bincount(lbl.ravel())
        counts[0] = 0  # ignore background
        return SegmentationMask(lbl == counts.argmax())
