import enum

import numpy as np


class BorderPolicy(enum.IntEnum):
    """How taps falling outside the image are sampled."""

    REPLICATE = 0  # nearest edge pixel
    CONSTANT = 1  # zero


class GrayImage:
    """
    Single-channel 8-bit image stored in a pitched buffer.

    The buffer has shape ``(height, stride)``; only the first ``width``
    columns of each row hold pixels, the rest is row padding.

    Args:
        data (numpy.ndarray): 2-D uint8 buffer of shape (height, stride).
        width (int): Logical width in pixels. Defaults to the stride.
    """

    def __init__(self, data, width=None):
        data = np.asarray(data)
        if data.ndim != 2:
            raise ValueError(f"expected a 2-D buffer, got shape {data.shape}")
        if data.dtype != np.uint8:
            raise ValueError(f"expected uint8 samples, got {data.dtype}")
        stride = data.shape[1]
        if width is None:
            width = stride
        if width < 0 or width > stride:
            raise ValueError(f"width {width} does not fit in stride {stride}")
        self.data = data
        self._width = int(width)

    @classmethod
    def allocate(cls, width, height, alignment=1):
        """Allocate a zeroed image whose stride is a multiple of ``alignment``."""
        if alignment < 1:
            raise ValueError("alignment must be positive")
        stride = -(-width // alignment) * alignment
        return cls(np.zeros((height, stride), dtype=np.uint8), width)

    @classmethod
    def from_array(cls, pixels, alignment=1):
        pixels = np.asarray(pixels)
        if pixels.ndim != 2:
            raise ValueError(f"expected a 2-D array, got shape {pixels.shape}")
        height, width = pixels.shape
        image = cls.allocate(width, height, alignment)
        image.pixels[:] = pixels
        return image

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self.data.shape[0]

    @property
    def stride(self):
        return self.data.shape[1]

    @property
    def size(self):
        return self.width, self.height

    @property
    def pixels(self):
        """View of the logical pixels, shape (height, width)."""
        return self.data[:, :self._width]

    def to_array(self):
        return np.ascontiguousarray(self.pixels)

    def __repr__(self):
        return f"GrayImage(width={self.width}, height={self.height}, stride={self.stride})"
