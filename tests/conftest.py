"""
Pytest configuration and shared fixtures for the edge detection tests.
"""

import os

# Run CUDA kernels in Numba's simulator unless a real device was requested.
# Must happen before numba is imported.
os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import numpy as np
import pytest
from PIL import Image


@pytest.fixture(params=["cpu", "cuda"])
def edge_filter(request):
    """A filter for each backend; small blocks keep the simulator fast."""
    from sobel_edges import SobelEdgeFilter

    return SobelEdgeFilter(request.param, block_size=(8, 8))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def noise(rng):
    """A 17x23 random grayscale image."""
    return rng.integers(0, 256, size=(17, 23), dtype=np.uint8)


@pytest.fixture
def vertical_step():
    """Left half black, right half white: a single vertical line."""
    pixels = np.zeros((5, 6), dtype=np.uint8)
    pixels[:, 3:] = 255
    return pixels


@pytest.fixture
def write_image(tmp_path):
    """Write a numpy array as an image file under tmp_path and return its path."""

    def _write(name, pixels, directory=None):
        directory = directory or tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        Image.fromarray(pixels).save(path)
        return path

    return _write
