from .errors import (
    AllocationError,
    DecodeError,
    EdgeDetectionError,
    EncodeError,
    ImageNotFoundError,
    InvalidDimensionError,
    UnsupportedFormatError,
)
from .image import BorderPolicy, GrayImage
from .imageio import load_grayscale, save_grayscale
from .sobel import SOBEL_X, SOBEL_Y, EdgeMaps, SobelEdgeFilter, sobel_horizontal, sobel_vertical

__version__ = "0.1.0"
