"""Reading and writing grayscale images with Pillow."""

import logging
import os

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, EncodeError, ImageNotFoundError, UnsupportedFormatError
from .image import GrayImage

logger = logging.getLogger(__name__)

# Pillow writes mode "L" images with the PPM plugin as binary PGM (P5).
SAVE_FORMATS = {
    ".png": "PNG",
    ".bmp": "BMP",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".pgm": "PPM",
}
DEFAULT_SAVE_FORMAT = "PPM"


def load_grayscale(path, alignment=1):
    """
    Load an image file as an 8-bit grayscale image.

    Colour, palette and higher bit-depth images are converted with
    ``Image.convert("L")`` (ITU-R 601-2 luma).

    Args:
        path (str or os.PathLike): Image file.
        alignment (int): Row alignment of the returned buffer.

    Returns:
        GrayImage: The decoded pixels.

    Raises:
        ImageNotFoundError: The file does not exist.
        UnsupportedFormatError: Pillow does not recognise the content.
        DecodeError: The file cannot be read, or its content is recognised
            but cannot be decoded.
    """
    path = os.fspath(path)
    try:
        img = Image.open(path)
    except FileNotFoundError as exc:
        raise ImageNotFoundError(f"Unable to open file: <{path}>") from exc
    except UnidentifiedImageError as exc:
        raise UnsupportedFormatError(f"Unknown image format: <{path}>") from exc
    except OSError as exc:
        raise DecodeError(f"Failed to read image <{path}>: {exc}") from exc

    with img:
        logger.info("Image format: %s", img.format)
        logger.info("Image size: %dx%d", img.width, img.height)
        logger.info("Image mode: %s", img.mode)
        try:
            img.load()
            if img.mode != "L":
                logger.info("Converting to grayscale...")
                gray = img.convert("L")
            else:
                gray = img
            pixels = np.asarray(gray, dtype=np.uint8)
        except (OSError, SyntaxError, ValueError) as exc:
            raise DecodeError(f"Failed to load image <{path}>: {exc}") from exc

    return GrayImage.from_array(pixels, alignment)


def save_format(path):
    """Pillow format name for ``path``, chosen from its extension."""
    ext = os.path.splitext(os.fspath(path))[1].lower()
    return SAVE_FORMATS.get(ext, DEFAULT_SAVE_FORMAT)


def save_grayscale(image, path):
    """
    Write ``image`` to ``path`` in the format implied by its extension.

    Unknown extensions are written as PGM. Missing parent directories are
    created.

    Raises:
        EncodeError: The file could not be written.
    """
    path = os.fspath(path)
    fmt = save_format(path)
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        Image.fromarray(image.to_array()).save(path, format=fmt)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Failed to save result image <{path}>: {exc}") from exc
    logger.debug("Saved %s as %s", path, fmt)
