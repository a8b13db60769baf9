import numpy as np
import pytest
from PIL import Image

from sobel_edges import (
    DecodeError,
    EncodeError,
    GrayImage,
    ImageNotFoundError,
    UnsupportedFormatError,
    load_grayscale,
    save_grayscale,
)
from sobel_edges.imageio import save_format


@pytest.mark.parametrize("name", ["edges.png", "edges.pgm", "edges.bmp"])
def test_lossless_round_trip(tmp_path, noise, name):
    path = tmp_path / name
    save_grayscale(GrayImage.from_array(noise, alignment=8), path)

    loaded = load_grayscale(path)

    assert loaded.size == (noise.shape[1], noise.shape[0])
    np.testing.assert_array_equal(loaded.pixels, noise)


def test_jpeg_is_written(tmp_path, noise):
    path = tmp_path / "edges.jpg"
    save_grayscale(GrayImage.from_array(noise), path)
    with Image.open(path) as img:
        assert img.format == "JPEG"
        assert img.mode == "L"


def test_colour_image_is_reduced_to_luma(tmp_path):
    rgb = np.zeros((4, 5, 3), dtype=np.uint8)
    rgb[..., 0] = 255
    path = tmp_path / "red.png"
    Image.fromarray(rgb).save(path)

    loaded = load_grayscale(path)

    assert loaded.size == (5, 4)
    assert (loaded.pixels == 76).all()


def test_load_honours_alignment(write_image, noise):
    loaded = load_grayscale(write_image("noise.png", noise), alignment=64)
    assert loaded.stride == 64
    np.testing.assert_array_equal(loaded.pixels, noise)


def test_missing_file(tmp_path):
    with pytest.raises(ImageNotFoundError) as excinfo:
        load_grayscale(tmp_path / "nope.png")
    assert isinstance(excinfo.value, FileNotFoundError)


def test_unrecognised_content(tmp_path):
    path = tmp_path / "junk.png"
    path.write_bytes(b"this is not an image at all")
    with pytest.raises(UnsupportedFormatError):
        load_grayscale(path)


def test_truncated_file(tmp_path, rng):
    path = tmp_path / "noise.png"
    Image.fromarray(rng.integers(0, 256, size=(64, 64), dtype=np.uint8)).save(path)
    data = path.read_bytes()
    path.write_bytes(data[:200])

    with pytest.raises(DecodeError):
        load_grayscale(path)


@pytest.mark.parametrize("name,fmt", [
    ("a.png", "PNG"),
    ("a.PNG", "PNG"),
    ("a.bmp", "BMP"),
    ("a.jpg", "JPEG"),
    ("a.JPEG", "JPEG"),
    ("a.pgm", "PPM"),
    ("a.tiff", "PPM"),
    ("noext", "PPM"),
])
def test_save_format_from_extension(name, fmt):
    assert save_format(name) == fmt


def test_unknown_extension_is_written_as_pgm(tmp_path, noise):
    path = tmp_path / "edges.out"
    save_grayscale(GrayImage.from_array(noise), path)
    assert path.read_bytes()[:2] == b"P5"


def test_save_creates_missing_directories(tmp_path, noise):
    path = tmp_path / "a" / "b" / "edges.png"
    save_grayscale(GrayImage.from_array(noise), path)
    assert path.is_file()


def test_unwritable_destination(tmp_path, noise):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    with pytest.raises(EncodeError):
        save_grayscale(GrayImage.from_array(noise), blocker / "edges.png")


def test_unreadable_path(tmp_path):
    # a directory cannot be opened as a file
    with pytest.raises(DecodeError):
        load_grayscale(tmp_path)
