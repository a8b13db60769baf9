import argparse
import logging
import os
import sys

import numba
from numba import cuda

from .errors import EdgeDetectionError
from .image import BorderPolicy
from .imageio import load_grayscale, save_grayscale
from .sobel import BACKENDS, SOBEL_X, SOBEL_Y, SobelEdgeFilter

DEFAULT_INPUT_DIR = "input"
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_FORMAT = "png"
DEFAULT_BLOCK_SIZE = 32

# Tried in order when no --input is given
SAMPLE_IMAGES = ("Lena.pgm", "sloth.png", "grey-sloth.png", "th.jpeg")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="sobel-edges",
        description="Sobel edge detection (CUDA via Numba, CPU fallback)")
    parser.add_argument('--input', help='Image name, looked up in the input directory')
    parser.add_argument('--input-dir', default=DEFAULT_INPUT_DIR, help='Directory holding input images')
    parser.add_argument('--output-dir', default=DEFAULT_OUTPUT_DIR, help='Directory receiving the edge maps')
    parser.add_argument('--format', default=DEFAULT_FORMAT, help='Output extension (png, bmp, jpg, pgm)')
    parser.add_argument('--border', choices=[p.name.lower() for p in BorderPolicy],
                        default='replicate', help='Border handling policy')
    parser.add_argument('--device', choices=BACKENDS, default='auto', help='Where to run the filter')
    parser.add_argument('--tb', type=int, default=DEFAULT_BLOCK_SIZE, help='Thread block size for the CUDA kernel')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def find_input(input_dir, name=None):
    """Path of the image to process: ``name`` if given, else the first sample image present."""
    if name:
        return os.path.join(input_dir, name)
    for candidate in SAMPLE_IMAGES:
        path = os.path.join(input_dir, candidate)
        if os.path.isfile(path):
            return path
    return os.path.join(input_dir, SAMPLE_IMAGES[0])


def output_paths(input_path, output_dir, ext=DEFAULT_FORMAT):
    """(horizontal, vertical) result paths for ``input_path``."""
    base = os.path.splitext(os.path.basename(input_path))[0]
    ext = ext.lstrip(".")
    return (os.path.join(output_dir, f"{base}_edges_horizontal.{ext}"),
            os.path.join(output_dir, f"{base}_edges_vertical.{ext}"))


def print_device_info(backend):
    print(f"Numba Version {numba.__version__}")
    if backend != "cuda":
        print("  Running on CPU")
        return
    major, minor = cuda.runtime.get_version()
    cc_major, cc_minor = cuda.gpus.current.compute_capability
    print(f"  CUDA Runtime Version: {major}.{minor}")
    print(f"  Compute capability: {cc_major}.{cc_minor}")


def print_usage(prog):
    print(f"\nUsage: {prog} --input=image.[jpg|png|bmp|pgm]")
    print("Note: Place your images in the 'input/' directory")
    print(f"\nExample: {prog} --input=photo.jpg")
    print("         (File should be at: input/photo.jpg)")


def print_banner(prog):
    print(f"{prog} Starting...\n")
    print("Supports: JPG, PNG, BMP, PGM and other image formats")
    print("Automatically converts color images to grayscale\n")


def run(args):
    print_banner(sys.argv[0])
    edge_filter = SobelEdgeFilter(args.device, block_size=(args.tb, args.tb))
    print_device_info(edge_filter.backend)

    filename = find_input(args.input_dir, args.input)
    if not os.path.isfile(filename):
        print(f"Error: Unable to open file: <{filename}>")
        print_usage(sys.argv[0])
        return 1

    print(f"Loading image: {filename}")
    image = load_grayscale(filename)
    print("Image loaded successfully\n")

    border = BorderPolicy[args.border.upper()]
    print("Applying Sobel edge detection...")
    print("  Computing horizontal edges...")
    horizontal = edge_filter.apply(image, SOBEL_X, border)
    print("  Computing vertical edges...")
    vertical = edge_filter.apply(image, SOBEL_Y, border)

    path_h, path_v = output_paths(filename, args.output_dir, args.format)
    print("\nSaving results...")
    save_grayscale(horizontal, path_h)
    print(f"  Saved: {path_h}")
    save_grayscale(vertical, path_v)
    print(f"  Saved: {path_v}")

    print("\nEdge detection complete!")
    print("\nOutput files:")
    print(f"  Horizontal edges (vertical lines): {path_h}")
    print(f"  Vertical edges (horizontal lines): {path_v}")
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.tb < 1:
        parser.error("--tb must be a positive integer")
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        return run(args)
    except EdgeDetectionError as exc:
        print("\nProgram error! The following exception occurred:", file=sys.stderr)
        print(f"{exc.kind}: {exc}", file=sys.stderr)
        print("Aborting.", file=sys.stderr)
        return 1
    except Exception as exc:
        print("\nProgram error! An unknown exception occurred.", file=sys.stderr)
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        print("Aborting.", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
