import logging
import math
from collections import namedtuple
from contextlib import contextmanager

import numpy as np
from numba import cuda, njit, prange
from numba.cuda.cudadrv.driver import CudaAPIError

from .errors import AllocationError, InvalidDimensionError
from .image import BorderPolicy, GrayImage

logger = logging.getLogger(__name__)

# Define Sobel kernels
SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]], dtype=np.int32)

SOBEL_Y = np.array([[-1, -2, -1],
                    [0, 0, 0],
                    [1, 2, 1]], dtype=np.int32)

BORDER_CONSTANT = int(BorderPolicy.CONSTANT)

BACKENDS = ("auto", "cuda", "cpu")

EdgeMaps = namedtuple("EdgeMaps", ["horizontal", "vertical"])


# Function to compute the number of thread blocks
def compute_thread_blocks(imagetab, block_size):
    """
    Computes the number of thread blocks required for CUDA operations.

    Args:
        imagetab (numpy.ndarray): Image (or buffer) whose first two dimensions are (height, width).
        block_size (tuple): Size of the thread block in (width, height) format.

    Returns:
        tuple: Number of thread blocks required in (blockspergrid_y, blockspergrid_x) format.
    """
    height, width = imagetab.shape[:2]
    blockspergrid_x = math.ceil(width / block_size[0])
    blockspergrid_y = math.ceil(height / block_size[1])
    blockspergrid = (blockspergrid_y, blockspergrid_x)
    return blockspergrid


@cuda.jit
def sobel_kernel(input, output, kernel, width, height, border):
    """
    CUDA kernel function to apply a 3x3 gradient kernel to an image.

    Args:
        input (cuda.devicearray.DeviceNDArray): Pitched source buffer, shape (height, stride).
        output (cuda.devicearray.DeviceNDArray): Destination image, shape (height, width).
        kernel (cuda.devicearray.DeviceNDArray): 3x3 int32 weights.
        width (int): Logical width of the source.
        height (int): Height of the source.
        border (int): BorderPolicy value.
    """
    y, x = cuda.grid(2)
    if y >= height or x >= width:
        return
    acc = 0
    for i in range(3):
        for j in range(3):
            ny = y + i - 1
            nx = x + j - 1
            if border == BORDER_CONSTANT:
                if ny < 0 or nx < 0 or ny >= height or nx >= width:
                    continue
            else:
                ny = min(max(ny, 0), height - 1)
                nx = min(max(nx, 0), width - 1)
            acc += kernel[i, j] * input[ny, nx]
    output[y, x] = min(abs(acc), 255)


@njit(parallel=True)
def sobel_cpu(input, output, kernel, width, height, border):
    """Same computation as ``sobel_kernel``, one row per parallel iteration."""
    for y in prange(height):
        for x in range(width):
            acc = 0
            for i in range(3):
                for j in range(3):
                    ny = y + i - 1
                    nx = x + j - 1
                    if border == BORDER_CONSTANT:
                        if ny < 0 or nx < 0 or ny >= height or nx >= width:
                            continue
                    else:
                        ny = min(max(ny, 0), height - 1)
                        nx = min(max(nx, 0), width - 1)
                    acc += kernel[i, j] * input[ny, nx]
            output[y, x] = min(abs(acc), 255)


def resolve_backend(backend):
    if backend not in BACKENDS:
        raise ValueError(f"unknown backend {backend!r}, expected one of {BACKENDS}")
    if backend == "auto":
        backend = "cuda" if cuda.is_available() else "cpu"
    return backend


def _check_image(image):
    if image.width < 1 or image.height < 1:
        raise InvalidDimensionError(
            f"image must be at least 1x1, got {image.width}x{image.height}")


def _check_kernel(kernel):
    kernel = np.asarray(kernel)
    if kernel.shape != (3, 3):
        raise ValueError(f"expected a 3x3 kernel, got shape {kernel.shape}")
    if not np.issubdtype(kernel.dtype, np.integer):
        raise ValueError(f"expected integer kernel weights, got {kernel.dtype}")
    return np.ascontiguousarray(kernel, dtype=np.int32)


@contextmanager
def device_buffers(image, kernels):
    """
    Upload ``image`` and ``kernels`` and allocate one device output per kernel.

    Numba frees device memory once the last reference to an array goes
    away, so callers should not keep the yielded arrays past the block.

    Raises:
        AllocationError: if the driver refuses an upload or an allocation.
    """
    try:
        d_image = cuda.to_device(np.ascontiguousarray(image.data))
        d_kernels = [cuda.to_device(kernel) for kernel in kernels]
        d_outputs = [cuda.device_array((image.height, image.width), dtype=np.uint8)
                     for _ in kernels]
    except (CudaAPIError, MemoryError) as exc:
        raise AllocationError(f"could not allocate device buffers for {image!r}") from exc
    yield d_image, d_kernels, d_outputs


class SobelEdgeFilter:
    """
    Applies 3x3 gradient kernels to grayscale images on CUDA or on the CPU.

    Args:
        backend (str): "cuda", "cpu" or "auto" (CUDA when a device is available).
        block_size (tuple): CUDA thread block size in (width, height) format.
    """

    def __init__(self, backend="auto", block_size=(32, 32)):
        self.backend = resolve_backend(backend)
        self.block_size = tuple(block_size)
        logger.debug("Sobel filter using %s backend", self.backend)

    def apply(self, image, kernel, border=BorderPolicy.REPLICATE):
        """Convolve ``image`` with ``kernel`` and return a new image of the same size."""
        return self._run(image, [_check_kernel(kernel)], BorderPolicy(border))[0]

    def detect_edges(self, image, border=BorderPolicy.REPLICATE):
        """Run both Sobel passes over a single upload of ``image``."""
        horizontal, vertical = self._run(image, [SOBEL_X, SOBEL_Y], BorderPolicy(border))
        return EdgeMaps(horizontal, vertical)

    def _run(self, image, kernels, border):
        _check_image(image)
        if self.backend == "cuda":
            return self._run_cuda(image, kernels, border)
        return self._run_cpu(image, kernels, border)

    def _run_cuda(self, image, kernels, border):
        grid_size = compute_thread_blocks(image.pixels, self.block_size)
        logger.debug("Launching %d kernel(s) on grid %s, block %s",
                     len(kernels), grid_size, self.block_size)
        # grid is (rows, cols), so the block is given as (height, width)
        block = (self.block_size[1], self.block_size[0])
        results = []
        with device_buffers(image, kernels) as (d_image, d_kernels, d_outputs):
            for d_kernel, d_output in zip(d_kernels, d_outputs):
                sobel_kernel[grid_size, block](
                    d_image, d_output, d_kernel, image.width, image.height, int(border))
            cuda.synchronize()
            for d_output in d_outputs:
                results.append(GrayImage(d_output.copy_to_host()))
        return results

    def _run_cpu(self, image, kernels, border):
        source = np.ascontiguousarray(image.data)
        results = []
        for kernel in kernels:
            try:
                output = np.empty((image.height, image.width), dtype=np.uint8)
            except MemoryError as exc:
                raise AllocationError(f"could not allocate output for {image!r}") from exc
            sobel_cpu(source, output, kernel, image.width, image.height, int(border))
            results.append(GrayImage(output))
        return results


def sobel_horizontal(image, border=BorderPolicy.REPLICATE):
    """Gx pass: highlights vertical lines."""
    return SobelEdgeFilter().apply(image, SOBEL_X, border)


def sobel_vertical(image, border=BorderPolicy.REPLICATE):
    """Gy pass: highlights horizontal lines."""
    return SobelEdgeFilter().apply(image, SOBEL_Y, border)
