"""Exceptions raised by the edge detection pipeline.

Every stage raises its own kind and lets it propagate; ``cli.main`` is the
only place that turns them into a message and an exit status.
"""


class EdgeDetectionError(Exception):
    """Base class for all pipeline errors."""

    kind = "error"


class ImageNotFoundError(EdgeDetectionError, FileNotFoundError):
    kind = "file not found"


class UnsupportedFormatError(EdgeDetectionError):
    kind = "unsupported format"


class DecodeError(EdgeDetectionError):
    kind = "decode error"


class InvalidDimensionError(EdgeDetectionError, ValueError):
    kind = "invalid dimension"


class AllocationError(EdgeDetectionError, MemoryError):
    kind = "allocation error"


class EncodeError(EdgeDetectionError):
    kind = "encode error"
