"""
Exception types raised by the TIFF to NIfTI conversion pipeline.
"""

from typing import Optional


class TiffNiiError(Exception):
    """Base class for all conversion errors."""


class UnsupportedInputType(TiffNiiError, TypeError):
    """Input is not a recognised byte-buffer form."""

    def __init__(self, received: object):
        self.received = type(received).__name__
        super().__init__(
            f"Unsupported input type: expected bytes, bytearray or memoryview, got {self.received}"
        )


class UnsupportedPixelFormat(TiffNiiError, ValueError):
    """No NIfTI datatype exists for the (bit depth, channels) combination."""

    def __init__(self, bit_depth: int, channels: int):
        self.bit_depth = bit_depth
        self.channels = channels
        super().__init__(
            f"Unsupported TIFF bit depth: {bit_depth}, channels: {channels}"
        )


class DimensionMismatch(TiffNiiError, ValueError):
    """Slice shapes vary in a way that has no defined remapping."""


class SliceIndexOutOfRange(TiffNiiError, IndexError):
    """A canonical slice index falls outside [0, n_frames)."""

    def __init__(self, index: int, n_frames: int, source_index: Optional[int] = None):
        self.index = index
        self.n_frames = n_frames
        self.source_index = source_index
        where = f" (source slice {source_index})" if source_index is not None else ""
        super().__init__(
            f"Canonical slice index {index}{where} outside [0, {n_frames})"
        )


class MalformedMetadata(TiffNiiError, ValueError):
    """LSM struct or OME-XML fields are absent or cannot be parsed."""
