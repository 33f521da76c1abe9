"""Copying decoded TIFF rasters into one canonical-order voxel buffer."""

from typing import Protocol, Sequence
import logging

import numpy as np

from .pixel_types import PixelType
from .slice_order import EXCLUDED, SliceOrder
from .tiff_reader import SliceInfo
from ..core.exceptions import DimensionMismatch, SliceIndexOutOfRange


logger = logging.getLogger(__name__)


class RasterSource(Protocol):
    def read_raster(self, index: int) -> np.ndarray:
        ...


def pad_rg_to_rgb(raster: np.ndarray) -> np.ndarray:
    """Append a zero third sample to interleaved two-sample pixels."""
    rg = np.asarray(raster).reshape(-1, 2)
    rgb = np.zeros((rg.shape[0], 3), dtype=rg.dtype)
    rgb[:, :2] = rg
    return rgb


def assemble_voxels(reader: RasterSource, slices: Sequence[SliceInfo], order: SliceOrder,
                    pixel_type: PixelType, width: int, height: int) -> np.ndarray:
    """Decode every selected slice into its canonical slot.

    Args:
        reader: Source of decoded rasters, addressed by page index.
        slices: Selected slices; ``order.indices[i]`` is the slot of ``slices[i]``.
        order: Canonical slice order; ``EXCLUDED`` entries are skipped.
        pixel_type: Output storage, including the RG to RGB padding flag.
        width: Slice width in pixels.
        height: Slice height in pixels.

    Returns:
        Flat little-endian array of ``n_frames * width * height * channels``
        elements.

    Raises:
        SliceIndexOutOfRange: If a canonical index is outside the volume.
        DimensionMismatch: If a decoded raster does not fill exactly one slot.
    """
    if len(order.indices) != len(slices):
        raise DimensionMismatch(
            f"Slice order covers {len(order.indices)} slices but {len(slices)} were selected"
        )

    slot_size = width * height * pixel_type.output_channels
    voxels = np.zeros(order.n_frames * slot_size, dtype=pixel_type.dtype)

    for position, (info, index) in enumerate(zip(slices, order.indices)):
        if index == EXCLUDED:
            continue
        if index < 0 or index >= order.n_frames:
            raise SliceIndexOutOfRange(index, order.n_frames, position)

        raster = reader.read_raster(info.index)
        if pixel_type.pad_rg_to_rgb:
            raster = pad_rg_to_rgb(raster)
        raster = np.asarray(raster).reshape(-1)

        if raster.size != slot_size:
            raise DimensionMismatch(
                f"Slice {info.index} decoded to {raster.size} samples, expected {slot_size} "
                f"({width}x{height}x{pixel_type.output_channels})"
            )

        start = index * slot_size
        voxels[start:start + slot_size] = raster

    logger.info(f"Assembled {order.n_frames} frames: {voxels.nbytes} bytes as {pixel_type.name}")
    return voxels
