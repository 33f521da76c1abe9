"""Data processing modules for slice grouping, ordering and voxel assembly."""

from .tiff_reader import SliceInfo, TiffStackReader
from .stack_grouper import StackConfig, StackGroups, group_slices
from .slice_order import EXCLUDED, SliceOrder, compute_slice_order, exclude_mismatched_slices
from .pixel_types import PixelType, select_pixel_type
from .voxel_assembler import assemble_voxels

__all__ = [
    "SliceInfo",
    "TiffStackReader",
    "StackConfig",
    "StackGroups",
    "group_slices",
    "EXCLUDED",
    "SliceOrder",
    "compute_slice_order",
    "exclude_mismatched_slices",
    "PixelType",
    "select_pixel_type",
    "assemble_voxels",
]
