"""
Zeiss LSM private tag (CZ_LSMINFO, TIFF tag 34412) decoding.

The tag holds a fixed-layout little-endian record describing the acquisition:
native image size, stack dimensions, voxel sizes in meters and the time
interval between frames. Only the leading 224-byte block is decoded; the
offsets it contains point at sub-records that are not needed for conversion.
"""

from dataclasses import dataclass, fields
from typing import Optional, Union
import logging

from .binary_reader import BinaryStructReader
from ..core.exceptions import MalformedMetadata


logger = logging.getLogger(__name__)

LSM_INFO_TAG = 34412
LSM_INFO_SIZE = 224

# 'L' 'I' 0x00 0x04, plus the older version-3 structure tifffile also accepts
LSM_MAGIC = bytes((76, 73, 0, 4))
LSM_MAGIC_V3 = bytes((76, 73, 0, 3))

# (field, type) in on-disk order
LSM_INFO_LAYOUT = (
    ('magic_number', 'u4'),
    ('structure_size', 'u4'),
    ('dimension_x', 'u4'),
    ('dimension_y', 'u4'),
    ('dimension_z', 'u4'),
    ('dimension_channels', 'u4'),
    ('dimension_time', 'u4'),
    ('intensity_data_type', 'u4'),
    ('thumbnail_x', 'u4'),
    ('thumbnail_y', 'u4'),
    ('voxel_size_x', 'f8'),
    ('voxel_size_y', 'f8'),
    ('voxel_size_z', 'f8'),
    ('origin_x', 'f8'),
    ('origin_y', 'f8'),
    ('origin_z', 'f8'),
    ('scan_type', 'u2'),
    ('spectral_scan', 'u2'),
    ('data_type', 'u4'),
    ('offset_vector_overlay', 'u4'),
    ('offset_input_lut', 'u4'),
    ('offset_output_lut', 'u4'),
    ('offset_channel_colors', 'u4'),
    ('time_interval', 'f8'),
    ('offset_channel_data_types', 'u4'),
    ('offset_scan_information', 'u4'),
    ('offset_ks_data', 'u4'),
    ('offset_time_stamps', 'u4'),
    ('offset_event_list', 'u4'),
    ('offset_roi', 'u4'),
    ('offset_bleach_roi', 'u4'),
    ('offset_next_recording', 'u4'),
    ('display_aspect_x', 'f8'),
    ('display_aspect_y', 'f8'),
    ('display_aspect_z', 'f8'),
    ('display_aspect_time', 'f8'),
    ('offset_mean_of_rois_overlay', 'u4'),
    ('offset_topo_isoline_overlay', 'u4'),
    ('offset_topo_profile_overlay', 'u4'),
    ('offset_linescan_overlay', 'u4'),
    ('toolbar_flags', 'u4'),
    ('offset_channel_wavelength', 'u4'),
    ('offset_channel_factors', 'u4'),
    ('objective_sphere_correction', 'f8'),
    ('offset_unmix_parameters', 'u4'),
)


@dataclass(frozen=True)
class LsmInfo:
    """Decoded CZ_LSMINFO record. Voxel sizes are in meters."""

    magic_number: int
    structure_size: int
    dimension_x: int
    dimension_y: int
    dimension_z: int
    dimension_channels: int
    dimension_time: int
    intensity_data_type: int
    thumbnail_x: int
    thumbnail_y: int
    voxel_size_x: float
    voxel_size_y: float
    voxel_size_z: float
    origin_x: float
    origin_y: float
    origin_z: float
    scan_type: int
    spectral_scan: int
    data_type: int
    offset_vector_overlay: int
    offset_input_lut: int
    offset_output_lut: int
    offset_channel_colors: int
    time_interval: float
    offset_channel_data_types: int
    offset_scan_information: int
    offset_ks_data: int
    offset_time_stamps: int
    offset_event_list: int
    offset_roi: int
    offset_bleach_roi: int
    offset_next_recording: int
    display_aspect_x: float
    display_aspect_y: float
    display_aspect_z: float
    display_aspect_time: float
    offset_mean_of_rois_overlay: int
    offset_topo_isoline_overlay: int
    offset_topo_profile_overlay: int
    offset_linescan_overlay: int
    toolbar_flags: int
    offset_channel_wavelength: int
    offset_channel_factors: int
    objective_sphere_correction: float
    offset_unmix_parameters: int

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def is_lsm_info(raw: Optional[Union[bytes, bytearray, memoryview]]) -> bool:
    """Check whether ``raw`` looks like a CZ_LSMINFO record."""
    if raw is None:
        return False
    head = bytes(raw[:4])
    return len(raw) >= LSM_INFO_SIZE and head in (LSM_MAGIC, LSM_MAGIC_V3)


def parse_lsm_info(raw: Union[bytes, bytearray, memoryview]) -> LsmInfo:
    """Decode the fixed 224-byte head of a CZ_LSMINFO tag.

    Args:
        raw: Raw tag bytes as stored in the file.

    Returns:
        LsmInfo with every field of the leading block.

    Raises:
        MalformedMetadata: If the magic number is wrong or the block is truncated.
    """
    if not is_lsm_info(raw):
        raise MalformedMetadata(
            f"Not a CZ_LSMINFO record (length {len(raw) if raw is not None else 0})"
        )

    reader = BinaryStructReader(raw)
    readers = {
        'u2': reader.read_uint16,
        'u4': reader.read_uint32,
        'f8': reader.read_float64,
    }
    values = {name: readers[kind]() for name, kind in LSM_INFO_LAYOUT}
    info = LsmInfo(**values)

    logger.debug(
        f"LSM info: {info.dimension_x}x{info.dimension_y}, Z={info.dimension_z}, "
        f"T={info.dimension_time}, C={info.dimension_channels}"
    )
    return info
