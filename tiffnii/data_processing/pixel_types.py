"""
Mapping of TIFF sample layouts to NIfTI-1 datatypes.

| bit depth | channels | SampleFormat | datatype            | bits/voxel |
|-----------|----------|--------------|---------------------|------------|
| 8         | 1        | any          | UINT8               | 8          |
| 16        | 1        | 2            | INT16               | 16         |
| 16        | 1        | other        | UINT16              | 16         |
| 16        | 2        | any          | RGB (RG zero-padded)| 24         |
| 24        | 3        | any          | RGB                 | 24         |
| 32        | 1        | 2            | INT32               | 32         |
| 32        | 1        | 3            | FLOAT32             | 32         |
| 32        | 1        | other        | UINT32              | 32         |
| 32        | 4        | any          | RGBA32              | 32         |

Two-channel acquisitions have no NIfTI datatype of their own; they are
written as RGB with a zero blue channel.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..core.exceptions import UnsupportedPixelFormat


# NIfTI-1 datatype codes
DT_UINT8 = 2
DT_INT16 = 4
DT_INT32 = 8
DT_FLOAT32 = 16
DT_RGB24 = 128
DT_UINT16 = 512
DT_UINT32 = 768
DT_RGBA32 = 2304

# TIFF SampleFormat values
SAMPLEFORMAT_UINT = 1
SAMPLEFORMAT_INT = 2
SAMPLEFORMAT_IEEEFP = 3

DATATYPE_NAMES = {
    DT_UINT8: 'UINT8',
    DT_INT16: 'INT16',
    DT_INT32: 'INT32',
    DT_FLOAT32: 'FLOAT32',
    DT_RGB24: 'RGB24',
    DT_UINT16: 'UINT16',
    DT_UINT32: 'UINT32',
    DT_RGBA32: 'RGBA32',
}

# little-endian storage type per datatype, one element per sample
DATATYPE_DTYPES = {
    DT_UINT8: np.dtype('<u1'),
    DT_INT16: np.dtype('<i2'),
    DT_INT32: np.dtype('<i4'),
    DT_FLOAT32: np.dtype('<f4'),
    DT_RGB24: np.dtype('<u1'),
    DT_UINT16: np.dtype('<u2'),
    DT_UINT32: np.dtype('<u4'),
    DT_RGBA32: np.dtype('<u1'),
}


@dataclass(frozen=True)
class PixelType:
    """NIfTI storage chosen for a TIFF sample layout."""

    datatype: int
    bits_per_voxel: int
    output_channels: int
    pad_rg_to_rgb: bool = False

    @property
    def dtype(self) -> np.dtype:
        return DATATYPE_DTYPES[self.datatype]

    @property
    def name(self) -> str:
        return DATATYPE_NAMES[self.datatype]


def select_pixel_type(bit_depth: int, samples_per_pixel: int,
                      sample_format: Optional[int] = None) -> PixelType:
    """Choose NIfTI datatype, bits per voxel and output channel count.

    Args:
        bit_depth: Bits per pixel summed over all samples.
        samples_per_pixel: Number of interleaved samples.
        sample_format: TIFF SampleFormat (1 uint, 2 int, 3 float); only
            consulted for single-channel 16 and 32 bit data.

    Raises:
        UnsupportedPixelFormat: For any combination not in the table above.
    """
    if bit_depth == 8 and samples_per_pixel == 1:
        return PixelType(DT_UINT8, 8, 1)

    if bit_depth == 16 and samples_per_pixel == 1:
        if sample_format == SAMPLEFORMAT_INT:
            return PixelType(DT_INT16, 16, 1)
        return PixelType(DT_UINT16, 16, 1)

    if bit_depth == 16 and samples_per_pixel == 2:
        return PixelType(DT_RGB24, 24, 3, pad_rg_to_rgb=True)

    if bit_depth == 24 and samples_per_pixel == 3:
        return PixelType(DT_RGB24, 24, 3)

    if bit_depth == 32 and samples_per_pixel == 1:
        if sample_format == SAMPLEFORMAT_INT:
            return PixelType(DT_INT32, 32, 1)
        if sample_format == SAMPLEFORMAT_IEEEFP:
            return PixelType(DT_FLOAT32, 32, 1)
        return PixelType(DT_UINT32, 32, 1)

    if bit_depth == 32 and samples_per_pixel == 4:
        return PixelType(DT_RGBA32, 32, 4)

    raise UnsupportedPixelFormat(bit_depth, samples_per_pixel)
