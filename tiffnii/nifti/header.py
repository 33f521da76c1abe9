"""
NIfTI-1 single-file header.

``NiftiHeader`` is an immutable value built once by ``build_header`` and
serialised once by ``encode_header``. The on-disk record is 348 bytes,
little-endian, followed by a 4-byte extension indicator (all zero: no
extensions) and the voxel data starting at offset 352.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple
import struct

import numpy as np

from ..data_processing.pixel_types import PixelType
from ..core.exceptions import MalformedMetadata


HEADER_SIZE = 348
VOX_OFFSET = 352
EXTENSION_PAD = b'\x00\x00\x00\x00'
MAGIC_SINGLE_FILE = b'n+1\x00'
REGULAR = 114
DESCRIP_SIZE = 80
AUX_FILE_SIZE = 24

DEFAULT_XYZT_UNITS = 10  # micron + second
NIFTI_XFORM_UNKNOWN = 0
NIFTI_XFORM_SCANNER_ANAT = 1

# characters removed from free-text fields before they reach the file
_UNSAFE_CHARS = str.maketrans('', '', '`$')


def sanitize_text(text: str, size: int) -> bytes:
    """Strip backticks and dollar signs, encode, truncate to at most ``size`` bytes."""
    encoded = (text or '').translate(_UNSAFE_CHARS).encode('utf-8', 'ignore')[:size]
    # drop a multi-byte character cut in half by the truncation
    return encoded.decode('utf-8', 'ignore').encode('utf-8')


@dataclass(frozen=True)
class NiftiHeader:
    """Every field of a NIfTI-1 header, in file order."""

    dim: Tuple[int, ...]
    pixdim: Tuple[float, ...]
    datatype: int
    bitpix: int
    srow_x: Tuple[float, float, float, float]
    srow_y: Tuple[float, float, float, float]
    srow_z: Tuple[float, float, float, float]
    xyzt_units: int = DEFAULT_XYZT_UNITS
    dim_info: int = 0
    intent_p1: float = 0.0
    intent_p2: float = 0.0
    intent_p3: float = 0.0
    intent_code: int = 0
    slice_start: int = 0
    vox_offset: float = float(VOX_OFFSET)
    scl_slope: float = 1.0
    scl_inter: float = 0.0
    slice_end: int = 0
    slice_code: int = 0
    cal_max: float = 0.0
    cal_min: float = 0.0
    slice_duration: float = 0.0
    toffset: float = 0.0
    descrip: bytes = b''
    aux_file: bytes = b''
    qform_code: int = NIFTI_XFORM_UNKNOWN
    sform_code: int = NIFTI_XFORM_SCANNER_ANAT
    quatern_b: float = 0.0
    quatern_c: float = 0.0
    quatern_d: float = 0.0
    qoffset_x: float = 0.0
    qoffset_y: float = 0.0
    qoffset_z: float = 0.0
    magic: bytes = field(default=MAGIC_SINGLE_FILE)

    @property
    def affine(self) -> np.ndarray:
        return np.array([self.srow_x, self.srow_y, self.srow_z, (0.0, 0.0, 0.0, 1.0)])


def _pad(values: Sequence, length: int, fill) -> tuple:
    values = tuple(values)[:length]
    return values + (fill,) * (length - len(values))


def build_header(dim: Sequence[int], pixdim: Sequence[float], pixel_type: PixelType,
                 affine: np.ndarray, xyzt_units: int = 0, description: str = '',
                 aux_file: str = '', qform_code: int = NIFTI_XFORM_UNKNOWN,
                 sform_code: Optional[int] = None) -> NiftiHeader:
    """Build the header for one assembled volume.

    Args:
        dim: NIfTI ``dim[8]``; ``dim[0]`` is the number of used dimensions.
        pixdim: NIfTI ``pixdim[8]``; shorter sequences are zero-padded.
        pixel_type: Selected storage type.
        affine: 4x4 voxel-to-world matrix; rows 0-2 become ``srow_x/y/z``.
        xyzt_units: Combined NIfTI unit code, 10 (micron + second) when 0.
        description: Free text for ``descrip``, sanitised and truncated.
        aux_file: Free text for ``aux_file``, sanitised and truncated.
        qform_code: Stored unchanged.
        sform_code: Values below 1 (or None) become scanner-anatomical (1).
    """
    affine = np.asarray(affine, dtype=np.float64)
    if affine.shape != (4, 4):
        raise ValueError(f"Affine must be 4x4, got {affine.shape}")

    if sform_code is None or sform_code < NIFTI_XFORM_SCANNER_ANAT:
        sform_code = NIFTI_XFORM_SCANNER_ANAT

    return NiftiHeader(
        dim=tuple(int(d) for d in _pad(dim, 8, 1)),
        pixdim=tuple(float(p) for p in _pad(pixdim, 8, 0.0)),
        datatype=pixel_type.datatype,
        bitpix=pixel_type.bits_per_voxel,
        srow_x=tuple(float(v) for v in affine[0]),
        srow_y=tuple(float(v) for v in affine[1]),
        srow_z=tuple(float(v) for v in affine[2]),
        xyzt_units=xyzt_units or DEFAULT_XYZT_UNITS,
        descrip=sanitize_text(description, DESCRIP_SIZE),
        aux_file=sanitize_text(aux_file, AUX_FILE_SIZE),
        qform_code=qform_code,
        sform_code=sform_code,
    )


def encode_header(header: NiftiHeader) -> bytes:
    """Serialise ``header`` into the 348-byte NIfTI-1 record."""
    buf = bytearray(HEADER_SIZE)
    struct.pack_into('<i', buf, 0, HEADER_SIZE)
    struct.pack_into('<B', buf, 38, REGULAR)
    struct.pack_into('<B', buf, 39, header.dim_info)
    struct.pack_into('<8H', buf, 40, *header.dim)
    struct.pack_into('<3f', buf, 56, header.intent_p1, header.intent_p2, header.intent_p3)
    struct.pack_into('<4h', buf, 68, header.intent_code, header.datatype, header.bitpix,
                     header.slice_start)
    struct.pack_into('<8f', buf, 76, *header.pixdim)
    struct.pack_into('<3f', buf, 108, header.vox_offset, header.scl_slope, header.scl_inter)
    struct.pack_into('<h', buf, 120, header.slice_end)
    struct.pack_into('<2B', buf, 122, header.slice_code, header.xyzt_units)
    struct.pack_into('<4f', buf, 124, header.cal_max, header.cal_min, header.slice_duration,
                     header.toffset)
    buf[148:148 + len(header.descrip)] = header.descrip
    buf[228:228 + len(header.aux_file)] = header.aux_file
    struct.pack_into('<2h', buf, 252, header.qform_code, header.sform_code)
    struct.pack_into('<6f', buf, 256, header.quatern_b, header.quatern_c, header.quatern_d,
                     header.qoffset_x, header.qoffset_y, header.qoffset_z)
    struct.pack_into('<12f', buf, 280, *header.srow_x, *header.srow_y, *header.srow_z)
    buf[344:348] = header.magic
    return bytes(buf)


def encode_nifti(header: NiftiHeader, voxels: np.ndarray) -> bytes:
    """Header, extension pad and little-endian voxel bytes as one ``.nii`` stream."""
    data = np.ascontiguousarray(voxels)
    if data.dtype.byteorder == '>':
        data = data.astype(data.dtype.newbyteorder('<'))
    return encode_header(header) + EXTENSION_PAD + data.tobytes()


def decode_header(raw: bytes) -> NiftiHeader:
    """Read a NIfTI-1 header back from the fixed offsets.

    Raises:
        MalformedMetadata: If ``raw`` is shorter than 348 bytes or is not a
            little-endian NIfTI-1 header.
    """
    if len(raw) < HEADER_SIZE:
        raise MalformedMetadata(f"NIfTI header needs {HEADER_SIZE} bytes, got {len(raw)}")
    (sizeof_hdr,) = struct.unpack_from('<i', raw, 0)
    if sizeof_hdr != HEADER_SIZE:
        raise MalformedMetadata(f"Not a little-endian NIfTI-1 header (sizeof_hdr={sizeof_hdr})")

    intent_code, datatype, bitpix, slice_start = struct.unpack_from('<4h', raw, 68)
    vox_offset, scl_slope, scl_inter = struct.unpack_from('<3f', raw, 108)
    slice_code, xyzt_units = struct.unpack_from('<2B', raw, 122)
    cal_max, cal_min, slice_duration, toffset = struct.unpack_from('<4f', raw, 124)
    qform_code, sform_code = struct.unpack_from('<2h', raw, 252)
    quatern = struct.unpack_from('<6f', raw, 256)
    srow = struct.unpack_from('<12f', raw, 280)
    intent = struct.unpack_from('<3f', raw, 56)

    return NiftiHeader(
        dim=struct.unpack_from('<8H', raw, 40),
        pixdim=struct.unpack_from('<8f', raw, 76),
        datatype=datatype,
        bitpix=bitpix,
        srow_x=srow[0:4],
        srow_y=srow[4:8],
        srow_z=srow[8:12],
        xyzt_units=xyzt_units,
        dim_info=raw[39],
        intent_p1=intent[0],
        intent_p2=intent[1],
        intent_p3=intent[2],
        intent_code=intent_code,
        slice_start=slice_start,
        vox_offset=vox_offset,
        scl_slope=scl_slope,
        scl_inter=scl_inter,
        slice_end=struct.unpack_from('<h', raw, 120)[0],
        slice_code=slice_code,
        cal_max=cal_max,
        cal_min=cal_min,
        slice_duration=slice_duration,
        toffset=toffset,
        descrip=bytes(raw[148:228]).rstrip(b'\x00'),
        aux_file=bytes(raw[228:252]).rstrip(b'\x00'),
        qform_code=qform_code,
        sform_code=sform_code,
        quatern_b=quatern[0],
        quatern_c=quatern[1],
        quatern_d=quatern[2],
        qoffset_x=quatern[3],
        qoffset_y=quatern[4],
        qoffset_z=quatern[5],
        magic=bytes(raw[344:348]),
    )
