"""Unit tests for the affine builder and the NIfTI-1 header encoder."""

from __future__ import annotations

import struct

import numpy as np
import pytest

from tiffnii.core.exceptions import MalformedMetadata
from tiffnii.data_processing.pixel_types import DT_INT16, select_pixel_type
from tiffnii.nifti.affine import build_affine
from tiffnii.nifti.header import (
    HEADER_SIZE,
    build_header,
    decode_header,
    encode_header,
    encode_nifti,
    sanitize_text,
)


def _header(**kwargs):
    dim = kwargs.pop('dim', (4, 32, 16, 5, 3, 1, 1, 1))
    pixdim = kwargs.pop('pixdim', (1.0, 0.2, 0.3, 1.5, 2.0, 0.0, 0.0, 0.0))
    affine = build_affine(pixdim[1:4], dim[1:4])
    return build_header(dim, pixdim, select_pixel_type(16, 1, 2), affine, **kwargs)


def test_affine_is_centred_diagonal() -> None:
    affine = build_affine((0.5, 2.0, 3.0), (10, 4, 6))
    expected = np.array([
        [0.5, 0.0, 0.0, -2.5],
        [0.0, 2.0, 0.0, -4.0],
        [0.0, 0.0, 3.0, -9.0],
        [0.0, 0.0, 0.0, 1.0],
    ])
    np.testing.assert_allclose(affine, expected)


def test_affine_requires_three_axes() -> None:
    with pytest.raises(ValueError):
        build_affine((1.0, 1.0), (4, 4))


def test_header_is_348_bytes_with_fixed_fields() -> None:
    raw = encode_header(_header(xyzt_units=11))
    assert len(raw) == HEADER_SIZE == 348
    assert struct.unpack_from('<i', raw, 0)[0] == 348
    assert raw[38] == 114
    assert raw[344:348] == b'n+1\x00'
    assert struct.unpack_from('<f', raw, 108)[0] == 352.0
    assert struct.unpack_from('<f', raw, 112)[0] == 1.0
    assert struct.unpack_from('<f', raw, 116)[0] == 0.0
    assert raw[123] == 11


def test_header_round_trip_of_fixed_offsets() -> None:
    header = _header(xyzt_units=11)
    decoded = decode_header(encode_header(header))

    assert decoded.dim == (4, 32, 16, 5, 3, 1, 1, 1)
    assert decoded.datatype == DT_INT16
    assert decoded.bitpix == 16
    np.testing.assert_allclose(decoded.pixdim, header.pixdim, rtol=1e-6)
    np.testing.assert_allclose(decoded.affine, header.affine, rtol=1e-6)
    assert decoded.vox_offset == 352.0
    assert decoded.magic == b'n+1\x00'
    assert decoded.xyzt_units == 11


def test_defaults_for_units_and_sform() -> None:
    header = _header()
    assert header.xyzt_units == 10
    assert header.sform_code == 1
    assert header.qform_code == 0

    assert _header(sform_code=0).sform_code == 1
    assert _header(sform_code=2, qform_code=1).sform_code == 2

    decoded = decode_header(encode_header(_header(sform_code=-3)))
    assert decoded.sform_code == 1


def test_affine_rows_written_to_srow() -> None:
    raw = encode_header(_header())
    srow = struct.unpack_from('<12f', raw, 280)
    np.testing.assert_allclose(srow[0:4], (0.2, 0.0, 0.0, -3.2), rtol=1e-6)
    np.testing.assert_allclose(srow[4:8], (0.0, 0.3, 0.0, -2.4), rtol=1e-6)
    np.testing.assert_allclose(srow[8:12], (0.0, 0.0, 1.5, -3.75), rtol=1e-6)


def test_text_fields_are_sanitised_and_truncated() -> None:
    header = _header(description='rm $HOME `ls` ' + 'x' * 100, aux_file='a$b`c' * 10)
    raw = encode_header(header)
    descrip = raw[148:228]
    aux = raw[228:252]
    assert b'$' not in descrip and b'`' not in descrip
    assert descrip.startswith(b'rm HOME ls ')
    assert len(header.descrip) == 80
    assert aux.startswith(b'abcabc')
    assert len(header.aux_file) == 24
    assert sanitize_text('`$', 10) == b''


def test_sanitize_text_keeps_whole_characters() -> None:
    # 'é' is two bytes in utf-8; the 80-byte cut would split the last one
    text = 'a' + '\u00e9' * 40
    encoded = sanitize_text(text, 80)
    assert len(encoded) == 79
    assert encoded.decode('utf-8') == 'a' + '\u00e9' * 39
    assert len(sanitize_text('\u00e9' * 20, 24)) == 24


def test_encode_nifti_appends_pad_and_voxels() -> None:
    voxels = np.arange(6, dtype='<i2')
    stream = encode_nifti(_header(dim=(3, 3, 2, 1, 1, 1, 1, 1)), voxels)
    assert len(stream) == 352 + 12
    assert stream[348:352] == b'\x00\x00\x00\x00'
    assert np.frombuffer(stream[352:], dtype='<i2').tolist() == [0, 1, 2, 3, 4, 5]


def test_encode_nifti_converts_big_endian_voxels() -> None:
    voxels = np.array([1, 256], dtype='>u2')
    stream = encode_nifti(_header(dim=(3, 2, 1, 1, 1, 1, 1, 1)), voxels)
    assert stream[352:] == b'\x01\x00\x00\x01'


def test_decode_header_rejects_short_or_foreign_data() -> None:
    with pytest.raises(MalformedMetadata):
        decode_header(b'\x00' * 100)
    with pytest.raises(MalformedMetadata):
        decode_header(struct.pack('>i', 348) + b'\x00' * 344)
