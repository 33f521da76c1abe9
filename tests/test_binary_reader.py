"""Unit tests for the little-endian struct cursor."""

from __future__ import annotations

import struct

import pytest

from tiffnii.core.exceptions import MalformedMetadata
from tiffnii.metadata.binary_reader import BinaryStructReader


def test_reads_advance_cursor() -> None:
    data = struct.pack('<HId', 0x1234, 0xDEADBEEF, 2.5e-7)
    reader = BinaryStructReader(data)

    assert reader.read_uint16() == 0x1234
    assert reader.offset == 2
    assert reader.read_uint32() == 0xDEADBEEF
    assert reader.offset == 6
    assert reader.read_float64() == pytest.approx(2.5e-7)
    assert reader.remaining == 0


def test_start_offset_and_skip() -> None:
    data = b'\xff' * 4 + struct.pack('<I', 7)
    reader = BinaryStructReader(data, offset=2)
    reader.skip(2)
    assert reader.read_uint32() == 7


def test_truncated_read_raises() -> None:
    reader = BinaryStructReader(b'\x01\x02\x03')
    with pytest.raises(MalformedMetadata):
        reader.read_uint32()
    # a failed read does not move the cursor
    assert reader.offset == 0
    assert reader.read_uint16() == 0x0201


def test_skip_past_end_raises() -> None:
    reader = BinaryStructReader(bytearray(4))
    with pytest.raises(MalformedMetadata):
        reader.skip(5)
