"""Little-endian cursor over a byte buffer."""

import struct
from typing import Union

from ..core.exceptions import MalformedMetadata


_UINT16 = struct.Struct('<H')
_UINT32 = struct.Struct('<I')
_FLOAT64 = struct.Struct('<d')

Buffer = Union[bytes, bytearray, memoryview]


class BinaryStructReader:
    """Sequential reader for fixed-layout little-endian records.

    Every read advances the cursor by the size of the value read.
    """

    def __init__(self, data: Buffer, offset: int = 0):
        self._data = memoryview(data).cast('B')
        self._offset = offset

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _unpack(self, fmt: struct.Struct):
        if self.remaining < fmt.size:
            raise MalformedMetadata(
                f"Truncated record: need {fmt.size} bytes at offset {self._offset}, "
                f"{max(self.remaining, 0)} available"
            )
        value = fmt.unpack_from(self._data, self._offset)[0]
        self._offset += fmt.size
        return value

    def read_uint16(self) -> int:
        return self._unpack(_UINT16)

    def read_uint32(self) -> int:
        return self._unpack(_UINT32)

    def read_float64(self) -> float:
        return self._unpack(_FLOAT64)

    def skip(self, nbytes: int) -> None:
        if nbytes < 0 or nbytes > self.remaining:
            raise MalformedMetadata(f"Cannot skip {nbytes} bytes at offset {self._offset}")
        self._offset += nbytes
