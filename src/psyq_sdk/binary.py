"""
Little-Endian Binary Helpers
============================

Bounds-checked reading and writing of the primitive fields used by the
PSY-Q OBJ and LIB formats: unsigned 8/16/32-bit integers, a signed
32-bit integer and length-prefixed byte strings ("pstr": one length byte
followed by that many bytes).

Every read checks the remaining length *before* slicing, so a corrupt
length field can never cause an out-of-range read or an allocation
proportional to the bogus length. Failures raise TruncatedDataError with
the absolute offset of the field being read.

A ByteReader holds no global state; independent readers over separate
buffers may be used from separate threads.
"""

import struct
from typing import Optional

from psyq_sdk.errors import TruncatedDataError


_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


class ByteReader:
    """
    Sequential reader over an immutable byte buffer.

    Attributes:
        data: The buffer being read
        offset: Absolute position of the next byte to read
        end: Absolute position one past the last readable byte
        tag: Tag of the record being decoded, attached to errors
    """

    def __init__(self, data: bytes, offset: int = 0, end: Optional[int] = None):
        self.data = data
        self.offset = offset
        self.end = len(data) if end is None else end
        self.tag: Optional[int] = None

    @property
    def remaining(self) -> int:
        """Bytes left before the end of the readable window."""
        return self.end - self.offset

    def at_end(self) -> bool:
        return self.offset >= self.end

    def require(self, count: int) -> None:
        """Raise TruncatedDataError unless `count` bytes are available."""
        if count < 0 or count > self.remaining:
            raise TruncatedDataError(
                count, max(self.remaining, 0), offset=self.offset, tag=self.tag
            )

    def bytes(self, count: int) -> bytes:
        self.require(count)
        start = self.offset
        self.offset += count
        return bytes(self.data[start:self.offset])

    def u8(self) -> int:
        self.require(1)
        value = self.data[self.offset]
        self.offset += 1
        return value

    def u16(self) -> int:
        self.require(2)
        (value,) = _U16.unpack_from(self.data, self.offset)
        self.offset += 2
        return value

    def u32(self) -> int:
        self.require(4)
        (value,) = _U32.unpack_from(self.data, self.offset)
        self.offset += 4
        return value

    def i32(self) -> int:
        self.require(4)
        (value,) = _I32.unpack_from(self.data, self.offset)
        self.offset += 4
        return value

    def pstr(self) -> bytes:
        """Read a length byte followed by that many bytes."""
        length = self.u8()
        return self.bytes(length)


class ByteWriter:
    """Accumulates little-endian fields into a bytearray."""

    def __init__(self) -> None:
        self.buffer = bytearray()

    def __len__(self) -> int:
        return len(self.buffer)

    def u8(self, value: int) -> "ByteWriter":
        self.buffer.append(value & 0xFF)
        return self

    def u16(self, value: int) -> "ByteWriter":
        self.buffer.extend(_U16.pack(value & 0xFFFF))
        return self

    def u32(self, value: int) -> "ByteWriter":
        self.buffer.extend(_U32.pack(value & 0xFFFFFFFF))
        return self

    def i32(self, value: int) -> "ByteWriter":
        self.buffer.extend(_I32.pack(value))
        return self

    def raw(self, data: bytes) -> "ByteWriter":
        self.buffer.extend(data)
        return self

    def pstr(self, data: bytes) -> "ByteWriter":
        """Write a length byte followed by the data (at most 255 bytes)."""
        if len(data) > 0xFF:
            raise ValueError(f"string too long for a length byte: {len(data)} bytes")
        self.buffer.append(len(data))
        self.buffer.extend(data)
        return self

    def getvalue(self) -> bytes:
        return bytes(self.buffer)
