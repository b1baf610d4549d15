"""Serialization helpers

ser_*, deser_*: functions that handle little-endian serialization/deserialization
of the fixed size integers used by the firmware container header.
"""

import struct

from typing_extensions import Protocol


class Readable(Protocol):
    def read(self, n: int = -1) -> bytes:
        ...


def read_exact(f: Readable, n: int) -> bytes:
    r = f.read(n)
    if len(r) != n:
        raise EOFError("Expected {} bytes, got {}".format(n, len(r)))
    return r

def ser_uint32(u: int) -> bytes:
    return struct.pack("<I", u)

def deser_uint32(f: Readable) -> int:
    nit: int = struct.unpack("<I", read_exact(f, 4))[0]
    return nit

def ser_uint8(u: int) -> bytes:
    return struct.pack("B", u)

def deser_uint8(f: Readable) -> int:
    nit: int = struct.unpack("B", read_exact(f, 1))[0]
    return nit
