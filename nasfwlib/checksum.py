"""
Checksum
********

The firmware container protects each payload with a 32-bit XOR checksum.
The payload is read as consecutive little-endian 32-bit words and every word is XORed into an accumulator that starts at 0.
If the payload length is not a multiple of 4, the final partial word is read with its missing high bytes as zero.

This is an integrity check against accidental corruption only, it is not cryptographic.
"""

import struct

from functools import reduce
from operator import xor
from typing import Union


def checksum(data: Union[bytes, bytearray, memoryview]) -> int:
    """
    Compute the XOR checksum of a payload.

    :param data: The payload bytes
    :return: The checksum as an unsigned 32-bit integer. The checksum of an empty payload is 0.
    """
    data = bytes(data)
    tail = len(data) % 4
    if tail:
        data += b"\x00" * (4 - tail)
    return reduce(xor, (w for (w,) in struct.iter_unpack("<I", data)), 0)
