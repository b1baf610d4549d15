"""
Bootloader Images
*****************

The kernel and initrd payloads of a firmware container are expected to be wrapped in a legacy U-Boot image header.
That header is 64 bytes, big-endian, and starts with the magic ``27 05 19 56``.

The container operations only look at the magic. The rest of the header is decoded for reporting.
"""

import struct
import zlib

from enum import Enum
from typing import (
    Any,
    Dict,
    Optional,
    Union,
)

BOOTLOADER_MAGIC = b"\x27\x05\x19\x56"
BOOTLOADER_HEADER_SIZE = 64
BOOTLOADER_NAME_LEN = 32

# Arguments to be used w/ python's struct module.
BLH_PY_FORMAT = ">4sIIIIIIBBBB32s"


class BootloaderImageType(Enum):
    INVALID = 0
    STANDALONE = 1
    KERNEL = 2
    RAMDISK = 3
    MULTI = 4
    FIRMWARE = 5
    SCRIPT = 6
    FILESYSTEM = 7
    FLATDT = 8

    def __str__(self) -> str:
        return str(self.name).lower()


class BootloaderCompression(Enum):
    NONE = 0
    GZIP = 1
    BZIP2 = 2
    LZMA = 3
    LZO = 4
    LZ4 = 5
    ZSTD = 6

    def __str__(self) -> str:
        return str(self.name).lower()


def looks_like_bootloader_image(data: Union[bytes, bytearray, memoryview]) -> bool:
    """
    Check whether a payload starts with the bootloader image magic.

    :param data: The payload bytes
    :return: Whether the first 4 bytes are the bootloader image magic
    """
    return bytes(data[:len(BOOTLOADER_MAGIC)]) == BOOTLOADER_MAGIC


class BootloaderHeader(object):
    """
    A decoded legacy bootloader image header.
    """

    def __init__(self) -> None:
        self.magic = BOOTLOADER_MAGIC
        self.header_crc = 0
        self.timestamp = 0
        self.data_size = 0
        self.load_address = 0
        self.entry_point = 0
        self.data_crc = 0
        self.os = 0
        self.arch = 0
        self.image_type = 0
        self.compression = 0
        self.name = b""

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray, memoryview]) -> Optional['BootloaderHeader']:
        """
        Decode the bootloader header at the start of a payload.

        :param data: The payload bytes
        :return: The decoded header, or ``None`` if the payload is too short or does not carry the magic
        """
        if len(data) < BOOTLOADER_HEADER_SIZE or not looks_like_bootloader_image(data):
            return None
        h = cls()
        (
            h.magic,
            h.header_crc,
            h.timestamp,
            h.data_size,
            h.load_address,
            h.entry_point,
            h.data_crc,
            h.os,
            h.arch,
            h.image_type,
            h.compression,
            name,
        ) = struct.unpack(BLH_PY_FORMAT, bytes(data[:BOOTLOADER_HEADER_SIZE]))
        h.name = name.rstrip(b"\x00")
        return h

    def serialize(self) -> bytes:
        return struct.pack(
            BLH_PY_FORMAT,
            self.magic,
            self.header_crc,
            self.timestamp,
            self.data_size,
            self.load_address,
            self.entry_point,
            self.data_crc,
            self.os,
            self.arch,
            self.image_type,
            self.compression,
            self.name,
        )

    def compute_header_crc(self) -> int:
        """
        The header CRC32 is computed over the header with the CRC field zeroed.
        """
        raw = bytearray(self.serialize())
        raw[4:8] = b"\x00" * 4
        return zlib.crc32(bytes(raw)) & 0xffffffff

    def header_crc_ok(self) -> bool:
        return self.compute_header_crc() == self.header_crc

    def data_crc_ok(self, payload: Union[bytes, bytearray, memoryview]) -> bool:
        """
        Check the data CRC32 against the data following the header.

        :param payload: The whole payload, including this header
        :return: Whether the data is complete and its CRC32 matches
        """
        data = bytes(payload[BOOTLOADER_HEADER_SIZE:BOOTLOADER_HEADER_SIZE + self.data_size])
        if len(data) != self.data_size:
            return False
        return (zlib.crc32(data) & 0xffffffff) == self.data_crc

    def describe(self, payload: Optional[Union[bytes, bytearray, memoryview]] = None) -> Dict[str, Any]:
        try:
            image_type = str(BootloaderImageType(self.image_type))
        except ValueError:
            image_type = str(self.image_type)
        try:
            compression = str(BootloaderCompression(self.compression))
        except ValueError:
            compression = str(self.compression)
        d: Dict[str, Any] = {
            "name": self.name.decode("ascii", errors="replace"),
            "timestamp": self.timestamp,
            "data_size": self.data_size,
            "load_address": "0x{:08x}".format(self.load_address),
            "entry_point": "0x{:08x}".format(self.entry_point),
            "image_type": image_type,
            "compression": compression,
            "header_crc_ok": self.header_crc_ok(),
        }
        if payload is not None:
            d["data_crc_ok"] = self.data_crc_ok(payload)
        return d
