#! /usr/bin/env python3

import struct
import unittest
import zlib

from nasfwlib.uimage import (
    BOOTLOADER_HEADER_SIZE,
    BootloaderHeader,
    looks_like_bootloader_image,
)

def make_uimage(name: bytes, data: bytes, image_type: int = 2) -> bytes:
    """Wrap data in a legacy bootloader image header"""
    h = BootloaderHeader()
    h.timestamp = 1262304000
    h.data_size = len(data)
    h.load_address = 0x00008000
    h.entry_point = 0x00008000
    h.data_crc = zlib.crc32(data) & 0xffffffff
    h.os = 5
    h.arch = 2
    h.image_type = image_type
    h.name = name
    h.header_crc = h.compute_header_crc()
    return h.serialize() + data

class TestBootloaderImage(unittest.TestCase):
    def test_magic(self):
        self.assertTrue(looks_like_bootloader_image(b"\x27\x05\x19\x56"))
        self.assertTrue(looks_like_bootloader_image(bytearray(b"\x27\x05\x19\x56rest")))
        self.assertFalse(looks_like_bootloader_image(b"\x56\x19\x05\x27"))
        self.assertFalse(looks_like_bootloader_image(b"\x27\x05\x19"))
        self.assertFalse(looks_like_bootloader_image(b""))

    def test_decode(self):
        payload = make_uimage(b"Linux-2.6.12", b"kernel data")
        self.assertEqual(payload[:4], b"\x27\x05\x19\x56")
        self.assertEqual(struct.unpack(">I", payload[12:16])[0], len(b"kernel data"))
        h = BootloaderHeader.from_bytes(payload)
        self.assertIsNotNone(h)
        self.assertEqual(h.name, b"Linux-2.6.12")
        self.assertEqual(h.data_size, 11)
        self.assertTrue(h.header_crc_ok())
        self.assertTrue(h.data_crc_ok(payload))
        self.assertEqual(h.serialize(), payload[:BOOTLOADER_HEADER_SIZE])

        d = h.describe(payload)
        self.assertEqual(d['name'], "Linux-2.6.12")
        self.assertEqual(d['image_type'], "kernel")
        self.assertEqual(d['compression'], "none")
        self.assertEqual(d['load_address'], "0x00008000")
        self.assertTrue(d['header_crc_ok'])
        self.assertTrue(d['data_crc_ok'])

    def test_corrupt(self):
        payload = bytearray(make_uimage(b"ramdisk", b"initrd data", image_type=3))
        payload[-1] ^= 0xff
        h = BootloaderHeader.from_bytes(payload)
        self.assertTrue(h.header_crc_ok())
        self.assertFalse(h.data_crc_ok(payload))
        self.assertFalse(h.data_crc_ok(payload[:-1]))

        payload[40] ^= 0xff
        h = BootloaderHeader.from_bytes(payload)
        self.assertFalse(h.header_crc_ok())

    def test_not_bootloader(self):
        self.assertIsNone(BootloaderHeader.from_bytes(b"\x27\x05\x19\x56" + b"\x00" * 10))
        self.assertIsNone(BootloaderHeader.from_bytes(b"\x00" * 64))

if __name__ == "__main__":
    unittest.main()
