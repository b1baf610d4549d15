#! /usr/bin/env python3

import struct
import unittest

from nasfwlib.common import resolve_signature, Signature
from nasfwlib.errors import (
    BadArgumentError,
    BadSignatureError,
    BadSignatureLengthError,
    EncodeError,
    MissingFieldError,
    MISSING_FIELD,
    TruncatedHeaderError,
)
from nasfwlib.header import (
    decode,
    encode,
    extract_signature,
    FirmwareHeader,
    HEADER_SIZE,
    make_signature_field,
    REQUIRED_FIELDS,
)

# Independent description of the on-wire layout
LAYOUT = "<9I12s5B7sI"

def make_header(**overrides):
    fields = dict(
        kernel_offset=64,
        kernel_size=100,
        initrd_offset=164,
        initrd_size=200,
        defaults_offset=364,
        defaults_size=10,
        kernel_checksum=0x4b4b4b4b,
        initrd_checksum=0,
        defaults_checksum=0xdeadbeef,
        signature=b"\x55\xaaFrodoII\x00\x55\xaa",
        product_id=1,
        custom_id=2,
        model_id=3,
        compat_id=255,
        subcompat_id=255,
    )
    fields.update(overrides)
    return FirmwareHeader(**fields)

class TestHeader(unittest.TestCase):
    def test_layout(self):
        self.assertEqual(struct.calcsize(LAYOUT), HEADER_SIZE)
        raw = encode(make_header())
        self.assertEqual(len(raw), HEADER_SIZE)
        expected = struct.pack(
            LAYOUT,
            64, 100, 164, 200, 364, 10, 0x4b4b4b4b, 0, 0xdeadbeef,
            b"\x55\xaaFrodoII\x00\x55\xaa",
            1, 2, 3, 255, 255,
            b"\x00" * 7,
            0,
        )
        self.assertEqual(raw, expected)
        self.assertEqual(raw[36:48].hex(), "55aa46726f646f494900" + "55aa")

    def test_decode(self):
        header = make_header()
        decoded = decode(encode(header))
        self.assertEqual(decoded, header)
        self.assertEqual(decoded.reserved, b"\x00" * 7)
        self.assertEqual(decoded.trailer, 0)

    def test_decode_ignores_trailing_data(self):
        header = make_header()
        self.assertEqual(decode(encode(header) + b"payload"), header)
        self.assertEqual(decode(memoryview(encode(header) + b"payload")), header)

    def test_truncated(self):
        raw = encode(make_header())
        for length in [0, 1, 36, 63]:
            with self.subTest(length=length):
                with self.assertRaises(TruncatedHeaderError):
                    decode(raw[:length])

    def test_missing_field(self):
        for name in REQUIRED_FIELDS:
            with self.subTest(field=name):
                with self.assertRaises(MissingFieldError) as cm:
                    encode(make_header(**{name: None}))
                self.assertEqual(cm.exception.field, name)
                self.assertEqual(cm.exception.get_code(), MISSING_FIELD)
        with self.assertRaises(EncodeError):
            encode(FirmwareHeader())

    def test_optional_ids_default(self):
        raw = encode(make_header(compat_id=None, subcompat_id=None))
        decoded = decode(raw)
        self.assertEqual(decoded.compat_id, 255)
        self.assertEqual(decoded.subcompat_id, 255)

    def test_out_of_range(self):
        with self.assertRaises(EncodeError):
            encode(make_header(kernel_size=1 << 32))
        with self.assertRaises(EncodeError):
            encode(make_header(signature=b"\x55\xaaFrodoII\x55\xaa"))
        with self.assertRaises(BadArgumentError):
            encode(make_header(product_id=256))
        with self.assertRaises(BadArgumentError):
            encode(make_header(model_id=-129))
        for name in ["kernel_checksum", "defaults_offset", "trailer"]:
            with self.subTest(field=name):
                with self.assertRaises(EncodeError):
                    encode(make_header(**{name: None}))

    def test_signed_ids_wrap(self):
        decoded = decode(encode(make_header(product_id=-1, custom_id=-128, model_id=127)))
        self.assertEqual(decoded.product_id, 255)
        self.assertEqual(decoded.custom_id, 128)
        self.assertEqual(decoded.model_id, 127)

    def test_unknown_field(self):
        for name in ["kernel_sise", "fields", "serialize", "deserialize"]:
            with self.subTest(name=name):
                with self.assertRaises(TypeError):
                    FirmwareHeader(**{name: {}})
        self.assertIn("kernel_size=100", repr(make_header()))

    def test_padding(self):
        raw = bytearray(encode(make_header()))
        raw[53] = 0x01
        raw[60:64] = b"\x02\x00\x00\x00"
        decoded = decode(bytes(raw))
        self.assertEqual(decoded.reserved, b"\x01" + b"\x00" * 6)
        self.assertEqual(decoded.trailer, 2)
        self.assertNotEqual(decoded, make_header())
        self.assertEqual(encode(decoded), bytes(raw))

class TestSignature(unittest.TestCase):
    def test_names(self):
        self.assertEqual(resolve_signature("FrodoII"), b"FrodoII")
        self.assertEqual(resolve_signature("chopper"), b"Chopper")
        self.assertEqual(resolve_signature("GANDOLF"), b"Gandolf")
        self.assertEqual(resolve_signature(Signature.CHOPPER), b"Chopper")
        self.assertEqual(Signature.lookup(b"Gandolf"), Signature.GANDOLF)
        self.assertIsNone(Signature.lookup(b"Bilbo!!"))

    def test_raw(self):
        self.assertEqual(resolve_signature(b"\x01\x02\x03\x04\x05\x06\x07"), b"\x01\x02\x03\x04\x05\x06\x07")
        self.assertEqual(resolve_signature("Samwise"), b"Samwise")

    def test_bad_length(self):
        for sig in ["", "Frodo", "FrodoIII", b"\x00" * 6, b"\x00" * 8, "FrödoII"]:
            with self.subTest(sig=sig):
                with self.assertRaises(BadSignatureLengthError):
                    make_signature_field(sig)

    def test_round_trip(self):
        for sig in [b"FrodoII", b"Chopper", b"Gandolf", b"\x00" * 7, b"\xff" * 7, b"\x55\xaa\x00\x55\xaa\x00\x00"]:
            with self.subTest(sig=sig):
                header = make_header(signature=make_signature_field(sig))
                self.assertEqual(extract_signature(decode(encode(header))), sig)

    def test_bad_marker(self):
        good = make_signature_field("FrodoII")
        for pos in [0, 1, 9, 10, 11]:
            bad = bytearray(good)
            bad[pos] ^= 0xff
            with self.subTest(pos=pos):
                with self.assertRaises(BadSignatureError):
                    extract_signature(make_header(signature=bytes(bad)))
        with self.assertRaises(BadSignatureError):
            extract_signature(FirmwareHeader())

if __name__ == "__main__":
    unittest.main()
