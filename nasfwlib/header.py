"""
Firmware Header
***************

Every firmware container starts with a fixed 64 byte header.
All integers are little-endian.

======  ====  =======================================================
offset  size  field
======  ====  =======================================================
0       4     kernel offset, always 64
4       4     kernel size
8       4     initrd offset
12      4     initrd size
16      4     defaults offset, 0 if there is no defaults archive
20      4     defaults size, 0 if there is no defaults archive
24      4     kernel checksum
28      4     initrd checksum
32      4     defaults checksum, 0 if there is no defaults archive
36      12    signature field: ``55 AA <7 signature bytes> 00 55 AA``
48      1     product id
49      1     custom id
50      1     model id
51      1     compat id
52      1     subcompat id
53      7     reserved, zero
60      4     trailer, zero
======  ====  =======================================================

The identifier bytes are stored unsigned.
"""

import logging

from io import BytesIO
from typing import (
    Any,
    Dict,
    Optional,
    Union,
)

from .common import normalize_id, resolve_signature, Signature, SIGNATURE_LEN
from .errors import (
    EncodeError,
    BadSignatureError,
    MissingFieldError,
    TruncatedHeaderError,
)
from ._serialize import (
    deser_uint8,
    deser_uint32,
    read_exact,
    Readable,
    ser_uint8,
    ser_uint32,
)

HEADER_SIZE = 64

SIGNATURE_PREFIX = b"\x55\xaa"
SIGNATURE_SUFFIX = b"\x00\x55\xaa"
SIGNATURE_FIELD_LEN = len(SIGNATURE_PREFIX) + SIGNATURE_LEN + len(SIGNATURE_SUFFIX)

RESERVED_LEN = 7

DEFAULT_COMPAT_ID = 255
DEFAULT_SUBCOMPAT_ID = 255
ID_DEFAULTS = {
    "compat_id": DEFAULT_COMPAT_ID,
    "subcompat_id": DEFAULT_SUBCOMPAT_ID,
}

U32_FIELDS = [
    "kernel_offset",
    "kernel_size",
    "initrd_offset",
    "initrd_size",
    "defaults_offset",
    "defaults_size",
    "kernel_checksum",
    "initrd_checksum",
    "defaults_checksum",
]
ID_FIELDS = [
    "product_id",
    "custom_id",
    "model_id",
    "compat_id",
    "subcompat_id",
]
REQUIRED_FIELDS = [
    "kernel_offset",
    "kernel_size",
    "initrd_offset",
    "initrd_size",
    "product_id",
    "custom_id",
    "model_id",
    "signature",
]
ALL_FIELDS = U32_FIELDS + ["signature"] + ID_FIELDS + ["reserved", "trailer"]


def make_signature_field(sig: Union[Signature, str, bytes]) -> bytes:
    """
    Wrap a signature in the fixed marker bytes of the header signature field.

    :param sig: A :class:`~nasfwlib.common.Signature`, a signature name, or 7 raw signature bytes
    :return: The 12 byte signature field
    :raises: BadSignatureLengthError: if the signature is not exactly 7 bytes
    """
    return SIGNATURE_PREFIX + resolve_signature(sig) + SIGNATURE_SUFFIX


class FirmwareHeader(object):
    """
    The fixed size header at the start of a firmware container.

    Fields that are required for encoding start out as ``None``.
    """

    def __init__(self, **fields: Any) -> None:
        self.kernel_offset: Optional[int] = None
        self.kernel_size: Optional[int] = None
        self.initrd_offset: Optional[int] = None
        self.initrd_size: Optional[int] = None
        self.defaults_offset = 0
        self.defaults_size = 0
        self.kernel_checksum = 0
        self.initrd_checksum = 0
        self.defaults_checksum = 0
        self.signature: Optional[bytes] = None
        self.product_id: Optional[int] = None
        self.custom_id: Optional[int] = None
        self.model_id: Optional[int] = None
        self.compat_id: Optional[int] = DEFAULT_COMPAT_ID
        self.subcompat_id: Optional[int] = DEFAULT_SUBCOMPAT_ID
        self.reserved = b"\x00" * RESERVED_LEN
        self.trailer = 0
        for name, value in fields.items():
            if name not in ALL_FIELDS:
                raise TypeError("Unknown header field {}".format(name))
            setattr(self, name, value)

    def deserialize(self, f: Readable) -> None:
        for name in U32_FIELDS:
            setattr(self, name, deser_uint32(f))
        self.signature = read_exact(f, SIGNATURE_FIELD_LEN)
        for name in ID_FIELDS:
            setattr(self, name, deser_uint8(f))
        self.reserved = read_exact(f, RESERVED_LEN)
        self.trailer = deser_uint32(f)

    def serialize(self) -> bytes:
        for name in REQUIRED_FIELDS:
            if getattr(self, name) is None:
                raise MissingFieldError(name)
        assert self.signature is not None
        if len(self.signature) != SIGNATURE_FIELD_LEN:
            raise EncodeError("Signature field must be {} bytes, got {}".format(SIGNATURE_FIELD_LEN, len(self.signature)))
        if len(self.reserved) != RESERVED_LEN:
            raise EncodeError("Reserved field must be {} bytes, got {}".format(RESERVED_LEN, len(self.reserved)))

        r = b""
        for name in U32_FIELDS:
            value = getattr(self, name)
            if value is None:
                raise EncodeError("{} is not set".format(name))
            if not 0 <= value <= 0xffffffff:
                raise EncodeError("{} does not fit in 32 bits: {}".format(name, value))
            r += ser_uint32(value)
        r += bytes(self.signature)
        for name in ID_FIELDS:
            value = getattr(self, name)
            if value is None:
                value = ID_DEFAULTS[name]
            r += ser_uint8(normalize_id(name, value))
        r += bytes(self.reserved)
        if self.trailer is None or not 0 <= self.trailer <= 0xffffffff:
            raise EncodeError("trailer does not fit in 32 bits: {}".format(self.trailer))
        r += ser_uint32(self.trailer)
        assert len(r) == HEADER_SIZE
        return r

    def fields(self) -> Dict[str, Any]:
        """
        Get the header fields as a dictionary.

        :return: A dictionary of field name to value
        """
        d: Dict[str, Any] = {}
        for name in ALL_FIELDS:
            d[name] = getattr(self, name)
        return d

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FirmwareHeader):
            return NotImplemented
        return self.fields() == other.fields()

    def __repr__(self) -> str:
        return "FirmwareHeader(%s)" % ", ".join("%s=%r" % (k, v) for k, v in self.fields().items())


def encode(header: FirmwareHeader) -> bytes:
    """
    Encode a header to its 64 byte representation.

    :param header: The header to encode
    :return: The encoded header
    :raises: MissingFieldError: if a required field is not set
    :raises: EncodeError: if a field does not fit in its slot
    """
    return header.serialize()


def decode(data: Union[bytes, bytearray, memoryview]) -> FirmwareHeader:
    """
    Decode a header from the start of the given bytes.

    Only the first 64 bytes are used. The offsets and sizes are not checked against anything.

    :param data: The bytes to decode
    :return: The decoded header
    :raises: TruncatedHeaderError: if fewer than 64 bytes are given
    """
    if len(data) < HEADER_SIZE:
        raise TruncatedHeaderError("Firmware header needs {} bytes, only {} available".format(HEADER_SIZE, len(data)))
    header = FirmwareHeader()
    header.deserialize(BytesIO(bytes(data[:HEADER_SIZE])))
    logging.debug("Decoded firmware header: %r", header)
    return header


def extract_signature(header: FirmwareHeader) -> bytes:
    """
    Get the 7 signature bytes out of the header signature field.

    :param header: The header to get the signature from
    :return: The signature bytes
    :raises: BadSignatureError: if the fixed marker bytes around the signature do not match
    """
    field = header.signature
    if (
        field is None
        or len(field) != SIGNATURE_FIELD_LEN
        or not field.startswith(SIGNATURE_PREFIX)
        or not field.endswith(SIGNATURE_SUFFIX)
    ):
        raise BadSignatureError("Firmware header signature marker is corrupt: {}".format(field.hex() if field is not None else None))
    return field[len(SIGNATURE_PREFIX):len(SIGNATURE_PREFIX) + SIGNATURE_LEN]


def describe(header: FirmwareHeader) -> Dict[str, Any]:
    """
    Get a JSON serializable description of a header.

    Checksums are hex strings. The signature is given as text, along with the signature name if it is a known one.

    :param header: The header to describe
    :return: The description
    """
    d: Dict[str, Any] = {}
    for name in U32_FIELDS:
        value = getattr(header, name)
        d[name] = "0x{:08x}".format(value) if name.endswith("_checksum") else value
    sig = extract_signature(header)
    d["signature"] = sig.decode("ascii", errors="replace")
    known = Signature.lookup(sig)
    d["signature_name"] = str(known) if known is not None else None
    for name in ID_FIELDS:
        d[name] = getattr(header, name)
    return d
