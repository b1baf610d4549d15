"""
Firmware Images
***************

A firmware image is the 64 byte :class:`~nasfwlib.header.FirmwareHeader` followed directly by the kernel, the initrd and, optionally, the defaults archive.

Images are built with :func:`assemble` and read back with :func:`parse`.
Both work entirely in memory. Reading and writing files is left to :mod:`~nasfwlib.commands`.
"""

import logging

from typing import (
    Dict,
    Optional,
    Tuple,
    Union,
)

from .checksum import checksum
from .common import (
    BlobKind,
    normalize_id,
    Signature,
)
from .errors import BadArgumentError
from .header import (
    decode,
    DEFAULT_COMPAT_ID,
    DEFAULT_SUBCOMPAT_ID,
    encode,
    extract_signature,
    FirmwareHeader,
    HEADER_SIZE,
    make_signature_field,
)

BytesLike = Union[bytes, bytearray, memoryview]


class FirmwareImage(object):
    """
    A complete firmware image produced by :func:`assemble`.
    """

    def __init__(self, header: FirmwareHeader, data: bytes) -> None:
        self.header = header
        self.data = data

    def serialize(self) -> bytes:
        return self.data

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)


class ParsedFirmware(object):
    """
    A firmware image read back from its bytes.

    The payloads are not copied. The ``kernel``, ``initrd`` and ``defaults`` properties are views into the image bytes.
    Use :meth:`extract` to get a copy.
    """

    def __init__(self, data: BytesLike) -> None:
        self._data = memoryview(bytes(data))
        self._header: Optional[FirmwareHeader] = None
        self._signature = b""

    def parse(self) -> 'ParsedFirmware':
        """
        Decode and check the header. Parsing an already parsed image does nothing.

        :return: This image
        :raises: TruncatedHeaderError: if the image is shorter than the header
        :raises: BadSignatureError: if the header signature marker is corrupt
        """
        if self._header is not None:
            return self
        header = decode(self._data)
        self._signature = extract_signature(header)
        self._header = header
        for kind in BlobKind:
            if self.is_truncated(kind):
                offset, size = self._region(kind)
                logging.warning("%s region %d+%d extends past the end of the %d byte image", kind, offset, size, len(self._data))
        return self

    @property
    def header(self) -> FirmwareHeader:
        self.parse()
        assert self._header is not None
        return self._header

    @property
    def signature(self) -> bytes:
        self.parse()
        return self._signature

    @property
    def signature_name(self) -> Optional[Signature]:
        return Signature.lookup(self.signature)

    @property
    def header_fields(self) -> FirmwareHeader:
        return self.header

    def has_defaults(self) -> bool:
        return self.header.defaults_size != 0

    def _region(self, kind: BlobKind) -> Tuple[int, int]:
        h = self.header
        if kind == BlobKind.KERNEL:
            return h.kernel_offset, h.kernel_size
        elif kind == BlobKind.INITRD:
            return h.initrd_offset, h.initrd_size
        elif kind == BlobKind.DEFAULTS:
            return h.defaults_offset, h.defaults_size
        raise BadArgumentError("Unknown blob kind {}".format(kind))

    def is_truncated(self, kind: BlobKind) -> bool:
        """
        Check whether the header places a payload past the end of the image.

        :param kind: Which payload to check
        :return: Whether some of the payload is missing from the image
        """
        offset, size = self._region(kind)
        return size != 0 and offset + size > len(self._data)

    def blob(self, kind: BlobKind) -> memoryview:
        """
        Get a view of a payload.

        If the header points past the end of the image, the view is cut short.

        :param kind: Which payload to get
        :return: A view into the image bytes
        """
        offset, size = self._region(kind)
        if size == 0:
            return self._data[0:0]
        return self._data[offset:offset + size]

    @property
    def kernel(self) -> memoryview:
        return self.blob(BlobKind.KERNEL)

    @property
    def initrd(self) -> memoryview:
        return self.blob(BlobKind.INITRD)

    @property
    def defaults(self) -> memoryview:
        return self.blob(BlobKind.DEFAULTS)

    def _stored_checksum(self, kind: BlobKind) -> int:
        h = self.header
        if kind == BlobKind.KERNEL:
            return h.kernel_checksum
        elif kind == BlobKind.INITRD:
            return h.initrd_checksum
        return h.defaults_checksum

    def verify_checksum(self, kind: BlobKind) -> bool:
        """
        Recompute the checksum of a payload and compare it with the one stored in the header.

        A mismatch is logged and reported, it is not an error.
        A payload that is cut short by the end of the image never matches.

        :param kind: Which payload to check
        :return: Whether the checksums match
        """
        if self.is_truncated(kind):
            logging.warning("%s is cut short, not checking its checksum", kind)
            return False
        stored = self._stored_checksum(kind)
        computed = checksum(self.blob(kind))
        if computed != stored:
            logging.warning("%s checksum mismatch: header has 0x%08x, computed 0x%08x", kind, stored, computed)
            return False
        return True

    def verify_kernel_checksum(self) -> bool:
        return self.verify_checksum(BlobKind.KERNEL)

    def verify_initrd_checksum(self) -> bool:
        return self.verify_checksum(BlobKind.INITRD)

    def verify_defaults_checksum(self) -> bool:
        return self.verify_checksum(BlobKind.DEFAULTS)

    def verify_all(self) -> Dict[str, bool]:
        """
        Check every payload checksum independently.

        :return: A dictionary of payload name to whether its checksum matches
        """
        return {str(kind): self.verify_checksum(kind) for kind in BlobKind}

    def extract(self, kind: BlobKind) -> bytes:
        """
        Get a copy of a payload.

        :param kind: Which payload to get
        :return: The payload bytes
        """
        return bytes(self.blob(kind))


def assemble(
    kernel: BytesLike,
    initrd: BytesLike,
    defaults: Optional[BytesLike],
    product_id: int,
    custom_id: int,
    model_id: int,
    compat_id: int = DEFAULT_COMPAT_ID,
    subcompat_id: int = DEFAULT_SUBCOMPAT_ID,
    signature: Union[Signature, str, bytes] = Signature.FRODOII,
) -> FirmwareImage:
    """
    Build a firmware image from its payloads.

    The identifiers may be given as -128 to 255, see :func:`~nasfwlib.common.normalize_id`.

    :param kernel: The kernel payload
    :param initrd: The initrd payload
    :param defaults: The defaults archive payload, or ``None`` for an image without one
    :param product_id: The device product identifier
    :param custom_id: The OEM/custom identifier
    :param model_id: The device model identifier
    :param compat_id: The compatibility class
    :param subcompat_id: The compatibility subclass
    :param signature: A :class:`~nasfwlib.common.Signature`, a signature name, or 7 raw signature bytes
    :return: The assembled image
    :raises: BadSignatureLengthError: if the signature is not exactly 7 bytes
    :raises: BadArgumentError: if an identifier does not fit in a byte
    """
    kernel = bytes(kernel)
    initrd = bytes(initrd)
    defaults = bytes(defaults) if defaults is not None else b""

    sig_field = make_signature_field(signature)

    header = FirmwareHeader(
        kernel_offset=HEADER_SIZE,
        kernel_size=len(kernel),
        initrd_offset=HEADER_SIZE + len(kernel),
        initrd_size=len(initrd),
        defaults_offset=HEADER_SIZE + len(kernel) + len(initrd) if defaults else 0,
        defaults_size=len(defaults),
        kernel_checksum=checksum(kernel),
        initrd_checksum=checksum(initrd),
        defaults_checksum=checksum(defaults),
        signature=sig_field,
        product_id=normalize_id("product_id", product_id),
        custom_id=normalize_id("custom_id", custom_id),
        model_id=normalize_id("model_id", model_id),
        compat_id=normalize_id("compat_id", compat_id),
        subcompat_id=normalize_id("subcompat_id", subcompat_id),
    )
    logging.debug("Assembling firmware image: %r", header)

    data = encode(header) + kernel + initrd + defaults
    return FirmwareImage(header, data)


def parse(data: BytesLike) -> ParsedFirmware:
    """
    Read a firmware image.

    :param data: The image bytes
    :return: The parsed image
    :raises: TruncatedHeaderError: if the image is shorter than the header
    :raises: BadSignatureError: if the header signature marker is corrupt
    """
    return ParsedFirmware(data).parse()
