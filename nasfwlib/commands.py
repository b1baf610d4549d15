#! /usr/bin/env python3

"""
Commands
********

The functions in this module are the primary way to work with firmware image files.
They read their inputs from disk, hand the bytes to :mod:`~nasfwlib.image`, write the results back and return a dictionary describing what happened.
These dictionaries are what the nasfw command line tool prints as JSON.

The payload checks that are policy rather than format live here.
A kernel or initrd that does not carry the bootloader image magic is rejected when building, but only warned about when splitting.
"""

import logging
import os

from typing import (
    Any,
    Dict,
    Optional,
    Union,
)

from .common import (
    BlobKind,
    Signature,
)
from .errors import BadArgumentError
from .header import (
    DEFAULT_COMPAT_ID,
    DEFAULT_SUBCOMPAT_ID,
    describe,
)
from .image import (
    assemble,
    parse,
    ParsedFirmware,
)
from .uimage import (
    BootloaderHeader,
    looks_like_bootloader_image,
)


def _read_file(path: str, what: str) -> bytes:
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise BadArgumentError("Could not read {} file {}: {}".format(what, path, e.strerror))
    logging.debug("Read %d bytes of %s from %s", len(data), what, path)
    return data

def _write_file(path: str, data: bytes, what: str) -> str:
    with open(path, 'wb') as f:
        f.write(data)
    logging.debug("Wrote %d bytes of %s to %s", len(data), what, path)
    return os.path.abspath(path)

def _payload_report(fw: ParsedFirmware, kind: BlobKind) -> Dict[str, Any]:
    blob = fw.blob(kind)
    d: Dict[str, Any] = {'bootloader_magic': looks_like_bootloader_image(blob)}
    blh = BootloaderHeader.from_bytes(blob)
    if blh is not None:
        d['bootloader_header'] = blh.describe(blob)
    return d

def build(
    kernel: str,
    initrd: str,
    output: str,
    product_id: int,
    custom_id: int,
    model_id: int,
    defaults: Optional[str] = None,
    compat_id: int = DEFAULT_COMPAT_ID,
    subcompat_id: int = DEFAULT_SUBCOMPAT_ID,
    signature: Union[Signature, str, bytes] = Signature.FRODOII,
) -> Dict[str, Any]:
    """
    Build a firmware image file.

    The output file is only written once the whole image has been assembled, so a failure leaves no output behind.

    :param kernel: Path to the kernel payload
    :param initrd: Path to the initrd payload
    :param output: Path to write the firmware image to
    :param product_id: The device product identifier
    :param custom_id: The OEM/custom identifier
    :param model_id: The device model identifier
    :param defaults: Path to the defaults archive, if the image should carry one
    :param compat_id: The compatibility class
    :param subcompat_id: The compatibility subclass
    :param signature: The signature name or raw 7 byte signature
    :return: A dictionary containing key ``success``, the ``output`` path, the image ``size`` and the ``header`` description
    :raises: BadArgumentError: if an input cannot be read or the kernel or initrd is not a bootloader image
    :raises: BadSignatureLengthError: if the signature is not exactly 7 bytes
    """
    kernel_data = _read_file(kernel, 'kernel')
    if not looks_like_bootloader_image(kernel_data):
        raise BadArgumentError("Kernel {} is not a bootloader image".format(kernel))
    initrd_data = _read_file(initrd, 'initrd')
    if not looks_like_bootloader_image(initrd_data):
        raise BadArgumentError("Initrd {} is not a bootloader image".format(initrd))
    defaults_data = _read_file(defaults, 'defaults') if defaults is not None else None

    image = assemble(
        kernel_data,
        initrd_data,
        defaults_data,
        product_id=product_id,
        custom_id=custom_id,
        model_id=model_id,
        compat_id=compat_id,
        subcompat_id=subcompat_id,
        signature=signature,
    )
    path = _write_file(output, image.serialize(), 'firmware image')

    return {
        'success': True,
        'output': path,
        'size': len(image),
        'header': describe(image.header),
    }

def info(image: str) -> Dict[str, Any]:
    """
    Describe a firmware image file without extracting anything.

    :param image: Path to the firmware image
    :return: A dictionary with the ``header`` description, the ``checksums`` results, and a ``payloads`` report for each payload present
    :raises: BadArgumentError: if the image cannot be read
    :raises: TruncatedHeaderError: if the image is shorter than the header
    :raises: BadSignatureError: if the header signature marker is corrupt
    """
    fw = parse(_read_file(image, 'firmware image'))
    payloads = {}
    for kind in [BlobKind.KERNEL, BlobKind.INITRD]:
        payloads[str(kind)] = _payload_report(fw, kind)
    return {
        'header': describe(fw.header),
        'checksums': fw.verify_all(),
        'has_defaults': fw.has_defaults(),
        'payloads': payloads,
    }

def split(
    image: str,
    kernel: Optional[str] = None,
    initrd: Optional[str] = None,
    defaults: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Split a firmware image file into its payloads.

    Every requested payload is written even if its checksum does not match, so damaged images can still be recovered.
    A defaults output is ignored if the image does not carry a defaults archive.

    :param image: Path to the firmware image
    :param kernel: Path to write the kernel to, if wanted
    :param initrd: Path to write the initrd to, if wanted
    :param defaults: Path to write the defaults archive to, if wanted
    :return: A dictionary with the ``header`` description, the ``checksums`` results, the ``bootloader_magic`` check of the kernel and initrd, and the ``written`` paths
    :raises: BadArgumentError: if the image cannot be read
    :raises: TruncatedHeaderError: if the image is shorter than the header
    :raises: BadSignatureError: if the header signature marker is corrupt
    """
    fw = parse(_read_file(image, 'firmware image'))

    magic: Dict[str, bool] = {}
    for kind in [BlobKind.KERNEL, BlobKind.INITRD]:
        magic[str(kind)] = looks_like_bootloader_image(fw.blob(kind))
        if not magic[str(kind)]:
            logging.warning("%s in %s is not a bootloader image", kind, image)

    outputs = {
        BlobKind.KERNEL: kernel,
        BlobKind.INITRD: initrd,
        BlobKind.DEFAULTS: defaults,
    }
    written: Dict[str, str] = {}
    for kind, path in outputs.items():
        if path is None:
            continue
        if kind == BlobKind.DEFAULTS and not fw.has_defaults():
            logging.warning("%s has no defaults archive, not writing %s", image, path)
            continue
        written[str(kind)] = _write_file(path, fw.extract(kind), str(kind))

    return {
        'header': describe(fw.header),
        'checksums': fw.verify_all(),
        'bootloader_magic': magic,
        'written': written,
    }
