"""
Common Classes and Utilities
****************************
"""

from enum import Enum

from typing import Optional, Union

from .errors import BadArgumentError, BadSignatureLengthError


SIGNATURE_LEN = 7


class Signature(Enum):
    """
    The known firmware variant signatures
    """
    FRODOII = b"FrodoII" #: Default signature
    CHOPPER = b"Chopper"
    GANDOLF = b"Gandolf"

    def __str__(self) -> str:
        return self.value.decode('ascii')

    def __repr__(self) -> str:
        return str(self)

    @staticmethod
    def argparse(s: str) -> Union['Signature', str]:
        try:
            return Signature[s.upper()]
        except KeyError:
            return s

    @staticmethod
    def lookup(raw: bytes) -> Optional['Signature']:
        """
        Find the known signature for the given on-wire bytes.

        :param raw: The 7 signature bytes
        :return: The matching :class:`Signature`, or ``None`` if it is not a known one
        """
        for sig in Signature:
            if sig.value == raw:
                return sig
        return None


class BlobKind(Enum):
    """
    The payloads that a firmware container can carry
    """
    KERNEL = 0
    INITRD = 1
    DEFAULTS = 2

    def __str__(self) -> str:
        return str(self.name).lower()

    def __repr__(self) -> str:
        return str(self)


def resolve_signature(value: Union[Signature, str, bytes]) -> bytes:
    """
    Get the 7 on-wire signature bytes for a signature.

    A known signature name is matched case-insensitively.
    Anything else is taken as the raw signature and must be exactly 7 bytes.

    :param value: A :class:`Signature`, a signature name, or the raw signature
    :return: The 7 signature bytes
    :raises: BadSignatureLengthError: if the signature is not exactly 7 bytes
    """
    if isinstance(value, Signature):
        return value.value
    if isinstance(value, str):
        sig = Signature.argparse(value)
        if isinstance(sig, Signature):
            return sig.value
        try:
            value = value.encode('ascii')
        except UnicodeEncodeError:
            raise BadSignatureLengthError("Signature {!r} is not ASCII".format(value))
    raw = bytes(value)
    if len(raw) != SIGNATURE_LEN:
        raise BadSignatureLengthError("Signature must be exactly {} bytes, got {}".format(SIGNATURE_LEN, len(raw)))
    return raw


def normalize_id(name: str, value: int) -> int:
    """
    Convert an identifier to the unsigned byte that is stored in the header.

    Values from -128 to 255 are accepted. Negative values wrap around, so -1 becomes 255.

    :param name: The name of the identifier, used in error messages
    :param value: The identifier
    :return: The identifier as an unsigned byte
    :raises: BadArgumentError: if the value does not fit in a byte
    """
    if not -128 <= value <= 255:
        raise BadArgumentError("{} must be between -128 and 255, got {}".format(name, value))
    return value & 0xff
