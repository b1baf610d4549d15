"""
Errors and Error Codes
**********************

nasfw has several possible Exceptions with corresponding error codes.

:mod:`~nasfwlib.header`, :mod:`~nasfwlib.image` and :mod:`~nasfwlib.commands` functions will generally raise an exception that is a subclass of :class:`NASFWError`.
The nasfw command line tool will convert these exceptions into a dictionary containing the error message and error code.
These look like ``{"error": "<msg>", "code": <code>}``.

Checksum mismatches are not errors. They are reported as boolean results so that damaged images can still be split.
"""

from typing import Any, Dict, Iterator, Optional
from contextlib import contextmanager

# Error codes
MISSING_ARGUMENTS = -1 #: Arguments are missing
VALIDATION_ERROR = -2 #: A caller supplied value is malformed
BAD_SIGNATURE_LENGTH = -3 #: The signature is not exactly 7 bytes or is not a known name
BAD_ARGUMENT = -4 #: Bad, malformed, or conflicting argument was provided
ENCODE_ERROR = -5 #: The header could not be encoded
MISSING_FIELD = -6 #: A required header field was not set
DECODE_ERROR = -7 #: The image could not be decoded
TRUNCATED_HEADER = -8 #: Fewer than 64 bytes were available for the header
BAD_SIGNATURE = -9 #: The signature marker bytes do not match
HELP_TEXT = -10 #: Help text was requested by the user
UNKNOWN_ERROR = -13 #: An unknown error occurred

# Exceptions
class NASFWError(Exception):
    """
    Generic exception type produced by nasfw
    Subclassed by specific Errors to have Exceptions that have specific error codes.

    Contains a message and error code.
    """
    def __init__(self, msg: str, code: int) -> None:
        """
        Create an exception with the message and error code

        :param msg: The error message
        :param code: The error code
        """
        Exception.__init__(self)
        self.code = code
        self.msg = msg

    def get_code(self) -> int:
        """
        Get the error code for this Error

        :return: The error code
        """
        return self.code

    def get_msg(self) -> str:
        """
        Get the error message for this Error

        :return: The error message
        """
        return self.msg

    def __str__(self) -> str:
        return self.msg

class ValidationError(NASFWError):
    """
    :class:`NASFWError` for :data:`VALIDATION_ERROR`.
    Base class for caller supplied values that are missing or malformed.
    """
    def __init__(self, msg: str, code: int = VALIDATION_ERROR):
        """
        :param msg: The error message
        :param code: The error code, overridden by subclasses
        """
        NASFWError.__init__(self, msg, code)

class BadSignatureLengthError(ValidationError):
    """
    :class:`ValidationError` for :data:`BAD_SIGNATURE_LENGTH`
    """
    def __init__(self, msg: str):
        """
        :param msg: The error message
        """
        ValidationError.__init__(self, msg, BAD_SIGNATURE_LENGTH)

class BadArgumentError(ValidationError):
    """
    :class:`ValidationError` for :data:`BAD_ARGUMENT`
    """
    def __init__(self, msg: str):
        """
        :param msg: The error message
        """
        ValidationError.__init__(self, msg, BAD_ARGUMENT)

class EncodeError(NASFWError):
    """
    :class:`NASFWError` for :data:`ENCODE_ERROR`
    """
    def __init__(self, msg: str, code: int = ENCODE_ERROR):
        """
        :param msg: The error message
        :param code: The error code, overridden by subclasses
        """
        NASFWError.__init__(self, msg, code)

class MissingFieldError(EncodeError):
    """
    :class:`EncodeError` for :data:`MISSING_FIELD`
    """
    def __init__(self, field: str):
        """
        :param field: The name of the header field that was not set
        """
        EncodeError.__init__(self, "Missing required header field: {}".format(field), MISSING_FIELD)
        self.field = field

class DecodeError(NASFWError):
    """
    :class:`NASFWError` for :data:`DECODE_ERROR`
    """
    def __init__(self, msg: str, code: int = DECODE_ERROR):
        """
        :param msg: The error message
        :param code: The error code, overridden by subclasses
        """
        NASFWError.__init__(self, msg, code)

class TruncatedHeaderError(DecodeError):
    """
    :class:`DecodeError` for :data:`TRUNCATED_HEADER`
    """
    def __init__(self, msg: str):
        """
        :param msg: The error message
        """
        DecodeError.__init__(self, msg, TRUNCATED_HEADER)

class BadSignatureError(DecodeError):
    """
    :class:`DecodeError` for :data:`BAD_SIGNATURE`
    """
    def __init__(self, msg: str):
        """
        :param msg: The error message
        """
        DecodeError.__init__(self, msg, BAD_SIGNATURE)

@contextmanager
def handle_errors(
    msg: Optional[str] = None,
    result: Optional[Dict[str, Any]] = None,
    code: int = UNKNOWN_ERROR,
    debug: bool = False,
) -> Iterator[None]:
    """
    Context manager to catch all Exceptions and NASFWErrors to return them as dictionaries containing the error message and code.

    :param msg: Error message prefix. Attached to the beginning of each error message
    :param result: The dictionary to put the resulting error in
    :param code: The default error code to use for Exceptions
    :param debug: Whether to also print out the traceback for debugging purposes
    """
    if result is None:
        result = {}

    if msg is None:
        msg = ""
    else:
        msg = msg + " "

    try:
        yield

    except NASFWError as e:
        result['error'] = msg + e.get_msg()
        result['code'] = e.get_code()
    except Exception as e:
        result['error'] = msg + str(e)
        result['code'] = code
        if debug:
            import traceback
            traceback.print_exc()
