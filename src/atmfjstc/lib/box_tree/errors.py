"""
Exceptions raised while reading and parsing box trees.

All of them derive from `BoxTreeError`. Errors signalling that the data does not match the expected format derive from
`BoxFormatError`; any of those aborts a parse as a whole. `LeafDecodeError` is only raised when a parser is configured
for strict leaf decoding (otherwise leaf decoding failures are recorded on the box node and parsing continues).
"""

import traceback

from typing import Optional


class BoxTreeError(Exception):
    """
    Base class for all errors raised by the box tree parser and its binary reader.
    """


class BoxFormatError(BoxTreeError):
    """
    Signals situations where the data does not match the expected format.
    """


class OutOfDataError(BoxFormatError):
    position: int
    expected_length: int
    actual_length: int
    meaning: Optional[str]

    def __init__(
        self, position: int, expected_length: int, actual_length: int, meaning: Optional[str],
        message: Optional[str] = None
    ):
        self.position = position
        self.expected_length = expected_length
        self.actual_length = actual_length
        self.meaning = meaning

        super().__init__(
            message or
            f"At position {position}, expected {expected_length} "
            f"bytes{f' for {meaning}' if meaning is not None else ''}"
            f", but {_describe_available(actual_length)}"
        )


class NullStrReadPastEndError(OutOfDataError):
    def __init__(self, position: int, actual_length: int, meaning: Optional[str]):
        super().__init__(
            position, actual_length + 1, actual_length, meaning,
            f"At position {position}, null-terminated string{f' for {meaning}' if meaning is not None else ''} "
            f"starts but end of the data occurs without the null terminator being found",
        )


class NullStrTooLongError(BoxFormatError):
    position: int
    max_length: int
    meaning: Optional[str]

    def __init__(self, position: int, max_length: int, meaning: Optional[str]):
        self.position = position
        self.max_length = max_length
        self.meaning = meaning

        super().__init__(
            f"At position {position}, null-terminated string{f' for {meaning}' if meaning is not None else ''} "
            f"exceeds maximum length of {max_length}, possibly due to corrupt data"
        )


class UnsupportedSizeError(BoxFormatError):
    position: int
    type_code: str
    declared_size: int

    def __init__(self, position: int, type_code: str, declared_size: int, header_size: int):
        self.position = position
        self.type_code = type_code
        self.declared_size = declared_size

        super().__init__(
            f"Box '{type_code}' at position {position} declares an extended size of {declared_size}, which is smaller "
            f"than its own {header_size}-byte header"
        )


class BoxStructureError(BoxFormatError):
    position: int
    type_code: Optional[str]

    def __init__(self, position: int, type_code: Optional[str], message: str):
        self.position = position
        self.type_code = type_code

        where = f"box '{type_code}' at position {position}" if type_code is not None else f"position {position}"

        super().__init__(f"At {where}: {message}")


class LeafDecodeError(BoxTreeError):
    position: int
    type_code: str

    def __init__(self, position: int, type_code: str):
        self.position = position
        self.type_code = type_code

        super().__init__(f"Failed to decode box '{type_code}' at position {position}")


def _describe_available(actual_length: int) -> str:
    if actual_length == 0:
        return "the data ends"

    return f"only {actual_length} {'was' if actual_length == 1 else 'were'} found"


def format_exception_head(exception: BaseException) -> str:
    """
    Formats the head of an exception (i.e. the class and message, without the traceback) as it would appear when printed
    by Python's exception handler.
    """
    return ''.join(traceback.format_exception_only(exception.__class__, exception)).rstrip()
