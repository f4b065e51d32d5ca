"""
This module contains the `BinaryReader` class, a bounded reader over binary data that offers functions for extracting
binary-encoded ints, strings and structures.

A reader always works within a window (a base offset and a size) over the underlying data. Reads never cross the end of
the window, and sub-windows can be carved out with `BinaryReader.slice` without copying any data, which is what makes it
possible to hand each box's payload to its decoder scoped to exactly the box's declared size.
"""

import struct

from typing import Union, BinaryIO, Optional, AnyStr
from io import BytesIO, IOBase, TextIOBase
from os import SEEK_SET, SEEK_END

from atmfjstc.lib.box_tree.errors import OutOfDataError, NullStrReadPastEndError, NullStrTooLongError


class BinaryReader:
    """
    This class wraps a `bytes` object or a seekable binary file object and offers functions for extracting
    binary-encoded ints, strings, structures etc. from a window of its data.

    The reader keeps its own position and seeks the underlying file object before every read, so several readers (e.g.
    a parent and the slices derived from it) can safely share the same file object as long as they are not used
    concurrently from different threads.
    """

    _fileobj: BinaryIO
    _big_endian: bool

    _window_base: int
    _window_size: int
    _position: int

    def __init__(
        self, data_or_fileobj: Union[bytes, BinaryIO], big_endian: bool = True,
        window_base: Optional[int] = None, window_size: Optional[int] = None
    ):
        """
        Constructor.

        Args:
            data_or_fileobj: The data to read, either as a `bytes` object or a seekable binary file object.
            big_endian: Whether ints and structures are big-endian by default. True unless specified otherwise.
            window_base: The offset in the underlying data where the readable window starts. By default, this is the
                current position of the file object (or 0 for `bytes` input).
            window_size: The size of the readable window. By default, the window extends to the end of the data.
        """
        fileobj = _parse_main_input_arg(data_or_fileobj)

        if window_base is None:
            window_base = fileobj.tell()

        total_size = fileobj.seek(0, SEEK_END)

        if window_size is None:
            window_size = total_size - window_base

        if (window_base < 0) or (window_base > total_size):
            raise ValueError(f"Window base must be between 0 and total data size {total_size}, is {window_base}")
        if window_size < 0:
            raise ValueError("Window size must be non-negative")
        if window_base + window_size > total_size:
            raise ValueError("Window extends past end of data")

        self._fileobj = fileobj
        self._big_endian = big_endian
        self._window_base = window_base
        self._window_size = window_size
        self._position = 0

    def name(self) -> Optional[AnyStr]:
        name = getattr(self._fileobj, 'name', None)

        return None if ((name is None) or (name == '')) else name

    def tell(self) -> int:
        """Returns the current position, relative to the start of the window."""
        return self._position

    def absolute_position(self) -> int:
        """Returns the current position, relative to the start of the underlying data."""
        return self._window_base + self._position

    def total_size(self) -> int:
        return self._window_size

    def bytes_remaining(self) -> int:
        return self._window_size - self._position

    def has_bytes_available(self) -> bool:
        return self._position < self._window_size

    def eof(self) -> bool:
        return not self.has_bytes_available()

    def slice(self, length: int) -> 'BinaryReader':
        """
        Returns a new reader whose window covers the next `length` bytes of this reader.

        Nothing is read, and this reader's position does not change. Use `skip_bytes` to move past the sliced region
        once done with it.

        Raises:
            OutOfDataError: If fewer than `length` bytes remain in this reader's window.
        """
        if length < 0:
            raise ValueError("Slice length must be non-negative")

        self._require_available(length, 'slice')

        view = BinaryReader.__new__(BinaryReader)
        view._fileobj = self._fileobj
        view._big_endian = self._big_endian
        view._window_base = self.absolute_position()
        view._window_size = length
        view._position = 0

        return view

    def read_at_most(self, n_bytes: int) -> bytes:
        """
        Try to read `n_bytes` of data, returning fewer only if the window is exhausted.

        Short reads from the underlying file object are handled.
        """

        if n_bytes < 0:
            raise ValueError("The number of bytes to read cannot be negative")

        n_bytes = min(n_bytes, self.bytes_remaining())
        if n_bytes == 0:
            return b''

        self._fileobj.seek(self.absolute_position(), SEEK_SET)

        data = bytearray()

        while len(data) < n_bytes:
            chunk = self._fileobj.read(n_bytes - len(data))
            if len(chunk) == 0:
                break

            data.extend(chunk)

        self._position += len(data)

        return bytes(data)

    def read_amount(self, n_bytes: int, meaning: Optional[str] = None) -> bytes:
        """
        Reads exactly `n_bytes` from the window.

        Args:
            n_bytes: The amount of bytes to read.
            meaning: An indication as to the meaning of the data being read (e.g. "label"). It is used in the text of
                any exceptions that may be thrown.

        Returns:
            The data, as a `bytes` object `n_bytes` in length.

        Raises:
            OutOfDataError: If fewer than `n_bytes` remain in the window. The position is left unchanged in this case.
        """

        if n_bytes < 0:
            raise ValueError("The number of bytes to read cannot be negative")

        self._require_available(n_bytes, meaning)

        original_pos = self._position

        data = self.read_at_most(n_bytes)

        if len(data) < n_bytes:
            # The underlying file shrank under us
            self._position = original_pos
            raise OutOfDataError(self.absolute_position(), n_bytes, len(data), meaning)

        return data

    def read_bytes(self, n_bytes: int, meaning: Optional[str] = None) -> bytes:
        """Alias for `read_amount`."""
        return self.read_amount(n_bytes, meaning)

    def read_remainder(self) -> bytes:
        """Reads all the data left in the window (possibly none)."""
        return self.read_amount(self.bytes_remaining())

    def read_all_data(self) -> bytes:
        """Alias for `read_remainder`."""
        return self.read_remainder()

    def skip_bytes(self, n_bytes: int, meaning: Optional[str] = None):
        """
        Skips over a number of bytes, ignoring the data. The bytes MUST be present within the window.

        Raises:
            OutOfDataError: If fewer than `n_bytes` remain in the window. The position is left unchanged in this case.
        """

        if n_bytes < 0:
            raise ValueError("Number of bytes to skip must be non-negative")

        self._require_available(n_bytes, meaning)

        self._position += n_bytes

    def read_struct(self, struct_format: str, meaning: Optional[str] = None) -> tuple:
        """
        Reads structured data from the window.

        Args:
            struct_format: The format of the structured data, as per the Python `struct` package. There is no need to
                prepend an endianness specifier, as one will be added automatically in accordance to the
                `BinaryReader`'s setting, but if one is present, it will take precedence.
            meaning: An indication as to the meaning of the data being read (e.g. "box header"). It is used in the
                text of any exceptions that may be thrown.

        Returns:
           The data in the structure, as a tuple.

        Raises:
            OutOfDataError: If the window ends before a complete structure could be read.
        """

        if struct_format == '':
            return ()
        if struct_format[0] not in '@=<>!':
            struct_format = ('>' if self._big_endian else '<') + struct_format

        meaning = meaning or f"struct ({struct_format})"

        data = self.read_amount(struct.calcsize(struct_format), meaning)

        return struct.unpack(struct_format, data)

    def read_fixed_size_int(
        self, n_bytes: int, meaning: Optional[str] = None, signed: bool = False, big_endian: Optional[bool] = None
    ) -> int:
        """
        Reads an integer stored in a given number of bytes.

        Args:
            n_bytes: The number of bytes the int is stored over (e.g. a 32 bit int has 4 bytes). Must be at least 1.
            meaning: An indication as to the meaning of the data being read (e.g. "box size"). It is used in the text
                of any exceptions that may be thrown.
            signed: Whether to interpret the integer as signed.
            big_endian: Use a non-None value here to override the `BinaryReader`'s endianness setting, if necessary.

        Returns:
            The parsed integer.

        Raises:
            OutOfDataError: If the window ends before a complete int could be read.
        """

        if n_bytes < 1:
            raise ValueError("Number of bytes in int must be at least 1")

        big_endian = self._big_endian if big_endian is None else big_endian

        return int.from_bytes(
            self.read_amount(n_bytes, meaning=meaning or 'int'),
            byteorder='big' if big_endian else 'little',
            signed=signed
        )

    def read_u8(self, meaning: Optional[str] = None) -> int:
        return self.read_fixed_size_int(1, meaning or 'uint8')

    def read_u16(self, meaning: Optional[str] = None) -> int:
        return self.read_fixed_size_int(2, meaning or 'uint16')

    def read_u32(self, meaning: Optional[str] = None) -> int:
        return self.read_fixed_size_int(4, meaning or 'uint32')

    def read_u64(self, meaning: Optional[str] = None) -> int:
        return self.read_fixed_size_int(8, meaning or 'uint64')

    def read_null_terminated_bytes(
        self, meaning: Optional[str] = None, safety_limit: Optional[int] = 65536, buffer_size: int = 4096
    ) -> bytes:
        """
        Reads a null-terminated byte string from the window.

        The string is read in blocks of `buffer_size` bytes; once the null is found, the position is set to just past
        it. The end of the window is never accepted as an implicit terminator.

        Args:
            meaning: An indication as to the meaning of the data being read (e.g. "label"). It is used in the text of
                any exceptions that may be thrown.
            safety_limit: The maximum expected size of the string, including the null terminator. The function will
                raise an exception if the null terminator is not found after that many bytes. This is intended to
                prevent trying to load huge amounts of data into memory if a null-terminated string is corrupt. Use
                None to disable this.
            buffer_size: The size of the blocks the string is read in.

        Returns:
            The byte string, as a `bytes` value, without the null terminator.

        Raises:
            NullStrTooLongError: Raised if the string is clearly longer than the `safety_limit`.
            NullStrReadPastEndError: Raised if we reached the end of the window without ever encountering the null
                terminator. This is a kind of `OutOfDataError`.
        """

        if (safety_limit is not None) and safety_limit < 1:
            raise ValueError(f"safety_limit must be strictly positive! (is: {safety_limit})")
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be strictly positive! (is: {buffer_size})")

        original_pos = self._position
        original_abs_pos = self.absolute_position()

        data_parts = []
        total_length = 0

        while True:
            data = self.read_at_most(buffer_size)

            if len(data) == 0:
                self._position = original_pos
                raise NullStrReadPastEndError(original_abs_pos, total_length, meaning)

            null_pos = data.find(b'\x00')
            if null_pos != -1:
                data_parts.append(data[:null_pos])
                total_length += null_pos
                break

            data_parts.append(data)
            total_length += len(data)

            if (safety_limit is not None) and (total_length >= safety_limit):
                self._position = original_pos
                raise NullStrTooLongError(original_abs_pos, safety_limit, meaning)

        if (safety_limit is not None) and (total_length + 1 > safety_limit):
            self._position = original_pos
            raise NullStrTooLongError(original_abs_pos, safety_limit, meaning)

        self._position = original_pos + total_length + 1

        return b''.join(data_parts)

    def read_null_terminated_string(
        self, meaning: Optional[str] = None, encoding: str = 'utf-8', safety_limit: Optional[int] = 65536
    ) -> str:
        """
        Like `read_null_terminated_bytes`, but decodes the string using the given encoding.

        A `UnicodeDecodeError` is raised if the bytes cannot be decoded.
        """
        return self.read_null_terminated_bytes(meaning, safety_limit=safety_limit).decode(encoding)

    def _require_available(self, n_bytes: int, meaning: Optional[str]):
        available = self.bytes_remaining()

        if n_bytes > available:
            raise OutOfDataError(self.absolute_position(), n_bytes, available, meaning)


def _parse_main_input_arg(input_: Union[bytes, BinaryIO]) -> BinaryIO:
    if isinstance(input_, (bytes, bytearray, memoryview)):
        return BytesIO(input_)

    if not isinstance(input_, IOBase):
        raise TypeError("Input to BinaryReader must be either bytes or a file object")
    if isinstance(input_, TextIOBase):
        raise TypeError("BinaryReader works on binary, not text file objects")
    if not input_.seekable():
        raise TypeError("BinaryReader requires a seekable file object")

    return input_
