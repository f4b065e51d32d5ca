import unittest

from io import BytesIO, StringIO

from atmfjstc.lib.box_tree.BinaryReader import BinaryReader
from atmfjstc.lib.box_tree.errors import OutOfDataError, NullStrReadPastEndError, NullStrTooLongError


class FixedSizeIntTest(unittest.TestCase):
    def test_big_endian_reads(self):
        reader = BinaryReader(bytes.fromhex('01 0203 04050607 08090a0b0c0d0e0f'))

        self.assertEqual(reader.read_u8(), 0x01)
        self.assertEqual(reader.read_u16(), 0x0203)
        self.assertEqual(reader.read_u32(), 0x04050607)
        self.assertEqual(reader.read_u64(), 0x08090a0b0c0d0e0f)
        self.assertTrue(reader.eof())

    def test_little_endian_override(self):
        reader = BinaryReader(bytes.fromhex('0102'))

        self.assertEqual(reader.read_fixed_size_int(2, big_endian=False), 0x0201)

    def test_little_endian_reader(self):
        reader = BinaryReader(bytes.fromhex('01020304'), big_endian=False)

        self.assertEqual(reader.read_u32(), 0x04030201)

    def test_signed(self):
        self.assertEqual(BinaryReader(b'\xff\xfe').read_fixed_size_int(2, signed=True), -2)

    def test_not_enough_data(self):
        reader = BinaryReader(b'\x01\x02\x03')

        with self.assertRaises(OutOfDataError) as ctx:
            reader.read_u32('box size')

        self.assertEqual(ctx.exception.expected_length, 4)
        self.assertEqual(ctx.exception.actual_length, 3)
        self.assertIn('box size', str(ctx.exception))
        self.assertEqual(reader.tell(), 0)

    def test_struct(self):
        reader = BinaryReader(b'\x00\x00\x00\x10ftyp')

        self.assertEqual(reader.read_struct('I4s'), (16, b'ftyp'))


class ReadAmountTest(unittest.TestCase):
    def test_exact(self):
        reader = BinaryReader(b'abcdef')

        self.assertEqual(reader.read_bytes(4), b'abcd')
        self.assertEqual(reader.bytes_remaining(), 2)
        self.assertTrue(reader.has_bytes_available())

    def test_zero(self):
        reader = BinaryReader(b'')

        self.assertEqual(reader.read_amount(0), b'')
        self.assertFalse(reader.has_bytes_available())

    def test_past_end(self):
        reader = BinaryReader(b'abc')
        reader.read_u8()

        with self.assertRaises(OutOfDataError) as ctx:
            reader.read_amount(3)

        self.assertEqual(ctx.exception.position, 1)
        self.assertEqual(reader.tell(), 1)

    def test_remainder(self):
        reader = BinaryReader(b'abcdef')
        reader.skip_bytes(2)

        self.assertEqual(reader.read_all_data(), b'cdef')
        self.assertEqual(reader.read_remainder(), b'')

    def test_skip_past_end(self):
        reader = BinaryReader(b'abc')

        with self.assertRaises(OutOfDataError):
            reader.skip_bytes(4)

        self.assertEqual(reader.tell(), 0)


class NullTerminatedTest(unittest.TestCase):
    def test_string(self):
        reader = BinaryReader(b'label\x00rest')

        self.assertEqual(reader.read_null_terminated_string(), 'label')
        self.assertEqual(reader.read_remainder(), b'rest')

    def test_empty_string(self):
        reader = BinaryReader(b'\x00x')

        self.assertEqual(reader.read_null_terminated_string(), '')
        self.assertEqual(reader.tell(), 1)

    def test_small_buffer(self):
        reader = BinaryReader(b'a longer label\x00!')

        self.assertEqual(reader.read_null_terminated_bytes(buffer_size=3), b'a longer label')
        self.assertEqual(reader.read_remainder(), b'!')

    def test_end_is_not_a_terminator(self):
        reader = BinaryReader(b'unterminated')

        with self.assertRaises(NullStrReadPastEndError) as ctx:
            reader.read_null_terminated_string('label')

        self.assertIsInstance(ctx.exception, OutOfDataError)
        self.assertIn('label', str(ctx.exception))
        self.assertEqual(reader.tell(), 0)

    def test_no_data(self):
        with self.assertRaises(OutOfDataError):
            BinaryReader(b'').read_null_terminated_bytes()

    def test_safety_limit(self):
        with self.assertRaises(NullStrTooLongError):
            BinaryReader(b'abcdef\x00').read_null_terminated_bytes(safety_limit=4)

        self.assertEqual(BinaryReader(b'abcdef\x00').read_null_terminated_bytes(safety_limit=7), b'abcdef')

    def test_stops_at_window_end(self):
        reader = BinaryReader(b'abc\x00')
        view = reader.slice(3)

        with self.assertRaises(OutOfDataError):
            view.read_null_terminated_bytes()

    def test_invalid_utf8(self):
        with self.assertRaises(UnicodeDecodeError):
            BinaryReader(b'\xff\xfe\x00').read_null_terminated_string()


class SliceTest(unittest.TestCase):
    def test_slice_is_bounded(self):
        reader = BinaryReader(b'0123456789')
        reader.skip_bytes(2)

        view = reader.slice(4)

        self.assertEqual(view.total_size(), 4)
        self.assertEqual(view.absolute_position(), 2)
        self.assertEqual(view.read_remainder(), b'2345')

        with self.assertRaises(OutOfDataError):
            view.read_u8()

    def test_slice_does_not_advance_parent(self):
        reader = BinaryReader(b'0123456789')

        view = reader.slice(4)
        view.read_amount(3)

        self.assertEqual(reader.tell(), 0)
        self.assertEqual(reader.read_amount(2), b'01')

    def test_slice_too_long(self):
        reader = BinaryReader(b'0123')

        with self.assertRaises(OutOfDataError):
            reader.slice(5)

    def test_nested_slices(self):
        reader = BinaryReader(b'0123456789')
        reader.skip_bytes(1)
        outer = reader.slice(8)
        outer.skip_bytes(2)
        inner = outer.slice(3)

        self.assertEqual(inner.absolute_position(), 3)
        self.assertEqual(inner.read_remainder(), b'345')


class InputTest(unittest.TestCase):
    def test_fileobj_starts_at_current_position(self):
        fileobj = BytesIO(b'junk\x00\x01')
        fileobj.seek(4)

        reader = BinaryReader(fileobj)

        self.assertEqual(reader.total_size(), 2)
        self.assertEqual(reader.absolute_position(), 4)
        self.assertEqual(reader.read_u16(), 1)

    def test_explicit_window(self):
        reader = BinaryReader(b'0123456789', window_base=3, window_size=2)

        self.assertEqual(reader.read_remainder(), b'34')

    def test_bad_window(self):
        with self.assertRaises(ValueError):
            BinaryReader(b'0123', window_base=2, window_size=3)

    def test_text_fileobj_rejected(self):
        with self.assertRaises(TypeError):
            BinaryReader(StringIO('text'))

    def test_other_input_rejected(self):
        with self.assertRaises(TypeError):
            BinaryReader('text')
