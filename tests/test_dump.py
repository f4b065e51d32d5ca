import os
import struct
import tempfile
import unittest

from contextlib import redirect_stdout, redirect_stderr
from io import StringIO

from atmfjstc.lib.box_tree.dump import main


def box(type_code: str, payload: bytes = b'') -> bytes:
    return struct.pack('>I4s', 8 + len(payload), type_code.encode('latin-1')) + payload


class DumpTest(unittest.TestCase):
    def setUp(self):
        self._tempdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self._tempdir.cleanup()

    def _write_file(self, name: str, data: bytes) -> str:
        path = os.path.join(self._tempdir.name, name)

        with open(path, 'wb') as f:
            f.write(data)

        return path

    def _run(self, *args: str):
        stdout = StringIO()
        stderr = StringIO()

        with redirect_stdout(stdout), redirect_stderr(stderr):
            status = main(list(args))

        return status, stdout.getvalue(), stderr.getvalue()

    def test_good_file(self):
        path = self._write_file('good.mp4', box('ftyp', b'isom\x00\x00\x00\x00') + box('mdat', b'\x00' * 20))

        status, out, err = self._run(path)

        self.assertEqual(status, 0)
        self.assertIn("[ftyp] 16 bytes", out)
        self.assertIn("Major brand: isom", out)
        self.assertIn("(20 bytes of data skipped)", out)
        self.assertEqual(err, '')

    def test_load_mdat(self):
        path = self._write_file('good.mp4', box('mdat', b'\x00' * 20))

        status, out, _ = self._run('--load-mdat', path)

        self.assertEqual(status, 0)
        self.assertIn("Data size: 20 bytes", out)

    def test_continues_after_failures(self):
        bad = self._write_file('bad.mp4', struct.pack('>I4s', 100, b'ftyp'))
        missing = os.path.join(self._tempdir.name, 'missing.mp4')
        good = self._write_file('good.jumbf', box('jumb', box('json', b'{}')))

        status, out, err = self._run(bad, missing, good)

        self.assertEqual(status, 1)
        self.assertIn(f"Failed to parse '{bad}'", err)
        self.assertIn("BoxStructureError", err)
        self.assertIn(f"Input file does not exist: '{missing}'", err)
        self.assertIn("[jumb] 18 bytes, 1 child", out)

    def test_strict(self):
        path = self._write_file('bad_ftyp.mp4', box('ftyp', b'isom'))

        status, out, _ = self._run(path)
        self.assertEqual(status, 0)
        self.assertIn("!! Decoding failed", out)

        status, _, err = self._run('--strict', path)
        self.assertEqual(status, 1)
        self.assertIn("LeafDecodeError", err)

    def test_max_depth(self):
        path = self._write_file('deep.mp4', box('moov', box('trak', box('mdia'))))

        status, _, err = self._run('--max-depth', '2', path)

        self.assertEqual(status, 1)
        self.assertIn("nested deeper", err)

    def test_max_depth_out_of_range(self):
        path = self._write_file('good.mp4', box('moov'))

        for value in ['0', '100000']:
            with self.assertRaises(SystemExit) as ctx:
                self._run('--max-depth', value, path)

            self.assertEqual(ctx.exception.code, 2)
