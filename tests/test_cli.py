"""
Tests for the compress.py command line.
"""

import argparse
import asyncio
import contextlib
import io
import shutil
import tempfile
import unittest
import zipfile
from pathlib import Path

import compress
from imgsqueeze.config import Config
from tests.helpers import create_test_image


class TestCli(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.input_dir = self.temp_dir / "in"
        self.output_dir = self.temp_dir / "out"
        self.input_dir.mkdir()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write(self, name, data):
        path = self.input_dir / name
        path.write_bytes(data)
        return path

    def make_args(self, inputs, **overrides):
        args = dict(
            inputs=[str(p) for p in inputs],
            output=str(self.output_dir),
            preset='medium',
            quality=None,
            format='jpeg',
            server=None,
            workers=None,
            zip=False,
            estimate_only=False,
            quiet=True,
        )
        args.update(overrides)
        return argparse.Namespace(**args)

    def run_cli(self, args):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = asyncio.run(compress.run(args, Config(output_dir=self.output_dir)))
        return code, out.getvalue()

    def saved(self):
        if not self.output_dir.exists():
            return []
        return sorted(p.name for p in self.output_dir.iterdir())

    def test_all_success(self):
        self.write("one.png", create_test_image(fmt="PNG"))
        self.write("two.jpg", create_test_image(fmt="JPEG"))

        code, output = self.run_cli(self.make_args([self.input_dir]))

        self.assertEqual(code, 0)
        self.assertEqual(self.saved(), ["one_compressed.jpeg", "two_compressed.jpeg"])
        self.assertIn("Successful: 2/2 images", output)

    def test_unsupported_inputs_skipped(self):
        self.write("one.png", create_test_image(fmt="PNG"))
        notes = self.write("notes.txt", b"not an image")

        code, _ = self.run_cli(self.make_args([self.input_dir, notes]))

        self.assertEqual(code, 0)
        self.assertEqual(self.saved(), ["one_compressed.jpeg"])

    def test_broken_file_fails(self):
        self.write("good.png", create_test_image(fmt="PNG"))
        self.write("broken.png", b"this is not a png")

        code, output = self.run_cli(self.make_args([self.input_dir]))

        self.assertEqual(code, 1)
        self.assertEqual(self.saved(), ["good_compressed.jpeg"])
        self.assertIn("broken.png: FAILED", output)

    def test_no_usable_input(self):
        notes = self.write("notes.txt", b"hello")

        code, _ = self.run_cli(self.make_args([notes, self.temp_dir / "missing.png"]))

        self.assertEqual(code, 1)
        self.assertEqual(self.saved(), [])

    def test_zip(self):
        self.write("one.png", create_test_image(fmt="PNG"))
        self.write("two.png", create_test_image(fmt="PNG"))

        code, _ = self.run_cli(self.make_args([self.input_dir], zip=True, format='webp'))

        self.assertEqual(code, 0)
        saved = self.saved()
        self.assertEqual(len(saved), 1)
        self.assertRegex(saved[0], r"^compressed_images_\d+\.zip$")
        with zipfile.ZipFile(self.output_dir / saved[0]) as zipf:
            self.assertEqual(sorted(zipf.namelist()), ["one_compressed.webp", "two_compressed.webp"])

    def test_estimate_only_writes_nothing(self):
        self.write("one.png", b"x" * 1000)

        code, output = self.run_cli(self.make_args([self.input_dir], estimate_only=True))

        self.assertEqual(code, 0)
        self.assertEqual(self.saved(), [])
        self.assertIn("450 B", output)

    def test_quality_implies_custom(self):
        self.write("one.png", b"x" * 1000)

        code, output = self.run_cli(self.make_args([self.input_dir], quality=55, estimate_only=True))

        self.assertEqual(code, 0)
        # custom 55 keeps 43%, medium would keep 45%
        self.assertIn("430 B", output)
        self.assertNotIn("450 B", output)


if __name__ == '__main__':
    unittest.main()
