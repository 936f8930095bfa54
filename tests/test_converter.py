import unittest
from unittest.mock import patch, MagicMock
import os
import struct
import sys
import tempfile
from pathlib import Path

from PIL import Image

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from svg_to_ico.converter import DEFAULT_SIZES, scene_to_ico, svg_to_ico
from svg_to_ico.errors import IoError, ParseError, RasterizeError

FIXTURES = os.path.join(os.path.dirname(__file__), 'fixtures')
EXAMPLE_SVG = os.path.join(FIXTURES, 'example.svg')


def entry_sizes(path):
    data = Path(path).read_bytes()
    count = struct.unpack_from("<H", data, 4)[0]
    return [struct.unpack_from("<BB", data, 6 + i * 16) for i in range(count)]


class TestSvgToIco(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_creates_icon_with_requested_sizes(self):
        output = self.root / "out" / "example.ico"
        result = svg_to_ico(EXAMPLE_SVG, 96.0, output, [32, 64])

        self.assertEqual(result, output)
        self.assertTrue(output.exists())
        self.assertEqual(entry_sizes(output), [(32, 32), (64, 64)])

    def test_default_sizes_decode_with_pillow(self):
        output = self.root / "default.ico"
        svg_to_ico(EXAMPLE_SVG, 96.0, output, DEFAULT_SIZES)

        self.assertEqual(len(entry_sizes(output)), len(DEFAULT_SIZES))
        with Image.open(output) as ico:
            self.assertIn((256, 256), ico.ico.sizes())
            frame = ico.ico.getimage((24, 24)).convert("RGBA")
            self.assertEqual(frame.getpixel((3, 3)), (255, 0, 0, 255))

    def test_unsorted_and_duplicate_sizes_keep_their_order(self):
        output = self.root / "order.ico"
        svg_to_ico(EXAMPLE_SVG, 96.0, output, [48, 16, 48, 256], max_workers=3)
        self.assertEqual(entry_sizes(output), [(48, 48), (16, 16), (48, 48), (0, 0)])

    def test_rasterize_failure_writes_nothing(self):
        output = self.root / "missing" / "icon.ico"
        with self.assertRaises(RasterizeError):
            svg_to_ico(EXAMPLE_SVG, 96.0, output, [16, 0, 32])

        self.assertFalse(output.exists())
        self.assertFalse(output.parent.exists())

    def test_rasterize_failure_keeps_existing_file(self):
        output = self.root / "icon.ico"
        output.write_bytes(b"previous")
        with self.assertRaises(RasterizeError):
            svg_to_ico(EXAMPLE_SVG, 96.0, output, [16, 0])
        self.assertEqual(output.read_bytes(), b"previous")

    def test_missing_svg_is_an_io_error(self):
        output = self.root / "icon.ico"
        with self.assertRaises(IoError):
            svg_to_ico(self.root / "nope.svg", 96.0, output, [16])
        self.assertFalse(output.exists())

    def test_broken_svg_is_a_parse_error(self):
        output = self.root / "icon.ico"
        with self.assertRaises(ParseError):
            svg_to_ico(os.path.join(FIXTURES, 'broken.svg'), 96.0, output, [16])
        self.assertFalse(output.exists())

    def test_empty_size_list(self):
        with self.assertRaises(ValueError):
            svg_to_ico(EXAMPLE_SVG, 96.0, self.root / "icon.ico", [])


class TestSceneToIco(unittest.TestCase):

    @patch('svg_to_ico.converter.ico_encoder.write')
    @patch('svg_to_ico.converter.ico_encoder.encode')
    @patch('svg_to_ico.converter.rasterize_all')
    def test_pipeline_steps(self, mock_rasterize_all, mock_encode, mock_write):
        scene = MagicMock()
        renderer = MagicMock()
        mock_rasterize_all.return_value = ["image_a", "image_b"]
        mock_encode.return_value = b"ico"
        mock_write.return_value = Path("icon.ico")

        result = scene_to_ico(scene, "icon.ico", (24, 16), renderer=renderer, max_workers=2)

        mock_rasterize_all.assert_called_once_with(scene, [24, 16], renderer=renderer, max_workers=2)
        mock_encode.assert_called_once_with(["image_a", "image_b"])
        mock_write.assert_called_once_with("icon.ico", b"ico")
        self.assertEqual(result, Path("icon.ico"))

    @patch('svg_to_ico.converter.ico_encoder.write')
    @patch('svg_to_ico.converter.rasterize_all', side_effect=RasterizeError("failed"))
    def test_failure_skips_write(self, mock_rasterize_all, mock_write):
        with self.assertRaises(RasterizeError):
            scene_to_ico(MagicMock(), "icon.ico", [16])
        mock_write.assert_not_called()


if __name__ == '__main__':
    unittest.main()
