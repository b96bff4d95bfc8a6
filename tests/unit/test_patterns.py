import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from termvideo_renderer import PATTERN_NAMES, build_test_pattern, image_to_bgrx


class PatternTests(unittest.TestCase):
    def test_every_pattern_has_requested_size(self):
        for name in PATTERN_NAMES:
            img = build_test_pattern(name, width=40, height=24)
            self.assertEqual(img.size, (40, 24), name)
            self.assertEqual(img.mode, "RGB", name)

    def test_quadrant_corners(self):
        img = build_test_pattern("quadrants", width=20, height=10)
        self.assertEqual(img.getpixel((0, 0)), (255, 0, 0))
        self.assertEqual(img.getpixel((19, 0)), (0, 255, 0))
        self.assertEqual(img.getpixel((0, 9)), (0, 0, 255))
        self.assertEqual(img.getpixel((19, 9)), (255, 255, 255))

    def test_gradients_run_dark_to_light(self):
        h = build_test_pattern("h-gradient", width=64, height=4)
        self.assertLess(h.getpixel((0, 2))[0], 32)
        self.assertGreater(h.getpixel((63, 2))[0], 224)

        v = build_test_pattern("v-gradient", width=4, height=64)
        self.assertLess(v.getpixel((2, 0))[0], 32)
        self.assertGreater(v.getpixel((2, 63))[0], 224)

    def test_unknown_pattern(self):
        with self.assertRaises(ValueError):
            build_test_pattern("plaid", width=4, height=4)

    def test_bgrx_channel_order(self):
        arr = image_to_bgrx(build_test_pattern("red", width=3, height=2))
        self.assertEqual(arr.shape, (2, 3, 4))
        self.assertEqual(arr[0, 0].tolist(), [0, 0, 255, 0])


if __name__ == "__main__":
    unittest.main()
