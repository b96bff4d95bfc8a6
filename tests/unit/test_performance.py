import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))

from termvideo_core.performance import PerformanceController, PerformanceTargets


class PerformanceTests(unittest.TestCase):
    def test_budget_sample_shape(self):
        ctl = PerformanceController(PerformanceTargets(cpu_percent_max=100000.0, rss_mb_max=1e9, fps_min=5.0, fps_max=10.0))
        status = ctl.sample(fps=6.0)
        self.assertFalse(status.overloaded)
        self.assertIsNone(status.warning)
        self.assertGreater(status.rss_mb, 0.0)
        self.assertEqual(status.fps, 6.0)

    def test_fps_warnings(self):
        ctl = PerformanceController(PerformanceTargets(cpu_percent_max=100000.0, rss_mb_max=1e9, fps_min=5.0, fps_max=10.0))
        self.assertEqual(ctl.sample(fps=1.0).warning, "below_fps_target")
        self.assertEqual(ctl.sample(fps=50.0).warning, "above_fps_target")

    def test_memory_overload(self):
        ctl = PerformanceController(PerformanceTargets(rss_mb_max=0.001))
        status = ctl.sample(fps=30.0)
        self.assertTrue(status.overloaded)
        self.assertEqual(status.warning, "resource_overload")


if __name__ == "__main__":
    unittest.main()
