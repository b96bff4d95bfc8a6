import io
import sys
import threading
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "terminal"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "media"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "terminal"))

from termvideo_app.cli import EXIT_BUFFERS, EXIT_GEOMETRY, EXIT_OK, EXIT_SOURCE, build_parser, main, play
from termvideo_core import config_from_mapping
from termvideo_media import SurfaceError
from termvideo_terminal import TerminalGeometry, TerminalSession
from termvideo_terminal.session import CLEAR_SCREEN, ENTER_ALT_SCREEN, HIDE_CURSOR, LEAVE_ALT_SCREEN, SHOW_CURSOR


class FrameOutput(io.BytesIO):
    def __init__(self):
        super().__init__()
        self.first_frame = threading.Event()

    def write(self, data):
        n = super().write(data)
        if bytes(data).startswith(b"\x1b[H"):
            self.first_frame.set()
        return n


class FixedGeometrySession(TerminalSession):
    """Session with a known grid that 'presses a key' once a frame is on screen."""

    def __init__(self, geometry, stdout):
        super().__init__(stdin_fd=None, stdout=stdout, install_signal_handlers=False)
        self._geometry = geometry

    def query_geometry(self):
        return self._geometry

    def wait_for_key(self):
        self._stdout.first_frame.wait(5)
        return b"q"


class ParserTests(unittest.TestCase):
    def test_single_positional_source(self):
        args = build_parser().parse_args(["clip.mp4"])
        self.assertEqual(args.source, "clip.mp4")

    def test_missing_source_is_usage_error(self):
        with patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as ctx:
                main([])
        self.assertEqual(ctx.exception.code, 2)

    def test_empty_source_is_usage_error(self):
        with patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as ctx:
                main(["  "])
        self.assertEqual(ctx.exception.code, 2)

    def test_flags_are_rejected(self):
        with patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(["clip.mp4", "--fps", "10"])


class PlayStartupTests(unittest.TestCase):
    def test_geometry_failure_leaves_terminal_untouched(self):
        out = io.BytesIO()
        session = TerminalSession(stdin_fd=None, stdout=out, install_signal_handlers=False)
        with patch("sys.stderr", new_callable=io.StringIO) as err:
            rc = play("pattern:red", session=session)
        self.assertEqual(rc, EXIT_GEOMETRY)
        self.assertEqual(out.getvalue(), b"")
        self.assertIn("termvideo:", err.getvalue())

    def test_unopenable_source(self):
        out = FrameOutput()
        session = FixedGeometrySession(TerminalGeometry(columns=4, rows=2), out)
        with patch("sys.stderr", new_callable=io.StringIO):
            rc = play("pattern:plaid", session=session)
        self.assertEqual(rc, EXIT_SOURCE)
        self.assertEqual(out.getvalue(), b"")

    def test_buffer_allocation_failure(self):
        out = FrameOutput()
        session = FixedGeometrySession(TerminalGeometry(columns=4, rows=2), out)
        with patch("termvideo_app.cli.PixelSurface", side_effect=SurfaceError("out of memory")):
            with patch("sys.stderr", new_callable=io.StringIO):
                rc = play("pattern:red", session=session)
        self.assertEqual(rc, EXIT_BUFFERS)
        self.assertEqual(out.getvalue(), b"")


class PlayRunTests(unittest.TestCase):
    def test_plays_pattern_then_restores(self):
        out = FrameOutput()
        session = FixedGeometrySession(TerminalGeometry(columns=4, rows=2), out)
        rc = play("pattern:red", session=session)
        self.assertEqual(rc, EXIT_OK)

        value = out.getvalue()
        self.assertTrue(value.startswith(ENTER_ALT_SCREEN + HIDE_CURSOR + CLEAR_SCREEN))
        self.assertTrue(value.endswith(SHOW_CURSOR + LEAVE_ALT_SCREEN))
        self.assertEqual(value.count(LEAVE_ALT_SCREEN), 1)
        cell = "\x1b[38;2;255;0;0m\x1b[48;2;255;0;0m▀".encode("utf-8")
        self.assertIn(b"\x1b[H" + cell * 4 + b"\x1b[0m\n" + cell * 4 + b"\x1b[0m", value)

    def test_settings_from_mapping_reach_playback(self):
        out = FrameOutput()
        session = FixedGeometrySession(TerminalGeometry(columns=2, rows=1), out)
        cfg = config_from_mapping({"playback": {"pattern_fps": 50}, "surface": {"stride_align": 16}})
        self.assertEqual(play("pattern:blue", cfg=cfg, session=session), EXIT_OK)
        cell = "\x1b[38;2;0;0;255m\x1b[48;2;0;0;255m\u2580".encode("utf-8")
        self.assertIn(b"\x1b[H" + cell * 2 + b"\x1b[0m", out.getvalue())


if __name__ == "__main__":
    unittest.main()
