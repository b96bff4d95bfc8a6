"""CLI entrypoint: play one video source in the terminal until a key is pressed."""

from __future__ import annotations

import argparse
import sys
import time

from termvideo_core import (
    DEFAULT_CONFIG,
    AppConfig,
    PerformanceController,
    PerformanceTargets,
    RenderScheduler,
    config_from_mapping,
)
from termvideo_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from termvideo_media import MediaError, PixelSurface, SurfaceError, open_source
from termvideo_terminal import GeometryError, TerminalSession

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_SOURCE = 3
EXIT_GEOMETRY = 4
EXIT_BUFFERS = 5


def _fail(code: int, message: str, event: str) -> int:
    get_logger().error(message, extra={"event": event})
    print(f"termvideo: {message}", file=sys.stderr)
    return code


def play(source: str, cfg: AppConfig = DEFAULT_CONFIG, session: TerminalSession | None = None) -> int:
    logger = get_logger()
    session = session or TerminalSession.for_process(
        query_timeout_ms=cfg.terminal.query_timeout_ms,
        response_limit=cfg.terminal.response_limit,
    )

    # Everything that can fail at startup happens before the alternate screen.
    try:
        geometry = session.query_geometry()
    except GeometryError as exc:
        return _fail(EXIT_GEOMETRY, str(exc), "geometry_error")

    width, height = geometry.canvas_width, geometry.canvas_height
    try:
        player = open_source(
            source,
            width,
            height,
            late_frame_ms=cfg.playback.late_frame_ms,
            pattern_fps=cfg.playback.pattern_fps,
        )
    except MediaError as exc:
        return _fail(EXIT_SOURCE, str(exc), "source_error")

    try:
        surface = PixelSurface(width, height, stride_align=cfg.surface.stride_align)
    except SurfaceError as exc:
        player.close()
        return _fail(EXIT_BUFFERS, str(exc), "buffer_error")

    scheduler = RenderScheduler(player, surface, session.write)
    player.set_frame_available_handler(scheduler.on_frame_available)
    perf = PerformanceController(
        PerformanceTargets(
            cpu_percent_max=cfg.performance.cpu_percent_max,
            rss_mb_max=cfg.performance.rss_mb_max,
            fps_min=cfg.performance.fps_min,
            fps_max=cfg.performance.fps_max,
        )
    )

    logger.info("playing %s on %dx%d canvas", source, width, height, extra={"event": "play_start"})
    start = time.perf_counter()
    with session:
        try:
            player.play()
            session.wait_for_key()
        except KeyboardInterrupt:
            logger.info("interrupted", extra={"event": "play_interrupted"})
        finally:
            player.stop()
            scheduler.shutdown()
            surface.close()

    elapsed = max(time.perf_counter() - start, 1e-9)
    stats = scheduler.stats
    budget = perf.sample(stats.rendered / elapsed)
    logger.info(
        "played %.1fs rendered=%d dropped=%d failed=%d cpu=%.1f%% rss=%.1fMB warning=%s",
        elapsed,
        stats.rendered,
        stats.dropped,
        stats.failed,
        budget.cpu_percent,
        budget.rss_mb,
        budget.warning,
        extra={"event": "play_finished"},
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termvideo",
        description="Play a video as truecolor half-block text in this terminal; press any key to stop.",
    )
    parser.add_argument(
        "source",
        help="Video file path or FFmpeg URL, or pattern:<name> for a built-in test pattern (pattern:cycle shows all)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.source.strip():
        parser.error("source must not be empty")

    cfg = config_from_mapping()
    configure_logging(keep_files=cfg.logging.keep_files, level=cfg.logging.level)
    install_crash_hooks()
    return play(args.source, cfg)


if __name__ == "__main__":
    raise SystemExit(main())
