from __future__ import annotations

import runpy
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for sub in ("apps/terminal", "packages/core", "packages/media", "packages/renderer", "packages/terminal"):
    sys.path.insert(0, str(ROOT / sub))

import termvideo_app.__main__ as entry_main


def test_main_passes_through_args(monkeypatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(entry_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 0)

    rc = entry_main.main(["clip.mp4"])
    assert rc == 0
    assert calls == [["clip.mp4"]]


def test_main_reads_sys_argv(monkeypatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(entry_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 3)
    monkeypatch.setattr(sys, "argv", ["termvideo", "pattern:cycle"])

    assert entry_main.main() == 3
    assert calls == [["pattern:cycle"]]


def test_main_module_runpath_without_package_context() -> None:
    main_path = ROOT / "apps" / "terminal" / "termvideo_app" / "__main__.py"
    result = runpy.run_path(str(main_path))
    assert "main" in result
