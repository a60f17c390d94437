#!/usr/bin/env python3
"""Start Xvfb in the background for headless LibreOffice operation."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))
from apps.api.app.core.config import get_settings
from apps.api.app.core.ops import configure_logging
from isms_app.headless_display import VirtualDisplayError, start_virtual_display


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Start a virtual X display")
    parser.add_argument("--display", default=settings.virtual_display)
    parser.add_argument("--screen", default=settings.virtual_display_screen)
    args = parser.parse_args(argv)
    configure_logging(settings.log_level)

    try:
        start_virtual_display(
            display=args.display,
            screen=args.screen,
            binary=settings.xvfb_binary,
            startup_wait_seconds=settings.xvfb_startup_seconds,
        )
    except VirtualDisplayError as exc:
        print(f"Xvfb could not be started: {exc}", file=sys.stderr)
        return 1
    print(f"Xvfb ready on display {args.display}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
