"""Virtual X display startup for headless LibreOffice rendering."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY = ":99"
DEFAULT_SCREEN = "1024x768x24"

_display_lock = threading.Lock()
_display_processes: dict[str, subprocess.Popen] = {}
_external_displays: set[str] = set()


class VirtualDisplayError(RuntimeError):
    pass


def start_virtual_display(
    *,
    display: str = DEFAULT_DISPLAY,
    screen: str = DEFAULT_SCREEN,
    binary: str = "Xvfb",
    startup_wait_seconds: float = 1.0,
) -> subprocess.Popen:
    """Start Xvfb in the background and wait briefly for it to come up.

    An Xvfb that exits during the wait usually means another server already
    owns the display, which is as good as ready.
    """
    command = [binary, display, "-screen", "0", screen]
    try:
        process = subprocess.Popen(
            command,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except FileNotFoundError as exc:
        raise VirtualDisplayError(f"{binary} is not installed") from exc

    time.sleep(startup_wait_seconds)
    exit_code = process.poll()
    if exit_code is not None:
        logger.info(
            "%s exited with code %s; assuming display %s is already running",
            binary,
            exit_code,
            display,
        )
    logger.info("Xvfb ready on display %s", display)
    return process


def ensure_virtual_display(
    *,
    display: str = DEFAULT_DISPLAY,
    screen: str = DEFAULT_SCREEN,
    binary: str = "Xvfb",
    startup_wait_seconds: float = 1.0,
) -> None:
    """Start the display once per process; later calls are no-ops while it is served."""
    with _display_lock:
        if display in _external_displays:
            return
        process = _display_processes.get(display)
        if process is not None and process.poll() is None:
            return
        process = start_virtual_display(
            display=display,
            screen=screen,
            binary=binary,
            startup_wait_seconds=startup_wait_seconds,
        )
        if process.poll() is None:
            _display_processes[display] = process
        else:
            _external_displays.add(display)


def stop_virtual_display(process: subprocess.Popen, *, timeout_seconds: float = 5.0) -> None:
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=timeout_seconds)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


def virtual_display_environment(display: str = DEFAULT_DISPLAY) -> dict[str, str]:
    env = dict(os.environ)
    env["DISPLAY"] = display
    return env
