"""
Open URLs in the system browser.
"""

from __future__ import annotations

import logging
import subprocess
import sys

from .errors import OpenerError


logger = logging.getLogger(__name__)


def _browser_command(url: str, platform: str) -> list[str]:
    if platform == "darwin":
        return ["open", url]
    if platform.startswith("linux") or platform.startswith("freebsd"):
        return ["xdg-open", url]
    if platform in ("win32", "cygwin"):
        return ["rundll32", "url.dll,FileProtocolHandler", url]
    raise OpenerError(f"Opening URLs is not supported on platform '{platform}'")


def open_url(url: str, platform: str | None = None) -> None:
    """Spawn the platform's URL handler without waiting for it."""
    cmd = _browser_command(url, platform or sys.platform)
    logger.debug("Opening %s with %s", url, cmd[0])
    try:
        subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        raise OpenerError(f"Failed to open {url}: {e}") from e
