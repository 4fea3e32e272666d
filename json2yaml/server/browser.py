"""Launch the user's default browser at the GUI."""

from __future__ import annotations

import logging
import webbrowser

from ..types import ServerConfig

logger = logging.getLogger(__name__)

_LOOPBACK_ALIASES = {"", "0.0.0.0", "127.0.0.1", "::", "::1"}


def server_url(server: ServerConfig) -> str:
    host = "localhost" if server.host in _LOOPBACK_ALIASES else server.host
    return f"http://{host}:{server.port}/"


def open_browser(url: str) -> bool:
    """Open *url* in a new tab. Prints the URL when no browser could be started."""
    try:
        opened = webbrowser.open(url, new=2)
    except webbrowser.Error as e:
        logger.warning("Failed to open browser: %s", e)
        opened = False
    if not opened:
        print(f"Please open your browser and navigate to: {url}", flush=True)
    return opened
