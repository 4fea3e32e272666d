"""Dataclasses, enums, and errors for json2yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ConversionError(ValueError):
    """Raised when a JSON document cannot be converted to YAML."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class ServerConfig:
    """Web-mode listener settings."""
    host: str = "127.0.0.1"
    port: int = 8080
    open_browser: bool = True
    browser_delay: float = 0.5     # seconds between startup and browser launch
    graceful_timeout: float = 2.0  # max drain time on signal shutdown
    log_level: str = "info"


@dataclass
class LifecycleConfig:
    """Timings for browser liveness detection (all in seconds)."""
    grace_delay: float = 5.0       # zero-connection debounce before abrupt exit
    check_interval: float = 1.0    # heartbeat monitor tick
    warn_after: float = 5.0        # first staleness threshold
    confirm_window: float = 1.0    # wait before re-checking a stale heartbeat
    stale_after: float = 6.0       # second, stricter threshold


@dataclass
class OutputConfig:
    """YAML rendering options."""
    indent: int = 2
    sort_keys: bool = False
    allow_unicode: bool = True


@dataclass
class Json2YamlConfig:
    version: str = "1.0"
    server: ServerConfig = field(default_factory=ServerConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------

class LifecycleState(Enum):
    STARTING = "starting"            # binding listener, not yet accepting
    SERVING = "serving"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"
