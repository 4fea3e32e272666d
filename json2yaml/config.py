"""Configuration loading, validation, and defaults."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .types import Json2YamlConfig, LifecycleConfig, OutputConfig, ServerConfig

CONFIG_FILENAMES = [
    "json2yaml.yaml",
    "json2yaml.yml",
    "json2yaml.json",
    ".json2yaml.yaml",
]


def _discover_config() -> Path | None:
    """Search CWD then parent dirs up to home for a config file."""
    cwd = Path.cwd()
    home = Path.home()
    search = cwd
    while True:
        for name in CONFIG_FILENAMES:
            candidate = search / name
            if candidate.is_file():
                return candidate
        if search == home or search == search.parent:
            break
        search = search.parent
    return None


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise TypeError(f"{name} must be a mapping, got {type(section).__name__}")
    return section


def _build_config(raw: dict[str, Any]) -> Json2YamlConfig:
    """Build a Json2YamlConfig from a raw dict."""
    server_raw = _section(raw, "server")
    server = ServerConfig(
        host=server_raw.get("host", "127.0.0.1"),
        port=int(server_raw.get("port", 8080)),
        open_browser=bool(server_raw.get("open_browser", True)),
        browser_delay=float(server_raw.get("browser_delay", 0.5)),
        graceful_timeout=float(server_raw.get("graceful_timeout", 2.0)),
        log_level=server_raw.get("log_level", "info"),
    )

    # Liveness timings
    lc_raw = _section(raw, "lifecycle")
    lifecycle = LifecycleConfig(
        grace_delay=float(lc_raw.get("grace_delay", 5.0)),
        check_interval=float(lc_raw.get("check_interval", 1.0)),
        warn_after=float(lc_raw.get("warn_after", 5.0)),
        confirm_window=float(lc_raw.get("confirm_window", 1.0)),
        stale_after=float(lc_raw.get("stale_after", 6.0)),
    )

    out_raw = _section(raw, "output")
    output = OutputConfig(
        indent=int(out_raw.get("indent", 2)),
        sort_keys=bool(out_raw.get("sort_keys", False)),
        allow_unicode=bool(out_raw.get("allow_unicode", True)),
    )

    return Json2YamlConfig(
        version=str(raw.get("version", "1.0")),
        server=server,
        lifecycle=lifecycle,
        output=output,
    )


def validate_config(config: Json2YamlConfig) -> list[str]:
    """Validate a config. Returns list of error strings (empty = valid)."""
    errors: list[str] = []

    if not 0 <= config.server.port <= 65535:
        errors.append(f"server.port ({config.server.port}) must be between 0 and 65535")

    if config.server.graceful_timeout < 0:
        errors.append("server.graceful_timeout must be >= 0")

    lc = config.lifecycle
    for name in ("grace_delay", "check_interval", "warn_after", "confirm_window", "stale_after"):
        if getattr(lc, name) <= 0:
            errors.append(f"lifecycle.{name} must be > 0")

    if lc.stale_after < lc.warn_after:
        errors.append(
            f"lifecycle.stale_after ({lc.stale_after}) must be >= "
            f"lifecycle.warn_after ({lc.warn_after})"
        )

    if not 2 <= config.output.indent <= 9:
        errors.append(f"output.indent ({config.output.indent}) must be between 2 and 9")

    return errors


def load_config(
    config_path: str | Path | None = None,
    config_dict: dict | None = None,
) -> Json2YamlConfig:
    """Load config from dict, explicit path, or auto-discover.

    Raises ``FileNotFoundError`` for a missing explicit path, ``yaml.YAMLError``
    or ``ValueError`` for unparseable files, and ``ValueError``/``TypeError`` for
    values of the wrong type.
    """
    if config_dict is not None:
        return _build_config(config_dict)

    if config_path is not None:
        path = Path(config_path)
    else:
        path = _discover_config()

    if path is None:
        # Return defaults
        return _build_config({})

    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text()
    if path.suffix == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")

    return _build_config(raw)
