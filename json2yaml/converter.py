"""JSON to YAML conversion."""

from __future__ import annotations

import json

import yaml

from .types import ConversionError, OutputConfig


def convert_json_to_yaml(json_content: str, options: OutputConfig | None = None) -> str:
    """Parse *json_content* and render it as a YAML document.

    Raises ``ConversionError`` when the input is not valid JSON or is
    nested too deeply to parse or render.
    """
    options = options or OutputConfig()
    try:
        data = json.loads(json_content)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ConversionError(f"failed to parse JSON: {e}") from e

    try:
        return yaml.safe_dump(
            data,
            indent=options.indent,
            sort_keys=options.sort_keys,
            allow_unicode=options.allow_unicode,
            default_flow_style=False,
        )
    except (yaml.YAMLError, RecursionError) as e:
        raise ConversionError(f"failed to render YAML: {e}") from e

