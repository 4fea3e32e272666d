"""CLI: json2yaml [INPUT [OUTPUT]] | json2yaml web [--port PORT]."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml

from .. import __version__
from ..config import load_config, validate_config
from ..converter import convert_json_to_yaml
from ..types import ConversionError, Json2YamlConfig

DESCRIPTION = """\
json2yaml converts JSON files to YAML format.

Usage:
  json2yaml                         # Start web interface
  json2yaml web                     # Start web interface
  json2yaml input.json              # Convert and output to stdout
  json2yaml input.json output.yaml  # Convert and save to file"""


def _load(args) -> Json2YamlConfig:
    try:
        config = load_config(config_path=args.config)
    except (FileNotFoundError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Error: invalid config: {e}", file=sys.stderr)
        sys.exit(1)
    errors = validate_config(config)
    if errors:
        for err in errors:
            print(f"Error: {err}", file=sys.stderr)
        sys.exit(1)
    return config


def cmd_convert(args):
    """Convert a JSON file to YAML (stdout or file)."""
    input_file = args.input or (args.paths[0] if args.paths else None)
    output_file = args.output or (args.paths[1] if len(args.paths) > 1 else None)

    if not input_file:
        print("Error: input file is required", file=sys.stderr)
        sys.exit(1)

    config = _load(args)
    try:
        text = Path(input_file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: error reading file: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        yaml_data = convert_json_to_yaml(text, config.output)
    except ConversionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not output_file:
        sys.stdout.write(yaml_data)
        return

    try:
        Path(output_file).write_text(yaml_data, encoding="utf-8")
    except OSError as e:
        print(f"Error: error writing output file: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Successfully converted {input_file} to {output_file}", file=sys.stderr)


def cmd_web(args):
    """Start the web GUI; returns once the browser is closed."""
    from ..server import run_server

    config = _load(args)
    if getattr(args, "port", None) is not None:
        config.server.port = args.port
    if getattr(args, "host", None):
        config.server.host = args.host
    if getattr(args, "no_browser", False):
        config.server.open_browser = False

    print("json2yaml - Web Mode", flush=True)
    print("Starting web interface...", flush=True)
    print(f"Starting web server on http://localhost:{config.server.port}", flush=True)
    print("Server will automatically shutdown when browser is closed", flush=True)
    run_server(config)


def _web_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="json2yaml web", description="Start web interface")
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port to run web server on (default 8080)")
    parser.add_argument("--host", default=None, help="Interface to bind (default 127.0.0.1)")
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Do not launch a browser (open the printed URL within a few seconds)",
    )
    return parser


def _convert_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="json2yaml",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", "-v", action="version", version=f"json2yaml {__version__}")
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--input", "-i", help="Input JSON file path")
    parser.add_argument("--output", "-o", help="Output YAML file path (optional, defaults to stdout)")
    parser.add_argument("paths", nargs="*", metavar="[input.json] [output.yaml]")
    return parser


def main(argv: list[str] | None = None):
    argv = sys.argv[1:] if argv is None else list(argv)

    # No arguments at all, or the "web" command: GUI mode
    if not argv:
        cmd_web(_web_parser().parse_args([]))
        return
    if argv[0] == "web":
        cmd_web(_web_parser().parse_args(argv[1:]))
        return

    parser = _convert_parser()
    args = parser.parse_args(argv)
    if len(args.paths) > 2:
        parser.error("at most two positional arguments: [input.json] [output.yaml]")
    cmd_convert(args)


if __name__ == "__main__":
    main()
