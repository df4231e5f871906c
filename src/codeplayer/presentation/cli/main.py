"""
CLI entry point.

Commands:
- serve:   run the playground API with uvicorn
- compose: print the preview document for three source files
- export:  write the project zip for three source files
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from codeplayer import __version__
from codeplayer.core.errors import CodePlayerError
from codeplayer.domain import SourceBundle


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codeplayer",
        description="Code Player - HTML/CSS/JavaScript playground",
    )
    subparsers = parser.add_subparsers(dest="command", help="available commands")

    serve_parser = subparsers.add_parser("serve", help="run the playground server")
    serve_parser.add_argument("--config", "-c", help="YAML config file")
    serve_parser.add_argument("--host", help="bind address (overrides config)")
    serve_parser.add_argument("--port", type=int, help="bind port (overrides config)")

    for name, help_text in (("compose", "print the preview document"), ("export", "write the project zip")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--html", help="markup file")
        sub.add_argument("--css", help="stylesheet file")
        sub.add_argument("--js", help="script file")
        sub.add_argument("--output", "-o", help="output file (compose: default stdout)")
        if name == "compose":
            sub.add_argument("--capture", action="store_true", help="enable console capture in the shim")
            sub.add_argument("--execution-id", type=int, default=0, help="execution id baked into the shim")

    parser.add_argument("--version", "-v", action="store_true", help="show version")
    return parser


def _read(path: Optional[str]) -> str:
    if not path:
        return ""
    return Path(path).read_text(encoding="utf-8")


def _sources(parsed: argparse.Namespace) -> SourceBundle:
    return SourceBundle.of(_read(parsed.html), _read(parsed.css), _read(parsed.js))


def _serve(parsed: argparse.Namespace) -> int:
    import uvicorn

    from codeplayer.api.main import create_app
    from codeplayer.config import load_config

    config = load_config(parsed.config)
    if parsed.host:
        config.server.host = parsed.host
    if parsed.port:
        config.server.port = parsed.port
    logging.basicConfig(
        level=getattr(logging, config.server.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)
    return 0


def _compose(parsed: argparse.Namespace) -> int:
    from codeplayer.preview.composer import compose_document

    document = compose_document(
        _sources(parsed),
        capture_console=parsed.capture,
        execution_id=parsed.execution_id,
    )
    if parsed.output:
        Path(parsed.output).write_text(document, encoding="utf-8")
    else:
        sys.stdout.write(document)
    return 0


def _export(parsed: argparse.Namespace) -> int:
    from codeplayer.preview.export import make_zip_bytes

    output = Path(parsed.output or "codeplayer.zip")
    output.write_bytes(make_zip_bytes(_sources(parsed)))
    print(f"Project written to {output}")
    return 0


def run_cli(args: Optional[list] = None) -> int:
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.version:
        print(f"Code Player v{__version__}")
        return 0

    if not parsed.command:
        parser.print_help()
        return 0

    try:
        if parsed.command == "serve":
            return _serve(parsed)
        if parsed.command == "compose":
            return _compose(parsed)
        if parsed.command == "export":
            return _export(parsed)
    except (CodePlayerError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
