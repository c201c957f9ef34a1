"""CLI entrypoints for rscxray commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from .api import STATUS_OK, handle_request
from .config import ConfigError, load_config
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rscxray",
        description="Analyze React Server Component sources for boundary and performance issues.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write debug logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a JSON request describing one or more source files.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument(
        "request",
        help="Path to a JSON request file, or '-' to read it from stdin.",
    )
    analyze_parser.add_argument(
        "--out",
        default=None,
        help="Write the JSON response to this file instead of stdout.",
    )
    analyze_parser.add_argument(
        "--no-pretty",
        dest="pretty",
        action="store_false",
        help="Emit compact JSON.",
    )
    analyze_parser.add_argument(
        "--config",
        default=None,
        help="Path to a .rscxray.yml file or the directory containing it.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP analysis service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def _read_request(source: str) -> Any:
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    return json.loads(text)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for rscxray commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=args.quiet,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    if args.command == "analyze":
        try:
            config = load_config(Path(args.config) if args.config else Path.cwd())
            orchestrator = Orchestrator(config=config)
            payload = _read_request(args.request)
        except json.JSONDecodeError as exc:
            parser.exit(1, f"Request is not valid JSON: {exc}\n")
        except (OSError, ConfigError, ValueError, RuntimeError, TypeError) as exc:
            # Unknown or broken rules in the configuration surface here.
            parser.exit(1, f"{exc}\n")
        status, body = handle_request(payload, orchestrator)
        rendered = json.dumps(body, indent=2 if args.pretty else None)
        if args.out:
            Path(args.out).write_text(rendered + "\n", encoding="utf-8")
        else:
            print(rendered)
        if status != STATUS_OK:
            parser.exit(1)
    elif args.command == "serve":  # pragma: no cover - integration path
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
