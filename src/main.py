# src/main.py — v1
"""CLI entry point.

Usage:
    groupavail query <request.json> [--bucket DAY] [--repeat N] [-v]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from groupavail.version import __version__

if TYPE_CHECKING:
    from groupavail.api.models import ResponseEnvelope

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    _setup_logging(args.verbose)

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="groupavail",
        description=f"groupavail v{__version__}: common availability across a roster",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging and show error details",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- query ---
    p_query = subparsers.add_parser(
        "query", help="Find common availability for a request file",
    )
    p_query.add_argument("file", type=Path, help="Path to request JSON ('-' for stdin)")
    p_query.add_argument(
        "--bucket", choices=["HOUR", "DAY", "WEEK"], default=None,
        help="Cache bucket when the request has none (default: DAY)",
    )
    p_query.add_argument(
        "--repeat", type=int, default=1,
        help="Run the request N times against the same cache (default: 1)",
    )
    p_query.set_defaults(func=_cmd_query)

    return parser


async def _cmd_query(args: argparse.Namespace) -> int:
    """Run one request (optionally repeated) and print JSON envelopes."""
    from groupavail.api.facade import AvailabilityService
    from groupavail.api.models import ResponseEnvelope, parse_request_payload
    from groupavail.config.settings import ConfigurationError
    from groupavail.provider.errors import ProviderError

    try:
        payload = _read_payload(args.file)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Cannot read request %s: %s", args.file, exc)
        return 1

    try:
        request = parse_request_payload(payload, default_bucket=args.bucket or "DAY")
    except ValidationError as exc:
        logger.error("Invalid request: %s", exc)
        _print(ResponseEnvelope.failure("Invalid request", exc, debug=True))
        return 1

    exit_code = 0
    async with AvailabilityService() as service:
        for _ in range(max(args.repeat, 1)):
            try:
                result = await service.find_availability(request)
            except ConfigurationError as exc:
                logger.error("Configuration error: %s", exc)
                _print(ResponseEnvelope.failure("Configuration error", exc, debug=True))
                return 1
            except ProviderError as exc:
                _print(ResponseEnvelope.failure("Internal Server Error", exc, debug=args.verbose))
                exit_code = 1
                continue
            _print(ResponseEnvelope.ok(result))
    return exit_code


def _read_payload(path: Path) -> dict:
    text = sys.stdin.read() if str(path) == "-" else path.read_text(encoding="utf-8")
    data = json.loads(text)
    if not isinstance(data, dict):
        raise json.JSONDecodeError("request must be a JSON object", text, 0)
    return data


def _print(envelope: ResponseEnvelope) -> None:
    print(envelope.model_dump_json(indent=2, exclude_none=True))


def _setup_logging(verbose: bool) -> None:
    """Configure logging from settings; -v forces DEBUG."""
    from groupavail.config.settings import ConfigurationError, Settings
    from groupavail.logging.logger import setup_logging, setup_logging_from_settings

    try:
        settings = Settings()
    except (ConfigurationError, ValidationError):
        # Settings errors are reported again when the service is built
        setup_logging(level="DEBUG" if verbose else "INFO", log_format="text")
        return
    setup_logging_from_settings(settings, level="DEBUG" if verbose else None)


if __name__ == "__main__":
    sys.exit(main())
