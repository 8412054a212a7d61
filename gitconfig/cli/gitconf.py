"""gitconf CLI entrypoint.

Subcommands: show (clone a repository and print its application.properties).

Usage: gitconf show https://example.com/config.git --format json

Exit codes:
  0  success
  1  clone, read or settings error (message on stderr)
  3  --key given but absent from the configuration
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from pathlib import Path
from typing import Mapping, Optional, TextIO

import orjson

from gitconfig.adapters.git_service import GitConfigurationService
from gitconfig.adapters.telemetry.jsonl import JsonlTelemetry
from gitconfig.config.settings import LOCAL_REPOSITORY_PATH_IN_TEMP, build_settings
from gitconfig.core.utility import sorted_items
from gitconfig.errors.errors import GitConfigurationError
from gitconfig.ports.telemetry import Telemetry
from gitconfig.types.types import ReadErrorPolicy

_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_MISSING_KEY = 3


def build_parser() -> argparse.ArgumentParser:
    """
    Return the top-level CLI argument parser.
    """
    p = argparse.ArgumentParser(prog="gitconf")
    sub = p.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Clone a repository and print its configuration")
    show.add_argument("repository_uri", help="URI of the git repository holding application.properties")
    show.add_argument("--tmp-dir", type=Path, default=None, help="Root directory for the clone")
    show.add_argument(
        "--prefix",
        default=LOCAL_REPOSITORY_PATH_IN_TEMP,
        help="Name prefix of the local clone directory",
    )
    show.add_argument("--key", default=None, help="Print only the value of this key")
    show.add_argument(
        "--format",
        dest="output_format",
        choices=("properties", "json"),
        default="properties",
        help="Output format",
    )
    show.add_argument(
        "--strict",
        action="store_true",
        help="Fail when application.properties is missing or malformed",
    )
    show.add_argument("--encoding", default=None, help="Encoding of application.properties")
    show.add_argument("--events", type=Path, default=None, help="Write JSONL telemetry here")
    show.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p


def render(config: Mapping[str, str], output_format: str) -> str:
    if output_format == "json":
        return orjson.dumps(dict(config), option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2).decode()
    return "\n".join(f"{key}={value}" for key, value in sorted_items(config))


def run_show(args: argparse.Namespace, out: TextIO, err: TextIO) -> int:
    """Clone, print and close. Returns the process exit code."""
    telemetry: Optional[Telemetry] = None
    if args.events is not None:
        telemetry = JsonlTelemetry(session_id=str(uuid.uuid4()), sink_path=args.events)

    try:
        settings = build_settings(
            repository_uri=args.repository_uri,
            tmp_path=args.tmp_dir,
            local_repository_path_in_temp=args.prefix,
            read_error_policy=ReadErrorPolicy.PROPAGATE if args.strict else ReadErrorPolicy.RETURN_EMPTY,
            encoding=args.encoding,
        )
        with GitConfigurationService.from_settings(settings, telemetry=telemetry) as service:
            config = service.get_configuration()
    except GitConfigurationError as exc:
        print(f"gitconf: {exc}", file=err)
        return EXIT_ERROR

    if telemetry is not None:
        try:
            telemetry.log("cli_invocation", command=args.command, keys_total=len(config))
        except OSError:
            _LOGGER.warning(
                "telemetry_log_failed", exc_info=True, extra={"event": "telemetry_log_failed"}
            )

    if args.key is not None:
        if args.key not in config:
            print(f"gitconf: key not found: {args.key}", file=err)
            return EXIT_MISSING_KEY
        print(config[args.key], file=out)
        return EXIT_OK

    rendered = render(config, args.output_format)
    if rendered:
        print(rendered, file=out)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint wrapper compatible with setuptools scripts."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    return run_show(args, sys.stdout, sys.stderr)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
