"""waterq CLI entry points.
This module exposes build, query, and run-spec commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.run_spec_command import add_run_spec_command, run_run_spec_command
from core.config import WaterQConfig
from core.constants import (
    DEFAULT_QUERY_LIMIT,
    OUTPUT_FORMAT_BOTH,
    QUERY_SOURCE_DOCUMENTS,
    SUPPORTED_OUTPUT_FORMATS,
    SUPPORTED_QUERY_SOURCES,
)
from core.errors import WaterQError
from core.run_spec_execution import format_build_result
from core.types import BuildOptions, QueryParams
from store.client_sdk import WaterQClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="waterq",
        description="Build and query UCMR water quality artifacts",
    )
    parser.add_argument("--output-root", help="Override WATERQ_OUTPUT_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_build_command(subparsers)
    _add_query_command(subparsers)
    add_run_spec_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the waterq CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.output_root)
        if args.command == "build":
            return _run_build_command(client, args)
        if args.command == "query":
            return _run_query_command(client, args)
        if args.command == "run-spec":
            return run_run_spec_command(client, args)
    except WaterQError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(output_root: str | None) -> WaterQClient:
    """Build SDK client with optional output-root override.

    Args:
        output_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = WaterQConfig.from_env()
    if output_root:
        config = replace(config, output_root=Path(output_root).expanduser().resolve())
    return WaterQClient(config)


def _run_build_command(client: WaterQClient, args: argparse.Namespace) -> int:
    """Handle build command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = BuildOptions(
        samples_path=args.samples,
        zip_codes_path=args.zip_codes,
        additional_path=args.additional,
        output_format=args.format,
    )
    result = client.build(options)
    for line in format_build_result(result):
        print(line)
    return 0


def _run_query_command(client: WaterQClient, args: argparse.Namespace) -> int:
    """Handle query command."""
    params = QueryParams(
        pwsid=args.pwsid,
        pws_name=args.pws_name,
        state=args.state,
        zipcode=args.zipcode,
        limit=args.limit,
        offset=args.offset,
    )
    page = client.query(params, source=args.source)
    print(json.dumps(page.to_payload(), indent=2, sort_keys=True))
    return 0


def _add_build_command(subparsers: Any) -> None:
    """Register build subcommand."""
    parser = subparsers.add_parser("build", help="Rebuild artifacts from UCMR source files")
    parser.add_argument("samples", help="Tab-delimited samples file")
    parser.add_argument("--zip-codes", help="Tab-delimited facility to postal code file")
    parser.add_argument("--additional", help="Tab-delimited supplementary data file")
    parser.add_argument(
        "--format",
        default=OUTPUT_FORMAT_BOTH,
        choices=SUPPORTED_OUTPUT_FORMATS,
        help="Output forms to publish",
    )


def _add_query_command(subparsers: Any) -> None:
    """Register query subcommand."""
    parser = subparsers.add_parser("query", help="Search published water systems")
    parser.add_argument(
        "--source",
        default=QUERY_SOURCE_DOCUMENTS,
        choices=SUPPORTED_QUERY_SOURCES,
        help="Published output form to read",
    )
    parser.add_argument("--pwsid", help="Exact water system id")
    parser.add_argument("--pws-name", help="Case-insensitive name substring")
    parser.add_argument("--state", help="State code")
    parser.add_argument("--zipcode", help="Served postal code")
    parser.add_argument("--limit", type=int, default=DEFAULT_QUERY_LIMIT, help="Page size")
    parser.add_argument("--offset", type=int, default=0, help="Page offset")
