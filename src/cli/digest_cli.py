# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Command line entry point for digesting analysis reports."""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ard.database import SQLitePersistence
from ard.digest import DEFAULT_CHUNK_SIZE, DigestResult, ReportDigester
from ard.formats import parse_datetime
from ard.report import FormatError, ReportContext, ResourceReadError
from ard.storage import StorageWriteError

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="ard")
    subparsers = parser.add_subparsers(dest="command", required=True)
    digest_parser = subparsers.add_parser("digest")
    digest_parser.add_argument(
        "--report-dir", required=True, help="Directory holding the report files."
    )
    digest_parser.add_argument(
        "--project", required=True, help="Key of the project owning the report."
    )
    digest_parser.add_argument("--db", required=True, help="SQLite database path.")
    digest_parser.add_argument(
        "--analysis-date",
        required=False,
        help="ISO-8601 analysis date. Defaults to the manifest date, then now.",
    )
    digest_parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help="Number of issues written per storage call.",
    )
    digest_parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format.",
    )
    return parser


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 2
    if args.command == "digest":
        return _run_digest(args=args, stdout=stdout, stderr=stderr)

    logger.warning(f"Unsupported command (command={args.command})")
    stderr.write(f"Unsupported command: {args.command}\n")
    return 2


def _run_digest(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    """Run digest command.

    Args:
        args: Parsed CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    report_dir = Path(args.report_dir)
    if not report_dir.is_dir():
        logger.warning(f"Report directory does not exist (path={report_dir})")
        stderr.write(f"Report directory does not exist: {report_dir}\n")
        return 2
    if args.chunk_size <= 0:
        logger.warning(f"Invalid chunk size (chunk_size={args.chunk_size})")
        stderr.write("chunk-size must be > 0\n")
        return 2

    analysis_date: datetime | None = None
    if args.analysis_date:
        try:
            analysis_date = parse_datetime(args.analysis_date)
        except ValueError as exc:
            logger.warning(
                f"Invalid analysis date (analysis_date={args.analysis_date} error={exc})"
            )
            stderr.write(f"Invalid analysis date: {args.analysis_date}\n")
            return 2

    digester = ReportDigester(
        storage_factory=SQLitePersistence(db_path=Path(args.db)),
        chunk_size=args.chunk_size,
    )
    context = ReportContext(
        report_directory=report_dir,
        project_key=args.project,
        analysis_date=analysis_date,
    )
    try:
        result = digester.digest(context)
    except ResourceReadError as exc:
        stderr.write(f"Failed to read report: {exc}\n")
        return 2
    except FormatError as exc:
        stderr.write(f"Malformed report: {exc}\n")
        return 2
    except StorageWriteError as exc:
        stderr.write(f"Failed to store issues: {exc}\n")
        return 2

    if args.format == "json":
        _write_json(result=result, stdout=stdout)
    else:
        _write_table(result=result, stdout=stdout)
    return 0


def _write_json(result: DigestResult, stdout: TextIO) -> None:
    """Write the digest summary in JSON format."""
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.print(
        json.dumps(asdict(result), indent=2, sort_keys=True),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _write_table(result: DigestResult, stdout: TextIO) -> None:
    """Write the digest summary as a table."""
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    table = Table(show_header=True, expand=False)
    table.add_column("project")
    table.add_column("components", justify="right")
    table.add_column("issues", justify="right")
    table.add_column("chunks", justify="right")
    table.add_row(
        result.project_key,
        str(result.component_count),
        str(result.issue_count),
        str(result.flush_count),
    )
    console.print(table)


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
