"""
logonaudit Command Line

Query successful logons (event 4624) on one or more hosts and print one
record per event.

Usage:
    logonaudit FILESRV01 WS01 --start 2024-01-15T00:00:00Z --exclude-computer-accounts
    logonaudit --user jdoe --format csv --output jdoe.csv
    logonaudit --simulated events.json --format json -v
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import IO, List, Optional, Sequence

import structlog
from returns.pipeline import is_successful

from logonaudit import __version__
from logonaudit.config import LogonQueryConfig
from logonaudit.core.exceptions import LogonAuditError
from logonaudit.core.types import LogonRecord
from logonaudit.export import export_csv, records_to_csv, records_to_json

logger = structlog.get_logger()


def configure_logging(verbose: bool = False, stream: Optional[IO[str]] = None) -> None:
    """Route structlog output to stderr; DEBUG when verbose, else WARNING."""
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=lambda *args: structlog.PrintLogger(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logonaudit",
        description="Query successful logon events (4624) from the Security event log",
    )
    parser.add_argument(
        "hosts", nargs="*", metavar="HOST",
        help="Hosts to query in order (default: this machine)",
    )
    parser.add_argument("--start", help="Only events at or after this ISO 8601 time")
    parser.add_argument("--end", help="Only events at or before this ISO 8601 time (default: now)")
    parser.add_argument("-u", "--user", help="Keep only this target username")
    parser.add_argument(
        "-x", "--exclude-computer-accounts", action="store_true",
        help="Drop machine ($) and built-in service accounts (ignored with --user)",
    )
    parser.add_argument(
        "--case-sensitive", action="store_true",
        help="Compare usernames case-sensitively",
    )
    parser.add_argument(
        "-f", "--format", choices=["table", "json", "csv"], default="table",
        help="Output format",
    )
    parser.add_argument("-o", "--output", help="Write records to this file instead of stdout")
    parser.add_argument(
        "--simulated", metavar="FILE",
        help="Replay raw events from a JSON file instead of the Windows log",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Trace each query stage")
    parser.add_argument("--version", action="version", version=f"logonaudit {__version__}")
    return parser


def render(records: Sequence[LogonRecord], fmt: str) -> str:
    if fmt == "json":
        return records_to_json(records) + "\n"
    if fmt == "csv":
        return records_to_csv(records)
    return "".join(f"{record}\n" for record in records)


def write_output(records: Sequence[LogonRecord], fmt: str, output: Optional[str]) -> None:
    if output is None:
        sys.stdout.write(render(records, fmt))
    elif fmt == "csv":
        export_csv(records, output)
    else:
        with open(output, "w") as f:
            f.write(render(records, fmt))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line.

    Returns:
        0 if every host was queried, 1 if any host failed, 2 on bad input
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    logger.debug("cli_started", hosts=args.hosts, format=args.format)

    try:
        config = LogonQueryConfig.from_args(args)
        query = config.create_query()
    except LogonAuditError as e:
        print(f"logonaudit: {e.message}", file=sys.stderr)
        return 2

    records: List[LogonRecord] = []
    failed = 0
    for host in config.hosts:
        result = query.try_run(host)
        if is_successful(result):
            records.extend(result.unwrap())
        else:
            failed += 1
            print(f"logonaudit: {host}: {result.failure().message}", file=sys.stderr)

    write_output(records, args.format, args.output)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
