"""Command-line surface for partition maintenance.

Usage::

    python -m datasource_tools.cli partition-by-date orders 2023-09-25 2023-10-01
    python -m datasource_tools.cli partition-by-date orders 2023-09-25 2023-10-01 \\
        --partition-column created_date --dry-run
    python -m datasource_tools.cli update-partitions orders          # 2 ahead, 7 kept
    python -m datasource_tools.cli update-partitions orders 3 14

Exit codes: 0 success, 1 a statement failed, 2 invalid input.
"""

from __future__ import annotations

import argparse
import sys
from typing import Callable

from datasource_tools.core.config import settings
from datasource_tools.core.enums import ExitCode, StatementStatus
from datasource_tools.core.utils.logging_config import get_logger
from datasource_tools.partitioning import (
    DirectSink,
    MySQLSchemaInspector,
    PartitioningOrchestrator,
    SqlAlchemyStatementExecutor,
    WorkflowResult,
)

logger = get_logger(__name__)

_MARKS = {
    StatementStatus.EXECUTED: "✓",
    StatementStatus.SKIPPED: "-",
    StatementStatus.FAILED: "✗",
    StatementStatus.NOT_RUN: " ",
    StatementStatus.DEFERRED: ">",
}


def build_parser() -> tuple[argparse.ArgumentParser, dict[str, argparse.ArgumentParser]]:
    """Build the two-command parser.

    Returns:
        The top-level parser and each sub-command parser by name.
    """
    parser = argparse.ArgumentParser(
        prog="datasource-tools",
        description="Partition MySQL tables by day and keep them rotated.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  datasource-tools partition-by-date orders 2023-09-25 2023-10-01\n"
            "  datasource-tools update-partitions orders\n"
            "  datasource-tools update-partitions orders 3 14 --dry-run\n"
        ),
    )
    commands = parser.add_subparsers(dest="command", required=True)

    by_date = commands.add_parser(
        "partition-by-date",
        help="Partition a table by range on a date column, one partition per day",
        description=(
            "Partition a table by range on a date column, one partition per day "
            "from start_date to end_date plus a pMAXVALUE fallback. The column is "
            "added (with a composite (id, column) primary key) when missing."
        ),
    )
    by_date.add_argument("table", help="Table to partition")
    by_date.add_argument("start_date", help="First partition day, YYYY-MM-DD (typically in the past)")
    by_date.add_argument("end_date", help="Last partition day, YYYY-MM-DD (typically in the future)")
    by_date.add_argument(
        "--partition-column",
        "--partitionColumn",
        dest="partition_column",
        default=settings.default_partition_column,
        help=f"Date column to partition against (default: {settings.default_partition_column})",
    )
    by_date.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Print the statements without executing them",
    )

    update = commands.add_parser(
        "update-partitions",
        help="Pre-create a future partition and drop expired ones",
        description=(
            "Reorganize pMAXVALUE into a partition future_count days ahead and "
            "drop partitions historic_count days old or older."
        ),
    )
    update.add_argument("table", help="A table partitioned with partition-by-date")
    update.add_argument(
        "future_count",
        nargs="?",
        default=str(settings.future_partition_count),
        help=f"Integer >= 2, days ahead to pre-create (default: {settings.future_partition_count})",
    )
    update.add_argument(
        "historic_count",
        nargs="?",
        default=str(settings.historic_partition_count),
        help=f"Integer >= 2, partition life span in days (default: {settings.historic_partition_count})",
    )
    update.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Print the statements without executing them",
    )
    return parser, {"partition-by-date": by_date, "update-partitions": update}


def build_orchestrator(dry_run: bool = False) -> PartitioningOrchestrator:
    """Wire the orchestrator to the configured database in direct mode."""
    from datasource_tools.core.database import sync_engine

    return PartitioningOrchestrator(
        MySQLSchemaInspector(sync_engine),
        DirectSink(SqlAlchemyStatementExecutor(sync_engine, dry_run=dry_run)),
        id_column=settings.default_id_column,
        backfill_source_column=settings.backfill_source_column,
    )


def print_result(result: WorkflowResult, usage: str) -> int:
    """Print a workflow result and return its exit code."""
    if result.exit_code is ExitCode.INVALID:
        for message in result.errors:
            print(message, file=sys.stderr)
        print(file=sys.stderr)
        print(usage, file=sys.stderr)
        return int(result.exit_code)

    outcomes = result.report.outcomes if result.report is not None else []
    for outcome in outcomes:
        print(f"  {_MARKS[outcome.status]} {outcome.status.value}:")
        print(outcome.statement)
        if outcome.error:
            print(f"    FAILED -- {outcome.error}")
    for note in result.notes:
        print(f"  {note}")

    if result.table_structure:
        print("RESULTED TABLE STRUCTURE:")
        print(result.table_structure)
    return int(result.exit_code)


def main(
    argv: list[str] | None = None,
    orchestrator_factory: Callable[[bool], PartitioningOrchestrator] = build_orchestrator,
) -> int:
    """Entry point for both maintenance commands.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).
        orchestrator_factory: Builds the orchestrator from the dry-run flag.

    Returns:
        Exit code: 0 success, 1 failure, 2 invalid input.
    """
    parser, subparsers = build_parser()
    args = parser.parse_args(argv)

    try:
        orchestrator = orchestrator_factory(args.dry_run)
        if args.command == "partition-by-date":
            result = orchestrator.partition_by_date(
                args.table, args.start_date, args.end_date, args.partition_column
            )
        else:
            result = orchestrator.rotate(args.table, args.future_count, args.historic_count)
    except Exception as exc:
        logger.exception("command_failed", command=args.command)
        print(f"\n{args.command} failed: {exc}", file=sys.stderr)
        return int(ExitCode.FAILURE)

    return print_result(result, subparsers[args.command].format_help())


if __name__ == "__main__":
    sys.exit(main())
