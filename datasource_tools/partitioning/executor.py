"""Statement execution against the database.

Statements run one at a time, in order, each in its own transaction (MySQL
commits DDL implicitly anyway). The first failure aborts the rest of the
sequence; already-applied statements are not rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from datasource_tools.core.enums import StatementStatus
from datasource_tools.core.utils.logging_config import get_logger
from datasource_tools.partitioning.errors import ExecutionError

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------
@dataclass
class StatementOutcome:
    statement: str
    status: StatementStatus
    error: str | None = None


@dataclass
class ExecutionReport:
    """Ordered per-statement outcomes of one workflow run."""

    outcomes: list[StatementOutcome] = field(default_factory=list)

    @property
    def statements(self) -> list[str]:
        return [o.statement for o in self.outcomes]

    @property
    def failed(self) -> StatementOutcome | None:
        return next((o for o in self.outcomes if o.status is StatementStatus.FAILED), None)

    @property
    def succeeded(self) -> bool:
        return self.failed is None

    def count(self, status: StatementStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)


# ---------------------------------------------------------------------------
# Executors
# ---------------------------------------------------------------------------
class StatementExecutor(Protocol):
    """Runs a single statement.

    Returns the resulting status; raises ExecutionError on failure.
    """

    def execute(self, statement: str) -> StatementStatus:
        ...


class SqlAlchemyStatementExecutor:
    """Execute raw SQL through a SQLAlchemy engine.

    Args:
        engine: Engine to open a transaction on per statement.
        dry_run: If True, log statements without sending them.
    """

    def __init__(self, engine: Engine, dry_run: bool = False) -> None:
        self.engine = engine
        self.dry_run = dry_run

    def execute(self, statement: str) -> StatementStatus:
        if self.dry_run:
            logger.info("statement_dry_run", statement=statement)
            return StatementStatus.SKIPPED

        logger.info("statement_executing", statement=statement)
        try:
            with self.engine.begin() as conn:
                # exec_driver_sql: DDL text must not be parsed for bind params
                conn.exec_driver_sql(statement)
        except SQLAlchemyError as exc:
            logger.error("statement_failed", statement=statement, error=str(exc))
            raise ExecutionError(statement, str(exc)) from exc
        return StatementStatus.EXECUTED


def run_statements(executor: StatementExecutor, statements: Iterable[str]) -> ExecutionReport:
    """Run *statements* strictly in order, stopping at the first failure.

    Statements after the failing one are reported as ``NOT_RUN``.
    """
    report = ExecutionReport()
    aborted = False
    for statement in statements:
        if aborted:
            report.outcomes.append(StatementOutcome(statement, StatementStatus.NOT_RUN))
            continue
        try:
            status = executor.execute(statement)
        except ExecutionError as exc:
            report.outcomes.append(
                StatementOutcome(statement, StatementStatus.FAILED, error=exc.reason)
            )
            aborted = True
            continue
        report.outcomes.append(StatementOutcome(statement, status))
    return report
