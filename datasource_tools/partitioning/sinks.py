"""Statement sinks: where the orchestrator's planned changes go.

- DirectSink: queue statements and execute them, in order, on commit.
- DeferredSink: append statements to a caller-owned list and express schema
  restructuring as operations on a caller-owned table definition (an Alembic
  ``BatchOperations`` inside a migration). Nothing is executed.

Both sinks receive the same partitioning DDL text from
:mod:`datasource_tools.partitioning.statements`.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence

import sqlalchemy as sa

from datasource_tools.core.enums import StatementStatus
from datasource_tools.core.utils.logging_config import get_logger
from datasource_tools.partitioning.executor import (
    ExecutionReport,
    StatementExecutor,
    StatementOutcome,
    run_statements,
)
from datasource_tools.partitioning.statements import (
    partition_column_index_name,
    render_add_partition_column,
    unique_constraint_name,
)

logger = get_logger(__name__)


class TableOperations(Protocol):
    """The subset of Alembic's ``BatchOperations`` the deferred sink uses."""

    def add_column(self, column: sa.Column, **kw: Any) -> Any: ...

    def create_index(self, index_name: str, columns: Sequence[str], **kw: Any) -> Any: ...

    def create_unique_constraint(self, constraint_name: str, columns: Sequence[str], **kw: Any) -> Any: ...

    def drop_constraint(self, constraint_name: str, type_: str | None = None) -> Any: ...

    def create_primary_key(self, constraint_name: str, columns: Sequence[str]) -> Any: ...


class StatementSink(Protocol):
    """Receives the ordered changes of one workflow run."""

    deferred: bool

    def ensure_partition_column(self, table: str, column: str, id_column: str) -> None:
        """Add the date column, its index, a unique id and the composite key."""
        ...

    def add(self, statement: str) -> None:
        ...

    def commit(self) -> ExecutionReport:
        """Flush everything received so far and report per statement."""
        ...


# ---------------------------------------------------------------------------
# Direct mode
# ---------------------------------------------------------------------------
class DirectSink:
    """Execute against the live table through a StatementExecutor."""

    deferred = False

    def __init__(self, executor: StatementExecutor) -> None:
        self.executor = executor
        self._pending: list[str] = []

    @property
    def pending(self) -> list[str]:
        return list(self._pending)

    def ensure_partition_column(self, table: str, column: str, id_column: str) -> None:
        self._pending.append(render_add_partition_column(table, column, id_column))

    def add(self, statement: str) -> None:
        self._pending.append(statement)

    def commit(self) -> ExecutionReport:
        statements, self._pending = self._pending, []
        return run_statements(self.executor, statements)


# ---------------------------------------------------------------------------
# Deferred mode
# ---------------------------------------------------------------------------
class DeferredSink:
    """Hand everything to a caller-managed migration.

    Args:
        statements: Caller's ordered statement list; appended to in place.
        table_ops: Caller's mutable table definition, e.g. the object yielded
            by ``op.batch_alter_table(table)``.
    """

    deferred = True

    def __init__(self, statements: list[str], table_ops: TableOperations) -> None:
        self.statements = statements
        self.table_ops = table_ops
        self._received: list[str] = []

    def ensure_partition_column(self, table: str, column: str, id_column: str) -> None:
        logger.info("partition_column_deferred", table=table, column=column)
        self.table_ops.add_column(
            sa.Column(
                column,
                sa.Date(),
                nullable=False,
                server_default=sa.text("(CURRENT_DATE)"),
            )
        )
        self.table_ops.create_index(partition_column_index_name(table, column), [column])
        self.table_ops.create_unique_constraint(
            unique_constraint_name(table, id_column), [id_column]
        )
        self.table_ops.drop_constraint("PRIMARY", type_="primary")
        self.table_ops.create_primary_key("PRIMARY", [id_column, column])

    def add(self, statement: str) -> None:
        self.statements.append(statement)
        self._received.append(statement)

    def commit(self) -> ExecutionReport:
        received, self._received = self._received, []
        return ExecutionReport(
            [StatementOutcome(s, StatementStatus.DEFERRED) for s in received]
        )
