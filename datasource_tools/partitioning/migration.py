"""Alembic helpers: partition a table from inside a migration.

Usage::

    from datasource_tools.partitioning.migration import (
        partition_by_date_range,
        remove_date_partitioning,
    )

    def upgrade() -> None:
        partition_by_date_range(op, "orders", "2023-09-25", "2023-10-01")

    def downgrade() -> None:
        remove_date_partitioning(op, "orders")

The orchestrator runs in deferred mode: the partition column is added through
``op.batch_alter_table`` and the remaining statements are issued with
``op.execute`` once the batch has been applied, all inside the migration's
own transaction handling.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from datasource_tools.core.utils.dates import format_mysql_date
from datasource_tools.core.utils.logging_config import get_logger
from datasource_tools.partitioning.errors import ValidationError
from datasource_tools.partitioning.inspector import MySQLSchemaInspector, SchemaInspector
from datasource_tools.partitioning.orchestrator import (
    DEFAULT_PARTITION_COLUMN,
    PartitioningOrchestrator,
    WorkflowResult,
)
from datasource_tools.partitioning.planner import validate_identifier
from datasource_tools.partitioning.sinks import DeferredSink
from datasource_tools.partitioning.statements import (
    partition_column_index_name,
    render_remove_partitioning,
    unique_constraint_name,
)

logger = get_logger(__name__)


def _as_text(value: date | str) -> str:
    return format_mysql_date(value) if isinstance(value, date) else value


def partition_by_date_range(
    op: Any,
    table_name: str,
    start_date: date | str,
    end_date: date | str,
    partition_column: str = DEFAULT_PARTITION_COLUMN,
    id_column: str = "id",
    inspector: SchemaInspector | None = None,
) -> WorkflowResult:
    """Partition *table_name* by day over ``[start_date, end_date]``.

    Args:
        op: ``alembic.op`` (or an ``Operations`` instance).
        table_name: Table to partition.
        start_date: First partition day, typically in the past.
        end_date: Last partition day, typically in the future.
        partition_column: Date column to partition against; added if absent.
        id_column: Row id column joining the composite primary key.
        inspector: Schema inspector; defaults to one on ``op.get_bind()``.

    Returns:
        The deferred workflow result.

    Raises:
        ValidationError: If the table cannot be partitioned; no schema
            operation is applied.
    """
    inspector = inspector or MySQLSchemaInspector(op.get_bind())
    statements: list[str] = []

    with op.batch_alter_table(table_name) as batch_op:
        orchestrator = PartitioningOrchestrator(
            inspector, DeferredSink(statements, batch_op), id_column=id_column
        )
        result = orchestrator.partition_by_date(
            table_name, _as_text(start_date), _as_text(end_date), partition_column
        )
        if not result.ok:
            # Raising inside the batch discards its queued operations.
            raise ValidationError(result.errors)

    for statement in statements:
        logger.info("migration_statement_executing", table=table_name, statement=statement)
        op.execute(statement)
    return result


def remove_date_partitioning(
    op: Any,
    table_name: str,
    partition_column: str = DEFAULT_PARTITION_COLUMN,
    id_column: str = "id",
    drop_column: bool = True,
) -> None:
    """Reverse :func:`partition_by_date_range`.

    Merges all partitions back into one, then (unless *drop_column* is False)
    restores the primary key to the id alone and removes the partition
    column with its index and the id unique constraint.
    """
    validate_identifier(table_name, "table")
    validate_identifier(partition_column, "partition_column")
    validate_identifier(id_column, "id_column")

    op.execute(render_remove_partitioning(table_name))
    if not drop_column:
        return

    with op.batch_alter_table(table_name) as batch_op:
        batch_op.drop_constraint("PRIMARY", type_="primary")
        batch_op.create_primary_key("PRIMARY", [id_column])
        batch_op.drop_constraint(unique_constraint_name(table_name, id_column), type_="unique")
        batch_op.drop_index(partition_column_index_name(table_name, partition_column))
        batch_op.drop_column(partition_column)
