"""DDL/DML text rendering for MySQL RANGE partitioning (pure functions, no I/O).

Every statement that touches a table is produced here, so the direct and the
deferred (migration) execution modes issue byte-identical partitioning DDL.
Identifiers are interpolated unquoted; callers must pass names that already
passed :func:`datasource_tools.partitioning.planner.validate_identifier`.
"""

from __future__ import annotations

from typing import Sequence

from datasource_tools.partitioning.models import (
    MAXVALUE_PARTITION_NAME,
    PartitionSet,
    PartitionSpec,
)


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------
def partition_column_index_name(table: str, column: str) -> str:
    return f"{table}_{column}_index"


def unique_constraint_name(table: str, column: str) -> str:
    return f"{table}_{column}_unique"


# ---------------------------------------------------------------------------
# Partition clauses
# ---------------------------------------------------------------------------
def partition_clause(partition: PartitionSpec) -> str:
    """``PARTITION pYYYYMMDD VALUES LESS THAN (to_days('YYYY-MM-DD'))``."""
    return (
        f"PARTITION {partition.name} VALUES LESS THAN "
        f"(to_days('{partition.boundary_text}'))"
    )


def maxvalue_clause() -> str:
    return f"PARTITION {MAXVALUE_PARTITION_NAME} VALUES LESS THAN MAXVALUE"


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------
def render_partition_by_range(
    table: str, column: str, partition_set: PartitionSet
) -> str:
    """Single ``ALTER TABLE ... PARTITION BY RANGE`` creating every partition.

    Example::

        ALTER TABLE orders PARTITION BY RANGE (to_days(created_at_indexed)) (
            PARTITION p20230925 VALUES LESS THAN (to_days('2023-09-26')),
            PARTITION pMAXVALUE VALUES LESS THAN MAXVALUE
        );
    """
    clauses = [partition_clause(p) for p in partition_set.partitions]
    clauses.append(maxvalue_clause())
    body = ",\n".join(f"    {c}" for c in clauses)
    return (
        f"ALTER TABLE {table} PARTITION BY RANGE (to_days({column})) (\n"
        f"{body}\n"
        f");"
    )


def render_reorganize(table: str, partition: PartitionSpec) -> str:
    """Split ``pMAXVALUE`` into *partition* and a new ``pMAXVALUE``.

    RANGE partitioning cannot ``ADD PARTITION`` below an existing MAXVALUE
    bound, so the catch-all partition is reorganized instead.
    """
    return (
        f"ALTER TABLE {table} REORGANIZE PARTITION {MAXVALUE_PARTITION_NAME} INTO "
        f"({partition_clause(partition)}, {maxvalue_clause()});"
    )


def render_drop_partitions(table: str, names: Sequence[str]) -> str:
    """``ALTER TABLE ... DROP PARTITION a,b,...``.

    Raises:
        ValueError: If *names* is empty (MySQL rejects an empty list) or
            contains ``pMAXVALUE``.
    """
    if not names:
        raise ValueError("cannot render DROP PARTITION without partitions")
    if MAXVALUE_PARTITION_NAME in names:
        raise ValueError(f"{MAXVALUE_PARTITION_NAME} must never be dropped")
    return f"ALTER TABLE {table} DROP PARTITION {','.join(names)};"


def render_add_partition_column(table: str, column: str, id_column: str) -> str:
    """Add the date column and rebuild the keys as one atomic ALTER.

    The id gains its own unique index before the primary key is widened to
    ``(id, column)``, which keeps AUTO_INCREMENT ids indexed throughout.
    """
    return (
        f"ALTER TABLE {table} "
        f"ADD COLUMN {column} DATE NOT NULL DEFAULT (CURRENT_DATE), "
        f"ADD INDEX {partition_column_index_name(table, column)} ({column}), "
        f"ADD UNIQUE INDEX {unique_constraint_name(table, id_column)} ({id_column}), "
        f"DROP PRIMARY KEY, "
        f"ADD PRIMARY KEY ({id_column}, {column});"
    )


def render_backfill(table: str, column: str, source_column: str) -> str:
    return f"UPDATE {table} SET {column} = date({source_column});"


def render_remove_partitioning(table: str) -> str:
    return f"ALTER TABLE {table} REMOVE PARTITIONING;"


def render_show_create_table(table: str) -> str:
    return f"SHOW CREATE TABLE {table}"
