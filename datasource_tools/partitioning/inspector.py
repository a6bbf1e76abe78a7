"""Read-only schema inspection consumed by the partitioning workflows.

``SchemaInspector`` is the contract; ``MySQLSchemaInspector`` answers it from
SQLAlchemy reflection plus ``INFORMATION_SCHEMA.TABLES`` and
``INFORMATION_SCHEMA.PARTITIONS``. Test suites substitute an in-memory fake.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Protocol

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import NoSuchTableError

from datasource_tools.partitioning.models import MAXVALUE_PARTITION_NAME, ColumnDefinition
from datasource_tools.partitioning.statements import render_show_create_table

_CREATE_OPTIONS_SQL = text(
    "SELECT CREATE_OPTIONS AS create_options"
    " FROM INFORMATION_SCHEMA.TABLES"
    " WHERE TABLE_SCHEMA = COALESCE(:schema, DATABASE())"
    " AND TABLE_NAME = :table"
)

_PARTITIONS_SQL = text(
    "SELECT PARTITION_NAME AS name, PARTITION_DESCRIPTION AS description"
    " FROM INFORMATION_SCHEMA.PARTITIONS"
    " WHERE TABLE_SCHEMA = COALESCE(:schema, DATABASE())"
    " AND TABLE_NAME = :table"
    " AND PARTITION_NAME IS NOT NULL"
    " ORDER BY PARTITION_ORDINAL_POSITION"
)


@dataclass(frozen=True, slots=True)
class ExistingPartition:
    """A partition as reported by the engine catalog.

    Attributes:
        name: Partition name, e.g. ``"p20230925"``.
        description: Upper bound as stored by MySQL: the ``to_days()``
            integer as text, or ``"MAXVALUE"``.
    """

    name: str
    description: str | None = None


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------
class SchemaInspector(Protocol):
    """Structural questions the partitioning workflows ask about a table."""

    def table_exists(self, table: str) -> bool:
        ...

    def column_exists(self, table: str, column: str) -> bool:
        ...

    def column_definition(self, table: str, column: str) -> ColumnDefinition | None:
        """Return the column's definition, or None if table/column is missing."""
        ...

    def is_already_partitioned(self, table: str) -> bool:
        ...

    def list_partitions(self, table: str) -> list[ExistingPartition]:
        """Partitions in ordinal order (empty for unpartitioned tables)."""
        ...

    def list_partition_names(self, table: str) -> list[str]:
        ...

    def has_max_value_partition(self, table: str) -> bool:
        ...

    def create_table_statement(self, table: str) -> str:
        """``SHOW CREATE TABLE`` output, for reporting."""
        ...


# ---------------------------------------------------------------------------
# MySQL implementation
# ---------------------------------------------------------------------------
class MySQLSchemaInspector:
    """SchemaInspector backed by a live MySQL connection.

    Args:
        bind: An Engine (a connection is opened per query) or an already
            open Connection (e.g. ``op.get_bind()`` inside a migration).
        schema: Database to inspect; defaults to the connection's current
            database.
    """

    def __init__(self, bind: Engine | Connection, schema: str | None = None) -> None:
        self._bind = bind
        self._schema = schema

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if isinstance(self._bind, Connection):
            yield self._bind
        else:
            with self._bind.connect() as conn:
                yield conn

    def table_exists(self, table: str) -> bool:
        # A fresh Inspector per call: reflection results are cached per instance.
        return inspect(self._bind).has_table(table, schema=self._schema)

    def column_exists(self, table: str, column: str) -> bool:
        return self.column_definition(table, column) is not None

    def column_definition(self, table: str, column: str) -> ColumnDefinition | None:
        insp = inspect(self._bind)
        try:
            columns = insp.get_columns(table, schema=self._schema)
        except NoSuchTableError:
            return None

        match = next((c for c in columns if c["name"] == column), None)
        if match is None:
            return None

        pk_columns = insp.get_pk_constraint(table, schema=self._schema).get(
            "constrained_columns"
        ) or []
        unique_sets = [uc["column_names"] for uc in insp.get_unique_constraints(table, schema=self._schema)]
        unique_sets += [
            ix["column_names"]
            for ix in insp.get_indexes(table, schema=self._schema)
            if ix.get("unique")
        ]

        return ColumnDefinition(
            name=column,
            base_type=match["type"].compile(dialect=self._bind.dialect).lower(),
            is_primary_key=column in pk_columns,
            is_unique=[column] in unique_sets,
        )

    def is_already_partitioned(self, table: str) -> bool:
        # Exact match; `_` would be a wildcard under LIKE.
        with self._connect() as conn:
            row = conn.execute(
                _CREATE_OPTIONS_SQL, {"schema": self._schema, "table": table}
            ).mappings().first()
        if row is None:
            return False
        return "partitioned" in str(row["create_options"] or "")

    def list_partitions(self, table: str) -> list[ExistingPartition]:
        with self._connect() as conn:
            rows = conn.execute(
                _PARTITIONS_SQL, {"schema": self._schema, "table": table}
            ).mappings().all()
        return [ExistingPartition(name=r["name"], description=r["description"]) for r in rows]

    def list_partition_names(self, table: str) -> list[str]:
        return [p.name for p in self.list_partitions(table)]

    def has_max_value_partition(self, table: str) -> bool:
        return MAXVALUE_PARTITION_NAME in self.list_partition_names(table)

    def create_table_statement(self, table: str) -> str:
        with self._connect() as conn:
            row = conn.execute(text(render_show_create_table(table))).first()
        return str(row[1]) if row is not None else ""
