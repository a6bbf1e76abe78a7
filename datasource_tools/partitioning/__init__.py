"""MySQL RANGE partition lifecycle for append-heavy tables.

Provides the PartitioningOrchestrator that partitions a table by day and
keeps it in a rolling window (pre-create future partitions, drop expired
ones), plus the planner, inspector, executor and sink pieces it is built on.

Usage::

    from datasource_tools.partitioning import (
        DirectSink,
        MySQLSchemaInspector,
        PartitioningOrchestrator,
        SqlAlchemyStatementExecutor,
    )

    orchestrator = PartitioningOrchestrator(
        MySQLSchemaInspector(engine),
        DirectSink(SqlAlchemyStatementExecutor(engine)),
    )
    result = orchestrator.rotate("orders", future_count=2, historic_count=7)
"""

from datasource_tools.partitioning.errors import (
    ExecutionError,
    PartitioningError,
    ValidationError,
)
from datasource_tools.partitioning.executor import (
    ExecutionReport,
    SqlAlchemyStatementExecutor,
    StatementExecutor,
    StatementOutcome,
)
from datasource_tools.partitioning.inspector import (
    ExistingPartition,
    MySQLSchemaInspector,
    SchemaInspector,
)
from datasource_tools.partitioning.models import (
    MAXVALUE_PARTITION_NAME,
    ColumnDefinition,
    DateRange,
    PartitionSet,
    PartitionSpec,
    ReorganizeStep,
    RotationWindow,
)
from datasource_tools.partitioning.orchestrator import (
    DEFAULT_PARTITION_COLUMN,
    PartitioningOrchestrator,
    WorkflowResult,
)
from datasource_tools.partitioning.sinks import DeferredSink, DirectSink, StatementSink

__all__ = [
    "ColumnDefinition",
    "DEFAULT_PARTITION_COLUMN",
    "DateRange",
    "DeferredSink",
    "DirectSink",
    "ExecutionError",
    "ExecutionReport",
    "ExistingPartition",
    "MAXVALUE_PARTITION_NAME",
    "MySQLSchemaInspector",
    "PartitionSet",
    "PartitionSpec",
    "PartitioningError",
    "PartitioningOrchestrator",
    "ReorganizeStep",
    "RotationWindow",
    "SchemaInspector",
    "SqlAlchemyStatementExecutor",
    "StatementExecutor",
    "StatementOutcome",
    "StatementSink",
    "ValidationError",
    "WorkflowResult",
]
