"""Partition maintenance workflows.

PartitioningOrchestrator drives the two top-level workflows over one table:

    initial partition:  UNVALIDATED -> VALIDATED -> COLUMN_ENSURED -> PARTITIONED
    rotate:             UNVALIDATED -> VALIDATED -> ROTATED

Either ends in FAILED. Validation collects every violation and touches
nothing; execution stops at the first failing statement and leaves earlier
statements applied. Where the changes go (executed now, or handed to a
migration) is decided by the injected StatementSink.

Runs assume a single writer per table: two concurrent rotations of the same
table may both try to reorganize ``pMAXVALUE``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from datasource_tools.core.enums import ExitCode, Workflow, WorkflowState
from datasource_tools.core.utils.dates import today_in_zone
from datasource_tools.core.utils.logging_config import get_logger
from datasource_tools.partitioning import planner
from datasource_tools.partitioning.errors import ValidationError
from datasource_tools.partitioning.executor import ExecutionReport
from datasource_tools.partitioning.inspector import SchemaInspector
from datasource_tools.partitioning.models import DateRange, RotationWindow, partition_name_for
from datasource_tools.partitioning.sinks import StatementSink
from datasource_tools.partitioning.statements import (
    render_backfill,
    render_drop_partitions,
    render_partition_by_range,
)

logger = get_logger(__name__)

DEFAULT_PARTITION_COLUMN = "created_at_indexed"


# ---------------------------------------------------------------------------
# WorkflowResult
# ---------------------------------------------------------------------------
@dataclass
class WorkflowResult:
    """Outcome of one workflow run.

    Attributes:
        workflow: Which workflow ran.
        table: Target table.
        state: Final state reached.
        exit_code: SUCCESS, INVALID (validation) or FAILURE (execution).
        errors: Validation messages, or the failing statement's error.
        report: Per-statement outcomes; None if validation failed.
        table_structure: ``SHOW CREATE TABLE`` after a direct run.
        notes: Steps deliberately skipped, for the operator.
    """

    workflow: Workflow
    table: str
    state: WorkflowState = WorkflowState.UNVALIDATED
    exit_code: ExitCode = ExitCode.SUCCESS
    errors: list[str] = field(default_factory=list)
    report: ExecutionReport | None = None
    table_structure: str | None = None
    notes: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is not WorkflowState.FAILED

    @property
    def statements(self) -> list[str]:
        return self.report.statements if self.report is not None else []


# ---------------------------------------------------------------------------
# PartitioningOrchestrator
# ---------------------------------------------------------------------------
class PartitioningOrchestrator:
    """Validate, plan and emit partition maintenance for a table.

    Args:
        inspector: Read-only schema inspector.
        sink: Destination for the planned changes (direct or deferred).
        id_column: Row id column that joins the composite primary key.
        backfill_source_column: When this column exists, a newly added
            partition column is filled with ``date(<column>)``.
    """

    def __init__(
        self,
        inspector: SchemaInspector,
        sink: StatementSink,
        id_column: str = "id",
        backfill_source_column: str = "created_at",
    ) -> None:
        self.inspector = inspector
        self.sink = sink
        self.id_column = id_column
        self.backfill_source_column = backfill_source_column

    # ------------------------------------------------------------------
    # Initial partition
    # ------------------------------------------------------------------
    def partition_by_date(
        self,
        table: str,
        start: str,
        end: str,
        partition_column: str = DEFAULT_PARTITION_COLUMN,
    ) -> WorkflowResult:
        """Partition an unpartitioned table by day over ``[start, end]``.

        Adds the partition column (and composite key) first when absent,
        backfilling it from ``created_at`` if that column exists, then issues
        one ``PARTITION BY RANGE`` statement.
        """
        result = WorkflowResult(Workflow.INITIAL_PARTITION, table)
        log = logger.bind(workflow=result.workflow.value, table=table)

        try:
            date_range, column_exists = self._validate_initial(table, start, end, partition_column)
        except ValidationError as exc:
            return self._fail_validation(result, exc)
        result.state = WorkflowState.VALIDATED

        if not column_exists:
            log.info("partition_column_missing", column=partition_column)
            self.sink.ensure_partition_column(table, partition_column, self.id_column)
            if self.inspector.column_exists(table, self.backfill_source_column):
                self.sink.add(render_backfill(table, partition_column, self.backfill_source_column))
        result.state = WorkflowState.COLUMN_ENSURED

        partition_set = planner.build_partition_set(date_range)
        log.info(
            "partition_set_planned",
            partitions=len(partition_set),
            first=partition_set.names[0],
            last_dated=partition_set.names[-2] if len(partition_set) > 1 else None,
        )
        self.sink.add(render_partition_by_range(table, partition_column, partition_set))

        return self._commit(result, WorkflowState.PARTITIONED)

    def _validate_initial(
        self, table: str, start: str, end: str, partition_column: str
    ) -> tuple[DateRange, bool]:
        errors: list[str] = []
        date_range: DateRange | None = None

        try:
            date_range = planner.validate_date_range(start, end)
        except ValidationError as exc:
            errors.extend(exc.messages)

        identifier_errors = [
            msg
            for msg in (
                planner.identifier_violation(table, "table"),
                planner.identifier_violation(partition_column, "partition_column"),
                planner.identifier_violation(self.id_column, "id_column"),
            )
            if msg
        ]
        if identifier_errors:
            # Unsafe names are never sent to the database, not even to inspect.
            raise ValidationError(errors + identifier_errors)

        if not self.inspector.table_exists(table):
            errors.append(f"Invalid table name entry. `{table}` was not found.")
            raise ValidationError(errors)

        if self.inspector.is_already_partitioned(table):
            errors.append(f"Table `{table}` has already been partitioned.")

        partition_definition = self.inspector.column_definition(table, partition_column)
        try:
            planner.validate_column_contract(
                table,
                self.id_column,
                partition_column,
                self.inspector.column_definition(table, self.id_column),
                partition_definition,
            )
        except ValidationError as exc:
            errors.extend(exc.messages)

        if errors or date_range is None:
            raise ValidationError(errors)
        return date_range, partition_definition is not None

    # ------------------------------------------------------------------
    # Rotate
    # ------------------------------------------------------------------
    def rotate(
        self,
        table: str,
        future_count: int | str = 2,
        historic_count: int | str = 7,
        today: date | None = None,
    ) -> WorkflowResult:
        """Extend the future boundary by one partition and drop expired ones.

        The reorganize statement always precedes the drop, so ``pMAXVALUE``
        coverage is never interrupted.

        Args:
            table: A table previously partitioned by :meth:`partition_by_date`.
            future_count: Days ahead to keep a pre-created partition for.
            historic_count: Partitions this many days old, or older, are dropped.
            today: Reference day; defaults to the current day in
                ``settings.timezone``.
        """
        result = WorkflowResult(Workflow.ROTATE, table)
        log = logger.bind(workflow=result.workflow.value, table=table)

        today = today or today_in_zone()
        try:
            window = self._validate_rotation(table, future_count, historic_count, today)
        except ValidationError as exc:
            return self._fail_validation(result, exc)
        result.state = WorkflowState.VALIDATED

        existing = self.inspector.list_partition_names(table)

        step = planner.build_reorganize_step(table, today, window.future_count)
        newest = planner.newest_partition_day(existing)
        if newest is not None and newest >= step.partition.day:
            note = (
                f"Skipped reorganize: {step.partition.name} is already covered "
                f"(newest partition {partition_name_for(newest)})."
            )
            log.info("rotation_reorganize_skipped", partition=step.partition.name, newest=str(newest))
            result.notes.append(note)
        else:
            if newest is not None and newest < step.partition.day - timedelta(days=1):
                # Missed days are not backfilled; pMAXVALUE held their rows.
                log.warning(
                    "rotation_gap_detected",
                    newest=str(newest),
                    planned=step.partition.name,
                )
            self.sink.add(step.statement)

        doomed = planner.select_partitions_for_deletion(existing, window.past_boundary(today))
        if doomed:
            log.info("rotation_partitions_expired", partitions=doomed)
            self.sink.add(render_drop_partitions(table, doomed))
        else:
            log.info(
                "rotation_nothing_to_drop",
                cutoff=planner.deletion_cutoff_name(window.past_boundary(today)),
            )

        return self._commit(result, WorkflowState.ROTATED)

    def _validate_rotation(
        self, table: str, future_count: int | str, historic_count: int | str, today: date
    ) -> RotationWindow:
        errors: list[str] = []
        window: RotationWindow | None = None

        try:
            window = planner.validate_rotation_window(future_count, historic_count, today)
        except ValidationError as exc:
            errors.extend(exc.messages)

        table_violation = planner.identifier_violation(table, "table")
        if table_violation:
            raise ValidationError(errors + [table_violation])

        if not self.inspector.table_exists(table):
            errors.append(f"Invalid table name entry. `{table}` was not found.")
        elif not (
            self.inspector.is_already_partitioned(table)
            and self.inspector.has_max_value_partition(table)
        ):
            errors.append(
                f"`{table}` is not compatibly partitioned. "
                "Did you use `partition-by-date`?"
            )

        if errors or window is None:
            raise ValidationError(errors)
        return window

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------
    def _fail_validation(self, result: WorkflowResult, exc: ValidationError) -> WorkflowResult:
        result.state = WorkflowState.FAILED
        result.exit_code = ExitCode.INVALID
        result.errors = list(exc.messages)
        logger.warning(
            "workflow_validation_failed",
            workflow=result.workflow.value,
            table=result.table,
            errors=result.errors,
        )
        return result

    def _commit(self, result: WorkflowResult, success_state: WorkflowState) -> WorkflowResult:
        report = self.sink.commit()
        result.report = report

        failed = report.failed
        if failed is not None:
            result.state = WorkflowState.FAILED
            result.exit_code = ExitCode.FAILURE
            result.errors.append(failed.error or "statement failed")
            logger.error(
                "workflow_execution_failed",
                workflow=result.workflow.value,
                table=result.table,
                statement=failed.statement,
                error=failed.error,
            )
            return result

        result.state = success_state
        if not self.sink.deferred:
            result.table_structure = self.inspector.create_table_statement(result.table)
        logger.info(
            "workflow_completed",
            workflow=result.workflow.value,
            table=result.table,
            state=result.state.value,
            statements=len(report.outcomes),
        )
        return result
