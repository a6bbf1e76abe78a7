"""Partition planning: input validation and the partition set arithmetic.

Everything here is pure. Validators collect every violated rule before
raising a single :class:`ValidationError`, so a caller fixing a request sees
the whole diagnostic in one report.

Known limitation: rotation only ever reorganizes ``pMAXVALUE`` into one new
partition ``future_count`` days ahead of today. If a rotation cycle is
skipped, or the window grows, the missing days are not backfilled and
``pMAXVALUE`` (or the next dated partition) absorbs their rows until those
partitions age out.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Iterable

from datasource_tools.core.utils.dates import iter_days, parse_canonical_date
from datasource_tools.partitioning.errors import ValidationError
from datasource_tools.partitioning.models import (
    MAXVALUE_PARTITION_NAME,
    MAXIMUM_PARTITION_COUNT,
    MINIMUM_PARTITION_COUNT,
    ColumnDefinition,
    DateRange,
    PartitionSet,
    PartitionSpec,
    ReorganizeStep,
    RotationWindow,
    is_malformed_partition_name,
    parse_partition_day,
    partition_name_for,
)
from datasource_tools.partitioning.statements import render_reorganize

_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_$]+$")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
def identifier_violation(value: str, label: str) -> str | None:
    """Return a message if *value* cannot be used as an unquoted identifier."""
    if not value:
        return f"Argument {label} is required."
    if not _IDENTIFIER_RE.match(value):
        return (
            f"Invalid {label} `{value}`: only letters, digits, `_` and `$` "
            "are allowed."
        )
    return None


def validate_identifier(value: str, label: str) -> str:
    violation = identifier_violation(value, label)
    if violation:
        raise ValidationError([violation])
    return value


def validate_date_range(start: str, end: str) -> DateRange:
    """Parse and check a ``YYYY-MM-DD`` range.

    Args:
        start: Starting partition date, typically in the past.
        end: Concluding partition date, typically in the future.

    Returns:
        The parsed inclusive DateRange.

    Raises:
        ValidationError: If either date is not canonical, start > end, or
            the day after *end* (the last partition's bound) is not a date.
    """
    start_date = parse_canonical_date(start)
    end_date = parse_canonical_date(end)
    if start_date is None or end_date is None or start_date > end_date:
        raise ValidationError([
            f"Invalid input date(s): startDate [{start}], endDate [{end}]. "
            "Expected format [YYYY-MM-DD] where the startDate is not after "
            "the endDate."
        ])
    if end_date == date.max:
        raise ValidationError([
            f"Invalid endDate [{end}]: the last partition is bounded by the "
            f"following day, so the endDate must be before {date.max.isoformat()}."
        ])
    return DateRange(start_date, end_date)


def validate_column_contract(
    table: str,
    id_column: str,
    partition_column: str,
    id_definition: ColumnDefinition | None,
    partition_definition: ColumnDefinition | None,
) -> None:
    """Check the id / partition column requirements of a partitionable table.

    The id column must exist, be ``int``/``bigint`` and be part of the
    primary key. If the partition column already exists it must be ``date``,
    be part of the primary key, and the id must carry its own ``unique``
    constraint (MySQL requires every unique key to include the partitioning
    column, so the id alone can only stay unique through the composite key).

    Args:
        table: Table name, for messages.
        id_column: Name of the row id column.
        partition_column: Name of the date column to partition against.
        id_definition: Inspector view of the id column, None if absent.
        partition_definition: Inspector view of the partition column, None
            if absent.

    Raises:
        ValidationError: With one message per violated rule.
    """
    errors: list[str] = []

    if id_definition is None:
        errors.append(
            f"`{table}` is required to have an `{id_column}` column of type "
            "`int` or `bigint` that makes up the primary key; no such column "
            "was found."
        )
    else:
        if not id_definition.is_integer_family:
            errors.append(
                f"`{table}`.`{id_column}` is required to be of type `int` or "
                f"`bigint`. Current definition: {id_definition.describe()}"
            )
        if not id_definition.is_primary_key:
            errors.append(
                f"`{table}`.`{id_column}` must make up the primary key. "
                f"Current definition: {id_definition.describe()}"
            )

    if partition_definition is not None:
        if not partition_definition.is_date:
            errors.append(
                f"`{table}`.`{partition_column}` is required to be of type "
                f"`date`. Current definition: {partition_definition.describe()}"
            )
        if not partition_definition.is_primary_key:
            errors.append(
                f"`{table}`.`{partition_column}` must make up the primary key "
                f"along with `{id_column}`. Current definition: "
                f"{partition_definition.describe()}"
            )
        if id_definition is not None and not id_definition.is_unique:
            errors.append(
                f"`{table}`.`{id_column}` must carry a `unique` constraint when "
                f"`{partition_column}` is part of the primary key. Current "
                f"definition: {id_definition.describe()}"
            )

    if errors:
        raise ValidationError(errors)


def _as_count(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"\s*[+-]?\d+\s*", value):
        return int(value)
    return None


def validate_rotation_window(
    future_count: object, historic_count: object, today: date | None = None
) -> RotationWindow:
    """Both counts must be integers from ``MINIMUM_PARTITION_COUNT`` to
    ``MAXIMUM_PARTITION_COUNT``.

    Digit strings (as received from the command line) are accepted. When
    *today* is given, the window's boundaries around it must also be
    representable dates.

    Raises:
        ValidationError: With one message per violated rule.
    """
    future = _as_count(future_count)
    historic = _as_count(historic_count)
    if (
        future is None
        or historic is None
        or future < MINIMUM_PARTITION_COUNT
        or historic < MINIMUM_PARTITION_COUNT
    ):
        raise ValidationError([
            f"The `historic_count` ({historic_count}) and the `future_count` "
            f"({future_count}) must both be integers of at least "
            f"{MINIMUM_PARTITION_COUNT}."
        ])
    if future > MAXIMUM_PARTITION_COUNT or historic > MAXIMUM_PARTITION_COUNT:
        raise ValidationError([
            f"The `historic_count` ({historic_count}) and the `future_count` "
            f"({future_count}) must not exceed {MAXIMUM_PARTITION_COUNT}."
        ])

    window = RotationWindow(future_count=future, historic_count=historic)
    if today is not None:
        try:
            # The new partition is bounded by the day after the future boundary.
            window.future_boundary(today) + timedelta(days=1)
            window.past_boundary(today)
        except OverflowError:
            raise ValidationError([
                f"The rotation window (future {future}, historic {historic}) "
                f"around {today.isoformat()} falls outside the supported date range."
            ]) from None
    return window


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------
def build_partition_set(date_range: DateRange) -> PartitionSet:
    """One partition per day of *date_range*, then ``pMAXVALUE``.

    Rows older than ``date_range.start`` land in the first partition, which
    has no lower bound.
    """
    return PartitionSet(
        tuple(PartitionSpec.for_day(day) for day in iter_days(date_range.start, date_range.end))
    )


def build_reorganize_step(table: str, today: date, future_count: int) -> ReorganizeStep:
    """Plan the partition ``future_count`` days ahead of *today*.

    Example:
        today=2023-09-25, future_count=2 -> ``p20230927`` bounded at
        ``to_days('2023-09-28')``.
    """
    future_day = RotationWindow(future_count=future_count).future_boundary(today)
    partition = PartitionSpec.for_day(future_day)
    return ReorganizeStep(partition=partition, statement=render_reorganize(table, partition))


def deletion_cutoff_name(past_boundary: date) -> str:
    return partition_name_for(past_boundary)


def select_partitions_for_deletion(
    existing_names: Iterable[str], past_boundary: date
) -> list[str]:
    """Pick partitions at or beyond the historic boundary, plus malformed ones.

    A dated partition is selected when its name is ``<=`` the name of the
    partition for *past_boundary*; the fixed-width name format makes this
    string comparison chronological. Names that are neither dated nor
    ``pMAXVALUE`` are foreign to this scheme and are always selected.
    ``pMAXVALUE`` is never selected.

    Returns:
        Selected names in their original order; empty when nothing qualifies.
    """
    cutoff = deletion_cutoff_name(past_boundary)
    selected: list[str] = []
    for name in existing_names:
        if name == MAXVALUE_PARTITION_NAME:
            continue
        if is_malformed_partition_name(name) or name <= cutoff:
            selected.append(name)
    return selected


def newest_partition_day(existing_names: Iterable[str]) -> date | None:
    """Latest day covered by a dated partition, or None if there is none."""
    days = [d for d in (parse_partition_day(n) for n in existing_names) if d is not None]
    return max(days) if days else None
