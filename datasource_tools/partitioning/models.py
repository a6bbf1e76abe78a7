"""Value types for date-based RANGE partition maintenance.

Partition naming contract
-------------------------
Dated partitions are named ``p`` + the covered day as a fixed-width,
zero-padded ``YYYYMMDD`` suffix, e.g. ``p20230925`` holds every row whose
partition-column value is ``< 2023-09-26``. Because the suffix is always
eight digits, comparing two dated names as strings gives the same order as
comparing their days; the rotation logic relies on that. The catch-all
``pMAXVALUE`` partition has no upper bound and always sorts last.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from datasource_tools.core.utils.dates import (
    PARTITION_NAME_DATE_FORMAT,
    format_mysql_date,
    format_partition_date,
)

MAXVALUE_PARTITION_NAME = "pMAXVALUE"

# Minimum viable window: 2 active partitions besides the MAXVALUE fallback.
MINIMUM_PARTITION_COUNT = 2

# MySQL caps a table at 8192 partitions; no longer window can be held.
MAXIMUM_PARTITION_COUNT = 8192

_DATED_PARTITION_RE = re.compile(r"^p[0-9]{8}$")


# ---------------------------------------------------------------------------
# Column metadata
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ColumnDefinition:
    """Structural facts about one column as reported by the schema inspector.

    Attributes:
        name: Column name.
        base_type: Lower-cased type text, e.g. ``"bigint unsigned"`` or ``"date"``.
        is_primary_key: Column is part of the primary key.
        is_unique: Column carries its own single-column unique constraint.
    """

    name: str
    base_type: str
    is_primary_key: bool = False
    is_unique: bool = False

    @property
    def is_integer_family(self) -> bool:
        return self.base_type.startswith(("int", "bigint"))

    @property
    def is_date(self) -> bool:
        return re.match(r"^date\b", self.base_type) is not None

    def describe(self) -> str:
        parts = [self.base_type]
        if self.is_unique:
            parts.append("unique")
        if self.is_primary_key:
            parts.append("primary key")
        return " ".join(parts)


# ---------------------------------------------------------------------------
# Dates and windows
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar range; ``start <= end``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True, slots=True)
class RotationWindow:
    """Rotation window sizes, in days.

    Attributes:
        future_count: Days ahead of today that get a pre-created partition.
        historic_count: Partitions older than this many days are dropped.
    """

    future_count: int = 2
    historic_count: int = 7

    def future_boundary(self, today: date) -> date:
        return today + timedelta(days=self.future_count)

    def past_boundary(self, today: date) -> date:
        return today - timedelta(days=self.historic_count)


# ---------------------------------------------------------------------------
# Partitions
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PartitionSpec:
    """One dated partition holding rows with value ``< boundary``.

    The partition is named after the day preceding its exclusive boundary,
    i.e. the last (and only) day it holds.
    """

    boundary: date

    @classmethod
    def for_day(cls, day: date) -> PartitionSpec:
        return cls(boundary=day + timedelta(days=1))

    @property
    def day(self) -> date:
        return self.boundary - timedelta(days=1)

    @property
    def name(self) -> str:
        return partition_name_for(self.day)

    @property
    def boundary_text(self) -> str:
        return format_mysql_date(self.boundary)


@dataclass(frozen=True, slots=True)
class PartitionSet:
    """Contiguous dated partitions followed by the terminal MAXVALUE partition."""

    partitions: tuple[PartitionSpec, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        boundaries = [p.boundary for p in self.partitions]
        if any(b >= nxt for b, nxt in zip(boundaries, boundaries[1:])):
            raise ValueError("partition boundaries must be strictly increasing")

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.partitions] + [MAXVALUE_PARTITION_NAME]

    def __len__(self) -> int:
        return len(self.partitions) + 1


@dataclass(frozen=True, slots=True)
class ReorganizeStep:
    """Split of ``pMAXVALUE`` into a new dated partition plus a fresh ``pMAXVALUE``."""

    partition: PartitionSpec
    statement: str


# ---------------------------------------------------------------------------
# Partition name helpers
# ---------------------------------------------------------------------------
def partition_name_for(day: date) -> str:
    """Return the canonical ``pYYYYMMDD`` name for a partition holding *day*."""
    return f"p{format_partition_date(day)}"


def parse_partition_day(name: str) -> date | None:
    """Return the day encoded in a dated partition name.

    Returns:
        The day, or None when *name* is ``pMAXVALUE``, does not have the
        ``p`` + 8-digit shape, or the digits are not a real calendar date.
    """
    if not _DATED_PARTITION_RE.match(name):
        return None
    try:
        return datetime.strptime(name[1:], PARTITION_NAME_DATE_FORMAT).date()
    except ValueError:
        return None


def is_malformed_partition_name(name: str) -> bool:
    """True for any name that is neither a valid dated name nor ``pMAXVALUE``."""
    return name != MAXVALUE_PARTITION_NAME and parse_partition_day(name) is None
