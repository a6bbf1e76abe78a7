"""Canonical date parsing and formatting.

User-facing dates are always ``YYYY-MM-DD`` (the native MySQL ``date``
representation). Partition names embed the date as ``YYYYMMDD`` because
hyphens are not allowed in unquoted identifiers.

Examples::

    >>> parse_canonical_date("2023-09-25")
    datetime.date(2023, 9, 25)
    >>> parse_canonical_date("2023-9-25")  # returns None
    >>> format_partition_date(date(2023, 9, 25))
    '20230925'
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator
from zoneinfo import ZoneInfo

MYSQL_DATE_FORMAT = "%Y-%m-%d"
PARTITION_NAME_DATE_FORMAT = "%Y%m%d"


def parse_canonical_date(raw: str) -> date | None:
    """Parse a ``YYYY-MM-DD`` string strictly.

    The value must parse and format back to the identical string, so lenient
    inputs such as ``2023-9-5`` or out-of-range values such as ``2023-13-40``
    are rejected.

    Args:
        raw: The raw date string.

    Returns:
        The parsed date, or None if the string is not canonical.
    """
    if not isinstance(raw, str):
        return None
    try:
        parsed = datetime.strptime(raw, MYSQL_DATE_FORMAT).date()
    except ValueError:
        return None
    if parsed.strftime(MYSQL_DATE_FORMAT) != raw:
        return None
    return parsed


def format_mysql_date(value: date) -> str:
    return value.strftime(MYSQL_DATE_FORMAT)


def format_partition_date(value: date) -> str:
    return value.strftime(PARTITION_NAME_DATE_FORMAT)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from *start* to *end*, both inclusive."""
    current = start
    while current <= end:
        yield current
        if current == end:
            return
        current += timedelta(days=1)


def today_in_zone(zone: str | None = None) -> date:
    """Return the current calendar day in *zone*.

    Args:
        zone: IANA zone name; defaults to ``settings.timezone``.
    """
    if zone is None:
        from datasource_tools.core.config import settings

        zone = settings.timezone
    return datetime.now(ZoneInfo(zone)).date()
