"""Root pytest configuration and shared fixtures.

The partitioning fixtures are built from the in-memory fakes in
``partitioning_fakes`` so the workflows run without MySQL.
"""

from __future__ import annotations

from datetime import date

import pytest

from datasource_tools.partitioning.models import MAXVALUE_PARTITION_NAME, ColumnDefinition
from partitioning_fakes import (
    CREATED_AT,
    ID_PRIMARY,
    FakeSchemaInspector,
    FakeTable,
    RecordingExecutor,
    daily_partition_names,
)


@pytest.fixture
def today() -> date:
    return date(2023, 9, 25)


@pytest.fixture
def orders_inspector() -> FakeSchemaInspector:
    """Unpartitioned ``orders`` with a bigint primary key and a created_at column."""
    return FakeSchemaInspector(
        {"orders": FakeTable(columns={"id": ID_PRIMARY, "created_at": CREATED_AT})}
    )


@pytest.fixture
def partitioned_inspector() -> FakeSchemaInspector:
    """``orders`` partitioned p20230918..p20230926 plus pMAXVALUE."""
    return FakeSchemaInspector(
        {
            "orders": FakeTable(
                columns={
                    "id": ColumnDefinition(
                        "id", "bigint unsigned", is_primary_key=True, is_unique=True
                    ),
                    "created_at_indexed": ColumnDefinition(
                        "created_at_indexed", "date", is_primary_key=True
                    ),
                },
                partitions=daily_partition_names(date(2023, 9, 18), date(2023, 9, 26))
                + [MAXVALUE_PARTITION_NAME],
                partitioned=True,
            )
        }
    )


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()
