"""partition orders by day on created_at_indexed

Adds the created_at_indexed date column (backfilled from created_at), makes
(id, created_at_indexed) the primary key and creates one partition per day
plus pMAXVALUE. Keep it rotated with ``datasource-tools update-partitions
orders``.

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2023-09-25

"""
from typing import Sequence, Union

from alembic import op
from datasource_tools.partitioning.migration import (
    partition_by_date_range,
    remove_date_partitioning,
)

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLE = "orders"
PARTITION_COLUMN = "created_at_indexed"


def upgrade() -> None:
    partition_by_date_range(op, TABLE, "2023-09-18", "2023-09-27", PARTITION_COLUMN)


def downgrade() -> None:
    remove_date_partitioning(op, TABLE, PARTITION_COLUMN)
