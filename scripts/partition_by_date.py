#!/usr/bin/env python3
"""Partition a table by day across a date range.

Usage::

    python scripts/partition_by_date.py orders 2023-09-25 2023-10-01
    python scripts/partition_by_date.py orders 2023-09-25 2023-10-01 --partition-column created_date
    python scripts/partition_by_date.py orders 2023-09-25 2023-10-01 --dry-run
"""

import sys
from pathlib import Path

# Ensure project root is on sys.path so ``datasource_tools.*`` imports work
# when this script is invoked directly.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from datasource_tools.cli import main

if __name__ == "__main__":
    sys.exit(main(["partition-by-date", *sys.argv[1:]]))
