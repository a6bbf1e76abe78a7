#!/usr/bin/env python3
"""Rotate a day-partitioned table: pre-create ahead, drop expired.

Meant to run once a day per table (cron, systemd timer, ...).

Usage::

    python scripts/update_partitions.py orders            # 2 days ahead, 7 kept
    python scripts/update_partitions.py orders 3 14
    python scripts/update_partitions.py orders --dry-run
"""

import sys
from pathlib import Path

# Ensure project root is on sys.path so ``datasource_tools.*`` imports work
# when this script is invoked directly.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from datasource_tools.cli import main

if __name__ == "__main__":
    sys.exit(main(["update-partitions", *sys.argv[1:]]))
