"""Shared enumerations used across the partitioning workflows and the CLI.

Workflow enums use the (str, Enum) mixin pattern so their values are
serializable strings that log cleanly. Exit codes are plain integers.
"""

from enum import Enum, IntEnum


class ExitCode(IntEnum):
    """Process exit codes reported by the maintenance commands."""

    SUCCESS = 0
    FAILURE = 1
    INVALID = 2


class Workflow(str, Enum):
    """Top-level partition maintenance workflows."""

    INITIAL_PARTITION = "INITIAL_PARTITION"
    ROTATE = "ROTATE"


class WorkflowState(str, Enum):
    """States a workflow run moves through.

    Initial partition: UNVALIDATED -> VALIDATED -> COLUMN_ENSURED -> PARTITIONED
    Rotate:            UNVALIDATED -> VALIDATED -> ROTATED
    Either workflow may end in FAILED.
    """

    UNVALIDATED = "UNVALIDATED"
    VALIDATED = "VALIDATED"
    COLUMN_ENSURED = "COLUMN_ENSURED"
    PARTITIONED = "PARTITIONED"
    ROTATED = "ROTATED"
    FAILED = "FAILED"


class StatementStatus(str, Enum):
    """Per-statement outcome in an execution report."""

    EXECUTED = "EXECUTED"
    FAILED = "FAILED"
    NOT_RUN = "NOT_RUN"  # aborted after an earlier failure
    SKIPPED = "SKIPPED"  # dry run
    DEFERRED = "DEFERRED"  # handed to the caller's migration
