"""Exception hierarchy for partition maintenance.

- PartitioningError: base for all partitioning errors
- ValidationError: one or more preconditions failed; nothing was executed
- ExecutionError: a statement failed against the database; earlier
  statements of the same run stay applied (DDL is not transactional)
"""

from __future__ import annotations

from typing import Iterable


class PartitioningError(Exception):
    """Base exception for all partitioning errors."""


class ValidationError(PartitioningError):
    """Raised with every violated rule collected, one message per rule."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages: list[str] = list(messages)
        super().__init__("\n".join(self.messages))


class ExecutionError(PartitioningError):
    """Raised when a statement fails against the database."""

    def __init__(self, statement: str, reason: str) -> None:
        super().__init__(f"Statement failed: {reason}\n{statement}")
        self.statement = statement
        self.reason = reason
