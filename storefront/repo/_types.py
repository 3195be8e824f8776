"""
Repository types — storage errors and update patches.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class RepoErrorKind(Enum):
    """Kinds of storage errors."""

    DUPLICATE_KEY = auto()  # Write rejected by a uniqueness constraint
    FAILURE = auto()  # Any other storage failure


@dataclass(frozen=True, slots=True)
class RepoError:
    """
    Storage operation error.

    Note: DUPLICATE_KEY is a signal, not a failure — the upserter turns it
    into a re-read and retry.
    """

    kind: RepoErrorKind
    message: str
    cause: Exception | None = None

    @property
    def is_duplicate_key(self) -> bool:
        return self.kind is RepoErrorKind.DUPLICATE_KEY

    @staticmethod
    def duplicate_key(message: str, cause: Exception | None = None) -> RepoError:
        return RepoError(RepoErrorKind.DUPLICATE_KEY, message, cause)

    @staticmethod
    def failure(message: str, cause: Exception | None = None) -> RepoError:
        return RepoError(RepoErrorKind.FAILURE, message, cause)


@dataclass(frozen=True, slots=True)
class Update:
    """
    Single-record patch.

    assign: field → new value.
    increment: field → numeric delta, applied atomically by the store.
    """

    assign: Mapping[str, Any] = field(default_factory=dict)
    increment: Mapping[str, int | float] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.assign and not self.increment


__all__ = (
    "RepoErrorKind",
    "RepoError",
    "Update",
)
