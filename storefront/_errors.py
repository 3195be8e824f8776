"""
Error taxonomy shared by every storefront component.

All failures travel as values inside kungfu Result — never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class ErrorKind(Enum):
    """Kinds of catalog errors."""

    INVALID_REQUEST = auto()  # Malformed or contradictory parameters
    INVALID_CURSOR = auto()  # Cursor token failed to decode
    NOT_FOUND = auto()  # Referenced entity absent
    CAPACITY_EXCEEDED = auto()  # Quantity would exceed available stock
    CONFLICT = auto()  # Entity already exists or is still referenced
    INTERNAL = auto()  # Storage failure or violated storage invariant


@dataclass(frozen=True, slots=True)
class CatalogError:
    """
    Typed failure returned by core operations and services.

    Note: cause carries the underlying exception or storage error, if any.
    """

    kind: ErrorKind
    message: str
    cause: object | None = None

    @staticmethod
    def invalid_request(message: str) -> CatalogError:
        return CatalogError(ErrorKind.INVALID_REQUEST, message)

    @staticmethod
    def invalid_cursor(message: str = "Invalid cursor", cause: object | None = None) -> CatalogError:
        return CatalogError(ErrorKind.INVALID_CURSOR, message, cause)

    @staticmethod
    def not_found(message: str) -> CatalogError:
        return CatalogError(ErrorKind.NOT_FOUND, message)

    @staticmethod
    def capacity_exceeded(message: str = "Requested quantity exceeds available stock") -> CatalogError:
        return CatalogError(ErrorKind.CAPACITY_EXCEEDED, message)

    @staticmethod
    def conflict(message: str) -> CatalogError:
        return CatalogError(ErrorKind.CONFLICT, message)

    @staticmethod
    def internal(message: str, cause: object | None = None) -> CatalogError:
        return CatalogError(ErrorKind.INTERNAL, message, cause)


__all__ = (
    "ErrorKind",
    "CatalogError",
)
