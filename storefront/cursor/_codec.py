"""
Cursor codec — opaque keyset position tokens.

Token = URL-safe base64 (no padding) of JSON {"createdAt": ISO-8601, "id": hex}.
No direction is embedded: the caller's sort key decides it.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from bson import ObjectId

from kungfu import Result, Ok, Error

from storefront._errors import CatalogError
from storefront._types import as_utc, parse_id

# Tokens produced by encode() are about 100 characters long.
MAX_TOKEN_LENGTH = 512


class Positioned(Protocol):
    """Anything that has a keyset position."""

    @property
    def id(self) -> ObjectId: ...
    @property
    def created_at(self) -> datetime: ...


@dataclass(frozen=True, slots=True)
class Cursor:
    """Decoded keyset position."""

    created_at: datetime
    id: ObjectId

    @classmethod
    def of(cls, record: Positioned) -> Cursor:
        return cls(as_utc(record.created_at), record.id)

    def encode(self) -> str:
        return encode(self.created_at, self.id)


def encode(created_at: datetime, id: ObjectId) -> str:
    """Encode (created_at, id) into an opaque URL-safe token."""
    payload = json.dumps(
        {"createdAt": as_utc(created_at).isoformat(), "id": str(id)},
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(payload.encode()).rstrip(b"=").decode("ascii")


def decode(token: str) -> Result[Cursor, CatalogError]:
    """
    Decode a token produced by encode().

    Fails with INVALID_CURSOR on oversized tokens, malformed base64/JSON, missing keys,
    an unparsable timestamp, or an invalid identifier. Never clamps.
    """
    payload = _unpack(token)
    if payload is None:
        return Error(CatalogError.invalid_cursor("Invalid cursor: malformed token"))

    raw_created, raw_id = payload.get("createdAt"), payload.get("id")
    if not isinstance(raw_created, str) or not isinstance(raw_id, str):
        return Error(CatalogError.invalid_cursor("Invalid cursor: missing fields"))

    try:
        created_at = datetime.fromisoformat(raw_created)
    except ValueError as e:
        return Error(CatalogError.invalid_cursor("Invalid cursor: bad timestamp", e))

    oid = parse_id(raw_id)
    if oid is None:
        return Error(CatalogError.invalid_cursor("Invalid cursor: bad identifier"))

    return Ok(Cursor(as_utc(created_at), oid))


def _unpack(token: str) -> dict[str, Any] | None:
    if not isinstance(token, str) or not token or len(token) > MAX_TOKEN_LENGTH:
        return None
    try:
        raw = token.encode("ascii")
        padded = raw + b"=" * (-len(raw) % 4)
        data = base64.b64decode(padded, altchars=b"-_", validate=True)
        payload = json.loads(data)
    except (UnicodeError, binascii.Error, ValueError, RecursionError):
        return None
    return payload if isinstance(payload, dict) else None


__all__ = (
    "MAX_TOKEN_LENGTH",
    "Cursor",
    "Positioned",
    "encode",
    "decode",
)
