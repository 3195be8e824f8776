"""
cursor — opaque keyset pagination tokens.

    from storefront import cursor

    token = cursor.encode(record.created_at, record.id)

    match cursor.decode(token):
        case Ok(position):
            ...  # position.created_at, position.id
        case Error(e):
            ...  # e.kind is ErrorKind.INVALID_CURSOR
"""

from storefront.cursor._codec import (
    MAX_TOKEN_LENGTH,
    Cursor,
    Positioned,
    encode,
    decode,
)

__all__ = (
    "MAX_TOKEN_LENGTH",
    "Cursor",
    "Positioned",
    "encode",
    "decode",
)
