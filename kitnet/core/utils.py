"""
Shared utility functions for the Kit Network backend.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

# Largest value a SQLite INTEGER column can hold
MAX_RECORD_ID = 2**63 - 1


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def parse_account_id(value: Any) -> int | None:
    """
    Coerce a client-supplied account id to an int.

    Accepts ints and ASCII decimal strings ("7", " 7 ") in the range
    1..MAX_RECORD_ID. Returns None for anything else, including bools,
    strings like "7abc" or "²", and ids the database cannot store.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()) or len(value) > len(str(MAX_RECORD_ID)):
            return None
        value = int(value)
    if isinstance(value, int) and 0 < value <= MAX_RECORD_ID:
        return value
    return None
