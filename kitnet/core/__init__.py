"""Core helpers shared across the backend."""

from kitnet.core.utils import MAX_RECORD_ID, parse_account_id, utc_now

__all__ = [
    "MAX_RECORD_ID",
    "parse_account_id",
    "utc_now",
]
