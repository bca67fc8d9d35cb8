"""
Storage abstractions.

- Store → relational database (SQLite locally, any async SQLAlchemy URL)
"""

from kitnet.storage.base import (
    Account,
    AccountPublic,
    DuplicateEntry,
    Message,
    Post,
    Profile,
    Store,
    StoreUnavailable,
)
from kitnet.storage.sql import SQLStore

__all__ = [
    "Account",
    "AccountPublic",
    "DuplicateEntry",
    "Message",
    "Post",
    "Profile",
    "Store",
    "StoreUnavailable",
    "SQLStore",
]
