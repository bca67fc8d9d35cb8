"""
Storage abstraction layer.

All persistence goes through the Store interface. Route handlers and the
auth layer receive a constructed Store and never touch the database
directly, so the SQL implementation can be swapped (SQLite → PostgreSQL)
without changing application code.

Records are returned as pydantic models. Owned records expose `owner_id`
so a single ownership check works for all of them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict


# =============================================================================
# Errors
# =============================================================================


class StoreUnavailable(Exception):
    """The persistence layer failed. Never means "not found"."""
    pass


class DuplicateEntry(Exception):
    """A unique constraint (username, email) was violated."""
    pass


# =============================================================================
# Records
# =============================================================================


class Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class Account(Record):
    """Account row, including credential hashes. Never send to clients."""
    id: int
    username: str
    email: str
    password_hash: str | None = None
    token_hash: str | None = None

    @property
    def owner_id(self) -> int:
        # An account owns itself for update/delete checks
        return self.id

    def public(self) -> AccountPublic:
        return AccountPublic(id=self.id, username=self.username, email=self.email)


class AccountPublic(Record):
    """Account data returned to clients (no credential fields)."""
    id: int
    username: str
    email: str


class Message(Record):
    id: int
    owner_id: int
    message: str
    created_at: datetime | None = None


class Post(Record):
    id: int
    owner_id: int
    title: str
    body: str
    created_at: datetime | None = None


class Profile(Record):
    owner_id: int
    bio: str = ""
    profile_pic: str = ""


# =============================================================================
# Store Interface
# =============================================================================


class Store(ABC):
    """
    Relational store for accounts and the resources they own.

    Lifecycle is explicit: call `open()` at startup and `close()` at
    shutdown. Every method re-reads persisted state; there is no cache.
    Implementations raise StoreUnavailable on any backend failure instead
    of returning None/False, so callers can tell an outage from a miss.
    """

    @abstractmethod
    async def open(self) -> None:
        """Connect and create the schema if needed."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""
        pass

    # -- accounts -------------------------------------------------------------

    @abstractmethod
    async def add_account(self, username: str, password_hash: str, email: str) -> Account:
        """Insert an account. Raises DuplicateEntry on username/email clash."""
        pass

    @abstractmethod
    async def get_account(self, account_id: int) -> Account | None:
        pass

    @abstractmethod
    async def get_account_by_username(self, username: str) -> Account | None:
        pass

    @abstractmethod
    async def get_account_by_email(self, email: str) -> Account | None:
        pass

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        pass

    @abstractmethod
    async def list_token_holders(self) -> list[Account]:
        """All accounts with a live token hash, in id order."""
        pass

    @abstractmethod
    async def update_account(
        self, account_id: int, username: str, password_hash: str, email: str
    ) -> bool:
        pass

    @abstractmethod
    async def set_account_token(self, account_id: int, token_hash: str | None) -> bool:
        """Overwrite the account's token hash. Returns False if no such account."""
        pass

    @abstractmethod
    async def delete_account(self, account_id: int) -> bool:
        """Delete the account and everything it owns."""
        pass

    # -- messages -------------------------------------------------------------

    @abstractmethod
    async def list_messages(self) -> list[dict]:
        """Messages joined with their author's username."""
        pass

    @abstractmethod
    async def add_message(self, owner_id: int, message: str) -> Message:
        pass

    @abstractmethod
    async def get_message(self, message_id: int) -> Message | None:
        pass

    @abstractmethod
    async def update_message(self, message_id: int, owner_id: int, message: str) -> bool:
        """Update only if the row still exists and is still owned by owner_id."""
        pass

    @abstractmethod
    async def delete_message(self, message_id: int) -> bool:
        pass

    # -- posts ----------------------------------------------------------------

    @abstractmethod
    async def list_posts(self) -> list[dict]:
        pass

    @abstractmethod
    async def add_post(self, owner_id: int, title: str, body: str) -> Post:
        pass

    @abstractmethod
    async def get_post(self, post_id: int) -> Post | None:
        pass

    @abstractmethod
    async def update_post(self, post_id: int, owner_id: int, title: str, body: str) -> bool:
        pass

    @abstractmethod
    async def delete_post(self, post_id: int) -> bool:
        pass

    # -- profiles -------------------------------------------------------------

    @abstractmethod
    async def add_profile(self, owner_id: int, bio: str = "", profile_pic: str = "") -> Profile:
        pass

    @abstractmethod
    async def get_profile(self, owner_id: int) -> Profile | None:
        pass

    @abstractmethod
    async def update_profile(self, owner_id: int, bio: str, profile_pic: str) -> bool:
        pass
