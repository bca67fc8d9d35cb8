"""
SQL implementation of the Store, on SQLAlchemy's asyncio extension.

Default target is a local SQLite file via aiosqlite; any async SQLAlchemy
URL works. All backend errors are converted to StoreUnavailable (or
DuplicateEntry for unique-constraint violations) at the session boundary.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy import delete, select, update
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from kitnet.core.utils import utc_now
from kitnet.storage.base import (
    Account,
    DuplicateEntry,
    Message,
    Post,
    Profile,
    Store,
    StoreUnavailable,
)
from kitnet.storage.tables import AccountRow, Base, MessageRow, PostRow, ProfileRow

logger = logging.getLogger(__name__)


class SQLStore(Store):
    """Store backed by a relational database."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def open(self) -> None:
        if self._engine is not None:
            return

        url = make_url(self.url)
        kwargs: dict = {"echo": self.echo}
        if url.get_backend_name() == "sqlite":
            if url.database in (None, "", ":memory:"):
                # One shared connection, otherwise each checkout sees an empty db
                kwargs["poolclass"] = StaticPool
                kwargs["connect_args"] = {"check_same_thread": False}
            else:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._engine = create_async_engine(self.url, **kwargs)
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            logger.error("Could not open store at %s", url.render_as_string(hide_password=True))
            raise StoreUnavailable(f"Could not open store: {e}") from e

        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.info("Store opened (%s)", url.get_backend_name())

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("Store closed")

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        if self._sessions is None:
            raise StoreUnavailable("Store is not open")
        try:
            async with self._sessions() as session:
                yield session
        except IntegrityError as e:
            raise DuplicateEntry(str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.exception("Store operation failed")
            raise StoreUnavailable(str(e)) from e

    # =========================================================================
    # Accounts
    # =========================================================================

    async def add_account(self, username: str, password_hash: str, email: str) -> Account:
        async with self._session() as session:
            row = AccountRow(username=username, email=email, password_hash=password_hash)
            session.add(row)
            await session.commit()
            return Account.model_validate(row)

    async def get_account(self, account_id: int) -> Account | None:
        return await self._get_account_where(AccountRow.id == account_id)

    async def get_account_by_username(self, username: str) -> Account | None:
        return await self._get_account_where(AccountRow.username == username)

    async def get_account_by_email(self, email: str) -> Account | None:
        return await self._get_account_where(AccountRow.email == email)

    async def _get_account_where(self, clause) -> Account | None:
        async with self._session() as session:
            row = (await session.execute(select(AccountRow).where(clause))).scalar_one_or_none()
            return Account.model_validate(row) if row else None

    async def list_accounts(self) -> list[Account]:
        async with self._session() as session:
            rows = (await session.execute(select(AccountRow).order_by(AccountRow.id))).scalars()
            return [Account.model_validate(r) for r in rows]

    async def list_token_holders(self) -> list[Account]:
        async with self._session() as session:
            stmt = (
                select(AccountRow)
                .where(AccountRow.token_hash.is_not(None))
                .order_by(AccountRow.id)
            )
            rows = (await session.execute(stmt)).scalars()
            return [Account.model_validate(r) for r in rows]

    async def update_account(
        self, account_id: int, username: str, password_hash: str, email: str
    ) -> bool:
        return await self._execute_write(
            update(AccountRow)
            .where(AccountRow.id == account_id)
            .values({
                AccountRow.username: username,
                AccountRow.password_hash: password_hash,
                AccountRow.email: email,
            })
        )

    async def set_account_token(self, account_id: int, token_hash: str | None) -> bool:
        return await self._execute_write(
            update(AccountRow).where(AccountRow.id == account_id).values({AccountRow.token_hash: token_hash})
        )

    async def delete_account(self, account_id: int) -> bool:
        async with self._session() as session:
            async with session.begin():
                for table in (MessageRow, PostRow, ProfileRow):
                    await session.execute(delete(table).where(table.owner_id == account_id))
                result = await session.execute(delete(AccountRow).where(AccountRow.id == account_id))
            return result.rowcount > 0

    # =========================================================================
    # Messages
    # =========================================================================

    async def list_messages(self) -> list[dict]:
        async with self._session() as session:
            stmt = (
                select(MessageRow, AccountRow.username)
                .join(AccountRow, MessageRow.owner_id == AccountRow.id)
                .order_by(MessageRow.id)
            )
            return [
                {
                    "id": row.id,
                    "message": row.message,
                    "username": username,
                    "userId": row.owner_id,
                    "timestamp": row.created_at.isoformat() if row.created_at else None,
                }
                for row, username in (await session.execute(stmt)).all()
            ]

    async def add_message(self, owner_id: int, message: str) -> Message:
        async with self._session() as session:
            row = MessageRow(owner_id=owner_id, message=message, created_at=utc_now())
            session.add(row)
            await session.commit()
            return Message.model_validate(row)

    async def get_message(self, message_id: int) -> Message | None:
        async with self._session() as session:
            row = await session.get(MessageRow, message_id)
            return Message.model_validate(row) if row else None

    async def update_message(self, message_id: int, owner_id: int, message: str) -> bool:
        return await self._execute_write(
            update(MessageRow)
            .where(MessageRow.id == message_id, MessageRow.owner_id == owner_id)
            .values(message=message)
        )

    async def delete_message(self, message_id: int) -> bool:
        return await self._execute_write(delete(MessageRow).where(MessageRow.id == message_id))

    # =========================================================================
    # Posts
    # =========================================================================

    async def list_posts(self) -> list[dict]:
        async with self._session() as session:
            stmt = (
                select(PostRow, AccountRow.username)
                .join(AccountRow, PostRow.owner_id == AccountRow.id)
                .order_by(PostRow.id)
            )
            return [
                {
                    "id": row.id,
                    "title": row.title,
                    "body": row.body,
                    "username": username,
                    "userId": row.owner_id,
                    "timestamp": row.created_at.isoformat() if row.created_at else None,
                }
                for row, username in (await session.execute(stmt)).all()
            ]

    async def add_post(self, owner_id: int, title: str, body: str) -> Post:
        async with self._session() as session:
            row = PostRow(owner_id=owner_id, title=title, body=body, created_at=utc_now())
            session.add(row)
            await session.commit()
            return Post.model_validate(row)

    async def get_post(self, post_id: int) -> Post | None:
        async with self._session() as session:
            row = await session.get(PostRow, post_id)
            return Post.model_validate(row) if row else None

    async def update_post(self, post_id: int, owner_id: int, title: str, body: str) -> bool:
        return await self._execute_write(
            update(PostRow)
            .where(PostRow.id == post_id, PostRow.owner_id == owner_id)
            .values(title=title, body=body)
        )

    async def delete_post(self, post_id: int) -> bool:
        return await self._execute_write(delete(PostRow).where(PostRow.id == post_id))

    # =========================================================================
    # Profiles
    # =========================================================================

    async def add_profile(self, owner_id: int, bio: str = "", profile_pic: str = "") -> Profile:
        async with self._session() as session:
            row = ProfileRow(owner_id=owner_id, bio=bio, profile_pic=profile_pic)
            session.add(row)
            await session.commit()
            return Profile.model_validate(row)

    async def get_profile(self, owner_id: int) -> Profile | None:
        async with self._session() as session:
            row = await session.get(ProfileRow, owner_id)
            return Profile.model_validate(row) if row else None

    async def update_profile(self, owner_id: int, bio: str, profile_pic: str) -> bool:
        return await self._execute_write(
            update(ProfileRow)
            .where(ProfileRow.owner_id == owner_id)
            .values({ProfileRow.bio: bio, ProfileRow.profile_pic: profile_pic})
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _execute_write(self, stmt) -> bool:
        """Run an UPDATE/DELETE, return whether any row changed."""
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0
