"""
SQLAlchemy table definitions.

Column names follow the wire format the clients already use (`userId`,
`profilePic`); attribute names are snake_case. AUTOINCREMENT keeps SQLite
from handing a deleted account's id to a new account.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class AccountRow(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), unique=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    password_hash: Mapped[str | None] = mapped_column("password", String(60), nullable=True)
    token_hash: Mapped[str | None] = mapped_column("token", String(60), nullable=True)


class MessageRow(Base):
    __tablename__ = "messages"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message: Mapped[str] = mapped_column(Text)
    owner_id: Mapped[int] = mapped_column("userId", ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime | None] = mapped_column("timestamp", DateTime(timezone=True), nullable=True)


class PostRow(Base):
    __tablename__ = "posts"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200))
    body: Mapped[str] = mapped_column(Text)
    owner_id: Mapped[int] = mapped_column("userId", ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime | None] = mapped_column("timestamp", DateTime(timezone=True), nullable=True)


class ProfileRow(Base):
    __tablename__ = "profiles"

    owner_id: Mapped[int] = mapped_column("userId", ForeignKey("users.id"), primary_key=True)
    bio: Mapped[str] = mapped_column(Text, default="")
    profile_pic: Mapped[str] = mapped_column("profilePic", Text, default="")
