# =============================================================================
# Resource API Routes
# =============================================================================
#
# Public reads:
#   GET    /api/users           GET /api/user/{id}
#   GET    /api/messages        GET /api/posts
#   GET    /api/profile/{id}
#
# Authenticated writes (Authorization header + userId in body or query):
#   PUT    /api/user            DELETE /api/user?id=
#   POST   /api/message         PUT /api/message        DELETE /api/message
#   POST   /api/post            PUT /api/post           DELETE /api/post
#   POST   /api/profile/{id}
#
# Every write to an existing record goes: authenticate -> fetch record ->
# require_ownership -> write. The fetch and the write are separate store
# calls with no transaction around them; a record deleted in between makes
# the write a no-op and the endpoint answers 400.
#
# =============================================================================

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from kitnet.auth import (
    Authenticator,
    current_account,
    get_authenticator,
    get_store,
)
from kitnet.core.utils import MAX_RECORD_ID, parse_account_id
from kitnet.storage.base import Account, DuplicateEntry, Store

router = APIRouter(prefix="/api", tags=["resources"])


# =============================================================================
# Request Models
# =============================================================================

# Ids outside this range cannot exist in the store
RecordId = Annotated[int, Field(gt=0, le=MAX_RECORD_ID)]
RecordIdPath = Annotated[int, Path(gt=0, le=MAX_RECORD_ID)]


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UpdateUserRequest(RequestModel):
    id: RecordId | None = None
    username: str | None = None
    password: str | None = None
    email: EmailStr | None = None


class NewMessageRequest(RequestModel):
    message: str | None = None


class UpdateMessageRequest(RequestModel):
    id: RecordId | None = None
    message: str | None = None


class DeleteMessageRequest(RequestModel):
    message_id: RecordId | None = Field(default=None, alias="messageId")


class NewPostRequest(RequestModel):
    title: str | None = None
    body: str | None = None


class UpdatePostRequest(RequestModel):
    id: RecordId | None = None
    title: str | None = None
    body: str | None = None


class DeletePostRequest(RequestModel):
    post_id: RecordId | None = Field(default=None, alias="postId")


class UpdateProfileRequest(RequestModel):
    bio: str | None = None
    profile_pic: str | None = Field(default=None, alias="profilePic")


def _failure(status_code: int, message: str | None = None) -> JSONResponse:
    content: dict = {"success": False}
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def _write_result(ok: bool) -> JSONResponse:
    return JSONResponse(status_code=201 if ok else 400, content={"success": ok})


# =============================================================================
# Users
# =============================================================================

@router.get("/users")
async def list_users(store: Store = Depends(get_store)):
    accounts = await store.list_accounts()
    return {"users": [a.public().model_dump() for a in accounts]}


@router.get("/user/{account_id}")
async def get_user(account_id: RecordIdPath, store: Store = Depends(get_store)):
    account = await store.get_account(account_id)
    if account is None:
        return _failure(404, "User not found.")
    return {"success": True, "user": account.public().model_dump()}


@router.put("/user")
async def update_user(
    data: UpdateUserRequest,
    account: Account = Depends(current_account),
    store: Store = Depends(get_store),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Replace username, password and email of the caller's own account."""
    if not data.id or not data.username or not data.password or not data.email:
        return _failure(400)

    target = await store.get_account(data.id)
    if target is None:
        return _failure(404, "User not found.")
    authenticator.require_ownership(account, target)

    try:
        password_hash = await authenticator.credentials.hash_secret(data.password)
    except ValueError:
        return _failure(400, "Password is too long.")

    try:
        ok = await store.update_account(target.id, data.username, password_hash, data.email)
    except DuplicateEntry:
        return _failure(400, "Username or email already exists.")
    return _write_result(ok)


@router.delete("/user")
async def delete_user(
    id: str | None = None,
    account: Account = Depends(current_account),
    store: Store = Depends(get_store),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Delete the caller's own account along with everything it owns."""
    target_id = parse_account_id(id)
    if target_id is None:
        return _failure(400)

    target = await store.get_account(target_id)
    if target is None:
        return _failure(404, "User not found.")
    authenticator.require_ownership(account, target)

    return _write_result(await store.delete_account(target.id))


# =============================================================================
# Messages
# =============================================================================

@router.get("/messages")
async def list_messages(store: Store = Depends(get_store)):
    return {"chat": await store.list_messages()}


@router.post("/message")
async def add_message(
    data: NewMessageRequest,
    account: Account = Depends(current_account),
    store: Store = Depends(get_store),
):
    if not data.message:
        return _failure(400)

    message = await store.add_message(account.id, data.message)
    return JSONResponse(status_code=201, content={"success": True, "id": message.id})


@router.put("/message")
async def update_message(
    data: UpdateMessageRequest,
    account: Account = Depends(current_account),
    store: Store = Depends(get_store),
    authenticator: Authenticator = Depends(get_authenticator),
):
    if not data.id or not data.message:
        return _failure(400)

    message = await store.get_message(data.id)
    if message is None:
        return _failure(404, "Message not found.")
    authenticator.require_ownership(account, message)

    return _write_result(await store.update_message(message.id, account.id, data.message))


@router.delete("/message")
async def delete_message(
    data: DeleteMessageRequest,
    account: Account = Depends(current_account),
    store: Store = Depends(get_store),
    authenticator: Authenticator = Depends(get_authenticator),
):
    if not data.message_id:
        return _failure(400)

    message = await store.get_message(data.message_id)
    if message is None:
        return _failure(404, "Message not found.")
    authenticator.require_ownership(account, message)

    return _write_result(await store.delete_message(message.id))


# =============================================================================
# Posts
# =============================================================================

@router.get("/posts")
async def list_posts(store: Store = Depends(get_store)):
    return {"posts": await store.list_posts()}


@router.post("/post")
async def add_post(
    data: NewPostRequest,
    account: Account = Depends(current_account),
    store: Store = Depends(get_store),
):
    if not data.title or not data.body:
        return _failure(400)

    post = await store.add_post(account.id, data.title, data.body)
    return JSONResponse(status_code=201, content={"success": True, "id": post.id})


@router.put("/post")
async def update_post(
    data: UpdatePostRequest,
    account: Account = Depends(current_account),
    store: Store = Depends(get_store),
    authenticator: Authenticator = Depends(get_authenticator),
):
    if not data.id or not data.title or not data.body:
        return _failure(400)

    post = await store.get_post(data.id)
    if post is None:
        return _failure(404, "Post not found.")
    authenticator.require_ownership(account, post)

    return _write_result(await store.update_post(post.id, account.id, data.title, data.body))


@router.delete("/post")
async def delete_post(
    data: DeletePostRequest,
    account: Account = Depends(current_account),
    store: Store = Depends(get_store),
    authenticator: Authenticator = Depends(get_authenticator),
):
    if not data.post_id:
        return _failure(400)

    post = await store.get_post(data.post_id)
    if post is None:
        return _failure(404, "Post not found.")
    authenticator.require_ownership(account, post)

    return _write_result(await store.delete_post(post.id))


# =============================================================================
# Profiles
# =============================================================================

@router.get("/profile/{account_id}")
async def get_profile(account_id: RecordIdPath, store: Store = Depends(get_store)):
    profile = await store.get_profile(account_id)
    if profile is None:
        return _failure(404, "User not found.")
    return {
        "success": True,
        "user": {"userId": profile.owner_id, "bio": profile.bio, "profilePic": profile.profile_pic},
    }


@router.post("/profile/{account_id}")
async def update_profile(
    account_id: RecordIdPath,
    data: UpdateProfileRequest,
    account: Account = Depends(current_account),
    store: Store = Depends(get_store),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Update bio and/or picture. Omitted fields keep their current value."""
    profile = await store.get_profile(account_id)
    if profile is None:
        return _failure(404, "User not found.")
    authenticator.require_ownership(account, profile)

    ok = await store.update_profile(
        profile.owner_id,
        data.bio if data.bio is not None else profile.bio,
        data.profile_pic if data.profile_pic is not None else profile.profile_pic,
    )
    if not ok:
        return _failure(400, "Failed to update profile.")
    return {"success": True}
