"""
FastAPI dependencies for authenticated routes.

Usage:
    @router.delete("/message")
    async def delete_message(
        data: DeleteMessageRequest,
        account: Account = Depends(current_account),
        authenticator: Authenticator = Depends(get_authenticator),
    ):
        message = await store.get_message(data.message_id)
        authenticator.require_ownership(account, message)
        ...

The store and authenticator live on `app.state`, set up in the app
lifespan. Auth errors raised here are turned into responses by the
handlers registered in kitnet.api.app.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import Depends, Header, Request

from kitnet.auth.authenticator import Authenticator
from kitnet.storage.base import Account, Store


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def extract_token(authorization: str | None) -> str | None:
    """
    Take the token from an Authorization header.

    Clients send the raw token; a "Bearer " scheme prefix is accepted too.
    """
    if not authorization:
        return None
    scheme, _, rest = authorization.strip().partition(" ")
    if scheme.lower() == "bearer":
        return rest.strip() or None
    return authorization.strip() or None


async def claimed_account_id(request: Request) -> Any:
    """The `userId` a client claims, from the JSON body or else the query string."""
    body = await request.body()
    if body:
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = None
        if isinstance(payload, dict) and payload.get("userId") not in (None, ""):
            return payload["userId"]
    return request.query_params.get("userId")


async def current_account(
    authorization: str | None = Header(default=None),
    user_id: Any = Depends(claimed_account_id),
    authenticator: Authenticator = Depends(get_authenticator),
) -> Account:
    """Resolve the request's token and claimed id to an account, or raise."""
    return await authenticator.authenticate(extract_token(authorization), user_id)
