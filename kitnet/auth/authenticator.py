"""
Authenticator - decides whether a request may act as an account.

States a request moves through:

    Unauthenticated --authenticate()--> Authenticated --require_ownership()--> Authorized

`authenticate` proves identity from a bearer token plus the account id the
client claims to be. `authorize_ownership` then checks the right to touch
a specific resource. Endpoints that mutate an owned resource must do both,
in that order, before writing.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import BaseModel

from kitnet.auth.credentials import CredentialStore
from kitnet.auth.errors import (
    AuthenticationFailed,
    Forbidden,
    MissingAccountId,
    MissingToken,
)
from kitnet.auth.hashing import generate_token
from kitnet.core.utils import parse_account_id
from kitnet.storage.base import Account

logger = logging.getLogger(__name__)


class Owned(Protocol):
    """Anything that belongs to exactly one account."""

    @property
    def owner_id(self) -> int: ...


class LoginResult(BaseModel):
    """Handed to the client once at login. The token is not stored in plaintext."""
    account_id: int
    username: str
    token: str


class Authenticator:
    """Token authentication, login issuance and ownership checks."""

    def __init__(self, credentials: CredentialStore):
        self.credentials = credentials

    async def authenticate(self, presented_token: str | None, claimed_account_id: Any) -> Account:
        """
        Resolve a bearer token and check it belongs to the claimed account.

        Raises:
            MissingToken: no token, or an empty one
            MissingAccountId: no claimed id
            AuthenticationFailed: unknown token, or a token of another account
        """
        if not presented_token:
            raise MissingToken()
        if claimed_account_id is None or claimed_account_id == "":
            raise MissingAccountId()

        claimed = parse_account_id(claimed_account_id)
        account = await self.credentials.find_account_by_token_plaintext(presented_token)

        if account is None or claimed is None or account.id != claimed:
            logger.info("Token rejected for claimed account %r", claimed_account_id)
            raise AuthenticationFailed()

        return account

    def authorize_ownership(self, account: Account, resource: Owned) -> bool:
        return resource.owner_id == account.id

    def require_ownership(self, account: Account, resource: Owned) -> None:
        """Raise Forbidden unless the account owns the resource."""
        if not self.authorize_ownership(account, resource):
            logger.info(
                "Account %s denied access to %s owned by %s",
                account.id, type(resource).__name__, resource.owner_id,
            )
            raise Forbidden()

    async def login(self, username: str, password: str) -> LoginResult:
        """
        Verify a password and issue a fresh bearer token.

        The new token's hash replaces the old one, so any token handed out
        earlier stops authenticating. Two concurrent logins both succeed;
        whichever write lands last holds the only valid token.
        """
        account = await self.credentials.verify_login(username, password)
        if account is None:
            logger.info("Failed login for %r", username)
            raise AuthenticationFailed("Invalid username or password.")

        token = generate_token()
        token_hash = await self.credentials.hash_secret(token)
        if not await self.credentials.set_account_token(account.id, token_hash):
            # Account deleted between password check and token write
            raise AuthenticationFailed("Invalid username or password.")

        logger.info("Issued token for account %s", account.id)
        return LoginResult(account_id=account.id, username=account.username, token=token)
