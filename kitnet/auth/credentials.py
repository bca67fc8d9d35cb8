"""
Credential store - hashed passwords and hashed bearer tokens per account.

Wraps a Store with the hashing rules. bcrypt work runs in a worker thread
so a token scan yields to the event loop between comparisons.
"""

from __future__ import annotations

import asyncio
import logging

from kitnet.auth.errors import DuplicateAccount
from kitnet.auth.hashing import hash_secret, verify_secret
from kitnet.storage.base import Account, DuplicateEntry, Store

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Owns the credential columns of the accounts table.

    Nothing here is cached: every lookup re-reads the store, so a token
    overwritten by another request is seen immediately.
    """

    def __init__(self, store: Store):
        self.store = store

    # =========================================================================
    # Hashing
    # =========================================================================

    async def hash_secret(self, plaintext: str) -> str:
        return await asyncio.to_thread(hash_secret, plaintext)

    async def verify_secret(self, plaintext: str, secret_hash: str | None) -> bool:
        return await asyncio.to_thread(verify_secret, plaintext, secret_hash)

    # =========================================================================
    # Tokens
    # =========================================================================

    async def set_account_token(self, account_id: int, token_hash: str) -> bool:
        """Replace the account's token hash; the previous token stops working."""
        return await self.store.set_account_token(account_id, token_hash)

    async def find_account_by_token_plaintext(self, token: str) -> Account | None:
        """
        Resolve a plaintext token to the account holding it.

        Salted hashes cannot be indexed, so this checks every account that
        has a token, in id order, and stops at the first match. Cost is
        linear in the number of logged-in accounts.
        """
        if not token:
            return None

        for account in await self.store.list_token_holders():
            if await self.verify_secret(token, account.token_hash):
                return account
        return None

    # =========================================================================
    # Passwords
    # =========================================================================

    async def register(self, username: str, password: str, email: str) -> Account:
        """
        Create an account with a hashed password and an empty profile.

        Raises:
            DuplicateAccount: username or email already taken
            ValueError: password too long to hash
        """
        if await self.store.get_account_by_username(username):
            raise DuplicateAccount("Username already exists.")
        if await self.store.get_account_by_email(email):
            raise DuplicateAccount("Email already exists.")

        password_hash = await self.hash_secret(password)
        try:
            account = await self.store.add_account(username, password_hash, email)
        except DuplicateEntry as e:
            # Lost a race with a concurrent registration
            raise DuplicateAccount("Username or email already exists.") from e

        await self.store.add_profile(account.id)
        logger.info("Registered account %s (%s)", account.id, username)
        return account

    async def verify_login(self, username: str, password: str) -> Account | None:
        """Return the account if the password matches, else None."""
        account = await self.store.get_account_by_username(username)
        if account is None:
            return None
        if not await self.verify_secret(password, account.password_hash):
            return None
        return account
