"""Tests for the credential store."""

import pytest

from kitnet.auth import DuplicateAccount
from kitnet.storage import StoreUnavailable


class TestRegister:
    @pytest.mark.asyncio
    async def test_hashes_password_and_creates_profile(self, credentials, store):
        account = await credentials.register("alice", "pw1", "a@x.com")

        assert account.password_hash != "pw1"
        assert await credentials.verify_secret("pw1", account.password_hash)
        assert await store.get_profile(account.id) is not None

    @pytest.mark.asyncio
    async def test_duplicate_username(self, credentials):
        await credentials.register("alice", "pw1", "a@x.com")
        with pytest.raises(DuplicateAccount, match="Username"):
            await credentials.register("alice", "pw2", "other@x.com")

    @pytest.mark.asyncio
    async def test_duplicate_email(self, credentials):
        await credentials.register("alice", "pw1", "a@x.com")
        with pytest.raises(DuplicateAccount, match="Email"):
            await credentials.register("bob", "pw2", "a@x.com")


class TestVerifyLogin:
    @pytest.mark.asyncio
    async def test_match(self, credentials):
        await credentials.register("alice", "pw1", "a@x.com")
        account = await credentials.verify_login("alice", "pw1")
        assert account.username == "alice"

    @pytest.mark.asyncio
    async def test_wrong_password(self, credentials):
        await credentials.register("alice", "pw1", "a@x.com")
        assert await credentials.verify_login("alice", "nope") is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, credentials):
        assert await credentials.verify_login("ghost", "pw1") is None


class TestTokenLookup:
    @pytest.mark.asyncio
    async def test_finds_holder(self, credentials):
        alice = await credentials.register("alice", "pw1", "a@x.com")
        bob = await credentials.register("bob", "pw1", "b@x.com")
        await credentials.set_account_token(alice.id, await credentials.hash_secret("tok-a"))
        await credentials.set_account_token(bob.id, await credentials.hash_secret("tok-b"))

        assert (await credentials.find_account_by_token_plaintext("tok-a")).id == alice.id
        assert (await credentials.find_account_by_token_plaintext("tok-b")).id == bob.id

    @pytest.mark.asyncio
    async def test_no_match(self, credentials):
        alice = await credentials.register("alice", "pw1", "a@x.com")
        await credentials.set_account_token(alice.id, await credentials.hash_secret("tok-a"))

        assert await credentials.find_account_by_token_plaintext("tok-x") is None
        assert await credentials.find_account_by_token_plaintext("") is None

    @pytest.mark.asyncio
    async def test_overwritten_token_stops_matching(self, credentials):
        alice = await credentials.register("alice", "pw1", "a@x.com")
        await credentials.set_account_token(alice.id, await credentials.hash_secret("old"))
        await credentials.set_account_token(alice.id, await credentials.hash_secret("new"))

        assert await credentials.find_account_by_token_plaintext("old") is None
        assert (await credentials.find_account_by_token_plaintext("new")).id == alice.id

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, credentials, store):
        await store.close()
        with pytest.raises(StoreUnavailable):
            await credentials.find_account_by_token_plaintext("tok")
