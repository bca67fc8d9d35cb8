"""
Tests for the authenticator.

Core principle: identity first (token + claimed id), then ownership.
"""

import asyncio

import pytest

from kitnet.auth import (
    AuthenticationFailed,
    Forbidden,
    MissingAccountId,
    MissingToken,
)
from kitnet.storage import StoreUnavailable


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def accounts(credentials):
    """Register alice (id 1) and bob (id 2)."""

    async def make():
        alice = await credentials.register("alice", "pw1", "a@x.com")
        bob = await credentials.register("bob", "pw2", "b@x.com")
        return alice, bob

    return make


# =============================================================================
# authenticate()
# =============================================================================


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_missing_token(self, authenticator):
        with pytest.raises(MissingToken):
            await authenticator.authenticate("", 1)
        with pytest.raises(MissingToken):
            await authenticator.authenticate(None, 1)

    @pytest.mark.asyncio
    async def test_missing_account_id(self, authenticator, accounts):
        await accounts()
        result = await authenticator.login("alice", "pw1")

        with pytest.raises(MissingAccountId):
            await authenticator.authenticate(result.token, None)
        with pytest.raises(MissingAccountId):
            await authenticator.authenticate(result.token, "")

    @pytest.mark.asyncio
    async def test_token_checked_before_account_id(self, authenticator):
        with pytest.raises(MissingToken):
            await authenticator.authenticate("", None)

    @pytest.mark.asyncio
    async def test_own_token(self, authenticator, accounts):
        alice, _ = await accounts()
        result = await authenticator.login("alice", "pw1")

        account = await authenticator.authenticate(result.token, alice.id)
        assert account.id == alice.id

    @pytest.mark.asyncio
    async def test_claimed_id_as_string(self, authenticator, accounts):
        alice, _ = await accounts()
        result = await authenticator.login("alice", "pw1")

        account = await authenticator.authenticate(result.token, str(alice.id))
        assert account.id == alice.id

    @pytest.mark.asyncio
    async def test_other_accounts_id(self, authenticator, accounts):
        _, bob = await accounts()
        result = await authenticator.login("alice", "pw1")

        with pytest.raises(AuthenticationFailed):
            await authenticator.authenticate(result.token, bob.id)

    @pytest.mark.asyncio
    async def test_unknown_token(self, authenticator, accounts):
        alice, _ = await accounts()
        await authenticator.login("alice", "pw1")

        with pytest.raises(AuthenticationFailed):
            await authenticator.authenticate("0" * 32, alice.id)

    @pytest.mark.asyncio
    async def test_mismatch_and_unknown_are_indistinguishable(self, authenticator, accounts):
        _, bob = await accounts()
        result = await authenticator.login("alice", "pw1")

        with pytest.raises(AuthenticationFailed) as mismatch:
            await authenticator.authenticate(result.token, bob.id)
        with pytest.raises(AuthenticationFailed) as unknown:
            await authenticator.authenticate("f" * 32, bob.id)

        assert str(mismatch.value) == str(unknown.value)
        assert mismatch.value.status_code == unknown.value.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_account_id(self, authenticator, accounts):
        await accounts()
        result = await authenticator.login("alice", "pw1")

        with pytest.raises(AuthenticationFailed):
            await authenticator.authenticate(result.token, "1abc")

    @pytest.mark.asyncio
    async def test_store_outage_is_not_auth_failure(self, authenticator, store):
        await store.close()
        with pytest.raises(StoreUnavailable):
            await authenticator.authenticate("a" * 32, 1)


# =============================================================================
# login()
# =============================================================================


class TestLogin:
    @pytest.mark.asyncio
    async def test_returns_plaintext_once(self, authenticator, accounts, store):
        alice, _ = await accounts()
        result = await authenticator.login("alice", "pw1")

        assert result.account_id == alice.id
        assert result.username == "alice"
        stored = await store.get_account(alice.id)
        assert stored.token_hash is not None
        assert result.token not in stored.token_hash

    @pytest.mark.asyncio
    async def test_bad_password(self, authenticator, accounts):
        await accounts()
        with pytest.raises(AuthenticationFailed):
            await authenticator.login("alice", "wrong")

    @pytest.mark.asyncio
    async def test_unknown_user(self, authenticator):
        with pytest.raises(AuthenticationFailed):
            await authenticator.login("ghost", "pw1")

    @pytest.mark.asyncio
    async def test_relogin_invalidates_previous_token(self, authenticator, accounts):
        """Only one live token per account."""
        alice, _ = await accounts()
        first = await authenticator.login("alice", "pw1")
        second = await authenticator.login("alice", "pw1")

        assert first.token != second.token
        assert (await authenticator.authenticate(second.token, alice.id)).id == alice.id
        with pytest.raises(AuthenticationFailed):
            await authenticator.authenticate(first.token, alice.id)

    @pytest.mark.asyncio
    async def test_concurrent_logins_last_writer_wins(self, authenticator, accounts):
        """Both logins succeed, but exactly one of the two tokens stays valid."""
        alice, _ = await accounts()
        results = await asyncio.gather(
            authenticator.login("alice", "pw1"),
            authenticator.login("alice", "pw1"),
        )

        valid = []
        for result in results:
            try:
                await authenticator.authenticate(result.token, alice.id)
                valid.append(result.token)
            except AuthenticationFailed:
                pass
        assert len(valid) == 1

    @pytest.mark.asyncio
    async def test_logins_of_different_accounts_coexist(self, authenticator, accounts):
        alice, bob = await accounts()
        a = await authenticator.login("alice", "pw1")
        b = await authenticator.login("bob", "pw2")

        assert (await authenticator.authenticate(a.token, alice.id)).id == alice.id
        assert (await authenticator.authenticate(b.token, bob.id)).id == bob.id


# =============================================================================
# Ownership
# =============================================================================


class TestOwnership:
    @pytest.mark.asyncio
    async def test_authorize_ownership(self, authenticator, accounts, store):
        alice, bob = await accounts()
        message = await store.add_message(alice.id, "hello")

        assert authenticator.authorize_ownership(alice, message) is True
        assert authenticator.authorize_ownership(bob, message) is False

    @pytest.mark.asyncio
    async def test_works_for_every_owned_kind(self, authenticator, accounts, store):
        alice, bob = await accounts()
        post = await store.add_post(alice.id, "title", "body")
        profile = await store.get_profile(alice.id)

        for resource in (post, profile, alice):
            assert authenticator.authorize_ownership(alice, resource)
            assert not authenticator.authorize_ownership(bob, resource)

    @pytest.mark.asyncio
    async def test_require_ownership_raises_forbidden(self, authenticator, accounts, store):
        alice, bob = await accounts()
        message = await store.add_message(alice.id, "hello")

        authenticator.require_ownership(alice, message)
        with pytest.raises(Forbidden) as exc:
            authenticator.require_ownership(bob, message)
        assert exc.value.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_between_check_and_write_is_a_no_op(self, authenticator, accounts, store):
        """The check and the write are not atomic; a concurrent delete wins."""
        alice, _ = await accounts()
        message = await store.add_message(alice.id, "hello")

        fetched = await store.get_message(message.id)
        authenticator.require_ownership(alice, fetched)

        await store.delete_message(message.id)

        assert await store.update_message(fetched.id, alice.id, "edited") is False
        assert await store.get_message(message.id) is None


# =============================================================================
# End-to-end scenario
# =============================================================================


class TestScenario:
    @pytest.mark.asyncio
    async def test_register_login_authenticate_relogin(self, authenticator, credentials):
        alice = await credentials.register("alice", "pw1", "a@x.com")
        assert alice.id == 1

        t1 = (await authenticator.login("alice", "pw1")).token
        assert (await authenticator.authenticate(t1, 1)).id == 1
        with pytest.raises(AuthenticationFailed):
            await authenticator.authenticate(t1, 2)

        t2 = (await authenticator.login("alice", "pw1")).token
        assert t2 != t1
        with pytest.raises(AuthenticationFailed):
            await authenticator.authenticate(t1, 1)
        assert (await authenticator.authenticate(t2, 1)).id == 1
