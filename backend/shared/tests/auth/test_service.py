"""Tests for AuthService."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from shared.auth.password import SimpleHasher
from shared.auth.service import (
    AuthService,
    CredentialsRequiredError,
    DuplicateUsernameError,
    InvalidCredentialsError,
)
from shared.auth.token import ExpiredTokenError, MalformedTokenError
from shared.dal.errors import StorageError
from shared.db import Database, SqliteAccountRepository

SECRET = "service-secret"


@pytest.fixture
def account_repo():
    db = Database(":memory:")
    db.connect()
    yield SqliteAccountRepository(db)
    db.close()


@pytest.fixture
def auth_service(account_repo):
    return AuthService(account_repo, password_hasher=SimpleHasher(), token_secret=SECRET)


class TestRegister:
    async def test_registers_account(self, auth_service):
        account = await auth_service.register("alice", "secret123")

        assert account.username == "alice"
        assert account.account_id > 0
        assert account.password_hash != "secret123"

    async def test_rejects_duplicate_username(self, auth_service):
        await auth_service.register("alice", "secret123")

        with pytest.raises(DuplicateUsernameError, match="already taken"):
            await auth_service.register("alice", "other-password")

    async def test_usernames_are_case_sensitive(self, auth_service):
        await auth_service.register("alice", "secret123")
        account = await auth_service.register("Alice", "secret123")
        assert account.username == "Alice"

    async def test_concurrent_registrations_exactly_one_wins(self, auth_service):
        results = await asyncio.gather(
            auth_service.register("racer", "secret123"),
            auth_service.register("racer", "secret456"),
            return_exceptions=True,
        )
        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, DuplicateUsernameError)]
        assert len(successes) == 1
        assert len(failures) == 1

    @pytest.mark.parametrize(("username", "password"), [("", "secret123"), ("alice", ""), ("", "")])
    async def test_rejects_missing_credentials(self, auth_service, username, password):
        with pytest.raises(CredentialsRequiredError):
            await auth_service.register(username, password)

    async def test_rejects_password_over_bcrypt_limit(self, auth_service):
        with pytest.raises(CredentialsRequiredError, match="72 bytes"):
            await auth_service.register("alice", "é" * 37)

    async def test_does_not_pre_check_username(self):
        repo = AsyncMock()
        repo.create_account.side_effect = ValueError("Username 'alice' already taken")
        service = AuthService(repo, password_hasher=SimpleHasher(), token_secret=SECRET)

        with pytest.raises(DuplicateUsernameError):
            await service.register("alice", "secret123")
        repo.get_by_username.assert_not_called()


class TestLogin:
    async def test_login_returns_verifiable_token(self, auth_service):
        account = await auth_service.register("alice", "secret123")
        token = await auth_service.login("alice", "secret123")

        claims = auth_service.verify_token(token)
        assert claims.username == "alice"
        assert claims.account_id == account.account_id

    async def test_wrong_password_and_unknown_user_are_indistinguishable(self, auth_service):
        await auth_service.register("alice", "secret123")

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await auth_service.login("alice", "wrong")
        with pytest.raises(InvalidCredentialsError) as unknown_user:
            await auth_service.login("ghost", "secret123")

        assert str(wrong_password.value) == str(unknown_user.value)

    async def test_verify_credentials_fails_closed(self, auth_service):
        await auth_service.register("alice", "secret123")
        assert await auth_service.verify_credentials("alice", "wrong") is None
        assert await auth_service.verify_credentials("ghost", "secret123") is None
        assert await auth_service.verify_credentials("alice", "secret123") is not None

    async def test_unknown_user_still_runs_a_hash_check(self):
        repo = AsyncMock()
        repo.get_by_username.return_value = None
        hasher = AsyncMock()
        hasher.hash.return_value = "simple$placeholder"
        hasher.verify.return_value = True
        service = AuthService(repo, password_hasher=hasher, token_secret=SECRET)

        assert await service.verify_credentials("ghost", "secret123") is None
        assert await service.verify_credentials("ghost", "secret123") is None

        assert hasher.verify.await_count == 2
        hasher.verify.assert_awaited_with("secret123", "simple$placeholder")
        hasher.hash.assert_awaited_once()

    async def test_storage_failure_propagates(self):
        repo = AsyncMock()
        repo.get_by_username.side_effect = StorageError("disk gone")
        service = AuthService(repo, password_hasher=SimpleHasher(), token_secret=SECRET)

        with pytest.raises(StorageError):
            await service.login("alice", "secret123")


class TestVerifyToken:
    async def test_expired_token(self, auth_service):
        account = await auth_service.register("alice", "secret123")
        token = auth_service.issue_token(account, now=1_000.0)

        with pytest.raises(ExpiredTokenError):
            auth_service.verify_token(token, now=1_000.0 + 3601)

    async def test_token_from_other_secret(self, account_repo):
        other = AuthService(account_repo, password_hasher=SimpleHasher(), token_secret="other")
        account = await other.register("alice", "secret123")
        token = other.issue_token(account)

        service = AuthService(account_repo, password_hasher=SimpleHasher(), token_secret=SECRET)
        with pytest.raises(MalformedTokenError):
            service.verify_token(token)


def test_empty_secret_rejected(account_repo):
    with pytest.raises(ValueError, match="token_secret"):
        AuthService(account_repo, password_hasher=SimpleHasher(), token_secret="")
