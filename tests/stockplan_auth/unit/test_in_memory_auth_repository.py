"""Unit tests for InMemoryAuthRepository."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from stockplan_auth.exceptions import ConflictError, EmailAlreadyExistsError
from stockplan_auth.persistence.memory import InMemoryAuthRepository

T0 = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class TestUsers:
    def setup_method(self):
        self.clock = FakeClock()
        self.repo = InMemoryAuthRepository(clock=self.clock)

    @pytest.mark.asyncio
    async def test_create_and_find_user(self):
        user = await self.repo.create_user("a@example.com", "hash")

        assert user.created_at == T0
        assert await self.repo.find_user_by_email("a@example.com") == user
        assert await self.repo.find_user_by_id(user.id) == user

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self):
        await self.repo.create_user("a@example.com", "hash")

        with pytest.raises(EmailAlreadyExistsError):
            await self.repo.create_user("a@example.com", "other")

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_registration_has_one_winner(self):
        results = await asyncio.gather(
            self.repo.create_user("a@example.com", "h1"),
            self.repo.create_user("a@example.com", "h2"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, EmailAlreadyExistsError) for r in results) == 1
        assert len(self.repo.users) == 1

    @pytest.mark.asyncio
    async def test_update_password_bumps_updated_at(self):
        user = await self.repo.create_user("a@example.com", "hash")
        self.clock.advance(minutes=5)

        await self.repo.update_user_password(user.id, "new-hash")

        updated = await self.repo.find_user_by_id(user.id)
        assert updated.password_hash == "new-hash"
        assert updated.updated_at == T0 + timedelta(minutes=5)
        assert updated.created_at == T0

    @pytest.mark.asyncio
    async def test_delete_user_cascades_to_tokens(self):
        user = await self.repo.create_user("a@example.com", "hash")
        await self.repo.create_refresh_token(user.id, "r" * 64, T0 + timedelta(days=1))
        await self.repo.create_password_reset_token(
            user.id, "c" * 64, T0 + timedelta(minutes=15)
        )

        await self.repo.delete_user(user.id)

        assert self.repo.users == []
        assert self.repo.refresh_tokens == []
        assert self.repo.password_reset_tokens == []


class TestRefreshTokens:
    def setup_method(self):
        self.clock = FakeClock()
        self.repo = InMemoryAuthRepository(clock=self.clock)

    async def _user(self):
        return await self.repo.create_user("a@example.com", "hash")

    @pytest.mark.asyncio
    async def test_find_valid_token(self):
        user = await self._user()
        token_id = await self.repo.create_refresh_token(
            user.id, "digest", T0 + timedelta(days=30)
        )

        token = await self.repo.find_valid_refresh_token("digest", T0)

        assert token.id == token_id
        assert token.user_id == user.id

    @pytest.mark.asyncio
    async def test_expiry_boundary(self):
        user = await self._user()
        expires_at = T0 + timedelta(days=30)
        await self.repo.create_refresh_token(user.id, "digest", expires_at)

        just_before = expires_at - timedelta(microseconds=1)
        assert await self.repo.find_valid_refresh_token("digest", just_before)
        assert await self.repo.find_valid_refresh_token("digest", expires_at) is None

    @pytest.mark.asyncio
    async def test_revoke_is_conditional(self):
        user = await self._user()
        token_id = await self.repo.create_refresh_token(
            user.id, "digest", T0 + timedelta(days=1)
        )

        assert await self.repo.revoke_refresh_token(token_id, T0) is True
        assert await self.repo.revoke_refresh_token(token_id, T0) is False
        assert await self.repo.find_valid_refresh_token("digest", T0) is None

    @pytest.mark.asyncio
    async def test_concurrent_revoke_has_one_winner(self):
        user = await self._user()
        token_id = await self.repo.create_refresh_token(
            user.id, "digest", T0 + timedelta(days=1)
        )

        results = await asyncio.gather(
            *(self.repo.revoke_refresh_token(token_id, T0) for _ in range(5))
        )

        assert results.count(True) == 1

    @pytest.mark.asyncio
    async def test_duplicate_digest_conflicts(self):
        user = await self._user()
        await self.repo.create_refresh_token(user.id, "digest", T0 + timedelta(days=1))

        with pytest.raises(ConflictError):
            await self.repo.create_refresh_token(
                user.id, "digest", T0 + timedelta(days=1)
            )

    @pytest.mark.asyncio
    async def test_delete_stale_removes_expired_and_revoked(self):
        user = await self._user()
        await self.repo.create_refresh_token(user.id, "live", T0 + timedelta(days=1))
        await self.repo.create_refresh_token(user.id, "expired", T0)
        revoked_id = await self.repo.create_refresh_token(
            user.id, "revoked", T0 + timedelta(days=1)
        )
        await self.repo.revoke_refresh_token(revoked_id, T0)

        deleted = await self.repo.delete_stale_refresh_tokens(T0)

        assert deleted == 2
        assert [t.token_hash for t in self.repo.refresh_tokens] == ["live"]


class TestPasswordResetTokens:
    def setup_method(self):
        self.clock = FakeClock()
        self.repo = InMemoryAuthRepository(clock=self.clock)

    async def _user(self):
        return await self.repo.create_user("a@example.com", "hash")

    @pytest.mark.asyncio
    async def test_find_valid_token(self):
        user = await self._user()
        token_id = await self.repo.create_password_reset_token(
            user.id, "code", T0 + timedelta(minutes=15)
        )

        token = await self.repo.find_valid_password_reset_token(user.id, "code", T0)

        assert token.id == token_id

    @pytest.mark.asyncio
    async def test_wrong_user_or_code_not_found(self):
        user = await self._user()
        other = await self.repo.create_user("b@example.com", "hash")
        await self.repo.create_password_reset_token(
            user.id, "code", T0 + timedelta(minutes=15)
        )

        assert await self.repo.find_valid_password_reset_token(other.id, "code", T0) is None
        assert await self.repo.find_valid_password_reset_token(user.id, "nope", T0) is None

    @pytest.mark.asyncio
    async def test_expiry_boundary(self):
        user = await self._user()
        expires_at = T0 + timedelta(minutes=15)
        await self.repo.create_password_reset_token(user.id, "code", expires_at)

        assert await self.repo.find_valid_password_reset_token(
            user.id, "code", expires_at - timedelta(seconds=1)
        )
        assert (
            await self.repo.find_valid_password_reset_token(user.id, "code", expires_at)
            is None
        )

    @pytest.mark.asyncio
    async def test_most_recent_matching_token_wins(self):
        user = await self._user()
        await self.repo.create_password_reset_token(
            user.id, "code", T0 + timedelta(minutes=15)
        )
        self.clock.advance(minutes=1)
        newest_id = await self.repo.create_password_reset_token(
            user.id, "code", T0 + timedelta(minutes=16)
        )

        token = await self.repo.find_valid_password_reset_token(user.id, "code", T0)

        assert token.id == newest_id

    @pytest.mark.asyncio
    async def test_same_timestamp_ties_go_to_latest_insert(self):
        user = await self._user()
        await self.repo.create_password_reset_token(
            user.id, "code", T0 + timedelta(minutes=15)
        )
        newest_id = await self.repo.create_password_reset_token(
            user.id, "code", T0 + timedelta(minutes=15)
        )

        token = await self.repo.find_valid_password_reset_token(user.id, "code", T0)

        assert token.id == newest_id

    @pytest.mark.asyncio
    async def test_mark_used_is_conditional(self):
        user = await self._user()
        token_id = await self.repo.create_password_reset_token(
            user.id, "code", T0 + timedelta(minutes=15)
        )

        assert await self.repo.mark_password_reset_token_used(token_id, T0) is True
        assert await self.repo.mark_password_reset_token_used(token_id, T0) is False
        assert await self.repo.find_valid_password_reset_token(user.id, "code", T0) is None

    @pytest.mark.asyncio
    async def test_delete_expired_keeps_used_but_unexpired(self):
        user = await self._user()
        await self.repo.create_password_reset_token(user.id, "expired", T0)
        used_id = await self.repo.create_password_reset_token(
            user.id, "used", T0 + timedelta(minutes=15)
        )
        await self.repo.mark_password_reset_token_used(used_id, T0)

        deleted = await self.repo.delete_expired_password_reset_tokens(T0)

        assert deleted == 1
        assert [t.code_hash for t in self.repo.password_reset_tokens] == ["used"]
