"""Unit tests for JWTService."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from stockplan_auth.exceptions import InvalidTokenError
from stockplan_auth.services import JWTService


class TestJWTServiceInit:
    """Tests for JWTService initialization."""

    def test_init_with_empty_secret_raises(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            JWTService(secret_key="")

    def test_default_lifetime_is_seven_days(self):
        service = JWTService(secret_key="test-secret")
        assert service.access_token_expires_in == 604800

    def test_custom_lifetime(self):
        service = JWTService(secret_key="test-secret", access_token_expires_in=900)
        assert service.access_token_expires_in == 900


class TestAccessTokens:
    """Tests for access token creation and verification."""

    def setup_method(self):
        self.service = JWTService(secret_key="test-secret-key-12345")
        self.user_id = uuid4()

    def test_verify_valid_access_token(self):
        token = self.service.create_access_token(user_id=self.user_id)

        claims = self.service.verify_token(token)

        assert claims.user_id == self.user_id
        assert claims.token_type == "access"
        assert claims.is_access_token()

    def test_token_carries_expected_claims(self):
        now = datetime(2020, 1, 1, tzinfo=timezone.utc)
        token = self.service.create_access_token(
            user_id=self.user_id,
            expires_in=60,
            now=now,
        )

        payload = jwt.decode(
            token,
            "test-secret-key-12345",
            algorithms=["HS256"],
            options={"verify_exp": False},
        )

        assert payload["sub"] == str(self.user_id)
        assert payload["type"] == "access"
        assert payload["iat"] == int(now.timestamp())
        assert payload["exp"] == int((now + timedelta(seconds=60)).timestamp())
        assert len(payload["jti"]) == 32

    def test_tokens_issued_in_the_same_second_differ(self):
        now = datetime(2020, 1, 1, tzinfo=timezone.utc)

        first = self.service.create_access_token(user_id=self.user_id, now=now)
        second = self.service.create_access_token(user_id=self.user_id, now=now)

        assert first != second

    def test_exp_reflects_lifetime(self):
        before = datetime.now(tz=timezone.utc)
        token = self.service.create_access_token(user_id=self.user_id, expires_in=3600)

        payload = jwt.decode(
            token,
            "test-secret-key-12345",
            algorithms=["HS256"],
        )

        delta = datetime.fromtimestamp(payload["exp"], tz=timezone.utc) - before
        assert timedelta(minutes=59) < delta <= timedelta(hours=1, seconds=1)

    def test_verify_expired_token_raises(self):
        token = self.service.create_access_token(
            user_id=self.user_id,
            expires_in=-1,
        )

        with pytest.raises(InvalidTokenError, match="expired"):
            self.service.verify_token(token)

    def test_verify_wrong_secret_raises(self):
        other = JWTService(secret_key="another-secret")
        token = other.create_access_token(user_id=self.user_id)

        with pytest.raises(InvalidTokenError):
            self.service.verify_token(token)

    def test_verify_garbage_raises(self):
        with pytest.raises(InvalidTokenError):
            self.service.verify_token("not-a-jwt")

    def test_verify_non_uuid_subject_raises(self):
        token = jwt.encode(
            {
                "sub": "not-a-uuid",
                "exp": datetime.now(tz=timezone.utc) + timedelta(minutes=5),
            },
            "test-secret-key-12345",
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError, match="Malformed"):
            self.service.verify_token(token)

    def test_verify_missing_exp_raises(self):
        token = jwt.encode(
            {"sub": str(self.user_id)},
            "test-secret-key-12345",
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            self.service.verify_token(token)

    def test_non_access_type_is_reported(self):
        token = jwt.encode(
            {
                "sub": str(self.user_id),
                "type": "refresh",
                "exp": datetime.now(tz=timezone.utc) + timedelta(minutes=5),
            },
            "test-secret-key-12345",
            algorithm="HS256",
        )

        claims = self.service.verify_token(token)

        assert not claims.is_access_token()
