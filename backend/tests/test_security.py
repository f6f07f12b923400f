"""
EventHub Backend — Token and Password Unit Tests
==================================================

What we test:
    ✅ Access and refresh tokens round-trip their claims
    ✅ Access and refresh secrets are not interchangeable
    ✅ Expired and tampered tokens are rejected
    ✅ bcrypt hashing, and the unusable hash used for social accounts
    ✅ One-time tokens store only their digest
"""

from datetime import timedelta

import pytest
from jose import jwt

from eventhub.config import settings
from eventhub.exceptions import AuthenticationError
from eventhub.security import (
    _claims,
    create_access_token,
    create_refresh_token,
    hash_password,
    hash_token,
    new_one_time_token,
    unusable_password_hash,
    verify_access_token,
    verify_password,
    verify_refresh_token,
)


class TestJWT:

    def test_access_token_carries_claims(self):
        """The decoded payload holds userId, email and role."""
        token = create_access_token("abc", "a@example.com", "HOST")
        payload = verify_access_token(token)
        assert payload["userId"] == "abc"
        assert payload["email"] == "a@example.com"
        assert payload["role"] == "HOST"

    def test_refresh_token_rejected_as_access_token(self):
        """Different secrets: a refresh token never authenticates a request."""
        token = create_refresh_token("abc", "a@example.com", "USER")
        assert verify_refresh_token(token)["userId"] == "abc"
        with pytest.raises(AuthenticationError):
            verify_access_token(token)

    def test_access_token_rejected_as_refresh_token(self):
        token = create_access_token("abc", "a@example.com", "USER")
        with pytest.raises(AuthenticationError):
            verify_refresh_token(token)

    def test_expired_token_rejected(self):
        claims = _claims("abc", "a@example.com", "USER", timedelta(seconds=-10))
        token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(AuthenticationError, match="Invalid or expired token"):
            verify_access_token(token)

    def test_garbage_token_rejected(self):
        with pytest.raises(AuthenticationError):
            verify_access_token("not-a-jwt")

    def test_token_without_user_id_rejected(self):
        token = jwt.encode({"email": "a@example.com"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(AuthenticationError):
            verify_access_token(token)


class TestPasswords:

    @pytest.mark.asyncio
    async def test_hash_and_verify(self):
        hashed = await hash_password("correct horse")
        assert hashed != "correct horse"
        assert await verify_password("correct horse", hashed)
        assert not await verify_password("wrong horse", hashed)

    @pytest.mark.asyncio
    async def test_unusable_hash_never_matches(self):
        """Social accounts cannot log in with any password."""
        assert not await verify_password("anything", unusable_password_hash())


class TestOneTimeTokens:

    def test_digest_matches_raw_token(self):
        raw, digest = new_one_time_token()
        assert raw != digest
        assert hash_token(raw) == digest
        assert len(digest) == 64

    def test_tokens_are_unique(self):
        assert new_one_time_token()[0] != new_one_time_token()[0]
