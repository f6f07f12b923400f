"""
EventHub Backend — Tokens & Password Hashing
==============================================

What:  JWT issue/verify for access and refresh tokens, bcrypt password
       hashing, and the one-time tokens mailed for email verification and
       password reset.
Who:   AuthService, AdminService and the bearer-auth dependency.

JWT Layout:
    Both tokens carry the same claims: {"userId", "email", "role", "iat", "exp"}.
    Access tokens are signed with JWT_SECRET and live 15 minutes; refresh
    tokens are signed with JWT_REFRESH_SECRET and live 7 days. Because the
    secrets differ, a refresh token is never accepted as an access token.

Password Hashing:
    bcrypt is CPU-bound (~250ms at 12 rounds). Hashing on the event
    loop would stall every other request, so both hash and verify run in a
    worker thread via asyncio.to_thread.

One-time Tokens:
    The raw token goes into the emailed link; only its SHA-256 digest is
    stored. Lookup is by digest, so the database never holds a usable link.
"""

import asyncio
import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from eventhub.config import settings
from eventhub.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# JWT
# ══════════════════════════════════════════════════════════════════════════


def _claims(user_id: str, email: str, role: str, lifetime: timedelta) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + lifetime,
    }


def create_access_token(user_id: str, email: str, role: str) -> str:
    claims = _claims(user_id, email, role, timedelta(minutes=settings.jwt_expires_minutes))
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token(user_id: str, email: str, role: str) -> str:
    claims = _claims(user_id, email, role, timedelta(days=settings.jwt_refresh_expires_days))
    return jwt.encode(claims, settings.jwt_refresh_secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, secret: str, kind: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.info("Rejected expired %s token", kind)
        raise AuthenticationError()
    except JWTError as e:
        logger.info("Rejected invalid %s token: %s", kind, str(e))
        raise AuthenticationError()

    if not payload.get("userId"):
        logger.warning("%s token missing userId claim", kind.capitalize())
        raise AuthenticationError()
    return payload


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify an access token.

    Raises:
        AuthenticationError("Invalid or expired token") for any bad signature,
        malformed token, expired token or missing userId claim.
    """
    return _decode(token, settings.jwt_secret, "access")


def verify_refresh_token(token: str) -> Dict[str, Any]:
    return _decode(token, settings.jwt_refresh_secret, "refresh")


# ══════════════════════════════════════════════════════════════════════════
# Passwords
# ══════════════════════════════════════════════════════════════════════════


def _hash_password_sync(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify_password_sync(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash, e.g. the placeholder stored for social accounts
        return False


async def hash_password(password: str) -> str:
    return await asyncio.to_thread(_hash_password_sync, password)


async def verify_password(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(_verify_password_sync, password, password_hash)


def unusable_password_hash() -> str:
    """A value no password can ever match; used for social sign-in accounts."""
    return "!" + secrets.token_hex(32)


# ══════════════════════════════════════════════════════════════════════════
# One-time Tokens (email verification, password reset)
# ══════════════════════════════════════════════════════════════════════════


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def new_one_time_token() -> Tuple[str, str]:
    """Returns (raw_token_for_the_link, sha256_digest_for_the_database)."""
    raw = secrets.token_urlsafe(32)
    return raw, hash_token(raw)
