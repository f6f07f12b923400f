"""
EventHub Backend — Auth Service
=================================

What:  Registration, login, token refresh, email verification, password
       reset and social sign-in.
Who:   Called by routes/auth.py.

Flows:
    register        → user row + verification token → {user, token, refreshToken}
                      (route mails the verification link in the background)
    login           → bcrypt verify → token pair
    refresh         → verify refresh JWT → reload user → fresh token pair
    verify_email    → digest lookup → emailVerified = true, token cleared
    forgot_password → reset token (1h) stored as digest; caller mails link
    reset_password  → digest lookup + expiry → new hash, token cleared
    social_auth     → find-or-create a same-provider USER account → token pair

Account Enumeration:
    login answers "Invalid credentials" for both unknown email and wrong
    password; forgot_password behaves identically whether or not the email
    exists. The route always returns the same message.
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.config import settings
from eventhub.exceptions import AuthenticationError, AuthorizationError, ConflictError, ValidationError
from eventhub.models.user import AuthProvider, User, UserRole, as_utc, utcnow
from eventhub.schemas.auth import (
    AuthData,
    LoginRequest,
    RegisterRequest,
    SocialAuthRequest,
    TokenPair,
)
from eventhub.schemas.user import UserOut
from eventhub.security import (
    create_access_token,
    create_refresh_token,
    hash_password,
    hash_token,
    new_one_time_token,
    unusable_password_hash,
    verify_password,
    verify_refresh_token,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Stateless; receives the request's session on every call."""

    # ── Helpers ───────────────────────────────────────────────────────────

    def issue_tokens(self, user: User) -> TokenPair:
        user_id, role = str(user.id), user.role.value
        return TokenPair(
            token=create_access_token(user_id, user.email, role),
            refresh_token=create_refresh_token(user_id, user.email, role),
        )

    def _auth_data(self, user: User) -> AuthData:
        pair = self.issue_tokens(user)
        return AuthData(
            user=UserOut.model_validate(user),
            token=pair.token,
            refresh_token=pair.refresh_token,
        )

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    # ── Register / Login ──────────────────────────────────────────────────

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> Tuple[AuthData, str]:
        """
        Create an account.

        Returns:
            (auth data for the response, raw verification token for the email)

        Raises:
            ConflictError: "Email already registered"
        """
        if await self.get_by_email(db, payload.email):
            raise ConflictError("Email already registered")

        raw_token, token_digest = new_one_time_token()
        user = User(
            email=payload.email,
            password_hash=await hash_password(payload.password),
            full_name=payload.full_name,
            phone=payload.phone,
            role=payload.role or UserRole.USER,
            email_verified=False,
            auth_provider=AuthProvider.EMAIL,
            verification_token_hash=token_digest,
            verification_token_expires_at=utcnow() + timedelta(hours=settings.verification_token_hours),
        )
        db.add(user)
        await db.flush()

        logger.info("Registered user %s with role %s", user.id, user.role.value)
        return self._auth_data(user), raw_token

    async def login(self, db: AsyncSession, payload: LoginRequest) -> AuthData:
        user = await self.get_by_email(db, payload.email)
        if user is None or not await verify_password(payload.password, user.password_hash):
            logger.info("Failed login attempt for %s", payload.email)
            raise AuthenticationError("Invalid credentials")

        logger.info("User %s logged in", user.id)
        return self._auth_data(user)

    async def refresh(self, db: AsyncSession, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new access/refresh pair.

        The user is reloaded so a role change or deletion since the refresh
        token was issued takes effect immediately.
        """
        payload = verify_refresh_token(refresh_token)
        try:
            user_id = uuid.UUID(str(payload["userId"]))
        except ValueError:
            raise AuthenticationError()

        user = await db.get(User, user_id)
        if user is None:
            raise AuthenticationError("User not found")
        return self.issue_tokens(user)

    # ── Email Verification ────────────────────────────────────────────────

    async def verify_email(self, db: AsyncSession, token: str) -> User:
        result = await db.execute(select(User).where(User.verification_token_hash == hash_token(token)))
        user = result.scalar_one_or_none()

        expires_at = as_utc(user.verification_token_expires_at) if user else None
        if user is None or expires_at is None or expires_at < utcnow():
            raise ValidationError("Invalid or expired verification token", field="token")

        user.email_verified = True
        user.verification_token_hash = None
        user.verification_token_expires_at = None
        await db.flush()

        logger.info("User %s verified their email", user.id)
        return user

    # ── Password Reset ────────────────────────────────────────────────────

    async def forgot_password(self, db: AsyncSession, email: str) -> Optional[Tuple[User, str]]:
        """
        Start a password reset.

        Returns:
            (user, raw reset token) when the account exists, else None. The
            caller must not let the difference show in the HTTP response.
        """
        user = await self.get_by_email(db, email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        raw_token, token_digest = new_one_time_token()
        user.reset_token_hash = token_digest
        user.reset_token_expires_at = utcnow() + timedelta(minutes=settings.reset_token_minutes)
        await db.flush()

        logger.info("Password reset token issued for user %s", user.id)
        return user, raw_token

    async def reset_password(self, db: AsyncSession, token: str, new_password: str) -> User:
        result = await db.execute(select(User).where(User.reset_token_hash == hash_token(token)))
        user = result.scalar_one_or_none()

        expires_at = as_utc(user.reset_token_expires_at) if user else None
        if user is None or expires_at is None or expires_at < utcnow():
            raise ValidationError("Invalid or expired reset token", field="token")

        user.password_hash = await hash_password(new_password)
        user.reset_token_hash = None
        user.reset_token_expires_at = None
        await db.flush()

        logger.info("User %s reset their password", user.id)
        return user

    # ── Social Sign-in ────────────────────────────────────────────────────

    async def social_auth(self, db: AsyncSession, payload: SocialAuthRequest) -> Tuple[AuthData, bool]:
        """
        Find or create the account for a provider-asserted email.

        The provider token is not verified, so an existing account is only
        signed in when it was created through the same provider and holds the
        plain USER role. Password accounts and staff accounts are never
        reachable through this path.

        Returns:
            (auth data, created) where `created` drives the 200/201 choice.

        Raises:
            ConflictError: email belongs to a password or other-provider account
            AuthorizationError: the matching account is not a USER
        """
        provider = AuthProvider(payload.provider)
        user = await self.get_by_email(db, payload.email)
        created = False

        if user is None:
            user = User(
                email=payload.email,
                password_hash=unusable_password_hash(),
                full_name=payload.full_name,
                profile_picture=payload.profile_picture,
                role=UserRole.USER,
                email_verified=True,
                auth_provider=provider,
            )
            db.add(user)
            created = True
        else:
            if user.auth_provider != provider:
                logger.warning(
                    "Refused %s sign-in for user %s registered via %s",
                    provider.value, user.id, user.auth_provider.value,
                )
                raise ConflictError("Email already registered", context={"field": "email"})
            if user.role != UserRole.USER:
                logger.warning("Refused %s sign-in for %s account %s", provider.value, user.role.value, user.id)
                raise AuthorizationError("Social sign-in is not available for this account")
            if payload.profile_picture and not user.profile_picture:
                user.profile_picture = payload.profile_picture
        await db.flush()

        logger.info("Social sign-in via %s for user %s (created=%s)", payload.provider, user.id, created)
        return self._auth_data(user), created


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
