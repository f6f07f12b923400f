"""
EventHub Backend — Auth Endpoint Tests
========================================

What:  Register, login, current user, refresh, email verification, password
       reset and social sign-in through the HTTP API.
How:   SQLite database per test; the email background task is patched so the
       raw one-time token can be read from its arguments.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select, update

from conftest import DEFAULT_PASSWORD, bearer, register_user, set_role
from eventhub.database import async_session_factory
from eventhub.models.user import User, UserRole, utcnow
from eventhub.routes.auth import FORGOT_PASSWORD_MESSAGE
from eventhub.services.email_service import email_service


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_returns_user_and_tokens(self, test_client):
        """201 with the user, an access token and a refresh token."""
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "New@Example.com", "password": DEFAULT_PASSWORD, "fullName": "  New Person "},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "User registered successfully. Please verify your email."

        user = body["data"]["user"]
        assert user["email"] == "new@example.com"
        assert user["fullName"] == "New Person"
        assert user["role"] == "USER"
        assert user["emailVerified"] is False
        assert user["authProvider"] == "email"
        assert "passwordHash" not in user
        assert body["data"]["token"]
        assert body["data"]["refreshToken"]

    @pytest.mark.asyncio
    async def test_register_as_host(self, test_client):
        data = await register_user(test_client, "h@example.com", role="HOST")
        assert data["user"]["role"] == "HOST"

    @pytest.mark.asyncio
    async def test_register_as_admin_rejected(self, test_client):
        """ADMIN is never self-assigned."""
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "x@example.com", "password": DEFAULT_PASSWORD, "fullName": "X", "role": "ADMIN"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "Validation failed"
        assert body["errors"][0]["field"] == "role"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflict(self, test_client):
        await register_user(test_client, "dup@example.com")
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "DUP@example.com", "password": DEFAULT_PASSWORD, "fullName": "Again"},
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "s@example.com", "password": "short", "fullName": "Short"},
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "password"

    @pytest.mark.asyncio
    async def test_invalid_email_and_phone_reported_per_field(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "not-an-email", "password": DEFAULT_PASSWORD, "fullName": "P", "phone": "12ab"},
        )
        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert fields == {"email", "phone"}

    @pytest.mark.asyncio
    async def test_verification_email_scheduled(self, test_client):
        with patch.object(email_service, "deliver_in_background", new=AsyncMock()) as deliver:
            await register_user(test_client, "mail@example.com", full_name="Mia Mail")

        deliver.assert_called_once()
        kind, to, full_name, token = deliver.call_args.args
        assert (kind, to, full_name) == ("verification", "mail@example.com", "Mia Mail")
        assert token


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, test_client):
        await register_user(test_client, "login@example.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "LOGIN@example.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["data"]["user"]["email"] == "login@example.com"

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client):
        await register_user(test_client, "login@example.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "login@example.com", "password": "wrong-password"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_email_same_answer(self, test_client):
        """No account enumeration: unknown email looks like a wrong password."""
        response = await test_client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"


class TestCurrentUser:

    @pytest.mark.asyncio
    async def test_me(self, test_client, user_auth):
        response = await test_client.get("/api/auth/me", headers=bearer(user_auth["token"]))
        assert response.status_code == 200
        assert response.json()["data"]["user"]["id"] == user_auth["user"]["id"]

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client):
        response = await test_client.get("/api/auth/me")
        assert response.status_code == 401
        body = response.json()
        assert body["status"] == "error"
        assert body["message"] == "No token provided"

    @pytest.mark.asyncio
    async def test_invalid_token(self, test_client):
        response = await test_client.get("/api/auth/me", headers=bearer("garbage"))
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_refresh_token_not_accepted_as_access(self, test_client, user_auth):
        response = await test_client.get("/api/auth/me", headers=bearer(user_auth["refreshToken"]))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_deleted_user_token(self, test_client, user_auth):
        async with async_session_factory() as session:
            user = (await session.execute(select(User))).scalar_one()
            await session.delete(user)
            await session.commit()

        response = await test_client.get("/api/auth/me", headers=bearer(user_auth["token"]))
        assert response.status_code == 401
        assert response.json()["message"] == "User not found"


class TestRefresh:

    @pytest.mark.asyncio
    async def test_refresh_issues_new_pair(self, test_client, user_auth):
        response = await test_client.post(
            "/api/auth/refresh-token", json={"refreshToken": user_auth["refreshToken"]}
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"]
        assert data["refreshToken"]

        me = await test_client.get("/api/auth/me", headers=bearer(data["token"]))
        assert me.status_code == 200

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, test_client, user_auth):
        response = await test_client.post("/api/auth/refresh-token", json={"refreshToken": user_auth["token"]})
        assert response.status_code == 401


class TestEmailVerification:

    @pytest.mark.asyncio
    async def test_verify_email(self, test_client):
        with patch.object(email_service, "deliver_in_background", new=AsyncMock()) as deliver:
            data = await register_user(test_client, "verify@example.com")
        token = deliver.call_args.args[3]

        response = await test_client.get(f"/api/auth/verify-email/{token}")
        assert response.status_code == 200
        assert response.json()["message"] == "Email verified successfully"

        me = await test_client.get("/api/auth/me", headers=bearer(data["token"]))
        assert me.json()["data"]["user"]["emailVerified"] is True

        # single use
        again = await test_client.get(f"/api/auth/verify-email/{token}")
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_token(self, test_client):
        response = await test_client.get("/api/auth/verify-email/nope")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid or expired verification token"


class TestPasswordReset:

    @pytest.mark.asyncio
    async def test_forgot_password_same_message_for_unknown_email(self, test_client):
        with patch.object(email_service, "deliver_in_background", new=AsyncMock()) as deliver:
            response = await test_client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
        assert response.status_code == 200
        assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE
        deliver.assert_not_called()

    @pytest.mark.asyncio
    async def test_full_reset_flow(self, test_client):
        await register_user(test_client, "reset@example.com")

        with patch.object(email_service, "deliver_in_background", new=AsyncMock()) as deliver:
            response = await test_client.post("/api/auth/forgot-password", json={"email": "reset@example.com"})
        assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE
        kind, to, _, token = deliver.call_args.args
        assert (kind, to) == ("password_reset", "reset@example.com")

        response = await test_client.post(f"/api/auth/reset-password/{token}", json={"password": "brand-new-pass"})
        assert response.status_code == 200
        assert response.json()["message"] == "Password reset successfully"

        old = await test_client.post(
            "/api/auth/login", json={"email": "reset@example.com", "password": DEFAULT_PASSWORD}
        )
        assert old.status_code == 401
        new = await test_client.post(
            "/api/auth/login", json={"email": "reset@example.com", "password": "brand-new-pass"}
        )
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_expired_reset_token(self, test_client):
        await register_user(test_client, "late@example.com")
        with patch.object(email_service, "deliver_in_background", new=AsyncMock()) as deliver:
            await test_client.post("/api/auth/forgot-password", json={"email": "late@example.com"})
        token = deliver.call_args.args[3]

        async with async_session_factory() as session:
            await session.execute(
                update(User)
                .where(User.email == "late@example.com")
                .values(reset_token_expires_at=utcnow() - timedelta(minutes=1))
            )
            await session.commit()

        response = await test_client.post(f"/api/auth/reset-password/{token}", json={"password": "brand-new-pass"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid or expired reset token"


class TestSocialAuth:

    @pytest.mark.asyncio
    async def test_first_sign_in_creates_verified_account(self, test_client):
        body = {"provider": "google", "email": "g@example.com", "fullName": "Gia Google"}
        response = await test_client.post("/api/auth/social-auth", json=body)
        assert response.status_code == 201
        user = response.json()["data"]["user"]
        assert user["authProvider"] == "google"
        assert user["emailVerified"] is True
        assert user["role"] == "USER"

        again = await test_client.post("/api/auth/social-auth", json=body)
        assert again.status_code == 200
        assert again.json()["message"] == "Authentication successful"
        assert again.json()["data"]["user"]["id"] == user["id"]

    @pytest.mark.asyncio
    async def test_password_account_not_reachable(self, test_client):
        existing = await register_user(test_client, "both@example.com")
        response = await test_client.post(
            "/api/auth/social-auth",
            json={"provider": "facebook", "email": "both@example.com", "fullName": "Both"},
        )
        assert response.status_code == 409
        body = response.json()
        assert body["message"] == "Email already registered"
        assert "data" not in body

        me = await test_client.get("/api/auth/me", headers=bearer(existing["token"]))
        assert me.json()["data"]["user"]["authProvider"] == "email"

    @pytest.mark.asyncio
    async def test_admin_account_not_reachable(self, test_client):
        await register_user(test_client, "boss@example.com")
        await set_role("boss@example.com", UserRole.ADMIN)

        response = await test_client.post(
            "/api/auth/social-auth",
            json={"provider": "google", "email": "boss@example.com", "fullName": "Someone Else"},
        )
        assert response.status_code == 409
        assert "token" not in response.text

    @pytest.mark.asyncio
    async def test_other_provider_refused(self, test_client):
        body = {"provider": "google", "email": "g2@example.com", "fullName": "Gus"}
        assert (await test_client.post("/api/auth/social-auth", json=body)).status_code == 201

        response = await test_client.post("/api/auth/social-auth", json={**body, "provider": "apple"})
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_promoted_social_account_refused(self, test_client):
        body = {"provider": "google", "email": "hostly@example.com", "fullName": "Hostly"}
        assert (await test_client.post("/api/auth/social-auth", json=body)).status_code == 201
        await set_role("hostly@example.com", UserRole.HOST)

        response = await test_client.post("/api/auth/social-auth", json=body)
        assert response.status_code == 403
        assert response.json()["message"] == "Social sign-in is not available for this account"

    @pytest.mark.asyncio
    async def test_unknown_provider_rejected(self, test_client):
        response = await test_client.post(
            "/api/auth/social-auth",
            json={"provider": "myspace", "email": "m@example.com", "fullName": "M"},
        )
        assert response.status_code == 400


class TestRoleGuard:

    @pytest.mark.asyncio
    async def test_user_cannot_create_event(self, test_client, user_auth, event_payload):
        response = await test_client.post("/api/events", json=event_payload, headers=bearer(user_auth["token"]))
        assert response.status_code == 403
        assert response.json()["message"] == "Unauthorized access"
