"""EventHub Backend — Profile Endpoint Tests"""

import uuid

import pytest

from conftest import bearer


class TestProfile:

    @pytest.mark.asyncio
    async def test_get_profile(self, test_client, user_auth):
        response = await test_client.get("/api/users/profile", headers=bearer(user_auth["token"]))
        assert response.status_code == 200
        assert response.json()["data"]["user"]["email"] == "user@example.com"

    @pytest.mark.asyncio
    async def test_partial_update(self, test_client, user_auth):
        """Only sent fields change; the rest are untouched."""
        headers = bearer(user_auth["token"])
        response = await test_client.put(
            "/api/users/profile",
            json={"location": "Pune", "phone": "+919876543210", "preferences": {"categories": ["nightlife"]}},
            headers=headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Profile updated successfully"
        user = body["data"]["user"]
        assert user["location"] == "Pune"
        assert user["phone"] == "+919876543210"
        assert user["preferences"] == {"categories": ["nightlife"]}
        assert user["fullName"] == "Uma User"

        # explicit null clears the phone, omitted location stays
        response = await test_client.put("/api/users/profile", json={"phone": None}, headers=headers)
        user = response.json()["data"]["user"]
        assert "phone" not in user
        assert user["location"] == "Pune"

    @pytest.mark.asyncio
    async def test_full_name_cannot_be_cleared(self, test_client, user_auth):
        response = await test_client.put(
            "/api/users/profile", json={"fullName": None}, headers=bearer(user_auth["token"])
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["fullName"] == "Uma User"

    @pytest.mark.asyncio
    async def test_invalid_phone(self, test_client, user_auth):
        response = await test_client.put(
            "/api/users/profile", json={"phone": "call me"}, headers=bearer(user_auth["token"])
        )
        assert response.status_code == 400
        assert response.json()["errors"][0] == {"field": "phone", "message": "Phone must be a valid E.164 number"}

    @pytest.mark.asyncio
    async def test_requires_auth(self, test_client):
        response = await test_client.get("/api/users/profile")
        assert response.status_code == 401


class TestPublicProfile:

    @pytest.mark.asyncio
    async def test_public_profile_hides_contact_details(self, test_client, user_auth, host_auth):
        response = await test_client.get(
            f"/api/users/{host_auth['user']['id']}", headers=bearer(user_auth["token"])
        )
        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert user["fullName"] == "Hari Host"
        assert user["role"] == "HOST"
        assert "email" not in user
        assert "phone" not in user

    @pytest.mark.asyncio
    async def test_unknown_user(self, test_client):
        response = await test_client.get(f"/api/users/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_malformed_id(self, test_client):
        response = await test_client.get("/api/users/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "user_id"
