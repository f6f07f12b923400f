"""
EventHub Backend — Event Endpoint Tests
=========================================

What we test:
    ✅ Create with nested features/FAQs/schedule, slug generation, defaults
    ✅ date + startTime/endTime form input, end-before-start rejection
    ✅ Listing filters, sorting, pagination and attendee counts
    ✅ Lookup by id and by slug
    ✅ Ownership: only the host or an admin may update/delete
    ✅ Partial update, slug regeneration, nested list replacement
"""

import re
import uuid

import pytest

from conftest import bearer, create_category, register_user
from eventhub.database import async_session_factory
from eventhub.models.event import EventAttendee
from eventhub.services.event_service import make_event_slug, slugify


async def create_event(client, token, payload, **overrides):
    response = await client.post("/api/events", json={**payload, **overrides}, headers=bearer(token))
    assert response.status_code == 201, response.text
    return response.json()["data"]["event"]


class TestSlugs:

    def test_slugify(self):
        assert slugify("Jazz Night @ Blue Frog!") == "jazz-night-blue-frog"
        assert slugify("Café Crème") == "cafe-creme"
        assert slugify("!!!") == "event"

    def test_event_slug_has_random_suffix(self):
        slug = make_event_slug("Jazz Night")
        assert re.fullmatch(r"jazz-night-[a-z0-9]{5}", slug)


class TestCreateEvent:

    @pytest.mark.asyncio
    async def test_create_with_children(self, test_client, host_auth, event_payload):
        response = await test_client.post("/api/events", json=event_payload, headers=bearer(host_auth["token"]))
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Event created successfully"

        event = body["data"]["event"]
        assert event["slug"].startswith("jazz-night-at-the-blue-frog-")
        assert event["status"] == "UPCOMING"
        assert event["currency"] == "INR"
        assert event["hostId"] == host_auth["user"]["id"]
        assert event["host"]["email"] == "host@example.com"
        assert event["category"]["slug"] == "music-entertainment"
        assert [f["name"] for f in event["features"]] == ["Live band", "Bar"]
        assert event["faqs"][0]["question"] == "Is there parking?"
        assert [(s["activity"], s["order"]) for s in event["scheduleItems"]] == [
            ("Doors open", 0),
            ("First set", 1),
        ]
        assert event["_count"] == {"attendees": 0}
        assert event["attendees"] == []

    @pytest.mark.asyncio
    async def test_date_and_times_are_combined(self, test_client, host_auth, event_payload):
        payload = {k: v for k, v in event_payload.items() if k not in ("startDatetime", "endDatetime")}
        event = await create_event(
            test_client, host_auth["token"], payload, date="2030-05-10", startTime="10:00", endTime="14:30"
        )
        assert event["startDatetime"].startswith("2030-05-10T10:00:00")
        assert event["endDatetime"].startswith("2030-05-10T14:30:00")

    @pytest.mark.asyncio
    async def test_missing_window_rejected(self, test_client, host_auth, event_payload):
        payload = {k: v for k, v in event_payload.items() if k != "endDatetime"}
        response = await test_client.post("/api/events", json=payload, headers=bearer(host_auth["token"]))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, test_client, host_auth, event_payload):
        response = await test_client.post(
            "/api/events",
            json={**event_payload, "endDatetime": "2030-03-01T17:00:00Z"},
            headers=bearer(host_auth["token"]),
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "End time must not be before start time"

    @pytest.mark.asyncio
    async def test_unknown_category(self, test_client, host_auth, event_payload):
        response = await test_client.post(
            "/api/events",
            json={**event_payload, "categoryId": str(uuid.uuid4())},
            headers=bearer(host_auth["token"]),
        )
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Category not found"
        assert body["details"]["field"] == "categoryId"

    @pytest.mark.asyncio
    async def test_same_title_gets_distinct_slugs(self, test_client, host_auth, event_payload):
        first = await create_event(test_client, host_auth["token"], event_payload)
        second = await create_event(test_client, host_auth["token"], event_payload)
        assert first["slug"] != second["slug"]

    @pytest.mark.asyncio
    async def test_vendor_cannot_create(self, test_client, vendor_auth, event_payload):
        response = await test_client.post("/api/events", json=event_payload, headers=bearer(vendor_auth["token"]))
        assert response.status_code == 403


class TestGetEvent:

    @pytest.mark.asyncio
    async def test_by_id_and_slug(self, test_client, host_auth, event_payload):
        event = await create_event(test_client, host_auth["token"], event_payload)

        by_id = await test_client.get(f"/api/events/{event['id']}")
        by_slug = await test_client.get(f"/api/events/{event['slug']}")
        assert by_id.status_code == by_slug.status_code == 200
        assert by_id.json()["data"]["event"]["id"] == by_slug.json()["data"]["event"]["id"] == event["id"]

    @pytest.mark.asyncio
    async def test_not_found(self, test_client):
        response = await test_client.get("/api/events/no-such-event")
        assert response.status_code == 404
        assert response.json()["message"] == "Event not found"

    @pytest.mark.asyncio
    async def test_attendees_counted(self, test_client, host_auth, user_auth, event_payload):
        event = await create_event(test_client, host_auth["token"], event_payload)
        async with async_session_factory() as session:
            session.add(EventAttendee(event_id=uuid.UUID(event["id"]), user_id=uuid.UUID(user_auth["user"]["id"])))
            await session.commit()

        detail = (await test_client.get(f"/api/events/{event['id']}")).json()["data"]["event"]
        assert detail["_count"] == {"attendees": 1}
        assert detail["attendees"][0]["user"]["fullName"] == "Uma User"
        assert detail["attendees"][0]["status"] == "REGISTERED"

        listed = (await test_client.get("/api/events")).json()["data"]["events"]
        assert listed[0]["_count"] == {"attendees": 1}


class TestListEvents:

    @pytest.mark.asyncio
    async def test_filters_and_sorting(self, test_client, host_auth, category, event_payload):
        token = host_auth["token"]
        food = await create_category("Food & Drink", "food-drink")

        await create_event(test_client, token, event_payload, title="Cheap Jazz", price=100)
        await create_event(
            test_client, token, event_payload,
            title="Street Food Walk", description="Tasting tour", price=500,
            categoryId=str(food.id),
            startDatetime="2030-01-01T10:00:00Z", endDatetime="2030-01-01T12:00:00Z",
        )
        await create_event(test_client, token, event_payload, title="Premium Jazz", price=5000, status="DRAFT")

        async def titles(**params):
            response = await test_client.get("/api/events", params=params)
            assert response.status_code == 200
            return [e["title"] for e in response.json()["data"]["events"]]

        assert (await titles())[0] == "Street Food Walk"
        assert await titles(category="food-drink") == ["Street Food Walk"]
        assert await titles(category=str(food.id)) == ["Street Food Walk"]
        assert set(await titles(search="JAZZ")) == {"Cheap Jazz", "Premium Jazz"}
        assert await titles(search="tasting") == ["Street Food Walk"]
        assert await titles(status="draft") == ["Premium Jazz"]
        assert len(await titles(status="bogus")) == 3
        assert await titles(minPrice=200, maxPrice=1000) == ["Street Food Walk"]
        assert await titles(sort="price_desc") == ["Premium Jazz", "Street Food Walk", "Cheap Jazz"]
        assert await titles(sort="price_asc") == ["Cheap Jazz", "Street Food Walk", "Premium Jazz"]
        assert (await titles(sort="date_desc"))[-1] == "Street Food Walk"

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(self, test_client, host_auth, event_payload):
        token = host_auth["token"]
        await create_event(test_client, token, event_payload, title="100% Vinyl Night")
        await create_event(test_client, token, event_payload, title="Jazz Brunch")

        async def titles(search):
            response = await test_client.get("/api/events", params={"search": search})
            return [e["title"] for e in response.json()["data"]["events"]]

        assert await titles("100%") == ["100% Vinyl Night"]
        assert await titles("%") == ["100% Vinyl Night"]
        assert await titles("_") == []

    @pytest.mark.asyncio
    async def test_pagination(self, test_client, host_auth, event_payload):
        for i in range(5):
            await create_event(test_client, host_auth["token"], event_payload, title=f"Event {i}")

        response = await test_client.get("/api/events", params={"page": 2, "limit": 2})
        data = response.json()["data"]
        assert len(data["events"]) == 2
        assert data["pagination"] == {"total": 5, "page": 2, "limit": 2, "totalPages": 3}

        last = (await test_client.get("/api/events", params={"page": 3, "limit": 2})).json()["data"]
        assert len(last["events"]) == 1

    @pytest.mark.asyncio
    async def test_empty_listing(self, test_client):
        data = (await test_client.get("/api/events")).json()["data"]
        assert data["events"] == []
        assert data["pagination"] == {"total": 0, "page": 1, "limit": 20, "totalPages": 0}

    @pytest.mark.asyncio
    async def test_limit_capped(self, test_client):
        response = await test_client.get("/api/events", params={"limit": 500})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "limit"

    @pytest.mark.asyncio
    async def test_my_events_only_lists_own(self, test_client, host_auth, event_payload):
        other = await register_user(test_client, "other-host@example.com", role="HOST")
        await create_event(test_client, host_auth["token"], event_payload, title="Mine")
        await create_event(test_client, other["token"], event_payload, title="Theirs")

        response = await test_client.get("/api/events/my-events", headers=bearer(host_auth["token"]))
        assert response.status_code == 200
        assert [e["title"] for e in response.json()["data"]["events"]] == ["Mine"]

    @pytest.mark.asyncio
    async def test_my_events_requires_host_role(self, test_client, user_auth):
        response = await test_client.get("/api/events/my-events", headers=bearer(user_auth["token"]))
        assert response.status_code == 403


class TestUpdateEvent:

    @pytest.mark.asyncio
    async def test_partial_update_regenerates_slug(self, test_client, host_auth, event_payload):
        event = await create_event(test_client, host_auth["token"], event_payload)
        response = await test_client.put(
            f"/api/events/{event['id']}",
            json={"title": "Sunday Brunch Jazz", "price": 999},
            headers=bearer(host_auth["token"]),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Event updated successfully"
        updated = body["data"]["event"]
        assert updated["title"] == "Sunday Brunch Jazz"
        assert updated["slug"].startswith("sunday-brunch-jazz-")
        assert updated["price"] == 999
        assert updated["address"] == event_payload["address"]
        assert len(updated["features"]) == 2

    @pytest.mark.asyncio
    async def test_nested_lists_replaced(self, test_client, host_auth, event_payload):
        event = await create_event(test_client, host_auth["token"], event_payload)
        response = await test_client.put(
            f"/api/events/{event['id']}",
            json={"features": [{"name": "Open bar"}], "faqs": []},
            headers=bearer(host_auth["token"]),
        )
        updated = response.json()["data"]["event"]
        assert [f["name"] for f in updated["features"]] == ["Open bar"]
        assert updated["faqs"] == []
        assert len(updated["scheduleItems"]) == 2

    @pytest.mark.asyncio
    async def test_end_before_existing_start(self, test_client, host_auth, event_payload):
        event = await create_event(test_client, host_auth["token"], event_payload)
        response = await test_client.put(
            f"/api/events/{event['id']}",
            json={"endDatetime": "2030-02-01T00:00:00Z"},
            headers=bearer(host_auth["token"]),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "End time must not be before start time"

    @pytest.mark.asyncio
    async def test_other_host_forbidden(self, test_client, host_auth, event_payload):
        event = await create_event(test_client, host_auth["token"], event_payload)
        intruder = await register_user(test_client, "intruder@example.com", role="HOST")
        response = await test_client.put(
            f"/api/events/{event['id']}", json={"title": "Mine now"}, headers=bearer(intruder["token"])
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to update this event"

    @pytest.mark.asyncio
    async def test_admin_may_update_any_event(self, test_client, host_auth, admin_auth, event_payload):
        event = await create_event(test_client, host_auth["token"], event_payload)
        response = await test_client.put(
            f"/api/events/{event['id']}", json={"status": "CANCELLED"}, headers=bearer(admin_auth["token"])
        )
        assert response.status_code == 200
        assert response.json()["data"]["event"]["status"] == "CANCELLED"

    @pytest.mark.asyncio
    async def test_unknown_event(self, test_client, host_auth):
        response = await test_client.put(
            f"/api/events/{uuid.uuid4()}", json={"title": "x"}, headers=bearer(host_auth["token"])
        )
        assert response.status_code == 404


class TestDeleteEvent:

    @pytest.mark.asyncio
    async def test_host_deletes_event(self, test_client, host_auth, event_payload):
        event = await create_event(test_client, host_auth["token"], event_payload)
        response = await test_client.delete(f"/api/events/{event['id']}", headers=bearer(host_auth["token"]))
        assert response.status_code == 200
        assert response.json() == {"status": "success", "message": "Event deleted successfully"}

        assert (await test_client.get(f"/api/events/{event['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_other_host_cannot_delete(self, test_client, host_auth, event_payload):
        event = await create_event(test_client, host_auth["token"], event_payload)
        intruder = await register_user(test_client, "intruder@example.com", role="HOST")
        response = await test_client.delete(f"/api/events/{event['id']}", headers=bearer(intruder["token"]))
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to delete this event"
