"""
Tests for the inspector self-service API (/api/v2/inspector).
"""
from datetime import timedelta

import pytest

from app.api.deps import create_access_token

INSPECTOR_PREFIX = "/api/v2/inspector"
MONDAY = "20240101"


class TestAuthentication:
    """Bearer token handling."""

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get(f"{INSPECTOR_PREFIX}/timeslots")

        assert response.status_code == 401
        assert response.json()["message"] == "Authorization header not supplied"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get(
            f"{INSPECTOR_PREFIX}/timeslots", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid auth token"

    @pytest.mark.asyncio
    async def test_expired_token(self, client, test_inspector):
        token = create_access_token(
            {"sub": test_inspector.id, "affiliation": "inspector"}, expires_delta=timedelta(minutes=-5)
        )

        response = await client.get(
            f"{INSPECTOR_PREFIX}/timeslots", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_client_affiliation_rejected(self, client, test_inspector):
        token = create_access_token({"sub": test_inspector.id, "affiliation": "client"})

        response = await client.get(
            f"{INSPECTOR_PREFIX}/timeslots", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized affiliation (inspector only)"

    @pytest.mark.asyncio
    async def test_unknown_inspector(self, client, test_inspector):
        token = create_access_token({"sub": "nobody", "affiliation": "inspector"})

        response = await client.get(
            f"{INSPECTOR_PREFIX}/timeslots", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401


class TestTimeslotEndpoints:
    """Weekly timeslots."""

    @pytest.mark.asyncio
    async def test_list(self, client, auth_headers):
        response = await client.get(f"{INSPECTOR_PREFIX}/timeslots", headers=auth_headers)

        assert response.status_code == 200
        timeslots = response.json()["timeslots"]
        assert timeslots["monday"] == [540, 780]
        assert len(timeslots) == 7

    @pytest.mark.asyncio
    async def test_add_and_remove(self, client, auth_headers):
        created = await client.post(
            f"{INSPECTOR_PREFIX}/timeslots", json={"day": "friday", "time": 600}, headers=auth_headers
        )
        assert created.status_code == 201
        assert created.json()["timeslots"]["friday"] == [600]

        removed = await client.delete(f"{INSPECTOR_PREFIX}/timeslots/friday/600", headers=auth_headers)
        assert removed.status_code == 200
        assert removed.json()["timeslots"]["friday"] == []

    @pytest.mark.asyncio
    async def test_duplicate(self, client, auth_headers):
        response = await client.post(
            f"{INSPECTOR_PREFIX}/timeslots", json={"day": "monday", "time": 540}, headers=auth_headers
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Duplicate timeslot"

    @pytest.mark.asyncio
    async def test_invalid_day(self, client, auth_headers):
        response = await client.post(
            f"{INSPECTOR_PREFIX}/timeslots", json={"day": "funday", "time": 540}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid day of the week"

    @pytest.mark.asyncio
    async def test_remove_missing(self, client, auth_headers):
        response = await client.delete(f"{INSPECTOR_PREFIX}/timeslots/sunday/540", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["message"] == "Nonexistent timeslot"


class TestTimeoffEndpoints:
    """Time-off entries."""

    @pytest.mark.asyncio
    async def test_add_list_remove(self, client, auth_headers):
        created = await client.post(
            f"{INSPECTOR_PREFIX}/timeoff", json={"date": MONDAY, "time": 540}, headers=auth_headers
        )
        assert created.status_code == 201
        assert created.json()["timeoff"] == [{"date": MONDAY, "time": 540}]

        listed = await client.get(f"{INSPECTOR_PREFIX}/timeoff", headers=auth_headers)
        assert listed.json()["timeoff"] == [{"date": MONDAY, "time": 540}]

        removed = await client.delete(f"{INSPECTOR_PREFIX}/timeoff/{MONDAY}/540", headers=auth_headers)
        assert removed.status_code == 200
        assert removed.json()["timeoff"] == []

    @pytest.mark.asyncio
    async def test_invalid_date(self, client, auth_headers):
        response = await client.post(
            f"{INSPECTOR_PREFIX}/timeoff", json={"date": "2024-01-01", "time": 540}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid date"

    @pytest.mark.asyncio
    async def test_time_off_hides_slot_from_availability(self, client, auth_headers, test_account):
        await client.post(f"{INSPECTOR_PREFIX}/timeoff", json={"date": MONDAY, "time": 540}, headers=auth_headers)

        response = await client.get(
            f"/api/v2/scheduling/{test_account.id}/availability",
            params={"from": MONDAY, "until": MONDAY},
        )

        assert [slot["time"] for slot in response.json()[MONDAY]] == [780]


class TestInspectionListing:
    """GET /inspector/inspections."""

    @pytest.mark.asyncio
    async def test_lists_range(self, client, auth_headers, create_inspection):
        await create_inspection(MONDAY, 780)
        await create_inspection(MONDAY, 540)
        await create_inspection("20240201", 540)

        response = await client.get(
            f"{INSPECTOR_PREFIX}/inspections",
            params={"start": MONDAY, "end": "20240131"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [i["time"] for i in data["inspections"]] == [540, 780]
        assert data["inspections"][0]["address"] == "100 Congress Ave, Austin, TX 78701"

    @pytest.mark.asyncio
    async def test_bad_range(self, client, auth_headers):
        response = await client.get(
            f"{INSPECTOR_PREFIX}/inspections",
            params={"start": "20240131", "end": MONDAY},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "End date is before start date"
