"""
Tests for the public scheduling API (/api/v2/scheduling).
"""
import pytest
from sqlalchemy import select

from app.models import Inspection, NotificationOutbox
from tests.factories import BookingPayloadFactory, RealtorPayloadFactory

SCHEDULING_PREFIX = "/api/v2/scheduling"
MONDAY = "20240101"


def _booking_payload(inspector_id: str, **overrides) -> dict:
    return BookingPayloadFactory(
        appointment={"date": MONDAY, "time": 540, "inspectorId": inspector_id},
        **overrides,
    )


class TestServicesAndPricing:
    """GET services and pricing."""

    @pytest.mark.asyncio
    async def test_list_services(self, client, test_account):
        response = await client.get(f"{SCHEDULING_PREFIX}/{test_account.id}/services")

        assert response.status_code == 200
        services = response.json()["services"]
        assert {"short": "radon", "long": "Radon Testing"} in services

    @pytest.mark.asyncio
    async def test_unknown_account(self, client):
        response = await client.get(f"{SCHEDULING_PREFIX}/missing/services")

        assert response.status_code == 409
        data = response.json()
        assert data["status"] == 409
        assert data["message"] == "Nonexistent account"
        assert response.headers["content-type"].startswith("application/problem+json")

    @pytest.mark.asyncio
    async def test_pricing_quote(self, client, test_account):
        response = await client.get(
            f"{SCHEDULING_PREFIX}/{test_account.id}/pricing",
            params={"services": "full|radon", "sqft": 1800, "foundation": "crawlspace", "age": 20},
        )

        assert response.status_code == 200
        data = response.json()
        assert [item["name"] for item in data["items"]] == [
            "Full Home Inspection (1800 sq ft)",
            "House age: 20 years",
            "Radon Testing",
            "Foundation: crawlspace",
        ]
        assert data["subtotal"] == 450.0
        assert data["tax"] == 31.5
        assert data["total"] == 481.5

    @pytest.mark.asyncio
    async def test_pricing_repeated_service_params(self, client, test_account):
        response = await client.get(
            f"{SCHEDULING_PREFIX}/{test_account.id}/pricing",
            params=[("services", "pre"), ("services", "termite"), ("sqft", 1800), ("foundation", "slab"), ("age", 5)],
        )

        assert response.status_code == 200
        names = [item["name"] for item in response.json()["items"]]
        assert names == ["Pre-Listing Inspection (1800 sq ft)", "Termite Inspection"]

    @pytest.mark.asyncio
    async def test_pricing_invalid_service(self, client, test_account):
        response = await client.get(
            f"{SCHEDULING_PREFIX}/{test_account.id}/pricing",
            params={"services": "full,pool", "sqft": 1800, "foundation": "slab", "age": 5},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid service name: pool"

    @pytest.mark.asyncio
    async def test_pricing_missing_params(self, client, test_account):
        response = await client.get(f"{SCHEDULING_PREFIX}/{test_account.id}/pricing")

        assert response.status_code == 400
        assert response.json()["errors"]


class TestAvailability:
    """GET availability."""

    @pytest.mark.asyncio
    async def test_week(self, client, test_account, test_inspector):
        response = await client.get(
            f"{SCHEDULING_PREFIX}/{test_account.id}/availability",
            params={"from": "20240101", "until": "20240107"},
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 7
        assert [slot["time"] for slot in data[MONDAY]] == [540, 780]
        assert data[MONDAY][0]["inspector_name"] == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_range_too_long(self, client, test_account):
        response = await client.get(
            f"{SCHEDULING_PREFIX}/{test_account.id}/availability",
            params={"from": "20240101", "until": "20240401"},
        )

        assert response.status_code == 400


class TestBooking:
    """POST inspections."""

    @pytest.mark.asyncio
    async def test_book(self, client, test_db, test_account, test_inspector):
        payload = _booking_payload(test_inspector.id, realtor=RealtorPayloadFactory())

        response = await client.post(f"{SCHEDULING_PREFIX}/{test_account.id}/inspections", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["number"] == 1
        assert data["date"] == MONDAY
        assert data["time"] == 540
        assert data["inspector_id"] == test_inspector.id

        inspection = (await test_db.execute(select(Inspection))).scalar_one()
        assert inspection.id == data["id"]
        kinds = sorted((await test_db.execute(select(NotificationOutbox.kind))).scalars().all())
        assert kinds == ["new_account", "new_account", "scheduled_client", "scheduled_realtor"]

    @pytest.mark.asyncio
    async def test_book_schedules_outbox_dispatch(self, client, test_account, test_inspector):
        from app.api.deps import get_notification_dispatcher
        from app.main import app

        calls = []

        async def record_dispatch():
            calls.append("dispatched")

        app.dependency_overrides[get_notification_dispatcher] = lambda: record_dispatch

        response = await client.post(
            f"{SCHEDULING_PREFIX}/{test_account.id}/inspections", json=_booking_payload(test_inspector.id)
        )

        assert response.status_code == 201
        assert calls == ["dispatched"]

    @pytest.mark.asyncio
    async def test_numeric_zip_accepted(self, client, test_account, test_inspector):
        payload = _booking_payload(test_inspector.id)
        payload["property"]["zip"] = 78701

        response = await client.post(f"{SCHEDULING_PREFIX}/{test_account.id}/inspections", json=payload)

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_double_booking_rejected(self, client, test_account, test_inspector):
        url = f"{SCHEDULING_PREFIX}/{test_account.id}/inspections"
        first = await client.post(url, json=_booking_payload(test_inspector.id))
        second = await client.post(url, json=_booking_payload(test_inspector.id))

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json()["message"] == "Inspector unavailable"

    @pytest.mark.asyncio
    async def test_invalid_property(self, client, test_account, test_inspector):
        payload = _booking_payload(test_inspector.id)
        payload["property"]["sqft"] = -10

        response = await client.post(f"{SCHEDULING_PREFIX}/{test_account.id}/inspections", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid square footage"

    @pytest.mark.asyncio
    async def test_wrong_shape_is_a_validation_error(self, client, test_account, test_inspector):
        payload = _booking_payload(test_inspector.id)
        payload["property"]["sqft"] = "big"

        response = await client.post(f"{SCHEDULING_PREFIX}/{test_account.id}/inspections", json=payload)

        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Request validation failed"
        assert any("sqft" in error["field"] for error in data["errors"])

    @pytest.mark.asyncio
    async def test_response_carries_request_id(self, client, test_account):
        response = await client.get(
            f"{SCHEDULING_PREFIX}/{test_account.id}/services",
            headers={"X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"
