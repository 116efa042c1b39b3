"""
Tests for the httpx booking API and notification adapters against a stubbed transport.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from conftest import BOOKING_DATE, NOW
from detailing_booking.application.exceptions import TransportFailure
from detailing_booking.application.use_cases.pricing import calculate_pricing
from detailing_booking.application.use_cases.submit_booking import build_booking
from detailing_booking.domain.entities.booking import AvailabilityRequest, BookingStatus
from detailing_booking.domain.entities.location import LocationType
from detailing_booking.domain.entities.notification import NotificationRequest, Recipient
from detailing_booking.domain.entities.vehicle import SizeCategory, Vehicle
from detailing_booking.infrastructure.booking_api.http_booking_api import HttpBookingApi
from detailing_booking.infrastructure.notifications.http_notifications import HttpNotificationGateway

BASE_URL = "https://api.example.test/bookings"


def _api(handler) -> HttpBookingApi:
    return HttpBookingApi(base_url=BASE_URL, timeout=5.0, transport=httpx.MockTransport(handler))


def _ok(data, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json={"success": True, "data": data})


def test_list_services_parses_camel_case_envelope():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/bookings/services"
        return _ok(
            [
                {
                    "id": "1",
                    "name": "Exterior Wash & Wax",
                    "basePrice": 75,
                    "duration": 60,
                    "category": "exterior",
                    "available": True,
                }
            ]
        )

    services = asyncio.run(_api(handler).list_services())

    assert len(services) == 1
    assert services[0].base_price == 75
    assert services[0].category.value == "exterior"


def test_service_levels_path():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return _ok([{"id": "basic", "name": "Basic", "priceMultiplier": 1.0}])

    levels = asyncio.run(_api(handler).get_service_levels("3"))

    assert seen == ["/bookings/services/3/levels"]
    assert levels[0].price_multiplier == 1.0


def test_list_vehicles_passes_customer_id():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["customerId"] == "cust-1"
        return _ok([{"id": "1", "make": "Toyota", "model": "Camry", "sizeCategory": "medium"}])

    vehicles = asyncio.run(_api(handler).list_vehicles("cust-1"))

    assert vehicles[0].size_category == SizeCategory.MEDIUM


def test_save_vehicle_sends_no_id(vehicle):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        return _ok({**body, "id": "veh-42"}, status_code=201)

    saved = asyncio.run(_api(handler).save_vehicle(vehicle))

    assert "id" not in bodies[0]
    assert bodies[0]["licensePlate"] == "ABC123"
    assert saved.id == "veh-42"


def test_check_availability_request_body():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/bookings/availability"
        assert body == {
            "serviceId": "1",
            "vehicleSize": "medium",
            "locationType": "mobile",
            "preferredDate": "2026-10-20",
        }
        return _ok(
            {
                "availableDays": [
                    {
                        "date": "2026-10-20",
                        "slots": [
                            {
                                "id": "2026-10-20-9",
                                "startTime": "2026-10-20T09:00:00",
                                "endTime": "2026-10-20T10:00:00",
                                "available": True,
                            }
                        ],
                        "fullyBooked": False,
                    }
                ],
                "blackoutDates": [],
                "timeZone": "America/New_York",
            }
        )

    request = AvailabilityRequest(
        service_id="1",
        vehicle_size=SizeCategory.MEDIUM,
        location_type=LocationType.MOBILE,
        preferred_date=BOOKING_DATE,
    )
    response = asyncio.run(_api(handler).check_availability(request))

    assert response.available_days[0].date == BOOKING_DATE
    assert response.available_days[0].slots[0].price is None
    assert response.time_zone == "America/New_York"


def test_create_booking_posts_to_base_url(form_data):
    booking = build_booking(form_data, calculate_pricing(form_data), NOW)

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.method == "POST"
        assert request.url.path.rstrip("/") == "/bookings"
        assert body["status"] == "pending"
        assert body["pricing"]["total"] == 180.36
        return _ok(
            {
                "booking": {**body, "id": "bk-1", "status": "confirmed"},
                "confirmationNumber": "NAS123456",
                "paymentRequired": True,
                "nextSteps": ["You will receive a confirmation email shortly"],
            },
            status_code=201,
        )

    response = asyncio.run(_api(handler).create_booking(booking))

    assert response.confirmation_number == "NAS123456"
    assert response.booking.id == "bk-1"
    assert response.booking.status.value == "confirmed"


def test_catalog_and_vehicles_are_cached():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.url.path.endswith("/services"):
            return _ok([{"id": "1", "name": "Wash", "basePrice": 75, "duration": 60, "category": "exterior"}])
        if request.method == "POST":
            return _ok({**json.loads(request.content), "id": "veh-9"}, status_code=201)
        return _ok([{"id": "1", "make": "Toyota", "model": "Camry", "sizeCategory": "medium"}])

    api = _api(handler)

    async def scenario():
        await api.list_services()
        await api.list_services()
        await api.list_vehicles()
        await api.save_vehicle(Vehicle(make="Ford", model="F-150", size_category=SizeCategory.XLARGE))
        vehicles = await api.list_vehicles()
        api.clear_cache()
        await api.list_services()
        return vehicles

    vehicles = asyncio.run(scenario())

    assert [v.id for v in vehicles] == ["1", "veh-9"]
    assert calls == [
        ("GET", "/bookings/services"),
        ("GET", "/bookings/vehicles"),
        ("POST", "/bookings/vehicles"),
        ("GET", "/bookings/services"),
    ]


def test_refresh_cache_reloads_vehicles_per_customer():
    params = []

    def handler(request: httpx.Request) -> httpx.Response:
        params.append(request.url.params.get("customerId"))
        return _ok([])

    api = _api(handler)

    async def scenario():
        await api.list_vehicles("cust-1")
        await api.list_vehicles("cust-1")
        await api.refresh_cache("vehicles")

    asyncio.run(scenario())

    assert params == ["cust-1", "cust-1"]


def test_update_vehicle_sends_only_changed_fields():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.method == "PUT"
        assert request.url.path == "/bookings/vehicles/1"
        assert body == {"color": "Red"}
        return _ok({"id": "1", "make": "Toyota", "model": "Camry", "color": "Red"})

    updated = asyncio.run(_api(handler).update_vehicle("1", Vehicle(id="ignored", color="Red")))

    assert updated.color == "Red"


def test_delete_vehicle():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        assert request.url.path == "/bookings/vehicles/2"
        return _ok(True)

    assert asyncio.run(_api(handler).delete_vehicle("2")) is True


def test_cancel_booking_posts_reason():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/bookings/bk-1/cancel"
        assert json.loads(request.content) == {"reason": "Weather"}
        return _ok(True)

    assert asyncio.run(_api(handler).cancel_booking("bk-1", "Weather")) is True


def test_customer_bookings_status_filter(form_data):
    booking = build_booking(form_data, calculate_pricing(form_data), NOW)

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/bookings/customers/cust-1/bookings"
        assert request.url.params["status"] == "confirmed"
        return _ok([{**booking.to_payload(), "id": "bk-1", "status": "confirmed"}])

    bookings = asyncio.run(_api(handler).list_customer_bookings("cust-1", BookingStatus.CONFIRMED))

    assert [(b.id, b.status) for b in bookings] == [("bk-1", BookingStatus.CONFIRMED)]


def test_unsuccessful_envelope_raises_with_code():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"success": False, "error": {"message": "Slot taken", "code": "SLOT_TAKEN"}})

    with pytest.raises(TransportFailure) as exc_info:
        asyncio.run(_api(handler).get_booking("bk-1"))

    assert str(exc_info.value) == "Slot taken"
    assert exc_info.value.code == "SLOT_TAKEN"
    assert exc_info.value.status_code == 409


def test_success_without_data_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True})

    with pytest.raises(TransportFailure) as exc_info:
        asyncio.run(_api(handler).list_services())

    assert exc_info.value.code == "MISSING_DATA"


def test_non_json_error_page_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>Bad Gateway</html>")

    with pytest.raises(TransportFailure) as exc_info:
        asyncio.run(_api(handler).list_services())

    assert exc_info.value.code == "INVALID_RESPONSE"
    assert exc_info.value.status_code == 502


def test_http_error_with_successful_envelope_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok([], status_code=500)

    with pytest.raises(TransportFailure) as exc_info:
        asyncio.run(_api(handler).list_services())

    assert exc_info.value.code == "HTTP_ERROR"


def test_unexpected_payload_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok([{"id": "1"}])

    with pytest.raises(TransportFailure) as exc_info:
        asyncio.run(_api(handler).list_services())

    assert exc_info.value.code == "INVALID_RESPONSE"


def test_network_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportFailure) as exc_info:
        asyncio.run(_api(handler).list_services())

    assert exc_info.value.code == "NETWORK_ERROR"


def test_missing_base_url_is_a_configuration_error(monkeypatch):
    from detailing_booking.infrastructure.booking_api import http_booking_api

    monkeypatch.setattr(http_booking_api.settings, "BOOKING_API_BASE_URL", None)
    with pytest.raises(ValueError):
        HttpBookingApi()


def _gateway(handler) -> HttpNotificationGateway:
    return HttpNotificationGateway(
        base_url="https://notify.example.test/notifications",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


def _request() -> NotificationRequest:
    return NotificationRequest(
        template_id="reminder",
        recipient=Recipient(email="jane@example.com", name="Jane O'Neil"),
        variables={"serviceName": "Exterior Wash & Wax"},
        scheduled_for=NOW,
    )


def test_send_notification():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/notifications/send"
        assert body["templateId"] == "reminder"
        assert body["recipient"] == {"email": "jane@example.com", "name": "Jane O'Neil"}
        assert body["scheduledFor"] == "2026-10-17T09:00:00"
        assert body["channel"] == "email"
        return _ok(True)

    assert asyncio.run(_gateway(handler).send(_request()))


def test_schedule_reminders_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/notifications/schedule-reminders"
        assert body["bookingId"] == "bk-1"
        assert len(body["reminders"]) == 2
        return _ok(True)

    assert asyncio.run(_gateway(handler).schedule_reminders("bk-1", [_request(), _request()]))


def test_templates_and_rejected_send():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/templates"):
            return _ok(
                [{"id": "reminder", "type": "reminder", "subject": "Reminder", "content": "{{serviceName}}"}]
            )
        return _ok(False)

    gateway = _gateway(handler)

    templates = asyncio.run(gateway.list_templates())
    assert templates[0].id == "reminder"
    assert asyncio.run(gateway.send(_request())) is False
