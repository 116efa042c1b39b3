from __future__ import annotations

import logging
from typing import Literal

import httpx

from detailing_booking.application.ports.booking_api import BookingApiPort
from detailing_booking.core.config import settings
from detailing_booking.domain.entities.booking import (
    AvailabilityRequest,
    AvailabilityResponse,
    Booking,
    BookingCreationResponse,
    BookingStatus,
)
from detailing_booking.domain.entities.catalog import ServiceLevel, ServiceType
from detailing_booking.domain.entities.vehicle import Vehicle
from detailing_booking.infrastructure.http_envelope import EnvelopeClient


class HttpBookingApi(BookingApiPort):
    """
    Booking service client.

    The service catalog and each customer's vehicle list are cached after the
    first successful load; vehicle writes keep the cached lists in step.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        base_url = base_url or settings.BOOKING_API_BASE_URL
        if not base_url:
            raise ValueError("BOOKING_API_BASE_URL is required for the booking API")

        self._client = EnvelopeClient(
            base_url=base_url,
            service_name="booking api",
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._services_cache: list[ServiceType] | None = None
        self._vehicles_cache: dict[str | None, list[Vehicle]] = {}
        self._logger = logging.getLogger(__name__)

    async def list_services(self) -> list[ServiceType]:
        if self._services_cache is None:
            self._services_cache = await self._client.request("GET", "/services", list[ServiceType])
        return list(self._services_cache)

    async def get_service_levels(self, service_id: str) -> list[ServiceLevel]:
        return await self._client.request("GET", f"/services/{service_id}/levels", list[ServiceLevel])

    async def list_vehicles(self, customer_id: str | None = None) -> list[Vehicle]:
        if customer_id not in self._vehicles_cache:
            params = {"customerId": customer_id} if customer_id else None
            self._vehicles_cache[customer_id] = await self._client.request(
                "GET", "/vehicles", list[Vehicle], params=params
            )
        return list(self._vehicles_cache[customer_id])

    async def save_vehicle(self, vehicle: Vehicle) -> Vehicle:
        payload = vehicle.to_payload()
        payload.pop("id", None)
        saved = await self._client.request("POST", "/vehicles", Vehicle, json=payload)
        for cached in self._vehicles_cache.values():
            cached.append(saved)
        self._logger.info("Vehicle saved", extra={"reason": saved.id})
        return saved

    async def update_vehicle(self, vehicle_id: str, changes: Vehicle) -> Vehicle:
        payload = changes.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude={"id"})
        updated = await self._client.request("PUT", f"/vehicles/{vehicle_id}", Vehicle, json=payload)
        for cached in self._vehicles_cache.values():
            cached[:] = [updated if v.id == vehicle_id else v for v in cached]
        return updated

    async def delete_vehicle(self, vehicle_id: str) -> bool:
        deleted = await self._client.request("DELETE", f"/vehicles/{vehicle_id}", bool)
        for cached in self._vehicles_cache.values():
            cached[:] = [v for v in cached if v.id != vehicle_id]
        return deleted

    async def check_availability(self, request: AvailabilityRequest) -> AvailabilityResponse:
        return await self._client.request("POST", "/availability", AvailabilityResponse, json=request.to_payload())

    async def create_booking(self, booking: Booking) -> BookingCreationResponse:
        response = await self._client.request("POST", "", BookingCreationResponse, json=booking.to_payload())
        self._logger.info("Booking created", extra={"confirmation_number": response.confirmation_number})
        return response

    async def get_booking(self, booking_id: str) -> Booking:
        return await self._client.request("GET", f"/{booking_id}", Booking)

    async def cancel_booking(self, booking_id: str, reason: str | None = None) -> bool:
        cancelled = await self._client.request("POST", f"/{booking_id}/cancel", bool, json={"reason": reason})
        self._logger.info("Booking cancelled", extra={"reason": reason or "-"})
        return cancelled

    async def list_customer_bookings(
        self,
        customer_id: str,
        status: BookingStatus | None = None,
    ) -> list[Booking]:
        params = {"status": status.value} if status else None
        return await self._client.request("GET", f"/customers/{customer_id}/bookings", list[Booking], params=params)

    def clear_cache(self) -> None:
        self._services_cache = None
        self._vehicles_cache.clear()

    async def refresh_cache(self, cache_type: Literal["services", "vehicles"]) -> None:
        """Drop one cache and reload it. Vehicles reload for every customer seen so far."""
        if cache_type == "services":
            self._services_cache = None
            await self.list_services()
            return

        customers = list(self._vehicles_cache) or [None]
        self._vehicles_cache.clear()
        for customer_id in customers:
            await self.list_vehicles(customer_id)

    async def aclose(self) -> None:
        await self._client.aclose()
