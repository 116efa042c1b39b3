from __future__ import annotations

from abc import ABC, abstractmethod

from detailing_booking.domain.entities.booking import (
    AvailabilityRequest,
    AvailabilityResponse,
    Booking,
    BookingCreationResponse,
    BookingStatus,
)
from detailing_booking.domain.entities.catalog import ServiceLevel, ServiceType
from detailing_booking.domain.entities.vehicle import Vehicle


class BookingApiPort(ABC):
    """Backend booking service. Implementations raise TransportFailure on any failed call."""

    @abstractmethod
    async def list_services(self) -> list[ServiceType]:
        raise NotImplementedError

    @abstractmethod
    async def get_service_levels(self, service_id: str) -> list[ServiceLevel]:
        raise NotImplementedError

    @abstractmethod
    async def list_vehicles(self, customer_id: str | None = None) -> list[Vehicle]:
        raise NotImplementedError

    @abstractmethod
    async def save_vehicle(self, vehicle: Vehicle) -> Vehicle:
        """Persist a new vehicle. Returns it with the id assigned by the service."""
        raise NotImplementedError

    @abstractmethod
    async def update_vehicle(self, vehicle_id: str, changes: Vehicle) -> Vehicle:
        """Apply the fields explicitly set on `changes` to a saved vehicle."""
        raise NotImplementedError

    @abstractmethod
    async def delete_vehicle(self, vehicle_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def check_availability(self, request: AvailabilityRequest) -> AvailabilityResponse:
        raise NotImplementedError

    @abstractmethod
    async def create_booking(self, booking: Booking) -> BookingCreationResponse:
        raise NotImplementedError

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Booking:
        raise NotImplementedError

    @abstractmethod
    async def cancel_booking(self, booking_id: str, reason: str | None = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def list_customer_bookings(
        self,
        customer_id: str,
        status: BookingStatus | None = None,
    ) -> list[Booking]:
        raise NotImplementedError
