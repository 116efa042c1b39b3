from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from detailing_booking.application.exceptions import TransportFailure
from detailing_booking.application.ports.booking_api import BookingApiPort
from detailing_booking.domain.entities.booking import (
    AvailabilityRequest,
    AvailabilityResponse,
    Booking,
    BookingCreationResponse,
    BookingStatus,
)
from detailing_booking.domain.entities.catalog import ServiceCategory, ServiceLevel, ServiceType
from detailing_booking.domain.entities.schedule import AvailableDay, TimeSlot
from detailing_booking.domain.entities.vehicle import SizeCategory, Vehicle, VehicleCondition, VehicleType

MOCK_SERVICES = [
    ServiceType(
        id="1",
        name="Exterior Wash & Wax",
        description="Complete exterior cleaning with premium wax protection",
        base_price=75,
        duration=60,
        category=ServiceCategory.EXTERIOR,
    ),
    ServiceType(
        id="2",
        name="Interior Deep Clean",
        description="Thorough interior cleaning including upholstery and dashboard",
        base_price=100,
        duration=90,
        category=ServiceCategory.INTERIOR,
    ),
    ServiceType(
        id="3",
        name="Full Service Detail",
        description="Complete interior and exterior detailing package",
        base_price=150,
        duration=180,
        category=ServiceCategory.FULL,
    ),
    ServiceType(
        id="4",
        name="Paint Correction",
        description="Professional paint correction and ceramic coating",
        base_price=300,
        duration=300,
        category=ServiceCategory.SPECIALTY,
    ),
]

MOCK_LEVELS = [
    ServiceLevel(
        id="basic",
        name="Basic",
        description="Essential service package",
        price_multiplier=1.0,
        features=["Basic wash", "Vacuum", "Tire shine", "Windows cleaned"],
    ),
    ServiceLevel(
        id="premium",
        name="Premium",
        description="Enhanced service with premium products",
        price_multiplier=1.3,
        features=["Premium wash", "Deep vacuum", "Tire shine", "Interior protection", "Dashboard treatment"],
    ),
    ServiceLevel(
        id="ultimate",
        name="Ultimate",
        description="The complete luxury experience",
        price_multiplier=1.6,
        features=["Ultimate wash", "Complete detail", "Protection package", "Interior/exterior treatment", "Air freshener"],
    ),
]

MOCK_VEHICLES = [
    Vehicle(
        id="1",
        make="Toyota",
        model="Camry",
        year=2022,
        color="Silver",
        license_plate="ABC123",
        vehicle_type=VehicleType.SEDAN,
        size_category=SizeCategory.MEDIUM,
        condition=VehicleCondition.GOOD,
    ),
    Vehicle(
        id="2",
        make="Honda",
        model="CR-V",
        year=2021,
        color="Black",
        license_plate="XYZ789",
        vehicle_type=VehicleType.SUV,
        size_category=SizeCategory.LARGE,
        condition=VehicleCondition.EXCELLENT,
    ),
]

MOCK_NEXT_STEPS = [
    "You will receive a confirmation email shortly",
    "Our team will arrive 15 minutes before your scheduled time",
    "Please ensure your vehicle is accessible",
]

FIRST_SLOT_HOUR = 8
LAST_SLOT_END_HOUR = 17
SURCHARGE_FROM_HOUR = 16
RUSH_HOUR_SURCHARGE = 25.0
# Lunch break: listed but never bookable.
UNAVAILABLE_HOURS = frozenset({12})
AVAILABILITY_WINDOW_DAYS = 7
FINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW})
MOCK_CUSTOMER_ID = "mock-customer-id"


class MockBookingApi(BookingApiPort):
    """Deterministic in-memory booking service for local development and tests."""

    def __init__(
        self,
        timezone: ZoneInfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._timezone = timezone
        self._clock = clock or datetime.now
        self._vehicles: list[Vehicle] = list(MOCK_VEHICLES)
        self._bookings: dict[str, Booking] = {}
        self._sequence = 0
        self.created: list[Booking] = []
        self._logger = logging.getLogger(__name__)

    async def list_services(self) -> list[ServiceType]:
        return list(MOCK_SERVICES)

    async def get_service_levels(self, service_id: str) -> list[ServiceLevel]:
        if not any(service.id == service_id for service in MOCK_SERVICES):
            raise TransportFailure(f"Service not found: {service_id}", code="NOT_FOUND", status_code=404)
        return list(MOCK_LEVELS)

    async def list_vehicles(self, customer_id: str | None = None) -> list[Vehicle]:
        return list(self._vehicles)

    async def save_vehicle(self, vehicle: Vehicle) -> Vehicle:
        saved = vehicle.model_copy(update={"id": f"veh_{self._next_sequence():04d}"})
        self._vehicles.append(saved)
        self._logger.info("Mock vehicle saved", extra={"reason": saved.id})
        return saved

    async def update_vehicle(self, vehicle_id: str, changes: Vehicle) -> Vehicle:
        index = self._vehicle_index(vehicle_id)
        current = self._vehicles[index]
        updated = current.model_copy(
            update={name: getattr(changes, name) for name in changes.model_fields_set - {"id"}}
        )
        self._vehicles[index] = updated
        return updated

    async def delete_vehicle(self, vehicle_id: str) -> bool:
        del self._vehicles[self._vehicle_index(vehicle_id)]
        return True

    async def check_availability(self, request: AvailabilityRequest) -> AvailabilityResponse:
        start = request.preferred_date or self._clock().date()
        days = [self._build_day(start + timedelta(days=offset)) for offset in range(AVAILABILITY_WINDOW_DAYS)]
        next_available = next((day.date for day in days if not day.fully_booked), None)
        return AvailabilityResponse(
            available_days=days,
            next_available_date=next_available,
            blackout_dates=[day.date for day in days if day.fully_booked],
            time_zone=self._timezone.key if self._timezone else "UTC",
        )

    async def create_booking(self, booking: Booking) -> BookingCreationResponse:
        sequence = self._next_sequence()
        now = self._clock()
        stored = booking.model_copy(
            update={
                "id": f"bk_{sequence:04d}",
                "customer_id": MOCK_CUSTOMER_ID,
                "status": BookingStatus.CONFIRMED,
                "created_at": booking.created_at or now,
                "updated_at": now,
            }
        )
        self._bookings[stored.id] = stored
        self.created.append(booking)

        confirmation_number = f"NAS{100000 + sequence:06d}"
        self._logger.info("Mock booking created", extra={"confirmation_number": confirmation_number})
        return BookingCreationResponse(
            booking=stored,
            confirmation_number=confirmation_number,
            estimated_arrival=stored.time_slot.start_time - timedelta(minutes=15),
            payment_required=True,
            next_steps=list(MOCK_NEXT_STEPS),
        )

    async def get_booking(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise TransportFailure(f"Booking not found: {booking_id}", code="NOT_FOUND", status_code=404)
        return booking

    async def cancel_booking(self, booking_id: str, reason: str | None = None) -> bool:
        booking = await self.get_booking(booking_id)
        if booking.status in FINAL_STATUSES:
            raise TransportFailure(
                f"Booking cannot be cancelled from status {booking.status.value}",
                code="INVALID_STATUS",
                status_code=409,
            )
        self._bookings[booking_id] = booking.model_copy(
            update={"status": BookingStatus.CANCELLED, "updated_at": self._clock()}
        )
        self._logger.info("Mock booking cancelled", extra={"reason": reason or "-"})
        return True

    async def list_customer_bookings(
        self,
        customer_id: str,
        status: BookingStatus | None = None,
    ) -> list[Booking]:
        return [
            booking
            for booking in self._bookings.values()
            if booking.customer_id == customer_id and (status is None or booking.status == status)
        ]

    def _build_day(self, day: date) -> AvailableDay:
        # Closed on Sundays.
        if day.weekday() == 6:
            return AvailableDay(date=day, slots=[], fully_booked=True)

        slots = []
        for hour in range(FIRST_SLOT_HOUR, LAST_SLOT_END_HOUR):
            start = datetime.combine(day, time(hour=hour), tzinfo=self._timezone)
            available = hour not in UNAVAILABLE_HOURS
            slots.append(
                TimeSlot(
                    id=f"{day.isoformat()}-{hour}",
                    start_time=start,
                    end_time=start + timedelta(hours=1),
                    available=available,
                    price=RUSH_HOUR_SURCHARGE if available and hour >= SURCHARGE_FROM_HOUR else 0.0,
                )
            )
        return AvailableDay(date=day, slots=slots, fully_booked=not any(slot.available for slot in slots))

    def _vehicle_index(self, vehicle_id: str) -> int:
        for index, vehicle in enumerate(self._vehicles):
            if vehicle.id == vehicle_id:
                return index
        raise TransportFailure(f"Vehicle not found: {vehicle_id}", code="NOT_FOUND", status_code=404)

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence
