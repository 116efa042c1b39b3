from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import Field

from detailing_booking.domain.entities.base import WireModel
from detailing_booking.domain.entities.catalog import ServiceLevel, ServiceType
from detailing_booking.domain.entities.location import ContactInfo, Coordinates, Location, LocationType
from detailing_booking.domain.entities.pricing import PricingBreakdown
from detailing_booking.domain.entities.schedule import AvailableDay, TimeSlot
from detailing_booking.domain.entities.vehicle import SizeCategory, Vehicle

T = TypeVar("T")


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class Booking(WireModel):
    id: str | None = None
    customer_id: str | None = None
    status: BookingStatus = BookingStatus.PENDING
    service: ServiceType
    service_level: ServiceLevel
    vehicle: Vehicle
    scheduled_date: dt.date
    time_slot: TimeSlot
    location: Location
    contact_info: ContactInfo
    pricing: PricingBreakdown
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str | None = None
    special_instructions: str | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None
    rating: int | None = None
    review: str | None = None


class BookingCreationResponse(WireModel):
    booking: Booking
    confirmation_number: str
    estimated_arrival: dt.datetime | None = None
    payment_required: bool = True
    next_steps: list[str] = Field(default_factory=list)


class AvailabilityRequest(WireModel):
    service_id: str
    vehicle_size: SizeCategory
    location_type: LocationType
    preferred_date: dt.date | None = None
    coordinates: Coordinates | None = None


class AvailabilityResponse(WireModel):
    available_days: list[AvailableDay] = Field(default_factory=list)
    next_available_date: dt.date | None = None
    blackout_dates: list[dt.date] = Field(default_factory=list)
    time_zone: str = "UTC"


class ApiErrorDetail(WireModel):
    message: str
    code: str = "UNKNOWN"
    details: Any = None


class ApiEnvelope(WireModel, Generic[T]):
    success: bool
    data: T | None = None
    error: ApiErrorDetail | None = None
