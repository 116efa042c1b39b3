from __future__ import annotations

import datetime as dt
from enum import IntEnum
from typing import Any

from pydantic import Field

from detailing_booking.domain.entities.base import WireModel
from detailing_booking.domain.entities.catalog import ServiceLevel, ServiceType
from detailing_booking.domain.entities.location import ContactInfo, Location, default_location
from detailing_booking.domain.entities.schedule import AvailableDay, TimeSlot
from detailing_booking.domain.entities.vehicle import Vehicle


class BookingStep(IntEnum):
    SERVICE_SELECTION = 1
    VEHICLE_INFO = 2
    DATE_TIME = 3
    LOCATION_CONTACT = 4
    CONFIRMATION = 5


FIRST_STEP = BookingStep.SERVICE_SELECTION
MAX_BOOKING_STEPS = len(BookingStep)

# Steps whose data feeds the price.
PRICING_STEPS = frozenset(
    {
        BookingStep.SERVICE_SELECTION,
        BookingStep.VEHICLE_INFO,
        BookingStep.DATE_TIME,
        BookingStep.LOCATION_CONTACT,
    }
)


class ServiceStepData(WireModel):
    selected_service: ServiceType | None = None
    selected_level: ServiceLevel | None = None
    pre_selected_service: str | None = None


class VehicleStepData(WireModel):
    selected_vehicle: Vehicle | None = None
    is_new_vehicle: bool = False
    vehicles: list[Vehicle] = Field(default_factory=list)


class ScheduleStepData(WireModel):
    selected_date: dt.date | None = None
    selected_time_slot: TimeSlot | None = None
    available_days: list[AvailableDay] = Field(default_factory=list)


class LocationContactStepData(WireModel):
    location: Location = Field(default_factory=default_location)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)


class ConfirmationStepData(WireModel):
    terms_accepted: bool = False
    marketing_opt_in: bool = False
    special_requests: str = ""


_STEP_KEYS = {
    BookingStep.SERVICE_SELECTION: "step1",
    BookingStep.VEHICLE_INFO: "step2",
    BookingStep.DATE_TIME: "step3",
    BookingStep.LOCATION_CONTACT: "step4",
    BookingStep.CONFIRMATION: "step5",
}


def step_key(step: int) -> str | None:
    """Return the FormData attribute holding `step`, or None for an unknown step."""
    try:
        return _STEP_KEYS[BookingStep(step)]
    except ValueError:
        return None


class FormData(WireModel):
    step1: ServiceStepData = Field(default_factory=ServiceStepData)
    step2: VehicleStepData = Field(default_factory=VehicleStepData)
    step3: ScheduleStepData = Field(default_factory=ScheduleStepData)
    step4: LocationContactStepData = Field(default_factory=LocationContactStepData)
    step5: ConfirmationStepData = Field(default_factory=ConfirmationStepData)

    def step_data(self, step: int) -> WireModel | None:
        key = step_key(step)
        return getattr(self, key) if key else None

    def merge_step(self, step: int, changes: dict[str, Any]) -> FormData:
        """Shallow-merge `changes` into one step record, returning a new FormData.

        Only the named subfields are replaced; every other subfield keeps its value.
        Plain values (dicts, strings) are parsed into their field types, so a bad value
        raises pydantic's ValidationError and leaves FormData untouched.
        """
        key = step_key(step)
        if key is None:
            raise ValueError(f"Invalid step: {step}")
        record = getattr(self, key)
        record_type = type(record)
        unknown = sorted(set(changes) - set(record_type.model_fields))
        if unknown:
            raise ValueError(f"Unknown fields for step {step}: {', '.join(unknown)}")
        current = {name: getattr(record, name) for name in record_type.model_fields}
        merged = record_type.model_validate({**current, **changes})
        return self.model_copy(update={key: merged})
