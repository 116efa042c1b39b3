"""
Shared fixtures: a fixed clock, the mock booking service and a fully filled booking.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from detailing_booking.application.use_cases.booking_session import BookingSession
from detailing_booking.application.use_cases.validation import BookingValidator
from detailing_booking.domain.entities.form_data import (
    ConfirmationStepData,
    FormData,
    LocationContactStepData,
    ScheduleStepData,
    ServiceStepData,
    VehicleStepData,
)
from detailing_booking.domain.entities.location import Address, ContactInfo, ContactMethod, Location, LocationType
from detailing_booking.domain.entities.schedule import TimeSlot
from detailing_booking.infrastructure.booking_api.mock_booking_api import (
    MOCK_LEVELS,
    MOCK_SERVICES,
    MOCK_VEHICLES,
    MockBookingApi,
)

NOW = datetime(2026, 10, 17, 9, 0)  # a Saturday
BOOKING_DATE = date(2026, 10, 20)  # the following Tuesday


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def validator(clock) -> BookingValidator:
    return BookingValidator(clock=clock)


@pytest.fixture
def api(clock) -> MockBookingApi:
    return MockBookingApi(clock=clock)


@pytest.fixture
def session(api, validator, clock) -> BookingSession:
    return BookingSession(api=api, validator=validator, clock=clock, session_id="test-session")


@pytest.fixture
def service():
    # Exterior Wash & Wax, base price 75
    return MOCK_SERVICES[0]


@pytest.fixture
def premium_level():
    # multiplier 1.3
    return MOCK_LEVELS[1]


@pytest.fixture
def vehicle():
    # 2022 Toyota Camry, medium (1.2)
    return MOCK_VEHICLES[0]


@pytest.fixture
def evening_slot() -> TimeSlot:
    return TimeSlot(
        id="2026-10-20-16",
        start_time=datetime(2026, 10, 20, 16, 0),
        end_time=datetime(2026, 10, 20, 17, 0),
        available=True,
        price=25.0,
    )


@pytest.fixture
def contact() -> ContactInfo:
    return ContactInfo(
        first_name="Jane",
        last_name="O'Neil",
        email="jane@example.com",
        phone="555-123-4567",
        preferred_contact=ContactMethod.EMAIL,
    )


@pytest.fixture
def mobile_location() -> Location:
    return Location(
        type=LocationType.MOBILE,
        address=Address(street="123 Main St", city="Springfield", state="IL", zip_code="62701"),
    )


@pytest.fixture
def form_data(service, premium_level, vehicle, evening_slot, contact, mobile_location) -> FormData:
    return FormData(
        step1=ServiceStepData(selected_service=service, selected_level=premium_level),
        step2=VehicleStepData(selected_vehicle=vehicle, vehicles=list(MOCK_VEHICLES)),
        step3=ScheduleStepData(selected_date=BOOKING_DATE, selected_time_slot=evening_slot),
        step4=LocationContactStepData(location=mobile_location, contact_info=contact),
        step5=ConfirmationStepData(terms_accepted=True),
    )


@pytest.fixture
def filled_session(session, service, premium_level, vehicle, evening_slot, contact, mobile_location) -> BookingSession:
    session.update_step_data(1, {"selected_service": service, "selected_level": premium_level})
    session.update_step_data(2, {"selected_vehicle": vehicle})
    session.update_step_data(3, {"selected_date": BOOKING_DATE, "selected_time_slot": evening_slot})
    session.update_step_data(4, {"location": mobile_location, "contact_info": contact})
    session.update_step_data(5, {"terms_accepted": True})
    return session
