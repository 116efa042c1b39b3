from __future__ import annotations

import calendar
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Callable, Iterator, Mapping

from detailing_booking.application.exceptions import InvalidStepError, PreconditionFailure
from detailing_booking.application.ports.booking_api import BookingApiPort
from detailing_booking.application.use_cases.pricing import calculate_pricing
from detailing_booking.application.use_cases.validation import BookingValidator
from detailing_booking.application.utils.event_bus import BookingEventBus, BookingEventListener
from detailing_booking.domain.entities.booking import AvailabilityRequest
from detailing_booking.domain.entities.catalog import ServiceLevel, ServiceType
from detailing_booking.domain.entities.events import BookingEvent, BookingEventType
from detailing_booking.domain.entities.form_data import (
    FIRST_STEP,
    MAX_BOOKING_STEPS,
    PRICING_STEPS,
    BookingStep,
    FormData,
    step_key,
)
from detailing_booking.domain.entities.location import ContactInfo, Location
from detailing_booking.domain.entities.pricing import PricingBreakdown
from detailing_booking.domain.entities.schedule import AvailableDay, TimeSlot
from detailing_booking.domain.entities.validation import BookingValidationError
from detailing_booking.domain.entities.vehicle import Vehicle

BLOCKED_MESSAGE = "Please complete current step before proceeding"


@dataclass(frozen=True)
class BookingSessionState:
    current_step: int = FIRST_STEP
    is_loading: bool = False
    form_data: FormData = field(default_factory=FormData)
    validation_errors: list[BookingValidationError] = field(default_factory=list)
    pricing: PricingBreakdown | None = None
    available_services: list[ServiceType] = field(default_factory=list)
    available_levels: list[ServiceLevel] = field(default_factory=list)
    saved_vehicles: list[Vehicle] = field(default_factory=list)
    is_submitting: bool = False
    submission_error: str | None = None


@dataclass(frozen=True)
class NavigationResult:
    allowed: bool
    current_step: int
    errors: list[BookingValidationError] = field(default_factory=list)
    message: str | None = None


class BookingSession:
    """
    One run of the booking wizard.

    Owns the canonical form data, the current step, recorded validation errors
    and the last computed price. The state snapshot is replaced wholesale on
    every mutation and each mutation is announced on the event bus.
    """

    def __init__(
        self,
        api: BookingApiPort,
        validator: BookingValidator | None = None,
        event_bus: BookingEventBus | None = None,
        session_id: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self._api = api
        self._validator = validator or BookingValidator()
        self._events = event_bus or BookingEventBus()
        self._clock = clock or datetime.now
        self._state = BookingSessionState()
        self._in_flight = 0
        self._logger = logging.getLogger(__name__)

    # Read-only views

    @property
    def state(self) -> BookingSessionState:
        return self._state

    @property
    def validator(self) -> BookingValidator:
        return self._validator

    @property
    def events(self) -> BookingEventBus:
        return self._events

    @property
    def current_step(self) -> int:
        return self._state.current_step

    @property
    def form_data(self) -> FormData:
        return self._state.form_data

    @property
    def pricing(self) -> PricingBreakdown | None:
        return self._state.pricing

    @property
    def validation_errors(self) -> list[BookingValidationError]:
        return list(self._state.validation_errors)

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def is_submitting(self) -> bool:
        return self._state.is_submitting

    @property
    def submission_error(self) -> str | None:
        return self._state.submission_error

    @property
    def can_proceed(self) -> bool:
        step = self._state.current_step
        if any(error.step == step for error in self._state.validation_errors):
            return False
        return self._validator.can_proceed(step, self._state.form_data)

    @property
    def can_go_back(self) -> bool:
        return self._state.current_step > FIRST_STEP

    @property
    def is_last_step(self) -> bool:
        return self._state.current_step == MAX_BOOKING_STEPS

    def subscribe(self, listener: BookingEventListener) -> Callable[[], None]:
        return self._events.subscribe(listener)

    # Navigation

    def go_to_step(self, step: int) -> NavigationResult:
        if not FIRST_STEP <= step <= MAX_BOOKING_STEPS:
            raise InvalidStepError(f"Invalid step: {step}")

        state = self._state
        if step > state.current_step and not self._validator.can_proceed(state.current_step, state.form_data):
            errors = self._validator.validate_step(state.current_step, state.form_data)
            self._update_state(validation_errors=[*state.validation_errors, *errors])
            self._emit(
                BookingEventType.VALIDATION_ERROR,
                step=state.current_step,
                error=errors[0] if errors else BLOCKED_MESSAGE,
            )
            self._logger.info(
                "Navigation blocked",
                extra={"session_id": self.session_id, "step": state.current_step, "reason": f"{len(errors)} errors"},
            )
            return NavigationResult(allowed=False, current_step=state.current_step, errors=errors, message=BLOCKED_MESSAGE)

        self._update_state(current_step=step)
        self._emit(BookingEventType.STEP_CHANGED, step=step)
        return NavigationResult(allowed=True, current_step=step)

    def next_step(self) -> NavigationResult:
        return self.go_to_step(self._state.current_step + 1)

    def previous_step(self) -> NavigationResult:
        if self._state.current_step <= FIRST_STEP:
            return NavigationResult(allowed=False, current_step=FIRST_STEP, message="Already at the first step")
        return self.go_to_step(self._state.current_step - 1)

    # Form data

    def update_step_data(self, step: int, data: Mapping[str, Any]) -> None:
        """Merge `data` into the step's record, drop that step's stale errors, then re-price."""
        if step_key(step) is None:
            raise InvalidStepError(f"Invalid step: {step}")

        state = self._state
        form_data = state.form_data.merge_step(step, dict(data))
        self._update_state(
            form_data=form_data,
            validation_errors=[error for error in state.validation_errors if error.step != step],
        )

        if step in PRICING_STEPS:
            self._recalculate_pricing()

        self._emit(BookingEventType.DATA_UPDATED, step=step, data={step_key(step): dict(data)})

    def calculate_pricing(self) -> PricingBreakdown:
        """Compute and store the price. Raises PreconditionFailure if selections are missing."""
        pricing = calculate_pricing(self._state.form_data)
        self._update_state(pricing=pricing)
        return pricing

    def _recalculate_pricing(self) -> None:
        try:
            self.calculate_pricing()
        except PreconditionFailure:
            self._update_state(pricing=None)

    # Step 1: service selection

    async def load_catalog(self) -> None:
        with self._loading():
            services = await self._api.list_services()
            vehicles = await self._api.list_vehicles()
        self._update_state(available_services=services, saved_vehicles=vehicles)
        self.update_step_data(BookingStep.VEHICLE_INFO, {"vehicles": vehicles})

    async def select_service(self, service: ServiceType) -> list[ServiceLevel]:
        self.update_step_data(BookingStep.SERVICE_SELECTION, {"selected_service": service})
        return await self.load_service_levels(service.id)

    async def load_service_levels(self, service_id: str) -> list[ServiceLevel]:
        with self._loading():
            levels = await self._api.get_service_levels(service_id)
        self._update_state(available_levels=levels)
        return levels

    def select_service_level(self, level: ServiceLevel) -> None:
        self.update_step_data(BookingStep.SERVICE_SELECTION, {"selected_level": level})

    # Step 2: vehicle

    def select_vehicle(self, vehicle: Vehicle) -> None:
        self.update_step_data(BookingStep.VEHICLE_INFO, {"selected_vehicle": vehicle, "is_new_vehicle": False})

    async def add_new_vehicle(self, vehicle: Vehicle) -> Vehicle:
        with self._loading():
            saved = await self._api.save_vehicle(vehicle)

        vehicles = [*self._state.saved_vehicles, saved]
        self._update_state(saved_vehicles=vehicles)
        self.update_step_data(
            BookingStep.VEHICLE_INFO,
            {"selected_vehicle": saved, "is_new_vehicle": True, "vehicles": vehicles},
        )
        return saved

    # Step 3: date and time

    async def select_date(self, selected: date) -> AvailableDay | None:
        self.update_step_data(BookingStep.DATE_TIME, {"selected_date": selected, "selected_time_slot": None})
        return await self.load_available_slots(selected)

    async def load_available_slots(self, target_date: date) -> AvailableDay | None:
        """
        Fetch availability for `target_date`.

        The result is merged into step 3 only if `target_date` is still the
        selected date when the response arrives; a response superseded by a
        newer selection is discarded and None is returned.
        """
        request = self._availability_request(target_date)
        with self._loading():
            response = await self._api.check_availability(request)

        day = next((d for d in response.available_days if d.date == target_date), None)
        if day is None:
            day = AvailableDay(date=target_date, slots=[], fully_booked=True)

        if self._state.form_data.step3.selected_date != target_date:
            self._logger.info(
                "Discarding stale availability response",
                extra={"session_id": self.session_id, "reason": f"requested {target_date.isoformat()}"},
            )
            return None

        self._merge_available_days([day])
        return day

    async def load_month_availability(self, year: int, month: int) -> list[AvailableDay]:
        first_day = date(year, month, 1)
        last_day = date(year, month, calendar.monthrange(year, month)[1])
        request = self._availability_request(first_day)
        with self._loading():
            response = await self._api.check_availability(request)

        days = [day for day in response.available_days if first_day <= day.date <= last_day]
        if days:
            self._merge_available_days(days)
        return days

    def select_time_slot(self, slot: TimeSlot) -> bool:
        """Select `slot` if it is available and in the future; otherwise record an error."""
        if not self._validator.is_time_slot_selectable(slot):
            error = BookingValidationError(
                step=BookingStep.DATE_TIME,
                field="selected_time_slot",
                message="Selected time slot is not available",
                code="SLOT_UNAVAILABLE",
            )
            self._update_state(validation_errors=[*self._state.validation_errors, error])
            self._emit(BookingEventType.VALIDATION_ERROR, step=BookingStep.DATE_TIME, error=error)
            return False

        self.update_step_data(BookingStep.DATE_TIME, {"selected_time_slot": slot})
        return True

    def _availability_request(self, preferred_date: date) -> AvailabilityRequest:
        form_data = self._state.form_data
        service = form_data.step1.selected_service
        vehicle = form_data.step2.selected_vehicle
        if service is None or vehicle is None or vehicle.size_category is None:
            raise PreconditionFailure("Service and vehicle must be selected first")

        location = form_data.step4.location
        return AvailabilityRequest(
            service_id=service.id,
            vehicle_size=vehicle.size_category,
            location_type=location.type,
            preferred_date=preferred_date,
            coordinates=location.address.coordinates if location.address else None,
        )

    def _merge_available_days(self, days: list[AvailableDay]) -> None:
        fresh = {day.date for day in days}
        kept = [day for day in self._state.form_data.step3.available_days if day.date not in fresh]
        merged = sorted([*kept, *days], key=lambda day: day.date)
        self.update_step_data(BookingStep.DATE_TIME, {"available_days": merged})

    # Step 4: location and contact

    def update_location(self, location: Location) -> None:
        self.update_step_data(BookingStep.LOCATION_CONTACT, {"location": location})

    def update_contact_info(self, contact_info: ContactInfo) -> None:
        self.update_step_data(BookingStep.LOCATION_CONTACT, {"contact_info": contact_info})

    # Step 5: confirmation

    def update_confirmation(self, **changes: Any) -> None:
        self.update_step_data(BookingStep.CONFIRMATION, changes)

    # Validation

    def validate_current_step(self) -> list[BookingValidationError]:
        step = self._state.current_step
        errors = self._validator.validate_step(step, self._state.form_data)
        kept = [error for error in self._state.validation_errors if error.step != step]
        self._update_state(validation_errors=[*kept, *errors])
        if errors:
            self._emit(BookingEventType.VALIDATION_ERROR, step=step, error=errors[0])
        return errors

    def clear_validation_errors(self, step: int | None = None) -> None:
        if step is None:
            self._update_state(validation_errors=[])
            return
        self._update_state(validation_errors=[error for error in self._state.validation_errors if error.step != step])

    # Submission bookkeeping, driven by SubmitBookingUseCase

    def record_validation_failure(self, errors: list[BookingValidationError]) -> None:
        self._update_state(validation_errors=list(errors))
        self._emit(BookingEventType.VALIDATION_ERROR, error="Please correct all validation errors")

    def begin_submission(self) -> None:
        self._update_state(is_submitting=True, submission_error=None)
        self._emit(BookingEventType.SUBMISSION_STARTED)

    def complete_submission(self, confirmation_number: str) -> None:
        self._update_state(is_submitting=False)
        self._emit(BookingEventType.SUBMISSION_COMPLETED, data={"confirmation_number": confirmation_number})

    def fail_submission(self, message: str) -> None:
        self._update_state(is_submitting=False, submission_error=message or "Failed to submit booking")
        self._emit(BookingEventType.SUBMISSION_FAILED, error=message)

    def reset(self) -> None:
        """Back to step 1 with empty form data; loaded catalog data is kept."""
        state = self._state
        self._state = BookingSessionState(
            is_loading=self._in_flight > 0,
            available_services=state.available_services,
            saved_vehicles=state.saved_vehicles,
        )
        self._emit(BookingEventType.STEP_CHANGED, step=FIRST_STEP)

    # Internals

    def _update_state(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)

    def _emit(self, event_type: BookingEventType, **fields: Any) -> None:
        self._events.publish(BookingEvent(type=event_type, timestamp=self._clock(), **fields))

    @contextmanager
    def _loading(self) -> Iterator[None]:
        # Counter, so overlapping requests do not clear each other's flag.
        self._in_flight += 1
        self._update_state(is_loading=True)
        try:
            yield
        finally:
            self._in_flight -= 1
            self._update_state(is_loading=self._in_flight > 0)
