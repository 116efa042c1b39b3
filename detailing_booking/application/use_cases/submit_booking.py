from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from detailing_booking.application.exceptions import PreconditionFailure, TransportFailure
from detailing_booking.application.ports.booking_api import BookingApiPort
from detailing_booking.application.use_cases.booking_session import BookingSession
from detailing_booking.application.use_cases.confirm_booking import (
    ConfirmationResult,
    ConfirmationWorkflow,
    ReminderSettings,
)
from detailing_booking.domain.entities.booking import Booking, BookingCreationResponse, BookingStatus, PaymentStatus
from detailing_booking.domain.entities.form_data import FormData
from detailing_booking.domain.entities.pricing import PricingBreakdown
from detailing_booking.domain.entities.validation import BookingValidationError

FAILURE_VALIDATION = "validation"
FAILURE_PRECONDITION = "precondition"
FAILURE_TRANSPORT = "transport"

VALIDATION_FAILED_MESSAGE = "Please correct all validation errors"


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    response: BookingCreationResponse | None = None
    errors: list[BookingValidationError] = field(default_factory=list)
    failure: str | None = None
    error_message: str | None = None
    confirmation: ConfirmationResult | None = None


def build_booking(form_data: FormData, pricing: PricingBreakdown | None, now: datetime) -> Booking:
    """Assemble the booking record sent to the booking service.

    Uses the last computed price as-is; a missing price or selection is a
    PreconditionFailure, never recomputed here.
    """
    if pricing is None:
        raise PreconditionFailure("Pricing must be calculated before submission")

    step1, step2, step3, step4, step5 = (
        form_data.step1,
        form_data.step2,
        form_data.step3,
        form_data.step4,
        form_data.step5,
    )
    missing = [
        name
        for name, value in (
            ("service", step1.selected_service),
            ("service level", step1.selected_level),
            ("vehicle", step2.selected_vehicle),
            ("date", step3.selected_date),
            ("time slot", step3.selected_time_slot),
        )
        if value is None
    ]
    if missing:
        raise PreconditionFailure(f"Missing booking selections: {', '.join(missing)}")

    return Booking(
        service=step1.selected_service,
        service_level=step1.selected_level,
        vehicle=step2.selected_vehicle,
        scheduled_date=step3.selected_date,
        time_slot=step3.selected_time_slot,
        location=step4.location,
        contact_info=step4.contact_info,
        pricing=pricing,
        special_instructions=step5.special_requests or None,
        status=BookingStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        created_at=now,
        updated_at=now,
    )


class SubmitBookingUseCase:
    def __init__(
        self,
        api: BookingApiPort,
        confirmation: ConfirmationWorkflow | None = None,
        reset_after_submission: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._api = api
        self._confirmation = confirmation
        self._reset_after_submission = reset_after_submission
        self._clock = clock or datetime.now
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        session: BookingSession,
        reminder_settings: ReminderSettings | None = None,
    ) -> SubmissionResult:
        form_data = session.form_data

        errors = session.validator.validate_all(form_data)
        if errors:
            session.record_validation_failure(errors)
            self._logger.info(
                "Submission rejected by validation",
                extra={"session_id": session.session_id, "step": errors[0].step, "reason": f"{len(errors)} errors"},
            )
            return SubmissionResult(
                success=False,
                errors=errors,
                failure=FAILURE_VALIDATION,
                error_message=VALIDATION_FAILED_MESSAGE,
            )

        try:
            booking = build_booking(form_data, session.pricing, self._clock())
        except PreconditionFailure as e:
            self._logger.warning("Submission precondition failed", extra={"session_id": session.session_id, "error": str(e)})
            return SubmissionResult(success=False, failure=FAILURE_PRECONDITION, error_message=str(e))

        session.begin_submission()
        try:
            response = await self._api.create_booking(booking)
        except TransportFailure as e:
            session.fail_submission(str(e))
            self._logger.error(
                "Booking submission failed",
                extra={"session_id": session.session_id, "error": str(e)},
            )
            return SubmissionResult(success=False, failure=FAILURE_TRANSPORT, error_message=str(e))

        session.complete_submission(response.confirmation_number)
        self._logger.info(
            "Booking submitted",
            extra={"session_id": session.session_id, "confirmation_number": response.confirmation_number},
        )

        confirmation = None
        if self._confirmation is not None:
            confirmation = await self._confirmation.process(response, reminder_settings)

        if self._reset_after_submission:
            session.reset()

        return SubmissionResult(success=True, response=response, confirmation=confirmation)
