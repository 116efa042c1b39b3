from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field

from detailing_booking.application.use_cases.booking_session import BookingSession
from detailing_booking.application.use_cases.confirm_booking import ConfirmationStatus, ReminderSettings
from detailing_booking.domain.entities.booking import Booking
from detailing_booking.domain.entities.catalog import ServiceLevel, ServiceType
from detailing_booking.domain.entities.form_data import FormData
from detailing_booking.domain.entities.pricing import PricingBreakdown
from detailing_booking.domain.entities.schedule import AvailableDay
from detailing_booking.domain.entities.validation import BookingValidationError
from detailing_booking.domain.entities.vehicle import Vehicle


class NavigationAction(str, Enum):
    next = "next"
    previous = "previous"
    goto = "goto"


class ValidationErrorSchema(BaseModel):
    step: int
    field: str
    message: str
    code: str

    @classmethod
    def from_error(cls, error: BookingValidationError) -> ValidationErrorSchema:
        return cls(step=error.step, field=error.field, message=error.message, code=error.code)


class SessionViewSchema(BaseModel):
    session_id: str
    current_step: int
    is_loading: bool
    is_submitting: bool
    submission_error: str | None = None
    can_proceed: bool
    can_go_back: bool
    is_last_step: bool
    form_data: FormData
    pricing: PricingBreakdown | None = None
    validation_errors: list[ValidationErrorSchema] = Field(default_factory=list)
    available_services: list[ServiceType] = Field(default_factory=list)
    available_levels: list[ServiceLevel] = Field(default_factory=list)
    saved_vehicles: list[Vehicle] = Field(default_factory=list)

    @classmethod
    def from_session(cls, session: BookingSession) -> SessionViewSchema:
        state = session.state
        return cls(
            session_id=session.session_id,
            current_step=state.current_step,
            is_loading=state.is_loading,
            is_submitting=state.is_submitting,
            submission_error=state.submission_error,
            can_proceed=session.can_proceed,
            can_go_back=session.can_go_back,
            is_last_step=session.is_last_step,
            form_data=state.form_data,
            pricing=state.pricing,
            validation_errors=[ValidationErrorSchema.from_error(e) for e in state.validation_errors],
            available_services=state.available_services,
            available_levels=state.available_levels,
            saved_vehicles=state.saved_vehicles,
        )


class NavigationRequestSchema(BaseModel):
    action: NavigationAction
    step: int | None = None


class AvailabilityRequestSchema(BaseModel):
    date: dt.date


class AvailabilityResponseSchema(BaseModel):
    date: dt.date
    day: AvailableDay | None = None


class TimeSlotRequestSchema(BaseModel):
    slot_id: str


class ReminderSettingsSchema(BaseModel):
    email: bool = True
    sms: bool = False
    days_before: list[int] = Field(default_factory=lambda: [1])
    custom_message: str | None = None

    def to_settings(self) -> ReminderSettings:
        return ReminderSettings(
            email=self.email,
            sms=self.sms,
            days_before=list(self.days_before),
            custom_message=self.custom_message,
        )


class SubmitRequestSchema(BaseModel):
    reminders: ReminderSettingsSchema | None = None


class NotificationStatusSchema(BaseModel):
    success: bool
    email_sent: bool
    sms_sent: bool
    sms_skipped: bool
    calendar_invite_sent: bool
    reminder_scheduled: bool
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_status(cls, status: ConfirmationStatus, success: bool) -> NotificationStatusSchema:
        return cls(
            success=success,
            email_sent=status.email_sent,
            sms_sent=status.sms_sent,
            sms_skipped=status.sms_skipped,
            calendar_invite_sent=status.calendar_invite_sent,
            reminder_scheduled=status.reminder_scheduled,
            errors=list(status.errors),
        )


class SubmitResponseSchema(BaseModel):
    confirmation_number: str
    booking: Booking
    estimated_arrival: dt.datetime | None = None
    payment_required: bool
    next_steps: list[str] = Field(default_factory=list)
    notifications: NotificationStatusSchema | None = None


class ErrorDetailSchema(BaseModel):
    message: str
    errors: list[ValidationErrorSchema] = Field(default_factory=list)


class CancelRequestSchema(BaseModel):
    reason: str | None = None
    refund_amount: float | None = Field(default=None, ge=0)


class CancelResponseSchema(BaseModel):
    booking_id: str
    cancelled: bool
    notification_sent: bool
