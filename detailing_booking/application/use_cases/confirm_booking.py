from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable
from zoneinfo import ZoneInfo

from detailing_booking.application.exceptions import NotificationFailure, TransportFailure
from detailing_booking.application.ports.booking_api import BookingApiPort
from detailing_booking.application.ports.notifications import NotificationPort
from detailing_booking.application.utils.formatting import (
    format_date,
    format_duration,
    format_location_for_calendar,
    format_location_for_template,
    format_money,
    format_time,
    preparation_steps,
    service_expectations,
)
from detailing_booking.domain.entities.booking import Booking, BookingCreationResponse
from detailing_booking.domain.entities.location import ContactMethod
from detailing_booking.domain.entities.notification import (
    CalendarInvite,
    NotificationChannel,
    NotificationRequest,
    NotificationTemplate,
    Recipient,
)

CONFIRMATION_EMAIL_TEMPLATE = "booking_confirmation"
CONFIRMATION_SMS_TEMPLATE = "booking_confirmation_sms"
REMINDER_TEMPLATE = "reminder"
ARRIVAL_TEMPLATE = "arrival_notice"
COMPLETION_TEMPLATE = "completion"
CANCELLATION_TEMPLATE = "cancellation"


@dataclass(frozen=True)
class BusinessContact:
    primary_phone: str
    business_hours: str
    emergency_contact: str | None = None


@dataclass(frozen=True)
class ReminderSettings:
    email: bool = True
    sms: bool = False
    days_before: list[int] = field(default_factory=lambda: [1])
    custom_message: str | None = None


@dataclass(frozen=True)
class TechnicianInfo:
    name: str
    phone: str
    photo: str | None = None


@dataclass(frozen=True)
class ServiceDetails:
    duration: str
    what_to_expect: list[str]
    preparation: list[str]


@dataclass(frozen=True)
class BookingConfirmationData:
    booking: Booking
    confirmation_number: str
    contact: BusinessContact
    next_steps: list[str]
    cancellation_policy: str
    service_details: ServiceDetails
    estimated_arrival: datetime | None = None


@dataclass
class ConfirmationStatus:
    email_sent: bool = False
    sms_sent: bool = False
    sms_skipped: bool = False
    calendar_invite_sent: bool = False
    reminder_scheduled: bool = False
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConfirmationResult:
    data: BookingConfirmationData
    status: ConfirmationStatus
    success: bool


class ConfirmationWorkflow:
    """
    Post-submission notification fan-out.

    Email, SMS, calendar invite and reminders are attempted one after another;
    a failing channel is recorded in the status errors and never stops the
    others. Success is reported only when every attempted channel succeeded.
    """

    def __init__(
        self,
        notifications: NotificationPort,
        api: BookingApiPort,
        business: BusinessContact,
        cancellation_policy: str,
        feedback_base_url: str = "",
        timezone: ZoneInfo | None = None,
    ) -> None:
        self._notifications = notifications
        self._api = api
        self._business = business
        self._cancellation_policy = cancellation_policy
        self._feedback_base_url = feedback_base_url.rstrip("/")
        self._timezone = timezone
        self._templates: dict[str, NotificationTemplate] | None = None
        self._logger = logging.getLogger(__name__)

    async def process(
        self,
        response: BookingCreationResponse,
        reminder_settings: ReminderSettings | None = None,
    ) -> ConfirmationResult:
        data = self.build_confirmation_data(response)
        status = ConfirmationStatus()
        results: list[bool] = []

        results.append(
            await self._attempt(status, "email_sent", "Failed to send confirmation email", lambda: self.send_confirmation_email(data))
        )
        if self._prefers_email(data.booking):
            status.sms_skipped = True
        else:
            results.append(
                await self._attempt(status, "sms_sent", "Failed to send confirmation SMS", lambda: self.send_confirmation_sms(data))
            )
        results.append(
            await self._attempt(
                status, "calendar_invite_sent", "Failed to send calendar invite", lambda: self.send_calendar_invite(data)
            )
        )
        if reminder_settings is not None:
            results.append(
                await self._attempt(
                    status,
                    "reminder_scheduled",
                    "Failed to schedule reminders",
                    lambda: self.schedule_reminders(data, reminder_settings),
                )
            )

        success = all(results)
        if not success:
            status.errors.append("Some notifications failed to send")

        self._logger.info(
            "Booking confirmation processed",
            extra={"confirmation_number": data.confirmation_number, "reason": "ok" if success else "; ".join(status.errors)},
        )
        return ConfirmationResult(data=data, status=status, success=success)

    def build_confirmation_data(self, response: BookingCreationResponse) -> BookingConfirmationData:
        booking = response.booking
        return BookingConfirmationData(
            booking=booking,
            confirmation_number=response.confirmation_number,
            estimated_arrival=response.estimated_arrival,
            contact=self._business,
            next_steps=list(response.next_steps),
            cancellation_policy=self._cancellation_policy,
            service_details=ServiceDetails(
                duration=format_duration(booking.service.duration),
                what_to_expect=service_expectations(booking.service.category),
                preparation=preparation_steps(booking.location.type),
            ),
        )

    # Channels

    async def send_confirmation_email(self, data: BookingConfirmationData) -> bool:
        template = await self._template(CONFIRMATION_EMAIL_TEMPLATE, NotificationChannel.EMAIL)
        contact = data.booking.contact_info
        request = NotificationRequest(
            template_id=template.id,
            recipient=Recipient(email=contact.email, name=contact.full_name),
            variables=self.template_variables(data),
            channel=NotificationChannel.EMAIL,
        )
        return await self._notifications.send(request)

    async def send_confirmation_sms(self, data: BookingConfirmationData) -> bool:
        if self._prefers_email(data.booking):
            return True

        template = await self._template(CONFIRMATION_SMS_TEMPLATE, NotificationChannel.SMS)
        contact = data.booking.contact_info
        request = NotificationRequest(
            template_id=template.id,
            recipient=Recipient(email=contact.email, phone=contact.phone, name=contact.full_name),
            variables=self.template_variables(data),
            channel=NotificationChannel.SMS,
        )
        return await self._notifications.send(request)

    async def send_calendar_invite(self, data: BookingConfirmationData) -> bool:
        booking = data.booking
        invite = CalendarInvite(
            title=f"{booking.service.name} - {booking.service_level.name}",
            description=self.calendar_description(data),
            start_time=booking.time_slot.start_time,
            end_time=booking.time_slot.end_time,
            location=format_location_for_calendar(booking.location),
            attendees=[booking.contact_info.email],
        )
        return await self._notifications.send_calendar_invite(invite)

    async def schedule_reminders(self, data: BookingConfirmationData, settings: ReminderSettings) -> bool:
        reminders = await self.reminder_requests(data, settings)
        if not reminders:
            return True
        return await self._notifications.schedule_reminders(data.booking.id, reminders)

    # Follow-up notifications

    async def send_arrival_notification(
        self,
        booking_id: str,
        estimated_arrival: datetime,
        technician: TechnicianInfo | None = None,
    ) -> bool:
        async def build(booking: Booking, template: NotificationTemplate) -> NotificationRequest:
            contact = booking.contact_info
            channel = NotificationChannel.SMS if contact.preferred_contact == ContactMethod.PHONE else NotificationChannel.EMAIL
            return NotificationRequest(
                template_id=template.id,
                recipient=Recipient(email=contact.email, phone=contact.phone, name=contact.full_name),
                variables={
                    "customerName": contact.first_name,
                    "estimatedArrival": format_time(estimated_arrival, self._timezone),
                    "technicianName": technician.name if technician else "Our technician",
                    "technicianPhone": technician.phone if technician else "Contact support",
                    "serviceName": booking.service.name,
                    "confirmationNumber": booking_id,
                },
                channel=channel,
            )

        return await self._send_follow_up(booking_id, ARRIVAL_TEMPLATE, build)

    async def send_completion_notification(self, booking_id: str) -> bool:
        async def build(booking: Booking, template: NotificationTemplate) -> NotificationRequest:
            contact = booking.contact_info
            return NotificationRequest(
                template_id=template.id,
                recipient=Recipient(email=contact.email, name=contact.full_name),
                variables={
                    "customerName": contact.first_name,
                    "serviceName": booking.service.name,
                    "feedbackUrl": f"{self._feedback_base_url}/feedback/{booking_id}",
                    "confirmationNumber": booking_id,
                },
                channel=NotificationChannel.EMAIL,
            )

        return await self._send_follow_up(booking_id, COMPLETION_TEMPLATE, build)

    async def send_cancellation_notification(
        self,
        booking_id: str,
        reason: str | None = None,
        refund_amount: float | None = None,
    ) -> bool:
        async def build(booking: Booking, template: NotificationTemplate) -> NotificationRequest:
            contact = booking.contact_info
            return NotificationRequest(
                template_id=template.id,
                recipient=Recipient(email=contact.email, name=contact.full_name),
                variables={
                    "customerName": contact.first_name,
                    "serviceName": booking.service.name,
                    "scheduledDate": format_date(booking.scheduled_date),
                    "reason": reason or "Booking cancelled",
                    "refundAmount": format_money(refund_amount) if refund_amount else "N/A",
                    "confirmationNumber": booking_id,
                },
                channel=NotificationChannel.EMAIL,
            )

        return await self._send_follow_up(booking_id, CANCELLATION_TEMPLATE, build)

    # Composition helpers

    def template_variables(self, data: BookingConfirmationData) -> dict[str, Any]:
        booking = data.booking
        return {
            "customerName": booking.contact_info.first_name,
            "confirmationNumber": data.confirmation_number,
            "serviceName": booking.service.name,
            "serviceLevel": booking.service_level.name,
            "scheduledDate": format_date(booking.scheduled_date),
            "scheduledTime": format_time(booking.time_slot.start_time, self._timezone),
            "vehicleInfo": booking.vehicle.display_name,
            "totalAmount": format_money(booking.pricing.total),
            "location": format_location_for_template(booking.location),
            "estimatedDuration": data.service_details.duration,
            "contactPhone": data.contact.primary_phone,
            "businessHours": data.contact.business_hours,
            "cancellationPolicy": data.cancellation_policy,
            "nextSteps": "\n".join(data.next_steps),
            "preparation": "\n".join(data.service_details.preparation),
        }

    async def reminder_requests(
        self, data: BookingConfirmationData, settings: ReminderSettings
    ) -> list[NotificationRequest]:
        template = await self._template(REMINDER_TEMPLATE, NotificationChannel.EMAIL)
        booking = data.booking
        contact = booking.contact_info
        base_variables = self.template_variables(data)
        reminders: list[NotificationRequest] = []

        for days in settings.days_before:
            scheduled_for = booking.time_slot.start_time - timedelta(days=days)
            if settings.email:
                reminders.append(
                    NotificationRequest(
                        template_id=template.id,
                        recipient=Recipient(email=contact.email, name=contact.full_name),
                        variables={
                            **base_variables,
                            "daysUntilService": str(days),
                            "customMessage": settings.custom_message or "",
                        },
                        scheduled_for=scheduled_for,
                        channel=NotificationChannel.EMAIL,
                    )
                )
            if settings.sms and not self._prefers_email(booking):
                reminders.append(
                    NotificationRequest(
                        template_id=template.id,
                        recipient=Recipient(email=contact.email, phone=contact.phone, name=contact.full_name),
                        variables={**base_variables, "daysUntilService": str(days)},
                        scheduled_for=scheduled_for,
                        channel=NotificationChannel.SMS,
                    )
                )
        return reminders

    def calendar_description(self, data: BookingConfirmationData) -> str:
        booking = data.booking
        lines = [
            f"{booking.service.name} - {booking.service_level.name}",
            "",
            f"Vehicle: {booking.vehicle.display_name}",
            f"Confirmation #: {data.confirmation_number}",
            "",
            "What to expect:",
            *data.service_details.what_to_expect,
            "",
            "Preparation:",
            *data.service_details.preparation,
            "",
            f"Contact: {data.contact.primary_phone}",
        ]
        return "\n".join(lines)

    async def _attempt(
        self,
        status: ConfirmationStatus,
        flag: str,
        failure_message: str,
        send: Callable[[], Awaitable[bool]],
    ) -> bool:
        try:
            sent = await send()
        except (NotificationFailure, TransportFailure) as e:
            self._logger.warning(failure_message, extra={"channel": flag, "error": str(e)})
            status.errors.append(f"{failure_message}: {e}")
            return False

        if sent:
            setattr(status, flag, True)
        else:
            self._logger.warning(failure_message, extra={"channel": flag})
            status.errors.append(failure_message)
        return sent

    async def _send_follow_up(
        self,
        booking_id: str,
        template_id: str,
        build: Callable[[Booking, NotificationTemplate], Awaitable[NotificationRequest]],
    ) -> bool:
        try:
            template = await self._template(template_id, NotificationChannel.EMAIL)
            booking = await self._api.get_booking(booking_id)
            return await self._notifications.send(await build(booking, template))
        except (NotificationFailure, TransportFailure) as e:
            self._logger.warning(
                "Follow-up notification failed",
                extra={"confirmation_number": booking_id, "channel": template_id, "error": str(e)},
            )
            return False

    async def _template(self, template_id: str, channel: NotificationChannel) -> NotificationTemplate:
        if self._templates is None:
            templates = await self._notifications.list_templates()
            self._templates = {template.id: template for template in templates}
        template = self._templates.get(template_id)
        if template is None:
            raise NotificationFailure(f"Notification template not found: {template_id}", channel=channel.value)
        return template

    @staticmethod
    def _prefers_email(booking: Booking) -> bool:
        return booking.contact_info.preferred_contact == ContactMethod.EMAIL
