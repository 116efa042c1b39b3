from __future__ import annotations

import logging

from detailing_booking.application.ports.notifications import NotificationPort
from detailing_booking.domain.entities.notification import (
    CalendarInvite,
    NotificationChannel,
    NotificationRequest,
    NotificationTemplate,
    TemplateType,
)

DEFAULT_TEMPLATES = [
    NotificationTemplate(
        id="booking_confirmation",
        type=TemplateType.BOOKING_CONFIRMATION,
        subject="Booking Confirmation - {{serviceName}}",
        content="Your booking has been confirmed for {{scheduledDate}} at {{scheduledTime}}",
        variables=["customerName", "confirmationNumber", "serviceName", "scheduledDate"],
    ),
    NotificationTemplate(
        id="booking_confirmation_sms",
        type=TemplateType.BOOKING_CONFIRMATION,
        subject="Booking Confirmed",
        content="Hi {{customerName}}, your {{serviceName}} is confirmed for {{scheduledDate}}. Confirmation: {{confirmationNumber}}",
        variables=["customerName", "serviceName", "scheduledDate", "confirmationNumber"],
    ),
    NotificationTemplate(
        id="reminder",
        type=TemplateType.REMINDER,
        subject="Upcoming Service Reminder",
        content="Your {{serviceName}} is scheduled for {{daysUntilService}} days",
        variables=["customerName", "serviceName", "daysUntilService"],
    ),
    NotificationTemplate(
        id="arrival_notice",
        type=TemplateType.ARRIVAL_NOTICE,
        subject="Our technician is on the way!",
        content="{{technicianName}} will arrive at {{estimatedArrival}} for your {{serviceName}}",
        variables=["customerName", "technicianName", "estimatedArrival", "serviceName"],
    ),
    NotificationTemplate(
        id="completion",
        type=TemplateType.COMPLETION,
        subject="Service Complete - How did we do?",
        content="Your {{serviceName}} is complete! Please share your feedback: {{feedbackUrl}}",
        variables=["customerName", "serviceName", "feedbackUrl"],
    ),
    NotificationTemplate(
        id="cancellation",
        type=TemplateType.CANCELLATION,
        subject="Booking Cancellation Confirmation",
        content="Your {{serviceName}} scheduled for {{scheduledDate}} has been cancelled",
        variables=["customerName", "serviceName", "scheduledDate", "reason"],
    ),
]

CALENDAR_CHANNEL = "calendar"
REMINDERS_CHANNEL = "reminders"


class MockNotificationGateway(NotificationPort):
    """
    Records every dispatch instead of sending it.

    Channels listed in `failing_channels` ("email", "sms", "calendar",
    "reminders") report False so partial-failure handling can be exercised.
    """

    def __init__(
        self,
        templates: list[NotificationTemplate] | None = None,
        failing_channels: set[str] | None = None,
    ) -> None:
        self._templates = list(DEFAULT_TEMPLATES if templates is None else templates)
        self.failing_channels = set(failing_channels or ())
        self.sent: list[NotificationRequest] = []
        self.invites: list[CalendarInvite] = []
        self.reminders: dict[str | None, list[NotificationRequest]] = {}
        self.template_requests = 0
        self._logger = logging.getLogger(__name__)

    async def send(self, request: NotificationRequest) -> bool:
        if request.channel.value in self.failing_channels:
            return False
        self.sent.append(request)
        self._logger.info(
            "Mock notification sent",
            extra={"channel": request.channel.value, "reason": request.template_id},
        )
        return True

    async def send_calendar_invite(self, invite: CalendarInvite) -> bool:
        if CALENDAR_CHANNEL in self.failing_channels:
            return False
        self.invites.append(invite)
        self._logger.info("Mock calendar invite sent", extra={"channel": CALENDAR_CHANNEL, "reason": invite.title})
        return True

    async def schedule_reminders(self, booking_id: str | None, reminders: list[NotificationRequest]) -> bool:
        if REMINDERS_CHANNEL in self.failing_channels:
            return False
        self.reminders.setdefault(booking_id, []).extend(reminders)
        self._logger.info(
            "Mock reminders scheduled",
            extra={"channel": REMINDERS_CHANNEL, "confirmation_number": booking_id, "reason": f"{len(reminders)} reminders"},
        )
        return True

    async def list_templates(self) -> list[NotificationTemplate]:
        self.template_requests += 1
        return list(self._templates)

    def sent_on(self, channel: NotificationChannel) -> list[NotificationRequest]:
        return [request for request in self.sent if request.channel == channel]
