from __future__ import annotations

import logging

import httpx

from detailing_booking.application.ports.notifications import NotificationPort
from detailing_booking.core.config import settings
from detailing_booking.domain.entities.notification import CalendarInvite, NotificationRequest, NotificationTemplate
from detailing_booking.infrastructure.http_envelope import EnvelopeClient


class HttpNotificationGateway(NotificationPort):
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        base_url = base_url or settings.NOTIFICATIONS_BASE_URL
        if not base_url:
            raise ValueError("NOTIFICATIONS_BASE_URL is required for notifications")

        self._client = EnvelopeClient(
            base_url=base_url,
            service_name="notification service",
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def send(self, request: NotificationRequest) -> bool:
        sent = await self._client.request("POST", "/send", bool, json=request.to_payload())
        self._logger.info(
            "Notification dispatched",
            extra={"channel": request.channel.value, "reason": request.template_id},
        )
        return sent

    async def send_calendar_invite(self, invite: CalendarInvite) -> bool:
        return await self._client.request("POST", "/calendar-invite", bool, json=invite.to_payload())

    async def schedule_reminders(self, booking_id: str | None, reminders: list[NotificationRequest]) -> bool:
        payload = {
            "bookingId": booking_id,
            "reminders": [reminder.to_payload() for reminder in reminders],
        }
        return await self._client.request("POST", "/schedule-reminders", bool, json=payload)

    async def list_templates(self) -> list[NotificationTemplate]:
        return await self._client.request("GET", "/templates", list[NotificationTemplate])

    async def aclose(self) -> None:
        await self._client.aclose()
