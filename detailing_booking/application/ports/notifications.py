from __future__ import annotations

from abc import ABC, abstractmethod

from detailing_booking.domain.entities.notification import (
    CalendarInvite,
    NotificationRequest,
    NotificationTemplate,
)


class NotificationPort(ABC):
    @abstractmethod
    async def send(self, request: NotificationRequest) -> bool:
        """Dispatch one notification. Returns True if the service accepted it."""
        raise NotImplementedError

    @abstractmethod
    async def send_calendar_invite(self, invite: CalendarInvite) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def schedule_reminders(self, booking_id: str | None, reminders: list[NotificationRequest]) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def list_templates(self) -> list[NotificationTemplate]:
        raise NotImplementedError
