from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any

from pydantic import Field

from detailing_booking.domain.entities.base import WireModel


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class TemplateType(str, Enum):
    BOOKING_CONFIRMATION = "booking_confirmation"
    REMINDER = "reminder"
    ARRIVAL_NOTICE = "arrival_notice"
    COMPLETION = "completion"
    FOLLOW_UP = "follow_up"
    CANCELLATION = "cancellation"


class Recipient(WireModel):
    email: str
    phone: str | None = None
    name: str


class NotificationRequest(WireModel):
    template_id: str
    recipient: Recipient
    variables: dict[str, Any] = Field(default_factory=dict)
    scheduled_for: dt.datetime | None = None
    channel: NotificationChannel = NotificationChannel.EMAIL


class NotificationTemplate(WireModel):
    id: str
    type: TemplateType
    subject: str
    content: str
    variables: list[str] = Field(default_factory=list)


class CalendarInvite(WireModel):
    title: str
    description: str
    start_time: dt.datetime
    end_time: dt.datetime
    location: str
    attendees: list[str] = Field(default_factory=list)
