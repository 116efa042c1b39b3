from __future__ import annotations

import datetime as dt

from pydantic import Field

from detailing_booking.domain.entities.base import WireModel


class TimeSlot(WireModel):
    id: str
    start_time: dt.datetime
    end_time: dt.datetime
    available: bool = True
    price: float | None = Field(default=None, ge=0)  # surge or time-based surcharge


class AvailableDay(WireModel):
    date: dt.date
    slots: list[TimeSlot] = Field(default_factory=list)
    fully_booked: bool = False
