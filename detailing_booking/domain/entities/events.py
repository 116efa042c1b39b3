from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from detailing_booking.domain.entities.validation import BookingValidationError


class BookingEventType(str, Enum):
    STEP_CHANGED = "step_changed"
    DATA_UPDATED = "data_updated"
    VALIDATION_ERROR = "validation_error"
    SUBMISSION_STARTED = "submission_started"
    SUBMISSION_COMPLETED = "submission_completed"
    SUBMISSION_FAILED = "submission_failed"


@dataclass(frozen=True)
class BookingEvent:
    type: BookingEventType
    timestamp: datetime
    step: int | None = None
    data: dict[str, Any] | None = None
    error: BookingValidationError | str | None = None
