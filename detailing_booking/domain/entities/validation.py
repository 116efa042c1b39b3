from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Union

if TYPE_CHECKING:
    from detailing_booking.domain.entities.form_data import FormData


@dataclass(frozen=True)
class BookingValidationError:
    step: int
    field: str
    message: str
    code: str


@dataclass(frozen=True)
class Required:
    message: str | None = None
    # Makes the rule conditional on the rest of the form, e.g. address fields for mobile service.
    when: Callable[["FormData"], bool] | None = None


@dataclass(frozen=True)
class MinLength:
    length: int


@dataclass(frozen=True)
class MaxLength:
    length: int


@dataclass(frozen=True)
class Pattern:
    regex: re.Pattern[str]
    message: str | None = None


@dataclass(frozen=True)
class Custom:
    """Predicate returning an error message, or None when the value is acceptable."""

    check: Callable[[Any, "FormData"], str | None]


ValidationRule = Union[Required, MinLength, MaxLength, Pattern, Custom]

# Field path (dotted, relative to the step record) -> ordered rules.
StepSchema = dict[str, list[ValidationRule]]
