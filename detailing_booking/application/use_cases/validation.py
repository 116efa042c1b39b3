from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Callable, Iterable

from detailing_booking.domain.entities.catalog import ServiceType
from detailing_booking.domain.entities.form_data import BookingStep, FormData
from detailing_booking.domain.entities.location import ContactInfo, Location, LocationType
from detailing_booking.domain.entities.schedule import TimeSlot
from detailing_booking.domain.entities.validation import (
    BookingValidationError,
    Custom,
    MaxLength,
    MinLength,
    Pattern,
    Required,
    StepSchema,
    ValidationRule,
)

NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\+]?[(]?[\+]?\d{3}[)]?[-\s\.]?\d{3}[-\s\.]?\d{4}$")
LICENSE_PLATE_PATTERN = re.compile(r"^[A-Z0-9\-\s]+$", re.IGNORECASE)
ZIP_CODE_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")

MIN_VEHICLE_YEAR = 1900
MAX_SPECIAL_REQUESTS_LENGTH = 500

# Per-field evaluation order: required -> length bounds -> pattern -> custom.
_RULE_ORDER = {Required: 0, MinLength: 1, MaxLength: 1, Pattern: 2, Custom: 3}


class BookingValidator:
    """Evaluates the per-step rule schema against form data.

    Validation never raises for bad input: every failing rule on every field
    yields one BookingValidationError and the caller decides what to block.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or datetime.now
        self._schema = self._build_schema()

    @property
    def schema(self) -> dict[int, StepSchema]:
        return self._schema

    def validate_step(self, step: int, form_data: FormData) -> list[BookingValidationError]:
        step_schema = self._schema.get(step)
        step_data = form_data.step_data(step)
        if step_schema is None or step_data is None:
            return []

        errors: list[BookingValidationError] = []
        for field_path, rules in step_schema.items():
            value = get_nested_value(step_data, field_path)
            errors.extend(self.validate_field(field_path, value, rules, form_data, step))
        return errors

    def validate_all(self, form_data: FormData) -> list[BookingValidationError]:
        errors: list[BookingValidationError] = []
        for step in BookingStep:
            errors.extend(self.validate_step(step, form_data))
        return errors

    def validate_field(
        self,
        field_path: str,
        value: Any,
        rules: Iterable[ValidationRule],
        form_data: FormData,
        step: int,
    ) -> list[BookingValidationError]:
        errors: list[BookingValidationError] = []
        for rule in sorted(rules, key=lambda r: _RULE_ORDER[type(r)]):
            error = self._apply_rule(field_path, value, rule, form_data, step)
            if error:
                errors.append(error)
        return errors

    def is_step_valid(self, step: int, form_data: FormData) -> bool:
        return not self.validate_step(step, form_data)

    def can_proceed(self, current_step: int, form_data: FormData) -> bool:
        """Rule validation plus the object-presence checks the field rules cannot express."""
        if not self.is_step_valid(current_step, form_data):
            return False

        if current_step == BookingStep.SERVICE_SELECTION:
            return form_data.step1.selected_service is not None and form_data.step1.selected_level is not None
        if current_step == BookingStep.VEHICLE_INFO:
            return form_data.step2.selected_vehicle is not None
        if current_step == BookingStep.DATE_TIME:
            return form_data.step3.selected_date is not None and form_data.step3.selected_time_slot is not None
        if current_step == BookingStep.LOCATION_CONTACT:
            return is_contact_info_complete(form_data.step4.contact_info) and is_location_complete(
                form_data.step4.location
            )
        return True

    def is_time_slot_selectable(self, slot: TimeSlot | None) -> bool:
        if slot is None or not slot.available:
            return False
        return slot.start_time > self._now_like(slot.start_time)

    def _apply_rule(
        self,
        field_path: str,
        value: Any,
        rule: ValidationRule,
        form_data: FormData,
        step: int,
    ) -> BookingValidationError | None:
        empty = is_empty(value)

        if isinstance(rule, Required):
            if not empty:
                return None
            if rule.when is not None and not rule.when(form_data):
                return None
            message = rule.message or f"{humanize_field_name(field_path)} is required"
            return BookingValidationError(step=step, field=field_path, message=message, code="REQUIRED")

        # Only the required check looks at empty values.
        if empty:
            return None

        if isinstance(rule, MinLength):
            if value_length(value) < rule.length:
                return BookingValidationError(
                    step=step,
                    field=field_path,
                    message=f"{humanize_field_name(field_path)} must be at least {rule.length} characters",
                    code="MIN_LENGTH",
                )
            return None

        if isinstance(rule, MaxLength):
            if value_length(value) > rule.length:
                return BookingValidationError(
                    step=step,
                    field=field_path,
                    message=f"{humanize_field_name(field_path)} must be no more than {rule.length} characters",
                    code="MAX_LENGTH",
                )
            return None

        if isinstance(rule, Pattern):
            if rule.regex.search(str(value)) is None:
                return BookingValidationError(
                    step=step,
                    field=field_path,
                    message=rule.message or pattern_error_message(field_path),
                    code="INVALID_FORMAT",
                )
            return None

        if isinstance(rule, Custom):
            message = rule.check(value, form_data)
            if message:
                return BookingValidationError(step=step, field=field_path, message=message, code="CUSTOM_VALIDATION")
            return None

        raise TypeError(f"Unsupported validation rule: {rule!r}")

    def _build_schema(self) -> dict[int, StepSchema]:
        return {
            BookingStep.SERVICE_SELECTION: {
                "selected_service": [Required(), Custom(self._check_service_available)],
                "selected_level": [Required()],
            },
            BookingStep.VEHICLE_INFO: {
                "selected_vehicle": [Required()],
                "selected_vehicle.make": [Required(), MinLength(2), MaxLength(50)],
                "selected_vehicle.model": [Required(), MinLength(1), MaxLength(50)],
                "selected_vehicle.year": [Required(), Custom(self._check_year)],
                "selected_vehicle.color": [Required(), MinLength(3), MaxLength(30)],
                "selected_vehicle.license_plate": [
                    Required(),
                    MinLength(2),
                    MaxLength(10),
                    Pattern(LICENSE_PLATE_PATTERN),
                ],
                "selected_vehicle.vehicle_type": [Required()],
                "selected_vehicle.size_category": [Required()],
            },
            BookingStep.DATE_TIME: {
                "selected_date": [Required(), Custom(self._check_not_past)],
                "selected_time_slot": [Required(), Custom(self._check_slot_selectable)],
            },
            BookingStep.LOCATION_CONTACT: {
                "contact_info.first_name": [Required(), MinLength(2), MaxLength(50), Pattern(NAME_PATTERN)],
                "contact_info.last_name": [Required(), MinLength(2), MaxLength(50), Pattern(NAME_PATTERN)],
                "contact_info.email": [Required(), Pattern(EMAIL_PATTERN)],
                "contact_info.phone": [Required(), Pattern(PHONE_PATTERN)],
                "contact_info.preferred_contact": [Required()],
                "location.type": [Required()],
                "location.address.street": [
                    Required("Street address is required for mobile service", when=_is_mobile_service),
                ],
                "location.address.city": [
                    Required("City is required for mobile service", when=_is_mobile_service),
                ],
                "location.address.zip_code": [
                    Required("ZIP code is required for mobile service", when=_is_mobile_service),
                    Pattern(ZIP_CODE_PATTERN, "Invalid ZIP code format"),
                ],
                "location.shop_location": [
                    Required("Please select a shop location", when=_is_shop_service),
                ],
            },
            BookingStep.CONFIRMATION: {
                "terms_accepted": [Custom(_check_terms_accepted)],
                "special_requests": [MaxLength(MAX_SPECIAL_REQUESTS_LENGTH)],
            },
        }

    def _check_year(self, value: Any, form_data: FormData) -> str | None:
        max_year = self._clock().year + 1
        try:
            year = int(value)
        except (TypeError, ValueError):
            return "Year must be a number"
        if year < MIN_VEHICLE_YEAR or year > max_year:
            return f"Year must be between {MIN_VEHICLE_YEAR} and {max_year}"
        return None

    def _check_not_past(self, value: Any, form_data: FormData) -> str | None:
        # Date-only comparison; today is allowed.
        if isinstance(value, datetime):
            value = value.date()
        if not isinstance(value, date):
            return "Please select a valid date"
        if value < self._clock().date():
            return "Please select a future date"
        return None

    def _check_service_available(self, value: Any, form_data: FormData) -> str | None:
        if isinstance(value, ServiceType) and not value.available:
            return f"{value.name} is not currently available"
        return None

    def _check_slot_selectable(self, value: Any, form_data: FormData) -> str | None:
        if isinstance(value, TimeSlot) and not self.is_time_slot_selectable(value):
            return "Selected time slot is no longer available"
        return None

    def _now_like(self, moment: datetime) -> datetime:
        """Current time in the same awareness as `moment` so the two can be compared."""
        now = self._clock()
        if moment.tzinfo is not None and now.tzinfo is None:
            return now.astimezone(moment.tzinfo)
        if moment.tzinfo is None and now.tzinfo is not None:
            return now.replace(tzinfo=None)
        return now


def _is_mobile_service(form_data: FormData) -> bool:
    return form_data.step4.location.type == LocationType.MOBILE


def _is_shop_service(form_data: FormData) -> bool:
    return form_data.step4.location.type == LocationType.SHOP


def _check_terms_accepted(value: Any, form_data: FormData) -> str | None:
    if value is not True:
        return "You must accept the terms and conditions to proceed"
    return None


def get_nested_value(source: Any, path: str) -> Any:
    current = source
    for key in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key)
        else:
            current = getattr(current, key, None)
    return current


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset, Mapping)):
        return len(value) == 0
    return False


def value_length(value: Any) -> int:
    if isinstance(value, (str, list, tuple, set, frozenset, Mapping)):
        return len(value)
    return len(str(value))


def humanize_field_name(field_path: str) -> str:
    """`selected_vehicle.license_plate` -> `License plate`."""
    return field_path.split(".")[-1].replace("_", " ").strip().capitalize()


def pattern_error_message(field_path: str) -> str:
    field = field_path.lower()
    if "email" in field:
        return "Please enter a valid email address"
    if "phone" in field:
        return "Please enter a valid phone number"
    if "license_plate" in field:
        return "Please enter a valid license plate (letters and numbers only)"
    if "first_name" in field or "last_name" in field:
        return "Name can only contain letters, spaces, hyphens, and apostrophes"
    if "zip_code" in field:
        return "Please enter a valid ZIP code (12345 or 12345-6789)"
    return f"Please enter a valid {humanize_field_name(field_path).lower()}"


def is_contact_info_complete(contact_info: ContactInfo | None) -> bool:
    if contact_info is None:
        return False
    return all(
        (
            contact_info.first_name,
            contact_info.last_name,
            contact_info.email,
            contact_info.phone,
            contact_info.preferred_contact,
        )
    )


def is_location_complete(location: Location | None) -> bool:
    if location is None:
        return False
    if location.type == LocationType.SHOP:
        return location.shop_location is not None
    if location.type == LocationType.MOBILE:
        address = location.address
        return bool(address and address.street and address.city and address.zip_code)
    return False


def is_service_available(service_id: str, services: Iterable[ServiceType]) -> bool:
    return any(service.id == service_id and service.available for service in services)


def field_errors(field: str, step: int, errors: Iterable[BookingValidationError]) -> list[BookingValidationError]:
    return [error for error in errors if error.step == step and error.field == field]


def errors_by_field(errors: Iterable[BookingValidationError]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for error in errors:
        grouped.setdefault(error.field, []).append(error.message)
    return grouped


def display_errors(errors: Iterable[BookingValidationError]) -> list[str]:
    return [error.message for error in errors]


def clear_field_errors(
    field: str, step: int, errors: Iterable[BookingValidationError]
) -> list[BookingValidationError]:
    return [error for error in errors if not (error.field == field and error.step == step)]
