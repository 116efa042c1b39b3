from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from detailing_booking.domain.entities.catalog import ServiceCategory
from detailing_booking.domain.entities.location import Location, LocationType

SERVICE_EXPECTATIONS: dict[ServiceCategory, list[str]] = {
    ServiceCategory.EXTERIOR: [
        "Complete exterior wash and dry",
        "Window cleaning inside and out",
        "Tire and rim cleaning",
        "Premium wax application",
    ],
    ServiceCategory.INTERIOR: [
        "Thorough vacuum of all surfaces",
        "Dashboard and console cleaning",
        "Upholstery treatment",
        "Interior protection application",
    ],
    ServiceCategory.FULL: [
        "Complete interior and exterior service",
        "All surfaces cleaned and protected",
        "Professional detailing throughout",
        "Quality inspection before completion",
    ],
    ServiceCategory.SPECIALTY: [
        "Specialized service as requested",
        "Professional grade products",
        "Expert technique application",
        "Detailed quality assurance",
    ],
}

MOBILE_PREPARATION = [
    "Ensure vehicle is accessible in driveway or street",
    "Remove all personal items from vehicle",
    "Provide access to water and power if needed",
    "Clear area around vehicle of obstacles",
]

SHOP_PREPARATION = [
    "Remove all personal items from vehicle",
    "Arrive 10 minutes before appointment",
    "Bring keys and any special instructions",
    "Park in designated customer area",
]


def format_date(value: date | datetime, timezone: ZoneInfo | None = None) -> str:
    """`Tuesday, October 20, 2026`"""
    if isinstance(value, datetime):
        value = _localize(value, timezone).date()
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def format_time(value: datetime, timezone: ZoneInfo | None = None) -> str:
    """`9:00 AM`"""
    return _localize(value, timezone).strftime("%I:%M %p").lstrip("0")


def format_duration(minutes: int) -> str:
    hours, remaining = divmod(minutes, 60)
    if hours == 0:
        return f"{remaining} minutes"
    hour_text = f"{hours} hour{'s' if hours > 1 else ''}"
    if remaining == 0:
        return hour_text
    return f"{hour_text} {remaining} minutes"


def format_money(amount: float) -> str:
    return f"${amount:.2f}"


def format_location_for_calendar(location: Location) -> str:
    if location.type == LocationType.MOBILE and location.address:
        address = location.address
        return f"{address.street}, {address.city}, {address.state} {address.zip_code}".replace(" ,", ",").strip()
    if location.shop_location:
        return location.shop_location.address
    return "Location TBD"


def format_location_for_template(location: Location) -> str:
    if location.type == LocationType.MOBILE:
        return "Mobile Service - We'll come to you!"
    if location.shop_location:
        return location.shop_location.name
    return "Our shop location"


def service_expectations(category: ServiceCategory) -> list[str]:
    return list(SERVICE_EXPECTATIONS.get(category, SERVICE_EXPECTATIONS[ServiceCategory.FULL]))


def preparation_steps(location_type: LocationType) -> list[str]:
    if location_type == LocationType.MOBILE:
        return list(MOBILE_PREPARATION)
    return list(SHOP_PREPARATION)


def _localize(value: datetime, timezone: ZoneInfo | None) -> datetime:
    if timezone is not None and value.tzinfo is not None:
        return value.astimezone(timezone)
    return value
