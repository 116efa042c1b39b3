from __future__ import annotations

from decimal import Decimal

from detailing_booking.application.exceptions import PreconditionFailure
from detailing_booking.domain.entities.form_data import FormData
from detailing_booking.domain.entities.pricing import (
    LOCATION_SURCHARGES,
    TAX_RATE,
    VEHICLE_SIZE_MULTIPLIERS,
    PricingBreakdown,
)


def calculate_pricing(form_data: FormData) -> PricingBreakdown:
    """
    Derive the price breakdown from the current selections.

    Order: subtotal (base x level x vehicle size), surcharges (time slot + location),
    taxes on subtotal plus surcharges, then total. Pure: same input, same output.
    Raises PreconditionFailure when service, level or vehicle size is missing.
    """
    service = form_data.step1.selected_service
    level = form_data.step1.selected_level
    vehicle = form_data.step2.selected_vehicle

    if service is None or level is None or vehicle is None:
        raise PreconditionFailure("Service, service level and vehicle must be selected before pricing")
    if vehicle.size_category is None:
        raise PreconditionFailure("Vehicle size category is required for pricing")

    size_multiplier = VEHICLE_SIZE_MULTIPLIERS[vehicle.size_category]
    slot = form_data.step3.selected_time_slot
    slot_surcharge = slot.price if slot is not None and slot.price else 0.0
    location_surcharge = LOCATION_SURCHARGES[form_data.step4.location.type]

    subtotal = _amount(service.base_price) * _amount(level.price_multiplier) * _amount(size_multiplier)
    surcharges = _amount(slot_surcharge) + _amount(location_surcharge)
    taxes = (subtotal + surcharges) * _amount(TAX_RATE)
    total = subtotal + surcharges + taxes

    return PricingBreakdown(
        service_price=float(subtotal),
        level_multiplier=level.price_multiplier,
        vehicle_size_multiplier=size_multiplier,
        time_slot_surcharge=float(slot_surcharge),
        location_surcharge=float(location_surcharge),
        taxes=float(taxes),
        discounts=0.0,  # promotional discounts are not applied here
        total=float(total),
    )


def _amount(value: float) -> Decimal:
    # str() keeps 1.3 as 1.3 instead of its binary expansion.
    return Decimal(str(value))
