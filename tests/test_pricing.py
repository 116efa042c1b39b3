"""
Tests for the price breakdown.
"""

from __future__ import annotations

import pytest

from detailing_booking.application.exceptions import PreconditionFailure
from detailing_booking.application.use_cases.pricing import calculate_pricing
from detailing_booking.domain.entities.location import Location, LocationType, ShopLocation
from detailing_booking.infrastructure.booking_api.mock_booking_api import MOCK_VEHICLES


def test_mobile_evening_booking_breakdown(form_data):
    """75 x 1.3 x 1.2 = 117, plus 25 slot and 25 mobile surcharge, taxed at 8%."""
    pricing = calculate_pricing(form_data)

    assert pricing.service_price == 117.0
    assert pricing.level_multiplier == 1.3
    assert pricing.vehicle_size_multiplier == 1.2
    assert pricing.time_slot_surcharge == 25.0
    assert pricing.location_surcharge == 25.0
    assert pricing.surcharges == 50.0
    assert pricing.taxes == 13.36
    assert pricing.discounts == 0.0
    assert pricing.total == 180.36


def test_shop_booking_without_slot(form_data):
    shop = Location(type=LocationType.SHOP, shop_location=ShopLocation(id="s1", name="Downtown", address="1 Shop Way"))
    data = form_data.merge_step(3, {"selected_time_slot": None}).merge_step(4, {"location": shop})

    pricing = calculate_pricing(data)

    assert pricing.surcharges == 0.0
    assert pricing.taxes == 9.36
    assert pricing.total == 126.36


def test_totals_are_consistent(form_data):
    for vehicle in MOCK_VEHICLES:
        pricing = calculate_pricing(form_data.merge_step(2, {"selected_vehicle": vehicle}))
        assert pricing.total >= pricing.subtotal >= 0
        assert pricing.taxes == pytest.approx((pricing.subtotal + pricing.surcharges) * 0.08)
        assert pricing.total == pytest.approx(pricing.subtotal + pricing.surcharges + pricing.taxes)


@pytest.mark.parametrize(
    "step, changes",
    [
        (1, {"selected_service": None}),
        (1, {"selected_level": None}),
        (2, {"selected_vehicle": None}),
    ],
)
def test_missing_selection_is_a_precondition_failure(form_data, step, changes):
    with pytest.raises(PreconditionFailure):
        calculate_pricing(form_data.merge_step(step, changes))


def test_vehicle_without_size_is_a_precondition_failure(form_data, vehicle):
    sizeless = vehicle.model_copy(update={"size_category": None})
    with pytest.raises(PreconditionFailure):
        calculate_pricing(form_data.merge_step(2, {"selected_vehicle": sizeless}))


def test_pricing_is_pure(form_data):
    assert calculate_pricing(form_data) == calculate_pricing(form_data)
