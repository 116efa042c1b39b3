from __future__ import annotations

from pydantic import Field

from detailing_booking.domain.entities.base import WireModel
from detailing_booking.domain.entities.location import LocationType
from detailing_booking.domain.entities.vehicle import SizeCategory

VEHICLE_SIZE_MULTIPLIERS: dict[SizeCategory, float] = {
    SizeCategory.SMALL: 1.0,
    SizeCategory.MEDIUM: 1.2,
    SizeCategory.LARGE: 1.5,
    SizeCategory.XLARGE: 2.0,
}

LOCATION_SURCHARGES: dict[LocationType, float] = {
    LocationType.MOBILE: 25.0,
    LocationType.SHOP: 0.0,
}

TAX_RATE = 0.08


class PricingBreakdown(WireModel):
    service_price: float = Field(ge=0)  # base price with level and size multipliers applied
    level_multiplier: float = Field(ge=0)
    vehicle_size_multiplier: float = Field(ge=0)
    time_slot_surcharge: float = Field(default=0.0, ge=0)
    location_surcharge: float = Field(default=0.0, ge=0)
    taxes: float = Field(ge=0)
    discounts: float = Field(default=0.0, ge=0)
    total: float = Field(ge=0)

    @property
    def subtotal(self) -> float:
        return self.service_price

    @property
    def surcharges(self) -> float:
        return self.time_slot_surcharge + self.location_surcharge
