from __future__ import annotations

from enum import Enum

from detailing_booking.domain.entities.base import WireModel


class VehicleType(str, Enum):
    SEDAN = "sedan"
    SUV = "suv"
    TRUCK = "truck"
    COUPE = "coupe"
    CONVERTIBLE = "convertible"
    VAN = "van"
    MOTORCYCLE = "motorcycle"
    OTHER = "other"


class SizeCategory(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XLARGE = "xlarge"


class VehicleCondition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class Vehicle(WireModel):
    # Fields stay permissive so a half-entered vehicle can be held and validated.
    id: str | None = None
    make: str = ""
    model: str = ""
    year: int | None = None
    color: str = ""
    license_plate: str = ""
    vehicle_type: VehicleType | None = None
    size_category: SizeCategory | None = None
    condition: VehicleCondition | None = None
    notes: str | None = None

    @property
    def display_name(self) -> str:
        return " ".join(str(part) for part in (self.year, self.make, self.model) if part)
