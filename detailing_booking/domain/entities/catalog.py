from __future__ import annotations

from enum import Enum

from pydantic import Field

from detailing_booking.domain.entities.base import WireModel


class ServiceCategory(str, Enum):
    EXTERIOR = "exterior"
    INTERIOR = "interior"
    FULL = "full"
    SPECIALTY = "specialty"


class ServiceType(WireModel):
    id: str
    name: str
    description: str = ""
    base_price: float = Field(ge=0)
    duration: int = Field(ge=0)  # minutes
    category: ServiceCategory
    available: bool = True


class ServiceLevel(WireModel):
    id: str
    name: str
    description: str = ""
    price_multiplier: float = Field(gt=0)
    features: list[str] = Field(default_factory=list)
