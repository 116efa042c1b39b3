from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import model_validator

from detailing_booking.domain.entities.base import WireModel


class LocationType(str, Enum):
    MOBILE = "mobile"
    SHOP = "shop"


class ContactMethod(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    TEXT = "text"


class Coordinates(WireModel):
    latitude: float
    longitude: float


class Address(WireModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "US"
    coordinates: Coordinates | None = None


class ShopLocation(WireModel):
    id: str
    name: str
    address: str
    phone: str = ""
    hours: str = ""


class Location(WireModel):
    type: LocationType = LocationType.MOBILE
    address: Address | None = None
    shop_location: ShopLocation | None = None

    @model_validator(mode="before")
    @classmethod
    def _keep_matching_target(cls, data: Any) -> Any:
        # Only the target named by `type` is kept: mobile -> address, shop -> shop location.
        if not isinstance(data, dict):
            return data
        location_type = data.get("type", LocationType.MOBILE)
        if location_type == LocationType.MOBILE:
            dropped = ("shop_location", "shopLocation")
        else:
            dropped = ("address",)
        return {key: value for key, value in data.items() if key not in dropped}


class ContactInfo(WireModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    preferred_contact: ContactMethod | None = ContactMethod.EMAIL
    special_instructions: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


def default_location() -> Location:
    return Location(type=LocationType.MOBILE, address=Address())
