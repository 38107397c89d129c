"""Address and coordinates of a place, validated at the API boundary."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

from greencity_mailer import settings
from greencity_mailer.errors import ValidationFailed

EMPTY_PLACE_ADDRESS = "The place address must not be blank"
EMPTY_VALUE_OF_LATITUDE = "The latitude must not be empty"
EMPTY_VALUE_OF_LONGITUDE = "The longitude must not be empty"

_MISSING_COORDINATE = {"lat": EMPTY_VALUE_OF_LATITUDE, "lng": EMPTY_VALUE_OF_LONGITUDE}


@dataclass(frozen=True)
class Violation:
    """A single failed constraint."""

    field: str
    reason: str


def _length_bounds(info: ValidationInfo) -> tuple:
    context = info.context or {}
    return (
        context.get("min_length", settings.PLACE_ADDRESS_MIN_LENGTH),
        context.get("max_length", settings.PLACE_ADDRESS_MAX_LENGTH),
    )


def _violations(error: ValidationError) -> List[Violation]:
    """One violation per failed constraint; an address error may carry several."""
    violations = []
    for e in error.errors():
        field = ".".join(str(p) for p in e["loc"]) or "payload"
        reasons = (e.get("ctx") or {}).get("reasons") or (e["msg"],)
        violations.extend(Violation(field, reason) for reason in reasons)
    return violations


class AddressGeoData(BaseModel):
    """Postal address of a place plus its latitude and longitude."""

    model_config = ConfigDict(frozen=True)

    # Absent values are validated too so they report the blank/empty message
    address: Optional[StrictStr] = Field(default=None, validate_default=True)
    lat: Optional[StrictFloat] = Field(default=None, validate_default=True)
    lng: Optional[StrictFloat] = Field(default=None, validate_default=True)

    @field_validator("address")
    @classmethod
    def check_address(cls, value: Optional[str], info: ValidationInfo) -> str:
        min_length, max_length = _length_bounds(info)
        reasons = []
        if value is None or not value.strip():
            reasons.append(EMPTY_PLACE_ADDRESS)
        # a missing address has no length to check
        if value is not None and not min_length <= len(value) <= max_length:
            reasons.append(f"The place address length must be between {min_length} and {max_length}")
        if reasons:
            raise PydanticCustomError(
                "invalid_address", "{detail}", {"detail": "; ".join(reasons), "reasons": tuple(reasons)}
            )
        return value

    @field_validator("lat", "lng")
    @classmethod
    def check_coordinate(cls, value: Optional[float], info: ValidationInfo) -> float:
        if value is None:
            raise PydanticCustomError("missing_coordinate", _MISSING_COORDINATE[info.field_name])
        return value

    @classmethod
    def create(cls, address: Optional[str], lat: Optional[float], lng: Optional[float]) -> "AddressGeoData":
        """
        Build a validated instance.

        Raises:
            ValidationFailed listing every violated constraint
        """
        return cls.from_payload({"address": address, "lat": lat, "lng": lng})

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> "AddressGeoData":
        """Build a validated instance from a decoded JSON object."""
        context: Dict[str, int] = {}
        if min_length is not None:
            context["min_length"] = min_length
        if max_length is not None:
            context["max_length"] = max_length
        try:
            return cls.model_validate(payload, context=context)
        except ValidationError as e:
            raise ValidationFailed(_violations(e)) from e


def validate_address_geo_data(
    address: Optional[str],
    lat: Optional[float],
    lng: Optional[float],
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> List[Violation]:
    """Return the constraint violations of the given values, empty when valid."""
    try:
        AddressGeoData.from_payload(
            {"address": address, "lat": lat, "lng": lng}, min_length=min_length, max_length=max_length
        )
    except ValidationFailed as e:
        return e.violations
    return []
