"""Tests for address and coordinate validation."""
from __future__ import annotations

import pytest

from greencity_mailer.errors import ValidationFailed
from greencity_mailer.location import (
    EMPTY_PLACE_ADDRESS,
    EMPTY_VALUE_OF_LATITUDE,
    EMPTY_VALUE_OF_LONGITUDE,
    AddressGeoData,
    Violation,
    validate_address_geo_data,
)


def test_valid_data_has_no_violations():
    assert validate_address_geo_data("Khreshchatyk St, 1", 50.45, 30.52) == []


def test_create_returns_value_object():
    data = AddressGeoData.create("Khreshchatyk St, 1", 50, 30.52)

    assert (data.address, data.lat, data.lng) == ("Khreshchatyk St, 1", 50.0, 30.52)


@pytest.mark.parametrize("address", ["   ", None])
def test_blank_address_is_rejected(address):
    assert validate_address_geo_data(address, 50.45, 30.52) == [Violation("address", EMPTY_PLACE_ADDRESS)]


def test_address_length_is_bounded():
    too_short = validate_address_geo_data("ab", 1.0, 2.0, min_length=3, max_length=10)
    too_long = validate_address_geo_data("a" * 11, 1.0, 2.0, min_length=3, max_length=10)

    assert [v.field for v in too_short] == ["address"]
    assert "between 3 and 10" in too_short[0].reason
    assert [v.field for v in too_long] == ["address"]


def test_missing_latitude():
    assert validate_address_geo_data("Lviv, Rynok Sq", None, 24.03) == [Violation("lat", EMPTY_VALUE_OF_LATITUDE)]


def test_missing_longitude():
    assert validate_address_geo_data("Lviv, Rynok Sq", 49.84, None) == [Violation("lng", EMPTY_VALUE_OF_LONGITUDE)]


def test_non_numeric_coordinate_is_rejected():
    violations = validate_address_geo_data("Lviv, Rynok Sq", "49.84", True)

    assert [v.field for v in violations] == ["lat", "lng"]


def test_create_lists_every_violation():
    with pytest.raises(ValidationFailed) as excinfo:
        AddressGeoData.create("", None, None)

    assert [v.field for v in excinfo.value.violations] == ["address", "address", "lat", "lng"]
    assert EMPTY_PLACE_ADDRESS in str(excinfo.value)


def test_from_payload_validates():
    data = AddressGeoData.from_payload({"address": "Odesa, Derybasivska St", "lat": 46.48, "lng": 30.74})

    assert data.address == "Odesa, Derybasivska St"
    with pytest.raises(ValidationFailed):
        AddressGeoData.from_payload({"address": "Odesa, Derybasivska St", "lat": 46.48})


def test_empty_address_reports_blank_and_length():
    violations = validate_address_geo_data("", 50.45, 30.52, min_length=3, max_length=120)

    assert violations == [
        Violation("address", EMPTY_PLACE_ADDRESS),
        Violation("address", "The place address length must be between 3 and 120"),
    ]


@pytest.mark.parametrize("payload", [["Kyiv", 50.45, 30.52], "Kyiv", None])
def test_non_object_payload_is_rejected_with_reason(payload):
    with pytest.raises(ValidationFailed) as excinfo:
        AddressGeoData.from_payload(payload)

    assert [v.field for v in excinfo.value.violations] == ["payload"]
    assert excinfo.value.violations[0].reason
