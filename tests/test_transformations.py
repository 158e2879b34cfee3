from datetime import date, datetime

import pytest

from iolp.schemas import LeaseRecord, OwnershipCode, PropertyRecord, RowKind
from iolp.transformations import (
    building_to_lease,
    classify,
    convert_excel_date,
    map_building_row,
    map_lease_row,
    map_row,
    parse_available_square_feet,
)


BUILDING_ROW = {
    "Location Code": "NY0001ZZ",
    "Real Property Asset Name": "123 Main St - Empire Plaza",
    "Installation Name": "Empire Installation",
    "Owned or Leased": "F",
    "GSA Region": 2,
    "Street Address": "123 Main Street",
    "City": "New York",
    "State": "NY",
    "Zip Code": 10007,
    "Latitude": 40.7128,
    "Longitude": -74.006,
    "Building Rentable Square Feet": 250000,
    "Available Square Feet": "1000.5",
    "Construction Date": 1965,
    "Congressional District": "3610",
    "Congressional District Representative Name": "Jane Doe",
    "Building Status": "Active",
    "Real Property Asset Type": "BUILDING",
}

LEASE_ROW = {
    "Location Code": "NY0002ZZ",
    "Real Property Asset Name": "Federal Building",
    "Federal Leased Code": "FL01",
    "Street Address": "100 Main St",
    "City": "Albany",
    "State": "NY",
    "Available Square Feet": "",
    "Congressional District Representative": "John Roe",
    "Lease Number": "LNY12345",
    "Lease Effective Date": 44562,
    "Lease Expiration Date": "47484",
    "Real Property Asset type": "BUILDING",
}


@pytest.mark.parametrize("value", ["", None, "N/A", "not-a-number", "   ", float("nan"), True])
def test_parse_available_square_feet_defaults_to_zero(value):
    assert parse_available_square_feet(value) == 0


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1000", 1000),
        ("1000.5", 1000.5),
        (1500, 1500),
        ("0", 0),
        ("0.0", 0),
        ("1.23456", 1.23456),
    ],
)
def test_parse_available_square_feet_values(value, expected):
    assert parse_available_square_feet(value) == expected


def test_parse_available_square_feet_keeps_negative_values():
    # Negative availability is passed through, not clamped
    assert parse_available_square_feet("-100") == -100


def test_convert_excel_date_epoch():
    assert convert_excel_date(0) == "1899-12-30"
    assert convert_excel_date("0") == "1899-12-30"


def test_convert_excel_date_serials():
    assert convert_excel_date(44562) == "2022-01-01"
    assert convert_excel_date("44562").startswith("2022")
    assert convert_excel_date(" 44562 ") == "2022-01-01"
    assert convert_excel_date(44562.75) == "2022-01-01"


@pytest.mark.parametrize("value", [None, "", "not-a-number", "   ", 10**12, float("inf")])
def test_convert_excel_date_invalid(value):
    assert convert_excel_date(value) is None


def test_convert_excel_date_accepts_parsed_dates():
    assert convert_excel_date(datetime(2023, 5, 1, 12, 30)) == "2023-05-01"
    assert convert_excel_date(date(2024, 2, 29)) == "2024-02-29"


def test_map_building_row():
    record = map_building_row(BUILDING_ROW)

    assert isinstance(record, PropertyRecord)
    assert not isinstance(record, LeaseRecord)
    assert record.location_code == "NY0001ZZ"
    assert record.cleaned_building_name == "Empire Plaza"
    assert record.address_in_name is True
    assert record.ownership is OwnershipCode.OWNED
    assert record.gsa_region == "2"
    assert record.zip_code == "10007"
    assert record.latitude == "40.7128"
    assert record.longitude == "-74.006"
    assert record.building_rentable_square_feet == "250000"
    assert record.available_square_feet == 1000.5
    assert record.construction_date == "1965"
    assert record.congressional_district_representative_name == "Jane Doe"


def test_map_building_row_missing_values():
    record = map_building_row({"Real Property Asset Name": "Federal Building", "Latitude": 0})

    assert record.street_address is None
    assert record.latitude is None
    assert record.longitude is None
    assert record.available_square_feet == 0
    assert record.cleaned_building_name == "Federal Building"
    assert record.address_in_name is False
    assert record.ownership is None


def test_map_building_row_unparseable_coordinates_become_null():
    record = map_building_row({"Latitude": "N/A", "Longitude": " -77.03 "})
    assert record.latitude is None
    assert record.longitude == "-77.03"


def test_map_lease_row():
    record = map_lease_row(LEASE_ROW)

    assert isinstance(record, LeaseRecord)
    assert record.lease_number == "LNY12345"
    assert record.federal_leased_code == "FL01"
    assert record.lease_effective_date == "2022-01-01"
    assert record.lease_expiration_date.startswith("2030")
    assert record.available_square_feet == 0
    assert record.congressional_district_representative_name == "John Roe"
    assert record.real_property_asset_type == "BUILDING"


def test_map_lease_row_bad_dates_become_null():
    record = map_lease_row({**LEASE_ROW, "Lease Effective Date": "TBD", "Lease Expiration Date": None})
    assert record.lease_effective_date is None
    assert record.lease_expiration_date is None


def test_map_row_accepts_kind_string():
    assert isinstance(map_row(LEASE_ROW, "lease"), LeaseRecord)
    assert map_row(BUILDING_ROW, RowKind.BUILDING).cleaned_building_name == "Empire Plaza"


def test_record_serializes_camel_case():
    data = map_building_row(BUILDING_ROW).model_dump(by_alias=True)
    assert data["cleanedBuildingName"] == "Empire Plaza"
    assert data["addressInName"] is True
    assert data["streetAddress"] == "123 Main Street"
    assert data["availableSquareFeet"] == 1000.5


def test_building_to_lease_has_empty_lease_fields():
    building = map_building_row({**BUILDING_ROW, "Owned or Leased": "L"})
    lease = building_to_lease(building)

    assert isinstance(lease, LeaseRecord)
    assert lease.street_address == "123 Main Street"
    assert lease.cleaned_building_name == "Empire Plaza"
    assert lease.lease_fields() == {
        "federal_leased_code": None,
        "lease_number": None,
        "lease_effective_date": None,
        "lease_expiration_date": None,
    }


def test_classify_splits_by_ownership_code():
    records = [
        map_building_row({**BUILDING_ROW, "Owned or Leased": code})
        for code in ["F", "L", "F", "X", None, "f"]
    ]
    result = classify(records)

    assert len(result.owned) == 2
    assert len(result.leased) == 1
    assert result.gap.count == 3
    assert result.gap.codes == {"X": 1, None: 1, "f": 1}


def test_classify_empty_input():
    result = classify([])
    assert result.owned == []
    assert result.leased == []
    assert not result.gap
