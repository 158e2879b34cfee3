"""Pydantic schemas for IOLP records.

These models are the contract between raw spreadsheet rows and the
buildings/leases tables:

- Attribute names are snake_case and match the table columns.
- Serialized names are camelCase (`model_dump(by_alias=True)`), which is what
  the JSON export writes.
- Text fields accept whatever the spreadsheet cell held (numbers included)
  and store it as a string.

References:
- GSA Inventory of Owned and Leased Properties (IOLP) extracts:
  https://catalog.data.gov/dataset/inventory-of-owned-and-leased-properties-iolp
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================


class OwnershipCode(str, Enum):
    """Values of the "Owned or Leased" column that the loader routes on.

    Any other value (blank included) is excluded from both tables.
    """

    OWNED = "F"
    """Federally owned. Loaded into the buildings table."""

    LEASED = "L"
    """Leased. Loaded into the leases table with empty lease details."""


class RowKind(str, Enum):
    """Which IOLP workbook a raw row came from."""

    BUILDING = "building"
    LEASE = "lease"


# =============================================================================
# SOURCE COLUMN LABELS
# =============================================================================

# Canonical field → spreadsheet column labels, first match wins.
BASE_COLUMNS: dict[str, tuple[str, ...]] = {
    "location_code": ("Location Code",),
    "real_property_asset_name": ("Real Property Asset Name",),
    "installation_name": ("Installation Name",),
    "owned_or_leased": ("Owned or Leased",),
    "gsa_region": ("GSA Region",),
    "street_address": ("Street Address",),
    "city": ("City",),
    "state": ("State",),
    "zip_code": ("Zip Code",),
    "latitude": ("Latitude",),
    "longitude": ("Longitude",),
    "building_rentable_square_feet": ("Building Rentable Square Feet",),
    "available_square_feet": ("Available Square Feet",),
    "construction_date": ("Construction Date",),
    "congressional_district": ("Congressional District",),
    "congressional_district_representative_name": (
        "Congressional District Representative Name",
        "Congressional District Representative",
    ),
    "building_status": ("Building Status",),
    # The leases workbook spells this one with a lowercase "type"
    "real_property_asset_type": ("Real Property Asset Type", "Real Property Asset type"),
}

LEASE_COLUMNS: dict[str, tuple[str, ...]] = {
    "federal_leased_code": ("Federal Leased Code",),
    "lease_number": ("Lease Number",),
    "lease_effective_date": ("Lease Effective Date",),
    "lease_expiration_date": ("Lease Expiration Date",),
}

# Fields copied onto an existing lease when a lease row matches its address
LEASE_FIELDS = tuple(LEASE_COLUMNS)

TEXT_FIELDS = (
    "location_code",
    "real_property_asset_name",
    "installation_name",
    "owned_or_leased",
    "gsa_region",
    "street_address",
    "city",
    "state",
    "zip_code",
    "construction_date",
    "congressional_district",
    "congressional_district_representative_name",
    "building_status",
    "real_property_asset_type",
)

DECIMAL_TEXT_FIELDS = ("latitude", "longitude", "building_rentable_square_feet")


def as_text(value: object) -> str | None:
    """Render a spreadsheet cell as text, treating blanks as missing."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value)
    return text if text != "" else None


# =============================================================================
# RECORDS
# =============================================================================


class PropertyRecord(BaseModel):
    """One building from the IOLP buildings workbook."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    location_code: str | None = None
    real_property_asset_name: str | None = None
    installation_name: str | None = None
    owned_or_leased: str | None = Field(
        default=None,
        description="Raw ownership code: F (owned), L (leased), anything else is unclassified",
    )
    gsa_region: str | None = None
    street_address: str | None = Field(
        default=None,
        description="Street address as given. Natural key for lease reconciliation.",
    )
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    latitude: str | None = None
    longitude: str | None = None
    building_rentable_square_feet: str | None = None
    available_square_feet: float = Field(
        default=0.0,
        description="Always a number. Blank or unparseable cells become 0; negatives are kept.",
    )
    construction_date: str | None = None
    congressional_district: str | None = None
    congressional_district_representative_name: str | None = None
    building_status: str | None = None
    real_property_asset_type: str | None = None

    cleaned_building_name: str = Field(
        default="",
        description="Asset name with address fragments removed",
    )
    address_in_name: bool = Field(
        default=False,
        description="True if the raw asset name contained an address fragment",
    )

    # Numeric columns come back from the database as Decimal
    @field_validator(*TEXT_FIELDS, *DECIMAL_TEXT_FIELDS, mode="before")
    @classmethod
    def coerce_text(cls, v):
        return as_text(v)

    @field_validator("available_square_feet", mode="before")
    @classmethod
    def coerce_square_feet(cls, v):
        return 0.0 if v is None else float(v)

    @field_validator("cleaned_building_name", mode="before")
    @classmethod
    def coerce_cleaned_name(cls, v):
        return v or ""

    @property
    def ownership(self) -> OwnershipCode | None:
        try:
            return OwnershipCode(self.owned_or_leased)
        except ValueError:
            return None


class LeaseRecord(PropertyRecord):
    """A leased property.

    Comes either from the leases workbook or from a buildings row marked "L".
    In the second case the lease fields start out empty and are filled in
    when a leases-workbook row with the same street address is reconciled.
    """

    federal_leased_code: str | None = None
    lease_number: str | None = None
    lease_effective_date: str | None = Field(default=None, description="YYYY-MM-DD")
    lease_expiration_date: str | None = Field(default=None, description="YYYY-MM-DD")

    @field_validator("federal_leased_code", "lease_number", mode="before")
    @classmethod
    def coerce_lease_text(cls, v):
        return as_text(v)

    def lease_fields(self) -> dict[str, str | None]:
        """The lease-only fields, keyed by column name."""
        return {name: getattr(self, name) for name in LEASE_FIELDS}


class ImportSummary(BaseModel):
    """Counts from one full import run."""

    owned_inserted: int = 0
    leased_buildings_inserted: int = 0
    leases_inserted: int = 0
    leases_updated: int = 0
    unclassified: int = 0
    buildings_total: int = 0
    leases_total: int = 0
    duration_seconds: float = 0.0

    @property
    def total_records(self) -> int:
        return self.buildings_total + self.leases_total
