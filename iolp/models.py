"""SQLAlchemy models for IOLP buildings and leases.

Two tables:
- buildings: federally owned buildings (ownership code F)
- leases: leased properties, from the leases workbook or from buildings
  marked L. Street address is the reconciliation key, hence the index.

Column names match the attribute names of the pydantic records in
schemas.py, so a record's model_dump() maps straight onto a row.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class PropertyColumns:
    """Columns shared by buildings and leases."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_code: Mapped[str | None] = mapped_column(Text)
    real_property_asset_name: Mapped[str | None] = mapped_column(Text)
    installation_name: Mapped[str | None] = mapped_column(Text)
    owned_or_leased: Mapped[str | None] = mapped_column(Text)
    gsa_region: Mapped[str | None] = mapped_column(Text)
    street_address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(Text)
    state: Mapped[str | None] = mapped_column(Text)
    zip_code: Mapped[str | None] = mapped_column(Text)
    latitude: Mapped[Decimal | None] = mapped_column(Numeric)
    longitude: Mapped[Decimal | None] = mapped_column(Numeric)
    building_rentable_square_feet: Mapped[Decimal | None] = mapped_column(Numeric)
    available_square_feet: Mapped[Decimal] = mapped_column(Numeric, default=0)
    construction_date: Mapped[str | None] = mapped_column(Text)
    congressional_district: Mapped[str | None] = mapped_column(Text)
    congressional_district_representative_name: Mapped[str | None] = mapped_column(Text)
    building_status: Mapped[str | None] = mapped_column(Text)
    real_property_asset_type: Mapped[str | None] = mapped_column(Text)

    # Data cleansing
    cleaned_building_name: Mapped[str | None] = mapped_column(Text)
    address_in_name: Mapped[bool] = mapped_column(Boolean, default=False)


class Building(PropertyColumns, Base):
    """A federally owned building."""

    __tablename__ = "buildings"

    def __repr__(self) -> str:
        return f"<Building {self.location_code}: {self.cleaned_building_name}>"


class Lease(PropertyColumns, Base):
    """A leased property."""

    __tablename__ = "leases"
    __table_args__ = (Index("ix_leases_street_address", "street_address"),)

    federal_leased_code: Mapped[str | None] = mapped_column(Text)
    lease_number: Mapped[str | None] = mapped_column(Text)
    lease_effective_date: Mapped[str | None] = mapped_column(Text)
    lease_expiration_date: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Lease {self.lease_number}: {self.street_address}>"
