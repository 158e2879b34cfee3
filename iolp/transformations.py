"""Raw IOLP rows → canonical records.

Mapping is a field-by-field projection of the spreadsheet columns onto
PropertyRecord / LeaseRecord, with a few coercions:

- Latitude, longitude and rentable square feet are kept as decimal strings
- Available square feet is always a number (0 when blank or unparseable)
- Lease dates arrive as Excel serial numbers and leave as YYYY-MM-DD
- The asset name is cleansed into cleaned_building_name / address_in_name

Coercion failures never abort a row; the field gets its default instead.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, Mapping

from .cleansing import clean_building_name, has_address_in_name
from .errors import ClassificationGap, ParseError
from .schemas import (
    BASE_COLUMNS,
    LEASE_COLUMNS,
    LeaseRecord,
    OwnershipCode,
    PropertyRecord,
    RowKind,
    as_text,
)

logger = logging.getLogger(__name__)

# Excel counts days from 1899-12-30 (the 1900 leap-year bug is baked in)
EXCEL_EPOCH = date(1899, 12, 30)


# =============================================================================
# Field Coercion
# =============================================================================


def _to_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ParseError(field_name, value)
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            raise ParseError(field_name, value)
        try:
            number = float(text)
        except ValueError as e:
            raise ParseError(field_name, value) from e
    if not math.isfinite(number):
        raise ParseError(field_name, value)
    return number


def parse_available_square_feet(value: Any) -> float:
    """Parse "Available Square Feet", defaulting to 0.

    Negative and fractional values are returned unchanged.
    """
    if value is None:
        return 0.0
    try:
        return _to_float(value, "Available Square Feet")
    except ParseError:
        return 0.0


def convert_excel_date(serial: Any) -> str | None:
    """Convert an Excel serial day number to YYYY-MM-DD.

    Fractional days are truncated. Serial 0 is the epoch itself (1899-12-30).
    Cells that openpyxl already parsed as dates are formatted directly.
    """
    if serial is None:
        return None
    if isinstance(serial, datetime):
        return serial.date().isoformat()
    if isinstance(serial, date):
        return serial.isoformat()
    try:
        days = _to_float(serial, "date serial")
        return (EXCEL_EPOCH + timedelta(days=int(days))).isoformat()
    except (ParseError, OverflowError):
        return None


def _decimal_text(value: Any, field_name: str) -> str | None:
    """Decimal cells as text. Empty, zero and non-numeric cells become NULL."""
    if not value:
        return None
    try:
        _to_float(value, field_name)
    except ParseError:
        return None
    if isinstance(value, str):
        return value.strip()
    return as_text(value)


def _pick(raw: Mapping[str, Any], labels: tuple[str, ...]) -> Any:
    for label in labels:
        value = raw.get(label)
        if value is not None:
            return value
    return None


# =============================================================================
# Row Mapping
# =============================================================================


def map_row(raw: Mapping[str, Any], kind: RowKind | str) -> PropertyRecord | LeaseRecord:
    """Project one raw spreadsheet row onto a canonical record."""
    kind = RowKind(kind)
    columns = BASE_COLUMNS if kind is RowKind.BUILDING else {**BASE_COLUMNS, **LEASE_COLUMNS}
    values = {name: _pick(raw, labels) for name, labels in columns.items()}

    asset_name = as_text(values["real_property_asset_name"]) or ""
    values.update(
        latitude=_decimal_text(values["latitude"], "Latitude"),
        longitude=_decimal_text(values["longitude"], "Longitude"),
        building_rentable_square_feet=_decimal_text(
            values["building_rentable_square_feet"], "Building Rentable Square Feet"
        ),
        available_square_feet=parse_available_square_feet(values["available_square_feet"]),
        cleaned_building_name=clean_building_name(asset_name),
        address_in_name=has_address_in_name(asset_name),
    )

    if kind is RowKind.LEASE:
        values["lease_effective_date"] = convert_excel_date(values["lease_effective_date"])
        values["lease_expiration_date"] = convert_excel_date(values["lease_expiration_date"])
        return LeaseRecord(**values)
    return PropertyRecord(**values)


def map_building_row(raw: Mapping[str, Any]) -> PropertyRecord:
    return map_row(raw, RowKind.BUILDING)


def map_lease_row(raw: Mapping[str, Any]) -> LeaseRecord:
    return map_row(raw, RowKind.LEASE)


def building_to_lease(record: PropertyRecord) -> LeaseRecord:
    """Synthesize a lease record from a leased building, lease details empty."""
    return LeaseRecord(**record.model_dump())


# =============================================================================
# Ownership Classification
# =============================================================================


@dataclass
class Classification:
    """Buildings split by ownership code."""

    owned: list[PropertyRecord] = field(default_factory=list)
    leased: list[PropertyRecord] = field(default_factory=list)
    gap: ClassificationGap = field(default_factory=lambda: ClassificationGap(count=0))


def classify(records: Iterable[PropertyRecord]) -> Classification:
    """Split building records into owned (F) and leased (L) cohorts.

    Records with any other ownership code, or none, land in neither cohort.
    They are counted in `gap` and logged, not raised.
    """
    result = Classification()
    excluded: Counter = Counter()

    for record in records:
        code = record.ownership
        if code is OwnershipCode.OWNED:
            result.owned.append(record)
        elif code is OwnershipCode.LEASED:
            result.leased.append(record)
        else:
            excluded[record.owned_or_leased] += 1

    result.gap = ClassificationGap(count=sum(excluded.values()), codes=dict(excluded))
    if result.gap:
        logger.warning(
            "Excluded %d buildings with unrecognized ownership codes: %s",
            result.gap.count,
            dict(excluded),
        )
    logger.info(
        "Found %d owned buildings and %d leased buildings",
        len(result.owned),
        len(result.leased),
    )
    return result
