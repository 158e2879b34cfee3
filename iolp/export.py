"""Export the loaded tables to JSON files.

Writes three files with camelCase field names:
- owned-properties.json: the buildings table
- leased-properties.json: lease rows that came from buildings marked "L"
- lease-records.json: lease rows that came from the leases workbook
"""

import json
import logging
from pathlib import Path

from .schemas import OwnershipCode, PropertyRecord
from .store import Stores

logger = logging.getLogger(__name__)


def _dump(path: Path, records: list[PropertyRecord]) -> int:
    with open(path, "w") as f:
        json.dump([r.model_dump(mode="json", by_alias=True) for r in records], f, indent=2)
    logger.info("Wrote %d records to %s", len(records), path)
    return len(records)


def export_json(stores: Stores, out_dir: str | Path) -> dict[str, int]:
    """Write the three export files and return record counts per file."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    leases = stores.leases.find_all()
    leased_buildings = [r for r in leases if r.owned_or_leased == OwnershipCode.LEASED.value]
    lease_records = [r for r in leases if r.owned_or_leased != OwnershipCode.LEASED.value]

    return {
        "owned-properties.json": _dump(out_dir / "owned-properties.json", stores.buildings.find_all()),
        "leased-properties.json": _dump(out_dir / "leased-properties.json", leased_buildings),
        "lease-records.json": _dump(out_dir / "lease-records.json", lease_records),
    }
