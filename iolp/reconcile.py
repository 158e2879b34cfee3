"""Lease reconciliation by street address.

The buildings workbook already yields a lease row (with empty lease details)
for every building marked "L". The leases workbook then describes many of the
same properties again. Reconciliation decides, per incoming lease row:

- address already in the leases table → update only the lease fields
  (lease number, effective/expiration dates, federal leased code)
- address not seen → insert the full record

The existing addresses are read once into an index; rows are never looked up
one at a time.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from .schemas import LeaseRecord

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


# =============================================================================
# Address Matching
# =============================================================================


class AddressMatching(str, Enum):
    """How street addresses are compared."""

    EXACT = "exact"
    """Byte-for-byte comparison of the mapped street address."""

    CASEFOLD = "casefold"
    """Case-insensitive, with whitespace runs collapsed and edges trimmed."""


def normalize_address(address: str | None, matching: AddressMatching | str = AddressMatching.EXACT) -> str | None:
    """Matching key for an address, or None if it cannot match anything."""
    if not address:
        return None
    if AddressMatching(matching) is AddressMatching.EXACT:
        return address
    key = _WHITESPACE_RE.sub(" ", address).strip().casefold()
    return key or None


def build_address_index(
    rows: Iterable[tuple[int, str | None]],
    matching: AddressMatching | str = AddressMatching.EXACT,
) -> dict[str, int]:
    """Map address key → record id. Later rows win when addresses repeat."""
    index: dict[str, int] = {}
    for identity, address in rows:
        key = normalize_address(address, matching)
        if key is not None:
            index[key] = identity
    return index


# =============================================================================
# Reconciliation
# =============================================================================


@dataclass(frozen=True)
class LeaseUpdate:
    """Lease-only fields to write onto an existing lease row."""

    identity: int
    fields: dict[str, str | None]


@dataclass
class ReconciliationPlan:
    """What to do with a batch of incoming lease rows."""

    to_insert: list[LeaseRecord] = field(default_factory=list)
    to_update: list[LeaseUpdate] = field(default_factory=list)

    @property
    def matched_identities(self) -> set[int]:
        return {update.identity for update in self.to_update}


def reconcile(
    lease_rows: Iterable[LeaseRecord],
    existing_index: Mapping[str, int],
    matching: AddressMatching | str = AddressMatching.EXACT,
) -> ReconciliationPlan:
    """Split lease rows into updates of existing leases and new inserts.

    `existing_index` maps street address → lease id as read from the store.
    Its keys are re-normalized with `matching`, so a raw index works with
    either strategy.
    """
    matching = AddressMatching(matching)
    index = build_address_index(
        ((identity, address) for address, identity in existing_index.items()), matching
    )

    plan = ReconciliationPlan()
    for lease in lease_rows:
        key = normalize_address(lease.street_address, matching)
        identity = index.get(key) if key is not None else None
        if identity is not None:
            plan.to_update.append(LeaseUpdate(identity=identity, fields=lease.lease_fields()))
        else:
            plan.to_insert.append(lease)

    logger.info("Found %d duplicate addresses to update", len(plan.to_update))
    logger.info("Found %d new lease records to insert", len(plan.to_insert))
    return plan


# =============================================================================
# Duplicate Report
# =============================================================================


@dataclass
class DuplicateGroup:
    """Records sharing the same street address and asset name."""

    street_address: str | None
    asset_name: str | None
    records: list[Any]

    @property
    def size(self) -> int:
        return len(self.records)


def find_duplicates(
    records: Iterable[Any],
    matching: AddressMatching | str = AddressMatching.CASEFOLD,
    limit: int | None = 10,
) -> list[DuplicateGroup]:
    """Group records by (street address, asset name) and return repeated groups.

    Works on anything with `street_address` and `real_property_asset_name`
    attributes (canonical records or ORM rows). Largest groups come first.
    """
    groups: dict[tuple, list[Any]] = defaultdict(list)
    for record in records:
        address = getattr(record, "street_address", None)
        name = getattr(record, "real_property_asset_name", None)
        key = (normalize_address(address, matching), normalize_address(name, matching))
        groups[key].append(record)

    duplicates = [
        DuplicateGroup(
            street_address=members[0].street_address,
            asset_name=members[0].real_property_asset_name,
            records=members,
        )
        for members in groups.values()
        if len(members) > 1
    ]
    duplicates.sort(key=lambda group: group.size, reverse=True)
    return duplicates[:limit] if limit is not None else duplicates
