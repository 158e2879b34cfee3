"""Batch loading of IOLP buildings and leases.

Each load is a full refresh:

1. Buildings: clear both tables, check they are empty, insert owned buildings
   into `buildings` and leased buildings (as lease rows with empty lease
   details) into `leases`, check the final counts.
2. Leases: read the existing lease addresses once, reconcile the leases
   workbook against them, update matches, insert the rest, check the final
   count.

Any count mismatch raises LoadIntegrityError. A failed batch aborts the run;
nothing is retried.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Sequence, TypeVar

import logfire

from .cleansing import cleansing_stats
from .config import ImportSettings
from .errors import LoadIntegrityError
from .reconcile import LeaseUpdate, reconcile
from .schemas import ImportSummary, PropertyRecord
from .sources import RowSource
from .store import RecordStore, Stores
from .transformations import building_to_lease, classify, map_building_row, map_lease_row

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Store Steps
# =============================================================================


def _batches(items: Sequence[T], size: int) -> Iterator[tuple[int, Sequence[T]]]:
    for start in range(0, len(items), size):
        yield start, items[start:start + size]


def verify_count(store: RecordStore, expected: int, phase: str) -> int:
    actual = store.count()
    if actual != expected:
        raise LoadIntegrityError(store.table_name, expected, actual, phase)
    return actual


def clear_store(store: RecordStore) -> None:
    """Delete every row and confirm the table is really empty."""
    logger.info("Clearing %s...", store.table_name)
    store.delete_all()
    verify_count(store, 0, "delete")


def insert_in_batches(
    store: RecordStore,
    records: Sequence[PropertyRecord],
    batch_size: int,
    label: str,
) -> int:
    total = len(records)
    if total:
        logger.info("Importing %d %s...", total, label)
    for start, batch in _batches(records, batch_size):
        store.insert_batch(batch)
        logger.info("Imported %d / %d %s", min(start + batch_size, total), total, label)
    return total


def apply_updates(
    store: RecordStore,
    updates: Sequence[LeaseUpdate],
    batch_size: int,
    workers: int,
) -> int:
    """Write lease fields onto existing rows.

    Each group of `batch_size` updates runs concurrently and finishes before
    the next group starts. The first failure is re-raised.
    """
    total = len(updates)
    if not total:
        return 0

    logger.info("Updating %d existing lease records...", total)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        for start, group in _batches(updates, batch_size):
            futures = [pool.submit(store.update_fields, u.identity, u.fields) for u in group]
            for future in futures:
                future.result()
            logger.info("Updated %d / %d lease records", min(start + batch_size, total), total)
    return total


def _log_cleansing(label: str, records: Sequence[PropertyRecord]) -> None:
    stats = cleansing_stats(r.real_property_asset_name for r in records)
    logger.info("Cleansed %s: %s", label, stats.summary())
    for before, after in stats.examples:
        logger.debug("  %r → %r", before, after)


# =============================================================================
# Loads
# =============================================================================


@dataclass
class BuildingLoadResult:
    owned_inserted: int
    leased_inserted: int
    unclassified: int


@dataclass
class LeaseLoadResult:
    inserted: int
    updated: int
    total: int


def load_buildings(
    stores: Stores,
    rows: Sequence[Mapping[str, Any]],
    settings: ImportSettings | None = None,
) -> BuildingLoadResult:
    """Replace both tables with the contents of the buildings workbook."""
    settings = settings or ImportSettings()
    logger.info("Processing %d building records...", len(rows))

    records = [map_building_row(row) for row in rows]
    _log_cleansing("buildings", records)
    cohorts = classify(records)

    clear_store(stores.buildings)
    clear_store(stores.leases)

    owned = insert_in_batches(stores.buildings, cohorts.owned, settings.batch_size, "owned buildings")
    leased_records = [building_to_lease(record) for record in cohorts.leased]
    leased = insert_in_batches(stores.leases, leased_records, settings.batch_size, "leased buildings")

    verify_count(stores.buildings, owned, "building insert")
    verify_count(stores.leases, leased, "leased building insert")

    return BuildingLoadResult(
        owned_inserted=owned,
        leased_inserted=leased,
        unclassified=cohorts.gap.count,
    )


def load_leases(
    store: RecordStore,
    rows: Sequence[Mapping[str, Any]],
    existing_index: Mapping[str, int] | None = None,
    settings: ImportSettings | None = None,
) -> LeaseLoadResult:
    """Merge the leases workbook into the leases table.

    Rows whose street address is already in the table only update the lease
    fields of that row; the rest are inserted. Every row present before the
    merge is still there afterwards, so the final count is the starting
    count plus the inserts.
    """
    settings = settings or ImportSettings()
    logger.info("Processing %d lease records...", len(rows))

    records = [map_lease_row(row) for row in rows]
    _log_cleansing("leases", records)

    if existing_index is None:
        logger.info("Fetching existing lease addresses...")
        existing_index = store.address_index()
    logger.info("Found %d existing lease addresses", len(existing_index))

    starting_count = store.count()
    plan = reconcile(records, existing_index, settings.address_matching)

    updated = apply_updates(
        store, plan.to_update, settings.update_batch_size, settings.update_workers
    )
    inserted = insert_in_batches(store, plan.to_insert, settings.batch_size, "new lease records")

    total = verify_count(store, starting_count + inserted, "lease reconciliation")
    return LeaseLoadResult(inserted=inserted, updated=updated, total=total)


def run_import(
    stores: Stores,
    building_source: RowSource,
    lease_source: RowSource,
    settings: ImportSettings | None = None,
) -> ImportSummary:
    """Full import: buildings first, then leases.

    Both sources are read before anything is written, so a bad file leaves
    the tables untouched.
    """
    settings = settings or ImportSettings()
    started = time.monotonic()

    building_rows = building_source.read_rows()
    lease_rows = lease_source.read_rows()

    with logfire.span("load buildings", rows=len(building_rows)):
        buildings = load_buildings(stores, building_rows, settings)
    logger.info("Buildings import completed")
    with logfire.span("load leases", rows=len(lease_rows)):
        leases = load_leases(stores.leases, lease_rows, settings=settings)
    logger.info("Leases import completed")

    summary = ImportSummary(
        owned_inserted=buildings.owned_inserted,
        leased_buildings_inserted=buildings.leased_inserted,
        leases_inserted=leases.inserted,
        leases_updated=leases.updated,
        unclassified=buildings.unclassified,
        buildings_total=stores.buildings.count(),
        leases_total=leases.total,
        duration_seconds=round(time.monotonic() - started, 2),
    )
    logger.info(
        "Import completed in %.1f seconds. Final counts - Owned: %d, Leases: %d",
        summary.duration_seconds,
        summary.buildings_total,
        summary.leases_total,
    )
    return summary
