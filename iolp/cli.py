"""Command line entry point for the IOLP import.

Usage:
    python -m iolp --init-db                  # Create tables
    python -m iolp --import                   # Import both workbooks
    python -m iolp --import --buildings b.xlsx --leases l.xlsx
    python -m iolp --stats                    # Show table counts
    python -m iolp --duplicates               # Show repeated address/name pairs
    python -m iolp --export data/             # Write JSON exports
"""

import argparse
import logging
import os
import sys

import logfire
from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import ImportSettings
from .database import create_db_engine, init_db
from .errors import IOLPError
from .export import export_json
from .loader import run_import
from .models import Building, Lease
from .reconcile import find_duplicates
from .sources import source_for
from .store import open_stores

logger = logging.getLogger(__name__)


def configure_logging(level: str, engine: Engine | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Logfire for observability when a token is configured
    if os.getenv("LOGFIRE_TOKEN"):
        logfire.configure()
        if engine is not None:
            logfire.instrument_sqlalchemy(engine=engine)


# =============================================================================
# Reports
# =============================================================================


def print_stats(engine: Engine) -> None:
    """Print current table statistics."""
    print("\n=== Database Statistics ===\n")

    with Session(engine) as session:
        building_count = session.scalar(select(func.count(Building.id)))
        lease_count = session.scalar(select(func.count(Lease.id)))
        from_buildings = session.scalar(
            select(func.count(Lease.id)).where(Lease.owned_or_leased == "L")
        )
        with_details = session.scalar(
            select(func.count(Lease.id)).where(Lease.lease_number.is_not(None))
        )
        address_in_name = session.scalar(
            select(func.count(Building.id)).where(Building.address_in_name.is_(True))
        )

    print(f"Owned buildings: {building_count:,}")
    print(f"  with address in asset name: {address_in_name:,}")
    print(f"Leases: {lease_count:,}")
    print(f"  from buildings workbook: {from_buildings:,}")
    print(f"  from leases workbook: {lease_count - from_buildings:,}")
    print(f"  with lease number: {with_details:,}")
    print(f"Total records: {building_count + lease_count:,}")


def print_duplicates(engine: Engine) -> None:
    """Print the largest groups of buildings sharing address and name."""
    stores = open_stores(engine)
    groups = find_duplicates(stores.buildings.find_all(), limit=10)

    print(f"\n=== Duplicate buildings (top {len(groups)}) ===\n")
    if not groups:
        print("  None found")
    for group in groups:
        print(f"  {group.size} x {group.asset_name or '-'} @ {group.street_address or '-'}")


# =============================================================================
# Main
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import the GSA IOLP building and lease workbooks")
    parser.add_argument("--init-db", action="store_true", help="Create tables")
    parser.add_argument("--import", dest="do_import", action="store_true", help="Run the full import")
    parser.add_argument("--buildings", help="Buildings workbook (.xlsx or .json)")
    parser.add_argument("--leases", help="Leases workbook (.xlsx or .json)")
    parser.add_argument("--stats", action="store_true", help="Show table statistics")
    parser.add_argument("--duplicates", action="store_true", help="Show duplicate buildings")
    parser.add_argument("--export", metavar="DIR", help="Export tables to JSON files in DIR")
    parser.add_argument("--database-url", help="SQLAlchemy database URL")
    parser.add_argument(
        "--address-matching",
        choices=["exact", "casefold"],
        help="How lease street addresses are matched",
    )
    parser.add_argument("--batch-size", type=int, help="Rows per insert batch")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    if not any([args.init_db, args.do_import, args.stats, args.duplicates, args.export]):
        parser.print_help()
        return 0

    try:
        settings = ImportSettings.from_env(
            database_url=args.database_url,
            buildings_file=args.buildings,
            leases_file=args.leases,
            address_matching=args.address_matching,
            batch_size=args.batch_size,
            log_level="DEBUG" if args.verbose else None,
        )
    except ValueError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 2

    engine = None
    try:
        engine = create_db_engine(settings.database_url)
        configure_logging(settings.log_level, engine)

        if args.init_db or args.do_import:
            logger.info("Creating tables if needed...")
            init_db(engine)

        if args.do_import:
            logger.info("Starting data import process...")
            summary = run_import(
                open_stores(engine),
                source_for(settings.buildings_file),
                source_for(settings.leases_file),
                settings,
            )
            print(f"\n=== Import complete in {summary.duration_seconds} seconds ===")
            print(f"  Owned buildings: {summary.owned_inserted:,}")
            print(f"  Leased buildings: {summary.leased_buildings_inserted:,}")
            print(f"  Lease records: {summary.leases_inserted:,} new, {summary.leases_updated:,} merged")
            print(f"  Unclassified buildings skipped: {summary.unclassified:,}")
            print(f"  Total records: {summary.total_records:,}")

        if args.stats:
            print_stats(engine)

        if args.duplicates:
            print_duplicates(engine)

        if args.export:
            counts = export_json(open_stores(engine), args.export)
            for name, n in counts.items():
                print(f"  {name}: {n:,}")

    except IOLPError as e:
        logger.error("Import failed: %s", e)
        return 1
    except SQLAlchemyError as e:
        logger.error("Database error: %s", e)
        return 1
    finally:
        if engine is not None:
            engine.dispose()

    return 0
