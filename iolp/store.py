"""Record stores for the buildings and leases tables.

The loader only talks to the RecordStore protocol. SQLAlchemyRecordStore is
the database-backed implementation; each call opens its own session and
commits before returning, so calls are safe to issue from worker threads.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy import Engine, delete, func, insert, inspect, select, update
from sqlalchemy.orm import Session, sessionmaker

from .database import make_session_factory
from .models import Building, Lease
from .reconcile import build_address_index
from .schemas import DECIMAL_TEXT_FIELDS, LeaseRecord, PropertyRecord

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """A durable table of property or lease records keyed by integer id."""

    table_name: str

    def delete_all(self) -> None: ...

    def count(self) -> int: ...

    def insert_batch(self, records: Sequence[PropertyRecord]) -> None: ...

    def update_fields(self, identity: int, fields: Mapping[str, Any]) -> None: ...

    def find_all(self, **filters: Any) -> list[PropertyRecord]: ...

    def address_index(self) -> dict[str, int]: ...


def _to_row(record: PropertyRecord, columns: set[str]) -> dict[str, Any]:
    data = record.model_dump()
    row = {name: value for name, value in data.items() if name in columns}
    for name in DECIMAL_TEXT_FIELDS:
        if row.get(name) is not None:
            row[name] = Decimal(row[name])
    row["available_square_feet"] = Decimal(str(data["available_square_feet"]))
    return row


class SQLAlchemyRecordStore:
    """RecordStore over one ORM table."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        model: type[Building] | type[Lease],
        record_type: type[PropertyRecord],
    ):
        self.session_factory = session_factory
        self.model = model
        self.record_type = record_type
        self.table_name = model.__tablename__
        self._columns = {attr.key for attr in inspect(model).column_attrs} - {"id"}

    def delete_all(self) -> None:
        with self.session_factory.begin() as session:
            result = session.execute(delete(self.model))
        logger.debug("Deleted %s rows from %s", result.rowcount, self.table_name)

    def count(self) -> int:
        with self.session_factory() as session:
            return session.scalar(select(func.count()).select_from(self.model)) or 0

    def insert_batch(self, records: Sequence[PropertyRecord]) -> None:
        if not records:
            return
        rows = [_to_row(record, self._columns) for record in records]
        with self.session_factory.begin() as session:
            session.execute(insert(self.model), rows)

    def update_fields(self, identity: int, fields: Mapping[str, Any]) -> None:
        unknown = set(fields) - self._columns
        if unknown:
            raise ValueError(f"{self.table_name} has no columns {sorted(unknown)}")
        with self.session_factory.begin() as session:
            result = session.execute(
                update(self.model).where(self.model.id == identity).values(**fields)
            )
            if result.rowcount == 0:
                raise LookupError(f"{self.table_name} has no row with id {identity}")

    def find_all(self, **filters: Any) -> list[PropertyRecord]:
        """Read rows as records, optionally filtered by column equality."""
        stmt = select(self.model).order_by(self.model.id)
        for name, value in filters.items():
            stmt = stmt.where(getattr(self.model, name) == value)
        with self.session_factory() as session:
            return [self.record_type.model_validate(row) for row in session.scalars(stmt)]

    def address_index(self) -> dict[str, int]:
        """Street address → id for the whole table, in one query."""
        stmt = select(self.model.id, self.model.street_address).order_by(self.model.id)
        with self.session_factory() as session:
            return build_address_index(session.execute(stmt))


@dataclass
class Stores:
    """The two stores one import run writes to."""

    buildings: RecordStore
    leases: RecordStore


def open_stores(engine: Engine) -> Stores:
    session_factory = make_session_factory(engine)
    return Stores(
        buildings=SQLAlchemyRecordStore(session_factory, Building, PropertyRecord),
        leases=SQLAlchemyRecordStore(session_factory, Lease, LeaseRecord),
    )
