import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from iolp.database import init_db
from iolp.reconcile import build_address_index
from iolp.store import Stores, open_stores


class FakeStore:
    """In-memory RecordStore that records every call."""

    def __init__(self, table_name, records=(), stuck_rows=0):
        self.table_name = table_name
        self.rows = {}
        self.calls = []
        self.stuck_rows = stuck_rows  # rows that survive delete_all
        self._next_id = 1
        self._lock = threading.Lock()
        for record in records:
            self._add(record)

    def _add(self, record):
        self.rows[self._next_id] = record
        self._next_id += 1

    def delete_all(self):
        self.calls.append(("delete_all",))
        self.rows = {}

    def count(self):
        return len(self.rows) + self.stuck_rows

    def insert_batch(self, records):
        self.calls.append(("insert_batch", len(records)))
        for record in records:
            self._add(record)

    def update_fields(self, identity, fields):
        with self._lock:
            self.calls.append(("update_fields", identity))
            if identity not in self.rows:
                raise LookupError(identity)
            self.rows[identity] = self.rows[identity].model_copy(update=dict(fields))

    def find_all(self, **filters):
        return [
            r for r in self.rows.values()
            if all(getattr(r, k) == v for k, v in filters.items())
        ]

    def address_index(self):
        return build_address_index((i, r.street_address) for i, r in self.rows.items())

    @property
    def inserts(self):
        return [c for c in self.calls if c[0] == "insert_batch"]


@pytest.fixture
def fake_stores():
    return Stores(buildings=FakeStore("buildings"), leases=FakeStore("leases"))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def stores(engine):
    return open_stores(engine)


@pytest.fixture(autouse=True)
def no_logfire(monkeypatch):
    monkeypatch.delenv("LOGFIRE_TOKEN", raising=False)
