"""
Pytest fixtures for the catalog API.

`store` swaps the repository functions for an in-memory table that behaves
like `data_products` (including the unique name constraint), and replaces
`db.transaction` so no Postgres is needed.
"""

from contextlib import asynccontextmanager
from typing import Optional
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from core import db
from core.errors import DataProductAlreadyExists
from data_products import repository
from data_products.models import DataProductRecord, SensitivityCategory


FAKE_CONN = object()


class InMemoryStore:
    """Dict-backed stand-in for the data_products table."""

    def __init__(self):
        self.rows: dict[UUID, DataProductRecord] = {}
        self.transactions = 0
        self.readonly_transactions = 0
        # (function name, conn, extra kwargs) for every repository call.
        self.calls: list[tuple[str, object, dict]] = []

    def _log(self, name: str, conn, **kwargs) -> None:
        self.calls.append((name, conn, kwargs))

    def _name_taken(self, name: str, *, exclude: Optional[UUID] = None) -> bool:
        return any(r.name == name and r.id != exclude for r in self.rows.values())

    async def find_by_id(self, product_id, *, lock=False, conn=None):
        self._log("find_by_id", conn, lock=lock)
        return self.rows.get(product_id)

    async def find_by_name(self, name, *, conn=None):
        self._log("find_by_name", conn)
        for record in self.rows.values():
            if record.name == name:
                return record
        return None

    async def exists_by_name(self, name, *, conn=None):
        self._log("exists_by_name", conn)
        return self._name_taken(name)

    async def exists_by_id(self, product_id, *, conn=None):
        self._log("exists_by_id", conn)
        return product_id in self.rows

    async def find_filtered(self, *, portfolio, sensitivity, page, size, conn=None):
        self._log("find_filtered", conn)
        matches = [
            r
            for r in self.rows.values()
            if (portfolio is None or r.portfolio == portfolio)
            and (sensitivity is None or r.sensitivity_category == sensitivity)
        ]
        start = page * size
        return matches[start : start + size], len(matches)

    async def insert(self, record, *, conn=None):
        self._log("insert", conn)
        if self._name_taken(record.name):
            raise DataProductAlreadyExists(record.name)
        self.rows[record.id] = record
        return record

    async def update(self, record, *, conn=None):
        self._log("update", conn)
        if record.id not in self.rows:
            return None
        if self._name_taken(record.name, exclude=record.id):
            raise DataProductAlreadyExists(record.name)
        self.rows[record.id] = record
        return record

    async def delete_by_id(self, product_id, *, conn=None):
        self._log("delete_by_id", conn)
        return self.rows.pop(product_id, None) is not None

    async def ping(self, *, conn=None):
        return True


@pytest.fixture
def store(monkeypatch):
    fake = InMemoryStore()

    @asynccontextmanager
    async def fake_transaction(*, readonly=False):
        fake.transactions += 1
        if readonly:
            fake.readonly_transactions += 1
        yield FAKE_CONN

    monkeypatch.setattr(db, "transaction", fake_transaction)
    for name in (
        "find_by_id",
        "find_by_name",
        "exists_by_name",
        "exists_by_id",
        "find_filtered",
        "insert",
        "update",
        "delete_by_id",
        "ping",
    ):
        monkeypatch.setattr(repository, name, getattr(fake, name))
    return fake


@pytest.fixture
def fake_conn():
    return FAKE_CONN


@pytest.fixture
def client(store):
    # Not used as a context manager: the lifespan (real pool) never runs.
    from main import app

    return TestClient(app)


@pytest.fixture
def sample_record():
    return DataProductRecord(
        name="orders-eu",
        description="EU order events",
        portfolio="payments",
        source="kafka",
        sensitivity_category=SensitivityCategory.INTERNAL,
        data_format="avro",
        owner="payments-team@example.com",
        tags=["orders", "eu", "orders"],
        retention_period_days=90,
    )


@pytest.fixture
def create_payload():
    return {
        "name": "orders-eu",
        "portfolio": "payments",
        "source": "kafka",
        "sensitivityCategory": "INTERNAL",
    }
