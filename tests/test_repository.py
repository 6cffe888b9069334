"""
Tests for the SQL layer with the asyncpg calls mocked out.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import asyncpg
import pytest

from core import db
from core.errors import DataProductAlreadyExists
from data_products import repository
from data_products.models import DataProductRecord, SensitivityCategory


NOW = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)


def _row(**overrides):
    row = {
        "id": uuid4(),
        "name": "orders-eu",
        "description": None,
        "portfolio": "payments",
        "source": "kafka",
        "sensitivity_category": "CONFIDENTIAL",
        "data_format": None,
        "owner": None,
        "tags": ["b", "a"],
        "is_active": True,
        "retention_period_days": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def _persisted_record():
    return DataProductRecord(
        id=uuid4(),
        name="orders-eu",
        portfolio="payments",
        source="kafka",
        sensitivity_category=SensitivityCategory.INTERNAL,
        tags=["x"],
        created_at=NOW,
        updated_at=NOW,
    )


class TestReads:

    @pytest.mark.asyncio
    async def test_find_by_id_maps_row(self, monkeypatch):
        row = _row()
        fetch_one = AsyncMock(return_value=row)
        monkeypatch.setattr(db, "fetch_one", fetch_one)

        record = await repository.find_by_id(row["id"])

        assert record.id == row["id"]
        assert record.sensitivity_category is SensitivityCategory.CONFIDENTIAL
        assert record.tags == ["b", "a"]
        sql = fetch_one.await_args.args[0]
        assert "FOR UPDATE" not in sql

    @pytest.mark.asyncio
    async def test_find_by_id_with_lock(self, monkeypatch):
        fetch_one = AsyncMock(return_value=None)
        monkeypatch.setattr(db, "fetch_one", fetch_one)
        conn = object()

        assert await repository.find_by_id(uuid4(), lock=True, conn=conn) is None
        assert fetch_one.await_args.args[0].rstrip().endswith("FOR UPDATE")
        assert fetch_one.await_args.kwargs["conn"] is conn

    @pytest.mark.asyncio
    async def test_null_tags_become_empty_list(self, monkeypatch):
        monkeypatch.setattr(db, "fetch_one", AsyncMock(return_value=_row(tags=None)))
        record = await repository.find_by_name("orders-eu")
        assert record.tags == []

    @pytest.mark.asyncio
    async def test_exists_by_name(self, monkeypatch):
        monkeypatch.setattr(db, "fetch_one", AsyncMock(return_value={"ok": 1}))
        assert await repository.exists_by_name("orders-eu") is True
        monkeypatch.setattr(db, "fetch_one", AsyncMock(return_value=None))
        assert await repository.exists_by_name("orders-eu") is False

    @pytest.mark.asyncio
    async def test_find_filtered_passes_filters_and_offset(self, monkeypatch):
        fetch_value = AsyncMock(return_value=7)
        fetch_all = AsyncMock(return_value=[_row(), _row(name="other")])
        monkeypatch.setattr(db, "fetch_value", fetch_value)
        monkeypatch.setattr(db, "fetch_all", fetch_all)

        items, total = await repository.find_filtered(
            portfolio="payments",
            sensitivity=SensitivityCategory.PUBLIC,
            page=3,
            size=2,
        )

        assert total == 7
        assert [r.name for r in items] == ["orders-eu", "other"]
        assert fetch_value.await_args.args[1:] == ("payments", "PUBLIC")
        assert fetch_all.await_args.args[1:] == ("payments", "PUBLIC", 2, 6)
        assert "ORDER BY created_at, id" in fetch_all.await_args.args[0]

    @pytest.mark.asyncio
    async def test_find_filtered_without_filters_passes_nulls(self, monkeypatch):
        fetch_value = AsyncMock(return_value=0)
        fetch_all = AsyncMock(return_value=[])
        monkeypatch.setattr(db, "fetch_value", fetch_value)
        monkeypatch.setattr(db, "fetch_all", fetch_all)

        items, total = await repository.find_filtered(portfolio=None, sensitivity=None, page=0, size=20)

        assert (items, total) == ([], 0)
        assert fetch_all.await_args.args[1:] == (None, None, 20, 0)


class TestWrites:

    @pytest.mark.asyncio
    async def test_insert_sends_enum_name_and_tags(self, monkeypatch):
        record = _persisted_record()
        fetch_one = AsyncMock(return_value=_row(id=record.id, sensitivity_category="INTERNAL", tags=["x"]))
        monkeypatch.setattr(db, "fetch_one", fetch_one)

        saved = await repository.insert(record)

        args = fetch_one.await_args.args
        assert args[1] == record.id
        assert args[6] == "INTERNAL"
        assert args[9] == ["x"]
        assert saved.id == record.id

    @pytest.mark.asyncio
    async def test_insert_requires_server_fields(self):
        record = DataProductRecord(
            name="n", portfolio="p", source="s", sensitivity_category=SensitivityCategory.PUBLIC
        )
        with pytest.raises(RuntimeError):
            await repository.insert(record)

    @pytest.mark.asyncio
    async def test_unique_violation_becomes_already_exists(self, monkeypatch):
        error = asyncpg.exceptions.UniqueViolationError("duplicate key value violates unique constraint")
        monkeypatch.setattr(db, "fetch_one", AsyncMock(side_effect=error))

        with pytest.raises(DataProductAlreadyExists) as exc_info:
            await repository.insert(_persisted_record())
        assert exc_info.value.name == "orders-eu"

        with pytest.raises(DataProductAlreadyExists):
            await repository.update(_persisted_record())

    @pytest.mark.asyncio
    async def test_update_never_writes_created_at(self, monkeypatch):
        fetch_one = AsyncMock(return_value=None)
        monkeypatch.setattr(db, "fetch_one", fetch_one)

        assert await repository.update(_persisted_record()) is None
        sql = fetch_one.await_args.args[0]
        assert "created_at =" not in sql
        assert "updated_at = $12" in sql

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, expected", [("DELETE 1", True), ("DELETE 0", False)])
    async def test_delete_by_id_reads_command_tag(self, monkeypatch, status, expected):
        monkeypatch.setattr(db, "execute", AsyncMock(return_value=status))
        assert await repository.delete_by_id(uuid4()) is expected


class TestDbHelpers:

    def test_database_url_strips_sslmode(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@h:5432/d?sslmode=require&application_name=x")
        assert db.database_url() == "postgresql://u:p@h:5432/d?application_name=x"

    def test_database_url_required(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError):
            db.database_url()

    @pytest.mark.parametrize("raw, expected", [("", 30.0), ("5", 5.0), ("abc", 30.0), ("-1", 30.0)])
    def test_command_timeout(self, monkeypatch, raw, expected):
        monkeypatch.setenv("DB_COMMAND_TIMEOUT_S", raw)
        assert db.command_timeout_s() == expected

    @pytest.mark.parametrize("raw, expected", [("", True), ("true", True), ("false", False), ("0", False)])
    def test_should_create_schema(self, monkeypatch, raw, expected):
        monkeypatch.setenv("DB_CREATE_SCHEMA", raw)
        assert db.should_create_schema() is expected

    def test_pool_not_initialized(self, monkeypatch):
        monkeypatch.setattr(db, "_pool", None)
        with pytest.raises(RuntimeError):
            db.pool()

    @pytest.mark.asyncio
    async def test_helpers_prefer_given_connection(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value={"id": 1})
        conn.fetch = AsyncMock(return_value=[{"id": 1}, {"id": 2}])
        conn.fetchval = AsyncMock(return_value=1)
        conn.execute = AsyncMock(return_value="DELETE 1")

        assert await db.fetch_one("SELECT 1", conn=conn) == {"id": 1}
        assert await db.fetch_all("SELECT 1", conn=conn) == [{"id": 1}, {"id": 2}]
        assert await db.fetch_value("SELECT 1", conn=conn) == 1
        assert await db.execute("DELETE", conn=conn) == "DELETE 1"
