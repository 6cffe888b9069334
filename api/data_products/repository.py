"""
Data-product persistence (raw SQL).

Every function takes an optional `conn` so the service can group several
calls into one transaction (see `core.db.transaction`).
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import asyncpg

from core import db
from core.errors import DataProductAlreadyExists

from .models import DataProductRecord, SensitivityCategory

COLUMNS = """
    id, name, description, portfolio, source, sensitivity_category,
    data_format, owner, tags, is_active, retention_period_days,
    created_at, updated_at
"""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS data_products (
    id uuid PRIMARY KEY,
    name varchar(255) NOT NULL,
    description varchar(1000),
    portfolio varchar(255) NOT NULL,
    source varchar(255) NOT NULL,
    sensitivity_category varchar(32) NOT NULL
        CHECK (sensitivity_category IN ('PUBLIC', 'INTERNAL', 'CONFIDENTIAL', 'RESTRICTED')),
    data_format varchar(255),
    owner varchar(255),
    tags text[] NOT NULL DEFAULT '{}',
    is_active boolean NOT NULL DEFAULT true,
    retention_period_days integer,
    created_at timestamptz NOT NULL,
    updated_at timestamptz NOT NULL,
    CONSTRAINT uq_data_products_name UNIQUE (name)
);
CREATE INDEX IF NOT EXISTS ix_data_products_portfolio ON data_products (portfolio);
CREATE INDEX IF NOT EXISTS ix_data_products_sensitivity ON data_products (sensitivity_category);
CREATE INDEX IF NOT EXISTS ix_data_products_created_at ON data_products (created_at, id);
"""


def _row_to_record(row: dict[str, Any]) -> DataProductRecord:
    return DataProductRecord(
        id=row["id"],
        name=str(row["name"]),
        description=row["description"],
        portfolio=str(row["portfolio"]),
        source=str(row["source"]),
        sensitivity_category=SensitivityCategory(row["sensitivity_category"]),
        data_format=row["data_format"],
        owner=row["owner"],
        tags=list(row["tags"] or []),
        is_active=bool(row["is_active"]),
        retention_period_days=row["retention_period_days"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _sensitivity_arg(value: SensitivityCategory | None) -> str | None:
    return value.value if value is not None else None


async def create_schema(*, conn: asyncpg.Connection | None = None) -> None:
    await db.execute(SCHEMA_SQL, conn=conn)


async def ping(*, conn: asyncpg.Connection | None = None) -> bool:
    return await db.fetch_value("SELECT 1", conn=conn) == 1


async def find_by_id(
    product_id: UUID,
    *,
    lock: bool = False,
    conn: asyncpg.Connection | None = None,
) -> DataProductRecord | None:
    """
    Fetch one record. With `lock=True` the row stays locked until the
    surrounding transaction ends.
    """
    sql = f"SELECT {COLUMNS} FROM data_products WHERE id = $1"
    if lock:
        sql += " FOR UPDATE"
    row = await db.fetch_one(sql, product_id, conn=conn)
    return _row_to_record(row) if row is not None else None


async def find_by_name(name: str, *, conn: asyncpg.Connection | None = None) -> DataProductRecord | None:
    row = await db.fetch_one(
        f"SELECT {COLUMNS} FROM data_products WHERE name = $1",
        name,
        conn=conn,
    )
    return _row_to_record(row) if row is not None else None


async def exists_by_name(name: str, *, conn: asyncpg.Connection | None = None) -> bool:
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM data_products
        WHERE name = $1
        LIMIT 1
        """,
        name,
        conn=conn,
    )
    return row is not None


async def exists_by_id(product_id: UUID, *, conn: asyncpg.Connection | None = None) -> bool:
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM data_products
        WHERE id = $1
        LIMIT 1
        """,
        product_id,
        conn=conn,
    )
    return row is not None


async def find_filtered(
    *,
    portfolio: str | None,
    sensitivity: SensitivityCategory | None,
    page: int,
    size: int,
    conn: asyncpg.Connection | None = None,
) -> tuple[list[DataProductRecord], int]:
    """
    Return one page of records plus the total number of matches.

    A None filter places no constraint. Rows are ordered by creation time,
    then id, so pages are stable.
    """
    sensitivity_arg = _sensitivity_arg(sensitivity)
    total = await db.fetch_value(
        """
        SELECT count(*)
        FROM data_products
        WHERE ($1::text IS NULL OR portfolio = $1)
          AND ($2::text IS NULL OR sensitivity_category = $2)
        """,
        portfolio,
        sensitivity_arg,
        conn=conn,
    )
    rows = await db.fetch_all(
        f"""
        SELECT {COLUMNS}
        FROM data_products
        WHERE ($1::text IS NULL OR portfolio = $1)
          AND ($2::text IS NULL OR sensitivity_category = $2)
        ORDER BY created_at, id
        LIMIT $3
        OFFSET $4
        """,
        portfolio,
        sensitivity_arg,
        size,
        page * size,
        conn=conn,
    )
    return [_row_to_record(r) for r in rows], int(total or 0)


async def insert(record: DataProductRecord, *, conn: asyncpg.Connection | None = None) -> DataProductRecord:
    if record.id is None or record.created_at is None or record.updated_at is None:
        raise RuntimeError("insert called without id/timestamps.")
    try:
        row = await db.fetch_one(
            f"""
            INSERT INTO data_products (
                id, name, description, portfolio, source, sensitivity_category,
                data_format, owner, tags, is_active, retention_period_days,
                created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
            RETURNING {COLUMNS}
            """,
            record.id,
            record.name,
            record.description,
            record.portfolio,
            record.source,
            record.sensitivity_category.value,
            record.data_format,
            record.owner,
            list(record.tags),
            record.is_active,
            record.retention_period_days,
            record.created_at,
            record.updated_at,
            conn=conn,
        )
    except asyncpg.exceptions.UniqueViolationError as e:
        # `name` is the only unique column besides the generated uuid key.
        raise DataProductAlreadyExists(record.name) from e
    if row is None:
        raise RuntimeError("Failed to insert data product.")
    return _row_to_record(row)


async def update(record: DataProductRecord, *, conn: asyncpg.Connection | None = None) -> DataProductRecord | None:
    """
    Overwrite every mutable column of an existing row.

    Returns None when the row no longer exists. `created_at` is never written.
    """
    try:
        row = await db.fetch_one(
            f"""
            UPDATE data_products
            SET name = $2,
                description = $3,
                portfolio = $4,
                source = $5,
                sensitivity_category = $6,
                data_format = $7,
                owner = $8,
                tags = $9,
                is_active = $10,
                retention_period_days = $11,
                updated_at = $12
            WHERE id = $1
            RETURNING {COLUMNS}
            """,
            record.id,
            record.name,
            record.description,
            record.portfolio,
            record.source,
            record.sensitivity_category.value,
            record.data_format,
            record.owner,
            list(record.tags),
            record.is_active,
            record.retention_period_days,
            record.updated_at,
            conn=conn,
        )
    except asyncpg.exceptions.UniqueViolationError as e:
        raise DataProductAlreadyExists(record.name) from e
    return _row_to_record(row) if row is not None else None


async def delete_by_id(product_id: UUID, *, conn: asyncpg.Connection | None = None) -> bool:
    status = await db.execute("DELETE FROM data_products WHERE id = $1", product_id, conn=conn)
    # asyncpg returns the command tag, e.g. "DELETE 1".
    return status.rsplit(" ", 1)[-1] != "0"
