"""
Data-product catalog business logic.

Scope:
- filtered, paginated listing
- create/update with name uniqueness
- partial-update merge
- hard delete

Each mutation runs its existence/uniqueness checks and its write inside one
transaction. The unique index on `data_products.name` is the final word on
duplicates; the pre-checks here only fail early with a clean message.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from uuid import UUID, uuid4

from core import db
from core.errors import DataProductAlreadyExists, DataProductNotFound, ValidationFailed

from . import repository
from .models import DataProductPatch, DataProductRecord, Page, SensitivityCategory

logger = logging.getLogger(__name__)

# LIMIT/OFFSET are bigint in Postgres.
BIGINT_MAX = 2**63 - 1


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def list_data_products(
    *,
    portfolio: str | None,
    sensitivity: SensitivityCategory | None,
    page: int,
    size: int,
) -> Page:
    errors: dict[str, str] = {}
    if page < 0:
        errors["page"] = "must be greater than or equal to 0"
    if size < 1:
        errors["size"] = "must be greater than or equal to 1"
    elif size > BIGINT_MAX:
        errors["size"] = f"must be less than or equal to {BIGINT_MAX}"
    elif page > 0 and page * size > BIGINT_MAX:
        errors["page"] = "page * size is out of range"
    if errors:
        raise ValidationFailed(errors)

    async with db.transaction(readonly=True) as conn:
        items, total = await repository.find_filtered(
            portfolio=portfolio,
            sensitivity=sensitivity,
            page=page,
            size=size,
            conn=conn,
        )
    return Page(items=items, page=page, size=size, total_elements=total)


async def get_data_product(product_id: UUID) -> DataProductRecord:
    record = await repository.find_by_id(product_id)
    if record is None:
        raise DataProductNotFound(product_id)
    return record


async def create_data_product(candidate: DataProductRecord) -> DataProductRecord:
    now = _utc_now()
    async with db.transaction() as conn:
        if await repository.exists_by_name(candidate.name, conn=conn):
            raise DataProductAlreadyExists(candidate.name)

        record = replace(candidate, id=uuid4(), created_at=now, updated_at=now, tags=list(candidate.tags))
        saved = await repository.insert(record, conn=conn)

    logger.info("data_product_created id=%s name=%s", saved.id, saved.name)
    return saved


async def update_data_product(product_id: UUID, patch: DataProductPatch) -> DataProductRecord:
    async with db.transaction() as conn:
        existing = await repository.find_by_id(product_id, lock=True, conn=conn)
        if existing is None:
            raise DataProductNotFound(product_id)

        new_name = patch.name
        if (
            patch.has("name")
            and new_name
            and new_name != existing.name
            and await repository.exists_by_name(new_name, conn=conn)
        ):
            raise DataProductAlreadyExists(new_name)

        # Never move updated_at backwards, even if the clock does.
        updated_at = _utc_now()
        if existing.updated_at is not None and updated_at < existing.updated_at:
            updated_at = existing.updated_at

        merged = patch.apply_to(existing, updated_at=updated_at)
        saved = await repository.update(merged, conn=conn)
        if saved is None:
            raise DataProductNotFound(product_id)

    logger.info(
        "data_product_updated id=%s fields=%s",
        saved.id,
        ",".join(sorted(patch.changes)) or "-",
    )
    return saved


async def delete_data_product(product_id: UUID) -> None:
    async with db.transaction() as conn:
        if not await repository.exists_by_id(product_id, conn=conn):
            raise DataProductNotFound(product_id)
        await repository.delete_by_id(product_id, conn=conn)

    logger.info("data_product_deleted id=%s", product_id)
