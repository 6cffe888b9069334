"""
Translate between wire schemas and catalog records.

Pure functions only: no I/O. The only failures are malformed identifiers and
unknown enum values, both raised as `ValidationFailed` (HTTP 400).
"""

from __future__ import annotations

from uuid import UUID

from core.errors import ValidationFailed

from . import schemas
from .models import DataProductPatch, DataProductRecord, Page, SensitivityCategory


def parse_id(raw: str, *, field: str = "id") -> UUID:
    try:
        return UUID(str(raw))
    except (TypeError, ValueError):
        raise ValidationFailed(
            {field: f"'{raw}' is not a valid identifier."},
            message="Invalid data product id",
        ) from None


def parse_sensitivity(raw: str | None, *, field: str = "sensitivityCategory") -> SensitivityCategory | None:
    """
    Parse an enum name. None or "" means "not given"; anything else must match exactly.
    """
    if raw is None or raw == "":
        return None
    try:
        return SensitivityCategory(raw)
    except ValueError:
        allowed = ", ".join(c.value for c in SensitivityCategory)
        raise ValidationFailed(
            {field: f"Unknown value '{raw}'. Allowed: {allowed}"},
        ) from None


def to_record(request: schemas.CreateDataProductRequest) -> DataProductRecord:
    return DataProductRecord(
        name=request.name,
        description=request.description,
        portfolio=request.portfolio,
        source=request.source,
        sensitivity_category=SensitivityCategory(request.sensitivity_category),
        data_format=request.data_format,
        owner=request.owner,
        tags=list(request.tags or []),
        is_active=request.is_active,
        retention_period_days=request.retention_period_days,
    )


def to_patch(request: schemas.UpdateDataProductRequest) -> DataProductPatch:
    # Only fields the client actually sent with a value become changes.
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    if "sensitivity_category" in changes:
        changes["sensitivity_category"] = SensitivityCategory(changes["sensitivity_category"])
    return DataProductPatch(changes=changes)


def to_response(record: DataProductRecord) -> schemas.DataProductResponse:
    return schemas.DataProductResponse(
        id=str(record.id),
        name=record.name,
        description=record.description,
        portfolio=record.portfolio,
        source=record.source,
        sensitivity_category=record.sensitivity_category,
        data_format=record.data_format,
        owner=record.owner,
        tags=list(record.tags),
        is_active=record.is_active,
        retention_period_days=record.retention_period_days,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def to_update_request(response: schemas.DataProductResponse) -> schemas.UpdateDataProductRequest:
    """
    Build an update request carrying every client-owned field of a response.
    """
    return schemas.UpdateDataProductRequest(
        name=response.name,
        description=response.description,
        portfolio=response.portfolio,
        source=response.source,
        sensitivity_category=response.sensitivity_category,
        data_format=response.data_format,
        owner=response.owner,
        tags=list(response.tags),
        is_active=response.is_active,
        retention_period_days=response.retention_period_days,
    )


def to_page_response(page: Page) -> schemas.DataProductPageResponse:
    return schemas.DataProductPageResponse(
        content=[to_response(r) for r in page.items],
        page=page.page,
        size=page.size,
        total_elements=page.total_elements,
        total_pages=page.total_pages,
        first=page.is_first,
        last=page.is_last,
    )
