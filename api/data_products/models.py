"""
In-memory shapes used by the catalog service and repository.

These are plain dataclasses; the wire shapes live in `schemas.py`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class SensitivityCategory(str, Enum):
    PUBLIC = "PUBLIC"
    INTERNAL = "INTERNAL"
    CONFIDENTIAL = "CONFIDENTIAL"
    RESTRICTED = "RESTRICTED"


@dataclass(frozen=True)
class DataProductRecord:
    name: str
    portfolio: str
    source: str
    sensitivity_category: SensitivityCategory
    description: str | None = None
    data_format: str | None = None
    owner: str | None = None
    tags: list[str] = field(default_factory=list)
    is_active: bool = True
    retention_period_days: int | None = None
    # Server-owned; unset until the record is persisted.
    id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# Fields an update may overwrite. id/created_at/updated_at are server-owned.
MUTABLE_FIELDS = frozenset(
    f.name for f in fields(DataProductRecord) if f.name not in {"id", "created_at", "updated_at"}
)


@dataclass(frozen=True)
class DataProductPatch:
    """
    Partial update: only the keys present in `changes` are applied.

    A key that is missing means "leave as is"; there is no null sentinel.
    """

    changes: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.changes) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields are not updatable: {sorted(unknown)}")

    @property
    def name(self) -> str | None:
        return self.changes.get("name")

    def has(self, field_name: str) -> bool:
        return field_name in self.changes

    def apply_to(self, record: DataProductRecord, *, updated_at: datetime) -> DataProductRecord:
        changes = dict(self.changes)
        if "tags" in changes:
            changes["tags"] = list(changes["tags"])
        return replace(record, updated_at=updated_at, **changes)


@dataclass(frozen=True)
class Page:
    items: list[DataProductRecord]
    page: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total_elements / self.size)

    @property
    def is_first(self) -> bool:
        return self.page == 0

    @property
    def is_last(self) -> bool:
        return self.page + 1 >= self.total_pages
