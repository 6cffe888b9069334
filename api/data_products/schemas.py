"""
Pydantic schemas for data-product endpoints (request/response models).

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import SensitivityCategory

NAME_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000
TEXT_MAX_LENGTH = 255
# Largest value a Postgres `integer` column holds.
INT_MAX = 2**31 - 1


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateDataProductRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    portfolio: str = Field(..., min_length=1, max_length=TEXT_MAX_LENGTH)
    source: str = Field(..., min_length=1, max_length=TEXT_MAX_LENGTH)
    sensitivity_category: SensitivityCategory
    data_format: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    owner: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    tags: list[str] | None = None
    is_active: bool = True
    retention_period_days: int | None = Field(default=None, ge=0, le=INT_MAX)

    @field_validator("name", "portfolio", "source")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class UpdateDataProductRequest(CamelModel):
    # Every field is optional; omitted (or null) fields are left unchanged.
    # `name` has no min_length: an empty string is a rename, not an omission.
    name: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    portfolio: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    source: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    sensitivity_category: SensitivityCategory | None = None
    data_format: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    owner: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    tags: list[str] | None = None
    is_active: bool | None = None
    retention_period_days: int | None = Field(default=None, ge=0, le=INT_MAX)

    @field_validator("portfolio", "source")
    @classmethod
    def _not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("must not be blank")
        return value


class DataProductResponse(CamelModel):
    id: str
    name: str
    description: str | None = None
    portfolio: str
    source: str
    sensitivity_category: SensitivityCategory
    data_format: str | None = None
    owner: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_active: bool
    retention_period_days: int | None = None
    created_at: datetime
    updated_at: datetime


class DataProductPageResponse(CamelModel):
    content: list[DataProductResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool
