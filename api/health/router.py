"""
Health endpoint: reports process status and database reachability.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter
from pydantic import BaseModel

from data_products import repository

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "data-product-catalog"

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: datetime
    version: str


def app_version() -> str:
    raw = os.environ.get("APP_VERSION", "").strip()
    if raw:
        return raw
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "unknown"


async def _database_up() -> bool:
    try:
        return await repository.ping()
    except Exception:
        logger.warning("health_database_down", exc_info=True)
        return False


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    database_up = await _database_up()
    return HealthResponse(
        status="UP" if database_up else "DOWN",
        database="UP" if database_up else "DOWN",
        timestamp=datetime.now(timezone.utc),
        version=app_version(),
    )
