"""
Catalog error taxonomy and the FastAPI handlers that render it.

Every error leaves the API in the same shape:

    {"message": "...", "details": ..., "timestamp": "...", "path": "/..."}

`details` is a field-name -> message map for validation failures, the
exception description for unhandled errors, and null otherwise.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Location prefixes FastAPI puts in front of the field name.
_REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}


class CatalogError(RuntimeError):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DataProductNotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, product_id: Any) -> None:
        super().__init__(f"Data product not found with id: {product_id}")
        self.product_id = product_id


class DataProductAlreadyExists(CatalogError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, name: str) -> None:
        super().__init__(f"Data product already exists with name: {name}")
        self.name = name


class ValidationFailed(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: dict[str, str], message: str = "Validation failed") -> None:
        super().__init__(message)
        self.errors = dict(errors)


class ErrorResponse(BaseModel):
    message: str
    details: dict[str, str] | str | None = None
    timestamp: datetime
    path: str


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def error_response(
    request: Request,
    *,
    status_code: int,
    message: str,
    details: dict[str, str] | str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        message=message,
        details=details,
        timestamp=_utc_now(),
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


def _field_name(loc: tuple[Any, ...] | list[Any]) -> str:
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in _REQUEST_PARTS:
        parts = parts[1:]
    return ".".join(parts) or "request"


def validation_details(errors: list[dict[str, Any]]) -> dict[str, str]:
    """
    Collapse pydantic error dicts into {field: message}; first message wins.
    """
    details: dict[str, str] = {}
    for err in errors:
        field = _field_name(err.get("loc") or ())
        details.setdefault(field, str(err.get("msg") or "Invalid value"))
    return details


async def _catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if isinstance(exc, DataProductAlreadyExists):
        logger.info("data_product_conflict name=%s path=%s", exc.name, request.url.path)
    details = exc.errors if isinstance(exc, ValidationFailed) else None
    return error_response(request, status_code=exc.status_code, message=exc.message, details=details)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        message="Validation failed",
        details=validation_details(list(exc.errors())),
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(
        request,
        status_code=exc.status_code,
        message=str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error method=%s path=%s", request.method, request.url.path)
    return error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="Internal server error",
        details=str(exc) or exc.__class__.__name__,
    )


def install_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogError, _catalog_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
