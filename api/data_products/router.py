"""
FastAPI router for data-product endpoints.

Thin dispatch only: parse path/query values, apply paging defaults, call the
service, pick the status code.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from . import mapper, schemas, service

DEFAULT_PAGE = 0
DEFAULT_PAGE_SIZE = 20

router = APIRouter()


@router.get("/data-products", response_model=schemas.DataProductPageResponse)
async def list_data_products(
    page: int = Query(DEFAULT_PAGE, ge=0, le=schemas.INT_MAX),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=schemas.INT_MAX),
    portfolio: str | None = Query(default=None),
    sensitivity_category: str | None = Query(default=None, alias="sensitivityCategory"),
) -> schemas.DataProductPageResponse:
    """
    List data products, optionally filtered by portfolio and/or sensitivity.
    """
    result = await service.list_data_products(
        portfolio=portfolio,
        sensitivity=mapper.parse_sensitivity(sensitivity_category),
        page=page,
        size=size,
    )
    return mapper.to_page_response(result)


@router.get("/data-products/{product_id}", response_model=schemas.DataProductResponse)
async def get_data_product(product_id: str) -> schemas.DataProductResponse:
    record = await service.get_data_product(mapper.parse_id(product_id))
    return mapper.to_response(record)


@router.post(
    "/data-products",
    response_model=schemas.DataProductResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_data_product(request: schemas.CreateDataProductRequest) -> schemas.DataProductResponse:
    record = await service.create_data_product(mapper.to_record(request))
    return mapper.to_response(record)


@router.put("/data-products/{product_id}", response_model=schemas.DataProductResponse)
async def update_data_product(
    product_id: str,
    request: schemas.UpdateDataProductRequest,
) -> schemas.DataProductResponse:
    """
    Partial update: only fields present (and non-null) in the body change.
    """
    record = await service.update_data_product(mapper.parse_id(product_id), mapper.to_patch(request))
    return mapper.to_response(record)


@router.delete("/data-products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_data_product(product_id: str) -> Response:
    await service.delete_data_product(mapper.parse_id(product_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
