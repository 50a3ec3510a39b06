from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from redis.asyncio import Redis

from app.schemas.common import BulkActionRequest, FieldValidationRequest, SalesStatisticsParams
from app.schemas.sale import SaleCreate, SaleUpdate, SaleSearchParams
from app.db.session import get_db
from app.db.redis_client import get_redis
from app.routers.common import dispatch
from app.services.sale_services import SaleServices
from app.services.statistics import StatisticsServices

router = APIRouter(prefix="/api/v1/sales", tags=["Sales"])


@router.post(
    "",
    status_code=201,
    summary="Create a sale",
    description="Registers a sale and marks its property as Sold in the same transaction."
)
async def create_sale(request: SaleCreate, db: AsyncSession = Depends(get_db)):
    return await dispatch("create_sale", SaleServices.create_sale_service(request, db), success_status=201)


@router.get("/search", summary="Search sales")
async def search_sales(params: SaleSearchParams = Depends(), db: AsyncSession = Depends(get_db)):
    return await dispatch("search_sales", SaleServices.search_sales_service(params, db))


@router.get("/statistics", summary="Sales statistics")
async def sales_statistics(
    period: Literal["all", "year", "month"] = Query("all"),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    params = SalesStatisticsParams(period=period, year=year, month=month)
    return await dispatch("sales_statistics", StatisticsServices.sales_statistics(params, db, redis))


@router.post("/validate", summary="Validate a single sale field")
async def validate_sale_field(request: FieldValidationRequest, db: AsyncSession = Depends(get_db)):
    return await dispatch("validate_sale_field", SaleServices.validate_field_service(request, db))


@router.post("/bulk", summary="Apply an action to several sales")
async def bulk_sales(request: BulkActionRequest, db: AsyncSession = Depends(get_db)):
    return await dispatch("bulk_sales", SaleServices.bulk_action_service(request, db))


@router.get("/{sale_id}", summary="Get a sale")
async def get_sale(sale_id: int, db: AsyncSession = Depends(get_db)):
    return await dispatch("get_sale", SaleServices.get_sale_service(sale_id, db))


@router.put(
    "/{sale_id}",
    summary="Update a sale",
    description="Full edit; moving the sale to another property swaps the two properties' states."
)
async def update_sale(sale_id: int, request: SaleUpdate, db: AsyncSession = Depends(get_db)):
    return await dispatch("update_sale", SaleServices.update_sale_service(sale_id, request, db))


@router.delete(
    "/{sale_id}",
    summary="Delete a sale",
    description="Refused while a sale contract ties the client to the property; otherwise the property becomes Available."
)
async def delete_sale(sale_id: int, db: AsyncSession = Depends(get_db)):
    return await dispatch("delete_sale", SaleServices.delete_sale_service(sale_id, db))
