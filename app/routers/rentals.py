from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from redis.asyncio import Redis

from app.schemas.common import BulkActionRequest, FieldValidationRequest
from app.schemas.rental import RentalCreate, RentalUpdate, RentalStatusUpdate, RentalSearchParams, ExpiringParams
from app.db.session import get_db
from app.db.redis_client import get_redis
from app.routers.common import dispatch
from app.services.rental_services import RentalServices
from app.services.statistics import StatisticsServices

router = APIRouter(prefix="/api/v1/rentals", tags=["Rentals"])


@router.post("", status_code=201, summary="Create a rental")
async def create_rental(request: RentalCreate, db: AsyncSession = Depends(get_db)):
    return await dispatch("create_rental", RentalServices.create_rental_service(request, db), success_status=201)


@router.get("/search", summary="Search rentals")
async def search_rentals(params: RentalSearchParams = Depends(), db: AsyncSession = Depends(get_db)):
    return await dispatch("search_rentals", RentalServices.search_rentals_service(params, db))


@router.get(
    "/expiring",
    summary="Rentals about to expire",
    description="Active rentals whose end date falls within the next `days` days (default 30, at most 90)."
)
async def expiring_rentals(params: ExpiringParams = Depends(), db: AsyncSession = Depends(get_db)):
    return await dispatch("expiring_rentals", RentalServices.expiring_rentals_service(params, db))


@router.get("/statistics", summary="Rental statistics")
async def rental_statistics(db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_redis)):
    return await dispatch("rental_statistics", StatisticsServices.rental_statistics(db, redis))


@router.post("/validate", summary="Validate a single rental field")
async def validate_rental_field(request: FieldValidationRequest, db: AsyncSession = Depends(get_db)):
    return await dispatch("validate_rental_field", RentalServices.validate_field_service(request, db))


@router.post("/bulk", summary="Apply an action to several rentals")
async def bulk_rentals(request: BulkActionRequest, db: AsyncSession = Depends(get_db)):
    return await dispatch("bulk_rentals", RentalServices.bulk_action_service(request, db))


@router.get("/{rental_id}", summary="Get a rental")
async def get_rental(rental_id: int, db: AsyncSession = Depends(get_db)):
    return await dispatch("get_rental", RentalServices.get_rental_service(rental_id, db))


@router.put("/{rental_id}", summary="Update a rental")
async def update_rental(rental_id: int, request: RentalUpdate, db: AsyncSession = Depends(get_db)):
    return await dispatch("update_rental", RentalServices.update_rental_service(rental_id, request, db))


@router.delete(
    "/{rental_id}",
    summary="Delete a rental",
    description="Only Terminated or Overdue rentals can be deleted."
)
async def delete_rental(rental_id: int, db: AsyncSession = Depends(get_db)):
    return await dispatch("delete_rental", RentalServices.delete_rental_service(rental_id, db))


@router.post(
    "/{rental_id}/status",
    summary="Change a rental's status",
    description="Moves the rental along the status table; refused moves answer 409 with the legal alternatives."
)
async def change_rental_status(rental_id: int, request: RentalStatusUpdate, db: AsyncSession = Depends(get_db)):
    return await dispatch("change_rental_status", RentalServices.update_status_service(rental_id, request, db))
