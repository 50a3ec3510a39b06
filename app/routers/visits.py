from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from redis.asyncio import Redis

from app.schemas.common import BulkActionRequest, FieldValidationRequest
from app.schemas.visit import VisitCreate, VisitUpdate, VisitStatusUpdate, VisitSearchParams, UpcomingParams
from app.db.session import get_db
from app.db.redis_client import get_redis
from app.routers.common import dispatch
from app.services.visit_services import VisitServices
from app.services.statistics import StatisticsServices

router = APIRouter(prefix="/api/v1/visits", tags=["Visits"])


@router.post(
    "",
    status_code=201,
    summary="Schedule a visit",
    description="Visits must be in the future, between 08:00 and 18:00, with an active agent free at that slot."
)
async def create_visit(request: VisitCreate, db: AsyncSession = Depends(get_db)):
    return await dispatch("create_visit", VisitServices.create_visit_service(request, db), success_status=201)


@router.get("/search", summary="Search visits")
async def search_visits(params: VisitSearchParams = Depends(), db: AsyncSession = Depends(get_db)):
    return await dispatch("search_visits", VisitServices.search_visits_service(params, db))


@router.get("/today", summary="Today's visits")
async def today_visits(db: AsyncSession = Depends(get_db)):
    return await dispatch("today_visits", VisitServices.today_visits_service(db))


@router.get(
    "/upcoming",
    summary="Upcoming visits",
    description="Scheduled or rescheduled visits within the next `days` days (default 7, at most 30)."
)
async def upcoming_visits(params: UpcomingParams = Depends(), db: AsyncSession = Depends(get_db)):
    return await dispatch("upcoming_visits", VisitServices.upcoming_visits_service(params, db))


@router.get("/statistics", summary="Visit statistics")
async def visit_statistics(db: AsyncSession = Depends(get_db), redis: Redis = Depends(get_redis)):
    return await dispatch("visit_statistics", StatisticsServices.visit_statistics(db, redis))


@router.post("/validate", summary="Validate a single visit field")
async def validate_visit_field(request: FieldValidationRequest, db: AsyncSession = Depends(get_db)):
    return await dispatch("validate_visit_field", VisitServices.validate_field_service(request, db))


@router.post("/bulk", summary="Apply an action to several visits")
async def bulk_visits(request: BulkActionRequest, db: AsyncSession = Depends(get_db)):
    return await dispatch("bulk_visits", VisitServices.bulk_action_service(request, db))


@router.get("/{visit_id}", summary="Get a visit")
async def get_visit(visit_id: int, db: AsyncSession = Depends(get_db)):
    return await dispatch("get_visit", VisitServices.get_visit_service(visit_id, db))


@router.put("/{visit_id}", summary="Update a visit")
async def update_visit(visit_id: int, request: VisitUpdate, db: AsyncSession = Depends(get_db)):
    return await dispatch("update_visit", VisitServices.update_visit_service(visit_id, request, db))


@router.delete("/{visit_id}", summary="Delete a visit")
async def delete_visit(visit_id: int, db: AsyncSession = Depends(get_db)):
    return await dispatch("delete_visit", VisitServices.delete_visit_service(visit_id, db))


@router.post("/{visit_id}/status", summary="Change a visit's status")
async def change_visit_status(visit_id: int, request: VisitStatusUpdate, db: AsyncSession = Depends(get_db)):
    return await dispatch("change_visit_status", VisitServices.update_status_service(visit_id, request, db))
