from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_
from datetime import date, time, timedelta
import logging

from app.core.constants import (
    VISIT_STATUS,
    VISIT_PREFIX,
    OPEN_VISIT_STATUSES,
    DEFAULT_SEARCH_LIMIT,
    MAX_SEARCH_LIMIT,
    DEFAULT_UPCOMING_DAYS,
    MAX_UPCOMING_DAYS,
    display_id,
)
from app.crud import visit as crud_visit, property as crud_property, agent as crud_agent
from app.db.unit_of_work import unit_of_work
from app.models import Visit, Property, Client
from app.schemas.common import BulkAction, BulkActionRequest, FieldValidationRequest
from app.schemas.result import OperationResult
from app.schemas.visit import (
    VisitCreate,
    VisitUpdate,
    VisitStatusUpdate,
    VisitDetail,
    VisitSearchItem,
    VisitSearchParams,
    ScheduledVisitItem,
    UpcomingParams,
)
from app.services.common import (
    operation_boundary,
    clamp_limit,
    person_name,
    missing_party,
    field_check_result,
    run_bulk_action,
)
from app.services.transitions import check_visit_transition
from app.services.validation import (
    validate_visit,
    check_visit_status,
    check_not_past,
    check_business_hours,
)

logger = logging.getLogger(__name__)

DOUBLE_BOOKING_MESSAGE = "The agent already has a visit scheduled at that date and time"


async def _visit_payload(db: AsyncSession, visit_id: int) -> Optional[dict]:
    row = await crud_visit.get_visit_detail(db, visit_id)
    if not row:
        return None
    return {**VisitDetail(**row).model_dump(), "display_id": display_id(VISIT_PREFIX, visit_id)}


async def _double_booked(db: AsyncSession, request: VisitCreate, exclude_id: Optional[int] = None) -> bool:
    if request.status not in OPEN_VISIT_STATUSES:
        return False
    count = await crud_visit.count_agent_bookings(
        db, request.agent_id, request.visit_date, request.visit_time, exclude_id
    )
    return count > 0


async def _check_references(db: AsyncSession, request: VisitCreate) -> Optional[OperationResult]:
    if not await crud_property.get_property_by_id(db, request.property_id):
        return OperationResult.not_found("Property not found", field="property_id")

    refusal = await missing_party(db, request.client_id, request.agent_id)
    if refusal:
        return refusal

    agent = await crud_agent.get_agent_by_id(db, request.agent_id)
    if not agent.is_active:
        return OperationResult.conflict(
            "The agent is not active",
            agent_id=agent.agent_id,
            is_active=False,
            reason="Visits can only be assigned to active agents",
        )
    return None


def _scheduled_items(rows, today: date) -> list:
    return [
        ScheduledVisitItem(
            **row,
            display_id=display_id(VISIT_PREFIX, row["visit_id"]),
            days_until=(row["visit_date"] - today).days,
        ).model_dump()
        for row in rows
    ]


class VisitServices:
    """
    Visits lifecycle.

    Visit status is loose: any known status may replace any
    other. The hard rules are the business-hours window, no new visit in the
    past, an active agent, and one open visit per agent per slot.
    """

    @staticmethod
    @operation_boundary("Error creating the visit")
    async def create_visit_service(request: VisitCreate, db: AsyncSession) -> OperationResult:
        errors = validate_visit(request, is_new=True)
        if errors:
            return OperationResult.validation_failed(errors)

        async with unit_of_work(db, "create visit"):
            refusal = await _check_references(db, request)
            if refusal:
                return refusal

            if await _double_booked(db, request):
                return OperationResult.validation_failed([DOUBLE_BOOKING_MESSAGE])

            visit = await crud_visit.create_visit(db, request.model_dump())
            visit_id = visit.visit_id

        logger.info("Visit %s scheduled for agent %s on %s %s", visit_id, request.agent_id, request.visit_date, request.visit_time)
        return OperationResult.ok("Visit created successfully", await _visit_payload(db, visit_id))

    @staticmethod
    @operation_boundary("Error updating the visit")
    async def update_visit_service(visit_id: int, request: VisitUpdate, db: AsyncSession) -> OperationResult:
        errors = validate_visit(request, is_new=False)
        if errors:
            return OperationResult.validation_failed(errors)

        async with unit_of_work(db, "update visit"):
            visit = await crud_visit.get_visit_by_id(db, visit_id)
            if not visit:
                return OperationResult.not_found("Visit not found", field="visit_id")

            refusal = await _check_references(db, request)
            if refusal:
                return refusal

            if await _double_booked(db, request, exclude_id=visit_id):
                return OperationResult.validation_failed([DOUBLE_BOOKING_MESSAGE])

            await crud_visit.update_visit(db, visit, request.model_dump())

        return OperationResult.ok("Visit updated successfully", await _visit_payload(db, visit_id))

    @staticmethod
    @operation_boundary("Error changing the visit status")
    async def update_status_service(visit_id: int, request: VisitStatusUpdate, db: AsyncSession) -> OperationResult:
        if not request.status or not request.status.strip():
            return OperationResult.validation_failed(["The field status is required"])
        error = check_visit_status(request.status)
        if error:
            return OperationResult.validation_failed([error])

        async with unit_of_work(db, "change visit status"):
            visit = await crud_visit.get_visit_by_id(db, visit_id)
            if not visit:
                return OperationResult.not_found("Visit not found", field="visit_id")

            previous_status = visit.status
            check = check_visit_transition(previous_status, request.status)
            if not check.allowed:
                return OperationResult.conflict(
                    f"Cannot change visit status from {previous_status} to {request.status}",
                    **check.conflict_detail(),
                )

            # --- Reopening must not double-book the agent ---
            if request.status in OPEN_VISIT_STATUSES and previous_status not in OPEN_VISIT_STATUSES:
                bookings = await crud_visit.count_agent_bookings(
                    db, visit.agent_id, visit.visit_date, visit.visit_time, exclude_id=visit_id
                )
                if bookings > 0:
                    return OperationResult.conflict(
                        DOUBLE_BOOKING_MESSAGE,
                        **check.conflict_detail(),
                        reason="agent_double_booked",
                    )

            await crud_visit.update_visit_status(db, visit_id, request.status)

        logger.info("Visit %s status changed %s -> %s", visit_id, previous_status, request.status)
        return OperationResult.ok(
            "Visit status updated successfully",
            {
                "visit_id": visit_id,
                "display_id": display_id(VISIT_PREFIX, visit_id),
                "previous_status": previous_status,
                "status": request.status,
            },
        )

    @staticmethod
    @operation_boundary("Error deleting the visit")
    async def delete_visit_service(visit_id: int, db: AsyncSession) -> OperationResult:
        async with unit_of_work(db, "delete visit"):
            if not await crud_visit.delete_visit(db, visit_id):
                return OperationResult.not_found("Visit not found", field="visit_id")

        logger.info("Visit %s deleted", visit_id)
        return OperationResult.ok("Visit deleted successfully", {"visit_id": visit_id})

    @staticmethod
    @operation_boundary("Error loading the visit")
    async def get_visit_service(visit_id: int, db: AsyncSession) -> OperationResult:
        payload = await _visit_payload(db, visit_id)
        if not payload:
            return OperationResult.not_found("Visit not found", field="visit_id")
        return OperationResult.ok("Visit retrieved successfully", payload)

    @staticmethod
    @operation_boundary("Error searching visits")
    async def search_visits_service(params: VisitSearchParams, db: AsyncSession) -> OperationResult:
        # --- Build ORM filters ---
        filters = []
        if params.term and params.term.strip():
            like = f"%{params.term.strip()}%"
            filters.append(
                or_(
                    Property.address.ilike(like),
                    Property.city.ilike(like),
                    Client.first_name.ilike(like),
                    Client.last_name.ilike(like),
                    Visit.notes.ilike(like),
                )
            )
        if params.status:
            if params.status not in VISIT_STATUS:
                return OperationResult.validation_failed([check_visit_status(params.status)])
            filters.append(Visit.status == params.status)
        if params.agent_id:
            filters.append(Visit.agent_id == params.agent_id)
        if params.date_from:
            filters.append(Visit.visit_date >= params.date_from)
        if params.date_to:
            filters.append(Visit.visit_date <= params.date_to)

        limit = clamp_limit(params.limit, DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT)
        rows = await crud_visit.search_visits(db, filters, limit)

        items = []
        for row in rows:
            code = display_id(VISIT_PREFIX, row["visit_id"])
            client = person_name(row["client_first_name"], row["client_last_name"])
            items.append(VisitSearchItem(
                id=row["visit_id"],
                display_id=code,
                visit_date=row["visit_date"],
                visit_time=row["visit_time"],
                status=row["status"],
                interest_rating=row["interest_rating"],
                property=f"{row['address']}, {row['city']}",
                client=client,
                agent=row["agent_name"] or "Unassigned",
                label=f"{code} - {row['visit_date']:%Y-%m-%d} {row['visit_time']:%H:%M} {row['address']} ({client})",
            ).model_dump())

        return OperationResult.ok(f"{len(items)} visit(s) found", items)

    @staticmethod
    @operation_boundary("Error loading today's visits")
    async def today_visits_service(db: AsyncSession) -> OperationResult:
        today = date.today()
        rows = await crud_visit.get_visits_between(db, today, today)
        items = _scheduled_items(rows, today)
        return OperationResult.ok(f"{len(items)} visit(s) today", items)

    @staticmethod
    @operation_boundary("Error loading upcoming visits")
    async def upcoming_visits_service(params: UpcomingParams, db: AsyncSession) -> OperationResult:
        days = clamp_limit(params.days, DEFAULT_UPCOMING_DAYS, MAX_UPCOMING_DAYS)
        today = date.today()
        rows = await crud_visit.get_visits_between(
            db, today, today + timedelta(days=days), statuses=OPEN_VISIT_STATUSES
        )
        items = _scheduled_items(rows, today)
        return OperationResult.ok(f"{len(items)} visit(s) in the next {days} days", items)

    @staticmethod
    @operation_boundary("Error validating the field")
    async def validate_field_service(request: FieldValidationRequest, db: AsyncSession) -> OperationResult:
        field = request.field
        raw = (request.value or "").strip()

        if field == "visit_date":
            if not raw:
                return field_check_result(field, None)
            try:
                visit_date = date.fromisoformat(raw)
            except ValueError:
                return field_check_result(field, "The visit_date must be a date (YYYY-MM-DD)")
            return field_check_result(field, check_not_past(visit_date))

        if field == "visit_time":
            if not raw:
                return field_check_result(field, None)
            try:
                visit_time = time.fromisoformat(raw)
            except ValueError:
                return field_check_result(field, "The visit_time must be a time (HH:MM)")
            return field_check_result(field, check_business_hours(visit_time))

        if field == "agent_availability":
            if not (request.agent_id and request.visit_date and request.visit_time):
                return field_check_result(field, None)
            bookings = await crud_visit.count_agent_bookings(
                db, request.agent_id, request.visit_date, request.visit_time, request.exclude_id
            )
            return field_check_result(field, DOUBLE_BOOKING_MESSAGE if bookings else None)

        return OperationResult.validation_failed([f"Unsupported validation field '{field}'"])

    @staticmethod
    async def bulk_action_service(request: BulkActionRequest, db: AsyncSession) -> OperationResult:
        if request.action == BulkAction.UPDATE_STATUS and not request.new_status:
            return OperationResult.validation_failed(["The field new_status is required"])

        handlers = {
            BulkAction.DELETE: lambda visit_id: VisitServices.delete_visit_service(visit_id, db),
            BulkAction.UPDATE_STATUS: lambda visit_id: VisitServices.update_status_service(
                visit_id, VisitStatusUpdate(status=request.new_status), db
            ),
        }
        return await run_bulk_action(request, handlers, "visits")
