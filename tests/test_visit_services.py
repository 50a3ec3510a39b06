from datetime import date, time, timedelta
import pytest
from sqlalchemy import select, func

from app.models import Visit
from app.schemas.common import BulkAction, BulkActionRequest, FieldValidationRequest
from app.schemas.result import ResultKind
from app.schemas.visit import UpcomingParams, VisitCreate, VisitSearchParams, VisitStatusUpdate, VisitUpdate
from app.services.validation import BUSINESS_HOURS_MESSAGE
from app.services.visit_services import DOUBLE_BOOKING_MESSAGE, VisitServices

IN_THREE_DAYS = date.today() + timedelta(days=3)


def visit_request(seed, **overrides) -> VisitCreate:
    data = dict(
        visit_date=IN_THREE_DAYS,
        visit_time=time(10, 0),
        status="Scheduled",
        interest_rating="Interested",
        property_id=seed.house_id,
        client_id=seed.client_id,
        agent_id=seed.agent_id,
    )
    data.update(overrides)
    return VisitCreate(**data)


async def create_visit(db, seed, **overrides) -> int:
    result = await VisitServices.create_visit_service(visit_request(seed, **overrides), db)
    assert result.success, result.errors
    return result.data["visit_id"]


async def visit_count(db):
    result = await db.execute(select(func.count(Visit.visit_id)))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Create / update
# ---------------------------------------------------------------------------

async def test_create_visit(db, seed):
    result = await VisitServices.create_visit_service(visit_request(seed), db)

    assert result.success
    assert result.data["display_id"] == "VIS001"
    assert result.data["agent_name"] == "Laura Gomez"


async def test_visit_at_seven_pm_is_rejected(db, seed):
    result = await VisitServices.create_visit_service(visit_request(seed, visit_time=time(19, 0)), db)

    assert result.kind == ResultKind.VALIDATION_ERROR
    assert result.errors == [BUSINESS_HOURS_MESSAGE]
    assert await visit_count(db) == 0


async def test_visit_in_the_past_is_rejected(db, seed):
    result = await VisitServices.create_visit_service(
        visit_request(seed, visit_date=date.today() - timedelta(days=1)), db
    )

    assert result.errors == ["The visit_date cannot be earlier than today"]


async def test_agent_double_booking_is_a_validation_failure(db, seed):
    await create_visit(db, seed)

    result = await VisitServices.create_visit_service(
        visit_request(seed, property_id=seed.flat_id, client_id=seed.other_client_id), db
    )

    assert result.kind == ResultKind.VALIDATION_ERROR
    assert result.errors == [DOUBLE_BOOKING_MESSAGE]


async def test_cancelled_visit_frees_the_slot(db, seed):
    visit_id = await create_visit(db, seed)
    await VisitServices.update_status_service(visit_id, VisitStatusUpdate(status="Cancelled"), db)

    result = await VisitServices.create_visit_service(visit_request(seed, property_id=seed.flat_id), db)

    assert result.success


async def test_reopening_cancelled_visit_into_taken_slot_is_conflict(db, seed):
    cancelled_id = await create_visit(db, seed)
    await VisitServices.update_status_service(cancelled_id, VisitStatusUpdate(status="Cancelled"), db)
    await create_visit(db, seed, property_id=seed.flat_id, client_id=seed.other_client_id)

    result = await VisitServices.update_status_service(cancelled_id, VisitStatusUpdate(status="Scheduled"), db)

    assert result.kind == ResultKind.CONFLICT
    assert result.data["reason"] == "agent_double_booked"
    assert result.data["current_status"] == "Cancelled"
    assert result.data["requested_status"] == "Scheduled"
    open_in_slot = await db.execute(
        select(func.count(Visit.visit_id)).where(Visit.status.in_(("Scheduled", "Rescheduled")))
    )
    assert open_in_slot.scalar_one() == 1


async def test_reopening_visit_into_free_slot_is_allowed(db, seed):
    visit_id = await create_visit(db, seed)
    await VisitServices.update_status_service(visit_id, VisitStatusUpdate(status="Cancelled"), db)

    result = await VisitServices.update_status_service(visit_id, VisitStatusUpdate(status="Rescheduled"), db)

    assert result.success
    assert result.data["previous_status"] == "Cancelled"


async def test_inactive_agent_is_conflict(db, seed):
    result = await VisitServices.create_visit_service(visit_request(seed, agent_id=seed.inactive_agent_id), db)

    assert result.kind == ResultKind.CONFLICT
    assert result.data["agent_id"] == seed.inactive_agent_id
    assert await visit_count(db) == 0


async def test_visit_unknown_property(db, seed):
    result = await VisitServices.create_visit_service(visit_request(seed, property_id=321), db)

    assert result.kind == ResultKind.NOT_FOUND
    assert result.data == {"field": "property_id"}


async def test_update_visit_keeps_its_own_slot(db, seed):
    visit_id = await create_visit(db, seed)

    result = await VisitServices.update_visit_service(
        visit_id, VisitUpdate(**visit_request(seed, notes="Bring floor plans").model_dump()), db
    )

    assert result.success
    assert result.data["notes"] == "Bring floor plans"


async def test_update_past_visit_is_allowed(db, seed):
    visit_id = await create_visit(db, seed)
    past = date.today() - timedelta(days=2)

    result = await VisitServices.update_visit_service(
        visit_id, VisitUpdate(**visit_request(seed, visit_date=past, status="Completed").model_dump()), db
    )

    assert result.success
    assert result.data["visit_date"] == past


# ---------------------------------------------------------------------------
# Status / delete
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("status", ["Completed", "Cancelled", "Rescheduled", "Scheduled"])
async def test_any_known_visit_status_is_accepted(db, seed, status):
    visit_id = await create_visit(db, seed)

    result = await VisitServices.update_status_service(visit_id, VisitStatusUpdate(status=status), db)

    assert result.success
    assert result.data["status"] == status


async def test_completed_visit_can_be_reopened(db, seed):
    visit_id = await create_visit(db, seed)
    await VisitServices.update_status_service(visit_id, VisitStatusUpdate(status="Completed"), db)

    result = await VisitServices.update_status_service(visit_id, VisitStatusUpdate(status="Scheduled"), db)

    assert result.success
    assert result.data["previous_status"] == "Completed"


async def test_unknown_visit_status_is_validation_error(db, seed):
    visit_id = await create_visit(db, seed)

    result = await VisitServices.update_status_service(visit_id, VisitStatusUpdate(status="Postponed"), db)

    assert result.kind == ResultKind.VALIDATION_ERROR


async def test_delete_visit(db, seed):
    visit_id = await create_visit(db, seed)

    deleted = await VisitServices.delete_visit_service(visit_id, db)
    again = await VisitServices.delete_visit_service(visit_id, db)

    assert deleted.success
    assert again.kind == ResultKind.NOT_FOUND
    assert await visit_count(db) == 0


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def test_today_and_upcoming(db, seed):
    today_id = await create_visit(db, seed, visit_date=date.today(), visit_time=time(17, 0))
    soon_id = await create_visit(db, seed, property_id=seed.flat_id)
    later_id = await create_visit(db, seed, visit_date=date.today() + timedelta(days=20))
    cancelled_id = await create_visit(db, seed, visit_time=time(11, 0))
    await VisitServices.update_status_service(cancelled_id, VisitStatusUpdate(status="Cancelled"), db)

    today = await VisitServices.today_visits_service(db)
    upcoming = await VisitServices.upcoming_visits_service(UpcomingParams(), db)
    wider = await VisitServices.upcoming_visits_service(UpcomingParams(days=60), db)

    assert [item["visit_id"] for item in today.data] == [today_id]
    assert today.data[0]["days_until"] == 0
    assert [item["visit_id"] for item in upcoming.data] == [today_id, soon_id]
    assert upcoming.data[1]["days_until"] == 3
    assert [item["visit_id"] for item in wider.data] == [today_id, soon_id, later_id]


async def test_search_visits_by_agent_and_status(db, seed):
    await create_visit(db, seed)
    completed = await create_visit(db, seed, visit_time=time(15, 0), status="Completed")

    result = await VisitServices.search_visits_service(
        VisitSearchParams(agent_id=seed.agent_id, status="Completed"), db
    )

    assert [item["id"] for item in result.data] == [completed]
    assert result.data[0]["label"].startswith(f"VIS{completed:03d} - ")


# ---------------------------------------------------------------------------
# Field validation and bulk
# ---------------------------------------------------------------------------

async def test_validate_visit_time_field(db):
    late = await VisitServices.validate_field_service(FieldValidationRequest(field="visit_time", value="19:30"), db)
    fine = await VisitServices.validate_field_service(FieldValidationRequest(field="visit_time", value="09:15"), db)

    assert late.errors == [BUSINESS_HOURS_MESSAGE]
    assert fine.data["valid"]


async def test_validate_agent_availability_field(db, seed):
    visit_id = await create_visit(db, seed)
    request = dict(
        field="agent_availability",
        agent_id=seed.agent_id,
        visit_date=IN_THREE_DAYS,
        visit_time=time(10, 0),
    )

    busy = await VisitServices.validate_field_service(FieldValidationRequest(**request), db)
    own = await VisitServices.validate_field_service(FieldValidationRequest(**request, exclude_id=visit_id), db)

    assert busy.errors == [DOUBLE_BOOKING_MESSAGE]
    assert own.data["valid"]


async def test_bulk_status_update_visits(db, seed):
    first = await create_visit(db, seed)
    second = await create_visit(db, seed, visit_time=time(12, 0))

    result = await VisitServices.bulk_action_service(
        BulkActionRequest(action=BulkAction.UPDATE_STATUS, ids=[first, second, 77], new_status="Completed"), db
    )

    assert result.success
    assert result.message == "Processed 2 of 3 visits"
    assert result.errors == ["77: Visit not found"]
