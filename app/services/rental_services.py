from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_
from datetime import date, timedelta
import logging

from app.core.constants import (
    RentalStatus,
    RENTAL_STATUS,
    RENTAL_PREFIX,
    DELETABLE_RENTAL_STATUSES,
    DEFAULT_SEARCH_LIMIT,
    MAX_SEARCH_LIMIT,
    DEFAULT_EXPIRING_DAYS,
    MAX_EXPIRING_DAYS,
    display_id,
)
from app.crud import rental as crud_rental, property as crud_property
from app.db.unit_of_work import unit_of_work
from app.models import Rental, Property, Client
from app.schemas.common import BulkAction, BulkActionRequest, FieldValidationRequest
from app.schemas.rental import (
    RentalCreate,
    RentalUpdate,
    RentalStatusUpdate,
    RentalDetail,
    RentalSearchItem,
    RentalSearchParams,
    ExpiringRentalItem,
    ExpiringParams,
)
from app.schemas.result import OperationResult
from app.services.common import (
    operation_boundary,
    clamp_limit,
    person_name,
    missing_party,
    field_check_result,
    run_bulk_action,
)
from app.services.transitions import check_rental_transition
from app.services.validation import (
    validate_rental,
    check_rental_status,
    check_positive_amount,
    check_non_negative_amount,
    check_date_order,
    parse_amount,
)

logger = logging.getLogger(__name__)

OVERLAP_MESSAGE = "The property already has an active rental overlapping these dates"


async def _rental_payload(db: AsyncSession, rental_id: int) -> Optional[dict]:
    row = await crud_rental.get_rental_detail(db, rental_id)
    if not row:
        return None
    return {**RentalDetail(**row).model_dump(), "display_id": display_id(RENTAL_PREFIX, rental_id)}


async def _overlaps(db: AsyncSession, request: RentalCreate, exclude_id: Optional[int] = None) -> bool:
    if request.status != RentalStatus.ACTIVE.value:
        return False
    count = await crud_rental.count_overlapping_rentals(
        db, request.property_id, request.start_date, request.end_date, exclude_id
    )
    return count > 0


class RentalServices:
    """
    Rentals lifecycle.

    Status changes follow the transition table in ``app.services.transitions``;
    a property may never carry two Active rentals whose date ranges meet.
    Creating or deleting a rental leaves the property's availability alone.
    """

    @staticmethod
    @operation_boundary("Error creating the rental")
    async def create_rental_service(request: RentalCreate, db: AsyncSession) -> OperationResult:
        errors = validate_rental(request)
        if errors:
            return OperationResult.validation_failed(errors)

        async with unit_of_work(db, "create rental"):
            prop = await crud_property.get_property_for_update(db, request.property_id)
            if not prop:
                return OperationResult.not_found("Property not found", field="property_id")

            refusal = await missing_party(db, request.client_id, request.agent_id)
            if refusal:
                return refusal

            if await _overlaps(db, request):
                return OperationResult.validation_failed([OVERLAP_MESSAGE])

            rental = await crud_rental.create_rental(db, request.model_dump())
            rental_id = rental.rental_id

        logger.info("Rental %s created for property %s", rental_id, request.property_id)
        return OperationResult.ok("Rental created successfully", await _rental_payload(db, rental_id))

    @staticmethod
    @operation_boundary("Error updating the rental")
    async def update_rental_service(rental_id: int, request: RentalUpdate, db: AsyncSession) -> OperationResult:
        errors = validate_rental(request)
        if errors:
            return OperationResult.validation_failed(errors)

        async with unit_of_work(db, "update rental"):
            rental = await crud_rental.get_rental_by_id(db, rental_id)
            if not rental:
                return OperationResult.not_found("Rental not found", field="rental_id")

            if request.status != rental.status:
                check = check_rental_transition(rental.status, request.status)
                if not check.allowed:
                    return OperationResult.conflict(
                        f"Cannot change rental status from {rental.status} to {request.status}",
                        **check.conflict_detail(),
                    )

            if not await crud_property.get_property_for_update(db, request.property_id):
                return OperationResult.not_found("Property not found", field="property_id")

            refusal = await missing_party(db, request.client_id, request.agent_id)
            if refusal:
                return refusal

            if await _overlaps(db, request, exclude_id=rental_id):
                return OperationResult.validation_failed([OVERLAP_MESSAGE])

            await crud_rental.update_rental(db, rental, request.model_dump())

        return OperationResult.ok("Rental updated successfully", await _rental_payload(db, rental_id))

    @staticmethod
    @operation_boundary("Error changing the rental status")
    async def update_status_service(rental_id: int, request: RentalStatusUpdate, db: AsyncSession) -> OperationResult:
        if not request.status or not request.status.strip():
            return OperationResult.validation_failed(["The field status is required"])
        error = check_rental_status(request.status)
        if error:
            return OperationResult.validation_failed([error])

        async with unit_of_work(db, "change rental status"):
            rental = await crud_rental.get_rental_by_id(db, rental_id)
            if not rental:
                return OperationResult.not_found("Rental not found", field="rental_id")

            previous_status = rental.status
            check = check_rental_transition(previous_status, request.status)
            if not check.allowed:
                logger.info("Rental %s: transition %s -> %s refused", rental_id, previous_status, request.status)
                return OperationResult.conflict(
                    f"Cannot change rental status from {previous_status} to {request.status}",
                    **check.conflict_detail(),
                )

            # --- Reactivation must not collide with another active rental ---
            if request.status == RentalStatus.ACTIVE.value:
                overlapping = await crud_rental.count_overlapping_rentals(
                    db, rental.property_id, rental.start_date, rental.end_date, exclude_id=rental_id
                )
                if overlapping > 0:
                    return OperationResult.conflict(
                        OVERLAP_MESSAGE,
                        **check.conflict_detail(),
                        reason="overlapping_active_rental",
                        overlapping_count=overlapping,
                    )

            await crud_rental.update_rental_status(db, rental_id, request.status)

        logger.info("Rental %s status changed %s -> %s", rental_id, previous_status, request.status)
        return OperationResult.ok(
            "Rental status updated successfully",
            {
                "rental_id": rental_id,
                "display_id": display_id(RENTAL_PREFIX, rental_id),
                "previous_status": previous_status,
                "status": request.status,
            },
        )

    @staticmethod
    @operation_boundary("Error deleting the rental")
    async def delete_rental_service(rental_id: int, db: AsyncSession) -> OperationResult:
        async with unit_of_work(db, "delete rental"):
            rental = await crud_rental.get_rental_by_id(db, rental_id)
            if not rental:
                return OperationResult.not_found("Rental not found", field="rental_id")

            if rental.status not in DELETABLE_RENTAL_STATUSES:
                return OperationResult.conflict(
                    f"A rental in status {rental.status} cannot be deleted",
                    current_status=rental.status,
                    can_delete=False,
                    deletable_statuses=list(DELETABLE_RENTAL_STATUSES),
                )

            await crud_rental.delete_rental(db, rental_id)

        logger.info("Rental %s deleted", rental_id)
        return OperationResult.ok("Rental deleted successfully", {"rental_id": rental_id})

    @staticmethod
    @operation_boundary("Error loading the rental")
    async def get_rental_service(rental_id: int, db: AsyncSession) -> OperationResult:
        payload = await _rental_payload(db, rental_id)
        if not payload:
            return OperationResult.not_found("Rental not found", field="rental_id")
        return OperationResult.ok("Rental retrieved successfully", payload)

    @staticmethod
    @operation_boundary("Error searching rentals")
    async def search_rentals_service(params: RentalSearchParams, db: AsyncSession) -> OperationResult:
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
                    Rental.notes.ilike(like),
                )
            )
        if params.status:
            if params.status not in RENTAL_STATUS:
                return OperationResult.validation_failed([check_rental_status(params.status)])
            filters.append(Rental.status == params.status)
        if params.date_from:
            filters.append(Rental.start_date >= params.date_from)
        if params.date_to:
            filters.append(Rental.start_date <= params.date_to)
        if params.min_rent is not None:
            filters.append(Rental.monthly_rent >= params.min_rent)
        if params.max_rent is not None:
            filters.append(Rental.monthly_rent <= params.max_rent)

        limit = clamp_limit(params.limit, DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT)
        rows = await crud_rental.search_rentals(db, filters, limit)

        items = []
        for row in rows:
            code = display_id(RENTAL_PREFIX, row["rental_id"])
            client = person_name(row["client_first_name"], row["client_last_name"])
            items.append(RentalSearchItem(
                id=row["rental_id"],
                display_id=code,
                start_date=row["start_date"],
                end_date=row["end_date"],
                monthly_rent=row["monthly_rent"],
                deposit=row["deposit"],
                status=row["status"],
                property=f"{row['address']}, {row['city']}",
                client=client,
                agent=row["agent_name"] or "Unassigned",
                label=f"{code} - {row['address']} ({client}) [{row['status']}]",
            ).model_dump())

        return OperationResult.ok(f"{len(items)} rental(s) found", items)

    @staticmethod
    @operation_boundary("Error loading expiring rentals")
    async def expiring_rentals_service(params: ExpiringParams, db: AsyncSession) -> OperationResult:
        days = clamp_limit(params.days, DEFAULT_EXPIRING_DAYS, MAX_EXPIRING_DAYS)
        today = date.today()
        rows = await crud_rental.get_expiring_rentals(db, today, today + timedelta(days=days))

        items = [
            ExpiringRentalItem(
                **row,
                display_id=display_id(RENTAL_PREFIX, row["rental_id"]),
                days_remaining=(row["end_date"] - today).days,
            ).model_dump()
            for row in rows
        ]
        return OperationResult.ok(f"{len(items)} rental(s) expiring in the next {days} days", items)

    @staticmethod
    @operation_boundary("Error validating the field")
    async def validate_field_service(request: FieldValidationRequest, db: AsyncSession) -> OperationResult:
        field = request.field

        if field in ("monthly_rent", "deposit"):
            try:
                amount = parse_amount(request.value)
            except ValueError:
                return field_check_result(field, f"The {field} must be a number")
            if field == "monthly_rent":
                return field_check_result(field, check_positive_amount("monthly_rent", amount))
            return field_check_result(field, check_non_negative_amount("deposit", amount))

        if field == "end_date":
            if not request.value or not request.value.strip():
                return field_check_result(field, None)
            try:
                end_date = date.fromisoformat(request.value.strip())
            except ValueError:
                return field_check_result(field, "The end_date must be a date (YYYY-MM-DD)")
            return field_check_result(field, check_date_order(request.start_date, end_date))

        if field == "property_available":
            property_id = request.property_id
            if request.value and request.value.strip():
                if not request.value.strip().isdigit():
                    return field_check_result(field, "The property_id must be a number")
                property_id = int(request.value.strip())
            if property_id and not await crud_property.get_property_by_id(db, property_id):
                return field_check_result(field, "Property not found")
            return field_check_result(field, None)

        if field == "rental_conflict":
            if not (request.property_id and request.start_date and request.end_date):
                return field_check_result(field, None)
            overlapping = await crud_rental.count_overlapping_rentals(
                db, request.property_id, request.start_date, request.end_date, request.exclude_id
            )
            return field_check_result(field, OVERLAP_MESSAGE if overlapping else None)

        return OperationResult.validation_failed([f"Unsupported validation field '{field}'"])

    @staticmethod
    async def bulk_action_service(request: BulkActionRequest, db: AsyncSession) -> OperationResult:
        if request.action == BulkAction.UPDATE_STATUS and not request.new_status:
            return OperationResult.validation_failed(["The field new_status is required"])

        handlers = {
            BulkAction.DELETE: lambda rental_id: RentalServices.delete_rental_service(rental_id, db),
            BulkAction.UPDATE_STATUS: lambda rental_id: RentalServices.update_status_service(
                rental_id, RentalStatusUpdate(status=request.new_status), db
            ),
        }
        return await run_bulk_action(request, handlers, "rentals")
