from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_
import logging

from app.core.constants import (
    PropertyState,
    ContractType,
    SALE_PREFIX,
    DEFAULT_SEARCH_LIMIT,
    MAX_SEARCH_LIMIT,
    display_id,
)
from app.crud import sale as crud_sale, property as crud_property, contract as crud_contract
from app.db.unit_of_work import unit_of_work
from app.models import Sale, Property, Client
from app.schemas.common import BulkAction, BulkActionRequest, FieldValidationRequest
from app.schemas.result import OperationResult
from app.schemas.sale import SaleCreate, SaleUpdate, SaleDetail, SaleSearchItem, SaleSearchParams
from app.services.common import (
    operation_boundary,
    clamp_limit,
    person_name,
    missing_party,
    field_check_result,
    run_bulk_action,
)
from app.services.validation import (
    validate_sale,
    check_positive_amount,
    check_non_negative_amount,
    parse_amount,
)

logger = logging.getLogger(__name__)


def _already_sold(property_id: int) -> OperationResult:
    return OperationResult.conflict(
        "The property has already been sold",
        property_id=property_id,
        current_state=PropertyState.SOLD.value,
        reason="A property can only be sold once",
    )


async def _sale_payload(db: AsyncSession, sale_id: int) -> Optional[dict]:
    row = await crud_sale.get_sale_detail(db, sale_id)
    if not row:
        return None
    return {**SaleDetail(**row).model_dump(), "display_id": display_id(SALE_PREFIX, sale_id)}


class SaleServices:
    """
    Sales lifecycle.

    A sale owns its property's availability: creating one marks the property
    Sold, deleting one puts it back to Available, and moving a sale to another
    property swaps the two. Each of those pairs of writes runs in one unit of
    work with the property row locked.
    """

    @staticmethod
    @operation_boundary("Error creating the sale")
    async def create_sale_service(request: SaleCreate, db: AsyncSession) -> OperationResult:
        errors = validate_sale(request)
        if errors:
            return OperationResult.validation_failed(errors)

        async with unit_of_work(db, "create sale"):
            # 1. --- Property must exist and still be sellable ---
            prop = await crud_property.get_property_for_update(db, request.property_id)
            if not prop:
                return OperationResult.not_found("Property not found", field="property_id")
            if prop.availability_state == PropertyState.SOLD.value:
                return _already_sold(prop.property_id)

            # 2. --- Client / agent references ---
            refusal = await missing_party(db, request.client_id, request.agent_id)
            if refusal:
                return refusal

            # 3. --- Insert sale + flip property ---
            sale = await crud_sale.create_sale(db, request.model_dump())
            await crud_property.set_availability_state(db, prop.property_id, PropertyState.SOLD)
            sale_id = sale.sale_id

        logger.info("Sale %s created for property %s", sale_id, request.property_id)
        return OperationResult.ok("Sale created successfully", await _sale_payload(db, sale_id))

    @staticmethod
    @operation_boundary("Error updating the sale")
    async def update_sale_service(sale_id: int, request: SaleUpdate, db: AsyncSession) -> OperationResult:
        errors = validate_sale(request)
        if errors:
            return OperationResult.validation_failed(errors)

        async with unit_of_work(db, "update sale"):
            sale = await crud_sale.get_sale_by_id(db, sale_id)
            if not sale:
                return OperationResult.not_found("Sale not found", field="sale_id")

            previous_property_id = sale.property_id
            moving = request.property_id != previous_property_id
            if moving:
                # Both rows are locked in ascending id order
                locked = {}
                for property_id in sorted((previous_property_id, request.property_id)):
                    locked[property_id] = await crud_property.get_property_for_update(db, property_id)
                new_property = locked[request.property_id]
                if not new_property:
                    return OperationResult.not_found("Property not found", field="property_id")
                if new_property.availability_state == PropertyState.SOLD.value:
                    return _already_sold(new_property.property_id)

            refusal = await missing_party(db, request.client_id, request.agent_id)
            if refusal:
                return refusal

            await crud_sale.update_sale(db, sale, request.model_dump())
            if moving:
                await crud_property.set_availability_state(db, previous_property_id, PropertyState.AVAILABLE)
                await crud_property.set_availability_state(db, request.property_id, PropertyState.SOLD)

        if moving:
            logger.info("Sale %s moved from property %s to %s", sale_id, previous_property_id, request.property_id)
        return OperationResult.ok("Sale updated successfully", await _sale_payload(db, sale_id))

    @staticmethod
    @operation_boundary("Error deleting the sale")
    async def delete_sale_service(sale_id: int, db: AsyncSession) -> OperationResult:
        async with unit_of_work(db, "delete sale"):
            sale = await crud_sale.get_sale_by_id(db, sale_id)
            if not sale:
                return OperationResult.not_found("Sale not found", field="sale_id")

            property_id, client_id = sale.property_id, sale.client_id

            # --- Sale contracts for the same property/client block the delete ---
            contracts = await crud_contract.count_contracts_for(db, property_id, client_id, ContractType.SALE)
            if contracts > 0:
                logger.info("Delete of sale %s refused: %d related contract(s)", sale_id, contracts)
                return OperationResult.conflict(
                    f"The sale cannot be deleted because it has {contracts} related contract(s)",
                    dependencies=[f"{contracts} contract(s)"],
                    dependency_count=contracts,
                    can_force_delete=False,
                )

            await crud_property.get_property_for_update(db, property_id)
            await crud_sale.delete_sale(db, sale_id)
            await crud_property.set_availability_state(db, property_id, PropertyState.AVAILABLE)

        logger.info("Sale %s deleted, property %s available again", sale_id, property_id)
        return OperationResult.ok(
            "Sale deleted successfully",
            {"sale_id": sale_id, "property_id": property_id, "property_state": PropertyState.AVAILABLE.value},
        )

    @staticmethod
    @operation_boundary("Error loading the sale")
    async def get_sale_service(sale_id: int, db: AsyncSession) -> OperationResult:
        payload = await _sale_payload(db, sale_id)
        if not payload:
            return OperationResult.not_found("Sale not found", field="sale_id")
        return OperationResult.ok("Sale retrieved successfully", payload)

    @staticmethod
    @operation_boundary("Error searching sales")
    async def search_sales_service(params: SaleSearchParams, db: AsyncSession) -> OperationResult:
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
                )
            )
        if params.date_from:
            filters.append(Sale.sale_date >= params.date_from)
        if params.date_to:
            filters.append(Sale.sale_date <= params.date_to)
        if params.min_value is not None:
            filters.append(Sale.value >= params.min_value)
        if params.max_value is not None:
            filters.append(Sale.value <= params.max_value)

        limit = clamp_limit(params.limit, DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT)
        rows = await crud_sale.search_sales(db, filters, limit)

        items = []
        for row in rows:
            code = display_id(SALE_PREFIX, row["sale_id"])
            client = person_name(row["client_first_name"], row["client_last_name"])
            items.append(SaleSearchItem(
                id=row["sale_id"],
                display_id=code,
                sale_date=row["sale_date"],
                value=row["value"],
                commission=row["commission"],
                property=f"{row['address']}, {row['city']}",
                client=client,
                agent=row["agent_name"] or "Unassigned",
                label=f"{code} - {row['address']} ({client})",
            ).model_dump())

        return OperationResult.ok(f"{len(items)} sale(s) found", items)

    @staticmethod
    @operation_boundary("Error validating the field")
    async def validate_field_service(request: FieldValidationRequest, db: AsyncSession) -> OperationResult:
        if request.field in ("value", "commission"):
            try:
                amount = parse_amount(request.value)
            except ValueError:
                return field_check_result(request.field, f"The {request.field} must be a number")
            if request.field == "value":
                return field_check_result(request.field, check_positive_amount("value", amount))
            return field_check_result(request.field, check_non_negative_amount("commission", amount))

        if request.field == "property_available":
            property_id = request.property_id
            if request.value and request.value.strip():
                if not request.value.strip().isdigit():
                    return field_check_result(request.field, "The property_id must be a number")
                property_id = int(request.value.strip())
            if not property_id:
                return field_check_result(request.field, None)

            prop = await crud_property.get_property_by_id(db, property_id)
            if not prop:
                return field_check_result(request.field, "Property not found")
            if prop.availability_state == PropertyState.SOLD.value:
                # the sale being edited may keep its own property
                if request.exclude_id:
                    current = await crud_sale.get_sale_by_id(db, request.exclude_id)
                    if current and current.property_id == property_id:
                        return field_check_result(request.field, None)
                return field_check_result(request.field, "The property has already been sold")
            return field_check_result(request.field, None)

        return OperationResult.validation_failed([f"Unsupported validation field '{request.field}'"])

    @staticmethod
    async def bulk_action_service(request: BulkActionRequest, db: AsyncSession) -> OperationResult:
        handlers = {
            BulkAction.DELETE: lambda sale_id: SaleServices.delete_sale_service(sale_id, db),
        }
        return await run_bulk_action(request, handlers, "sales")
