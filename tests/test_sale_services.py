from datetime import date
from decimal import Decimal
import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError

from app.crud import contract as crud_contract, property as crud_property
from app.models import Property, Sale
from app.schemas.common import BulkAction, BulkActionRequest, FieldValidationRequest
from app.schemas.result import ResultKind
from app.schemas.sale import SaleCreate, SaleSearchParams, SaleUpdate
from app.services.sale_services import SaleServices


def sale_request(seed, **overrides) -> SaleCreate:
    data = dict(
        sale_date=date(2025, 2, 14),
        value=Decimal("250000"),
        commission=Decimal("7500"),
        property_id=seed.house_id,
        client_id=seed.client_id,
        agent_id=seed.agent_id,
    )
    data.update(overrides)
    return SaleCreate(**data)


async def property_state(db, property_id):
    result = await db.execute(select(Property.availability_state).where(Property.property_id == property_id))
    return result.scalar_one()


async def sale_count(db):
    result = await db.execute(select(func.count(Sale.sale_id)))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

async def test_create_sale_marks_property_sold(db, seed):
    result = await SaleServices.create_sale_service(sale_request(seed), db)

    assert result.success
    assert result.kind == ResultKind.OK
    assert result.data["display_id"] == "SAL001"
    assert result.data["address"] == "12 Oak Street"
    assert result.data["agent_name"] == "Laura Gomez"
    assert await property_state(db, seed.house_id) == "Sold"
    assert await sale_count(db) == 1


async def test_create_sale_validation_errors_write_nothing(db, seed):
    result = await SaleServices.create_sale_service(SaleCreate(value=Decimal("-3")), db)

    assert not result.success
    assert result.kind == ResultKind.VALIDATION_ERROR
    assert len(result.errors) == 4
    assert await sale_count(db) == 0


async def test_create_sale_on_sold_property_is_conflict(db, seed):
    await SaleServices.create_sale_service(sale_request(seed), db)

    result = await SaleServices.create_sale_service(sale_request(seed, client_id=seed.other_client_id), db)

    assert result.kind == ResultKind.CONFLICT
    assert result.data["current_state"] == "Sold"
    assert result.data["property_id"] == seed.house_id
    assert await sale_count(db) == 1


async def test_create_sale_unknown_property(db, seed):
    result = await SaleServices.create_sale_service(sale_request(seed, property_id=999), db)

    assert result.kind == ResultKind.NOT_FOUND
    assert result.data == {"field": "property_id"}


async def test_create_sale_unknown_client_leaves_property_available(db, seed):
    result = await SaleServices.create_sale_service(sale_request(seed, client_id=999), db)

    assert result.kind == ResultKind.NOT_FOUND
    assert result.errors == ["Client not found"]
    assert await property_state(db, seed.house_id) == "Available"
    assert await sale_count(db) == 0


async def test_create_sale_storage_failure_rolls_back_both_writes(db, seed, monkeypatch):
    async def failing_state_change(*args, **kwargs):
        raise OperationalError("UPDATE properties", {}, Exception("disk I/O error"))

    monkeypatch.setattr(crud_property, "set_availability_state", failing_state_change)

    result = await SaleServices.create_sale_service(sale_request(seed), db)

    assert not result.success
    assert result.kind == ResultKind.DATABASE_ERROR
    assert result.message == "Error creating the sale"
    assert "disk" not in result.message
    assert await sale_count(db) == 0
    assert await property_state(db, seed.house_id) == "Available"


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

async def test_update_sale_moving_property_swaps_states(db, seed):
    created = await SaleServices.create_sale_service(sale_request(seed), db)
    sale_id = created.data["sale_id"]

    result = await SaleServices.update_sale_service(
        sale_id, SaleUpdate(**sale_request(seed, property_id=seed.flat_id).model_dump()), db
    )

    assert result.success
    assert result.data["property_id"] == seed.flat_id
    assert await property_state(db, seed.house_id) == "Available"
    assert await property_state(db, seed.flat_id) == "Sold"


@pytest.mark.parametrize("start, target", [("house_id", "flat_id"), ("flat_id", "house_id")])
async def test_update_sale_locks_properties_in_id_order(db, seed, monkeypatch, start, target):
    created = await SaleServices.create_sale_service(sale_request(seed, property_id=getattr(seed, start)), db)
    locked = []
    original_lock = crud_property.get_property_for_update

    async def recording_lock(session, property_id):
        locked.append(property_id)
        return await original_lock(session, property_id)

    monkeypatch.setattr(crud_property, "get_property_for_update", recording_lock)

    result = await SaleServices.update_sale_service(
        created.data["sale_id"],
        SaleUpdate(**sale_request(seed, property_id=getattr(seed, target)).model_dump()),
        db,
    )

    assert result.success
    assert locked == sorted([seed.house_id, seed.flat_id])


async def test_update_sale_onto_sold_property_is_conflict(db, seed):
    first = await SaleServices.create_sale_service(sale_request(seed), db)
    await SaleServices.create_sale_service(sale_request(seed, property_id=seed.flat_id), db)

    result = await SaleServices.update_sale_service(
        first.data["sale_id"], SaleUpdate(**sale_request(seed, property_id=seed.flat_id).model_dump()), db
    )

    assert result.kind == ResultKind.CONFLICT
    assert await property_state(db, seed.house_id) == "Sold"


async def test_update_sale_same_property_changes_value(db, seed):
    created = await SaleServices.create_sale_service(sale_request(seed), db)

    result = await SaleServices.update_sale_service(
        created.data["sale_id"], SaleUpdate(**sale_request(seed, value=Decimal("260000")).model_dump()), db
    )

    assert result.success
    assert result.data["value"] == Decimal("260000")
    assert await property_state(db, seed.house_id) == "Sold"


async def test_update_missing_sale(db, seed):
    result = await SaleServices.update_sale_service(42, SaleUpdate(**sale_request(seed).model_dump()), db)

    assert result.kind == ResultKind.NOT_FOUND


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

async def test_delete_sale_restores_property(db, seed):
    created = await SaleServices.create_sale_service(sale_request(seed), db)

    result = await SaleServices.delete_sale_service(created.data["sale_id"], db)

    assert result.success
    assert result.data["property_state"] == "Available"
    assert await property_state(db, seed.house_id) == "Available"
    assert await sale_count(db) == 0


async def test_delete_sale_blocked_by_sale_contract(db, seed):
    created = await SaleServices.create_sale_service(sale_request(seed), db)
    await crud_contract.create_contract(
        db, {"contract_type": "Sale", "property_id": seed.house_id, "client_id": seed.client_id}
    )
    await db.commit()

    result = await SaleServices.delete_sale_service(created.data["sale_id"], db)

    assert result.kind == ResultKind.CONFLICT
    assert result.message == "The sale cannot be deleted because it has 1 related contract(s)"
    assert result.data == {
        "dependencies": ["1 contract(s)"],
        "dependency_count": 1,
        "can_force_delete": False,
    }
    assert await property_state(db, seed.house_id) == "Sold"
    assert await sale_count(db) == 1


async def test_rental_contract_does_not_block_sale_delete(db, seed):
    created = await SaleServices.create_sale_service(sale_request(seed), db)
    await crud_contract.create_contract(
        db, {"contract_type": "Rental", "property_id": seed.house_id, "client_id": seed.client_id}
    )
    await db.commit()

    result = await SaleServices.delete_sale_service(created.data["sale_id"], db)

    assert result.success


async def test_delete_missing_sale(db, seed):
    result = await SaleServices.delete_sale_service(7, db)

    assert result.kind == ResultKind.NOT_FOUND
    assert result.errors == ["Sale not found"]


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def test_get_sale(db, seed):
    created = await SaleServices.create_sale_service(sale_request(seed), db)

    result = await SaleServices.get_sale_service(created.data["sale_id"], db)

    assert result.success
    assert result.data["client_first_name"] == "Ana"
    assert result.data["property_type"] == "House"


async def test_search_sales_by_term_and_value(db, seed):
    await SaleServices.create_sale_service(sale_request(seed), db)
    await SaleServices.create_sale_service(
        sale_request(seed, property_id=seed.flat_id, client_id=seed.other_client_id, value=Decimal("90000")), db
    )

    by_city = await SaleServices.search_sales_service(SaleSearchParams(term="shelby"), db)
    by_value = await SaleServices.search_sales_service(SaleSearchParams(min_value=Decimal("100000")), db)

    assert [item["client"] for item in by_city.data] == ["Marco Silva"]
    assert [item["display_id"] for item in by_value.data] == ["SAL001"]
    assert by_value.data[0]["label"] == "SAL001 - 12 Oak Street (Ana Torres)"


async def test_search_limit_is_capped(db, seed):
    result = await SaleServices.search_sales_service(SaleSearchParams(limit=500), db)

    assert result.success
    assert result.data == []


# ---------------------------------------------------------------------------
# Field validation and bulk
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "field, value, valid",
    [
        ("value", "1000", True),
        ("value", "0", False),
        ("value", "abc", False),
        ("value", "", True),
        ("commission", "-2", False),
        ("commission", "0", True),
    ],
)
async def test_validate_amount_fields(db, field, value, valid):
    result = await SaleServices.validate_field_service(FieldValidationRequest(field=field, value=value), db)

    assert result.success
    assert result.data == {"field": field, "valid": valid}
    assert bool(result.errors) is not valid


async def test_validate_property_available(db, seed):
    await SaleServices.create_sale_service(sale_request(seed), db)

    sold = await SaleServices.validate_field_service(
        FieldValidationRequest(field="property_available", value=str(seed.house_id)), db
    )
    free = await SaleServices.validate_field_service(
        FieldValidationRequest(field="property_available", value=str(seed.flat_id)), db
    )
    missing = await SaleServices.validate_field_service(
        FieldValidationRequest(field="property_available", value="999"), db
    )

    assert sold.errors == ["The property has already been sold"]
    assert free.data["valid"]
    assert missing.errors == ["Property not found"]


async def test_validate_unknown_field(db):
    result = await SaleServices.validate_field_service(FieldValidationRequest(field="color"), db)

    assert result.kind == ResultKind.VALIDATION_ERROR


async def test_bulk_delete_reports_each_id(db, seed):
    created = await SaleServices.create_sale_service(sale_request(seed), db)
    sale_id = created.data["sale_id"]

    result = await SaleServices.bulk_action_service(
        BulkActionRequest(action=BulkAction.DELETE, ids=[sale_id, 999]), db
    )

    assert result.success
    assert result.message == "Processed 1 of 2 sales"
    assert result.data["success_count"] == 1
    assert result.data["failure_count"] == 1
    assert result.errors == ["999: Sale not found"]
    assert await property_state(db, seed.house_id) == "Available"


async def test_bulk_status_update_not_supported_for_sales(db, seed):
    result = await SaleServices.bulk_action_service(
        BulkActionRequest(action=BulkAction.UPDATE_STATUS, ids=[1], new_status="Active"), db
    )

    assert result.kind == ResultKind.VALIDATION_ERROR


async def test_bulk_requires_positive_ids(db):
    result = await SaleServices.bulk_action_service(BulkActionRequest(action=BulkAction.DELETE, ids=[]), db)

    assert result.errors == ["At least one valid id is required"]
