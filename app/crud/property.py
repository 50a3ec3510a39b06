# app/crud/property.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from datetime import datetime

from app.core.constants import PropertyState
from app.models.property import Property


# --- Fetch Property by ID ---
async def get_property_by_id(db: AsyncSession, property_id: int) -> Property | None:
    result = await db.execute(select(Property).where(Property.property_id == property_id))
    return result.scalar_one_or_none()


# --- Fetch Property by ID, locking the row until the transaction ends ---
async def get_property_for_update(db: AsyncSession, property_id: int) -> Property | None:
    result = await db.execute(
        select(Property)
        .where(Property.property_id == property_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


# --- Insert Property ---
async def create_property(db: AsyncSession, property_data: dict) -> Property:
    new_property = Property(**property_data)
    db.add(new_property)
    await db.flush()
    return new_property


# --- Update availability state ---
async def set_availability_state(db: AsyncSession, property_id: int, state: PropertyState) -> None:
    await db.execute(
        update(Property)
        .where(Property.property_id == property_id)
        .values(availability_state=state.value, updated_at=datetime.utcnow())
    )
