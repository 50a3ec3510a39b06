# app/crud/rental.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from datetime import date, datetime

from app.core.constants import RentalStatus
from app.models import Rental, Property, Client, Agent


def _with_parties(*columns):
    """ Rental columns joined with the property / client / agent summary columns """
    return (
        select(
            *columns,
            Property.property_type,
            Property.address,
            Property.city,
            Client.first_name.label("client_first_name"),
            Client.last_name.label("client_last_name"),
            Agent.full_name.label("agent_name"),
        )
        .select_from(Rental)
        .outerjoin(Property, Rental.property_id == Property.property_id)
        .outerjoin(Client, Rental.client_id == Client.client_id)
        .outerjoin(Agent, Rental.agent_id == Agent.agent_id)
    )


# --- Fetch Rental by ID ---
async def get_rental_by_id(db: AsyncSession, rental_id: int) -> Rental | None:
    result = await db.execute(select(Rental).where(Rental.rental_id == rental_id))
    return result.scalar_one_or_none()


async def get_rental_detail(db: AsyncSession, rental_id: int):
    result = await db.execute(_with_parties(*Rental.__table__.c).where(Rental.rental_id == rental_id))
    return result.mappings().first()


# --- Insert Rental ---
async def create_rental(db: AsyncSession, rental_data: dict) -> Rental:
    rental = Rental(**rental_data)
    db.add(rental)
    await db.flush()
    return rental


# --- Update Rental ---
async def update_rental(db: AsyncSession, rental: Rental, rental_data: dict) -> Rental:
    for field, value in rental_data.items():
        setattr(rental, field, value)
    await db.flush()
    return rental


async def update_rental_status(db: AsyncSession, rental_id: int, new_status: str) -> None:
    await db.execute(
        update(Rental)
        .where(Rental.rental_id == rental_id)
        .values(status=new_status, updated_at=datetime.utcnow())
    )


# --- Delete Rental ---
async def delete_rental(db: AsyncSession, rental_id: int) -> bool:
    result = await db.execute(delete(Rental).where(Rental.rental_id == rental_id))
    return result.rowcount > 0


# --- Active rentals of a property whose dates intersect [start_date, end_date] ---
async def count_overlapping_rentals(
    db: AsyncSession,
    property_id: int,
    start_date: date,
    end_date: date,
    exclude_id: int | None = None,
) -> int:
    query = select(func.count(Rental.rental_id)).where(
        Rental.property_id == property_id,
        Rental.status == RentalStatus.ACTIVE.value,
        Rental.start_date <= end_date,
        Rental.end_date >= start_date,
    )
    if exclude_id:
        query = query.where(Rental.rental_id != exclude_id)

    result = await db.execute(query)
    return result.scalar_one()


# --- Search ---
async def search_rentals(db: AsyncSession, filters: list, limit: int):
    query = (
        _with_parties(
            Rental.rental_id,
            Rental.start_date,
            Rental.end_date,
            Rental.monthly_rent,
            Rental.deposit,
            Rental.status,
        )
        .where(*filters)
        .order_by(Rental.start_date.desc(), Rental.rental_id.desc())
        .limit(limit)
    )
    result = await db.execute(query)
    return result.mappings().all()


async def get_expiring_rentals(db: AsyncSession, today: date, until: date):
    """ Active rentals ending between today and `until`, soonest first """
    query = (
        select(
            Rental.rental_id,
            Rental.end_date,
            Rental.monthly_rent,
            Property.address,
            Property.city,
            Client.first_name.label("client_first_name"),
            Client.last_name.label("client_last_name"),
        )
        .join(Property, Rental.property_id == Property.property_id)
        .join(Client, Rental.client_id == Client.client_id)
        .where(
            Rental.status == RentalStatus.ACTIVE.value,
            Rental.end_date.between(today, until),
        )
        .order_by(Rental.end_date.asc())
    )
    result = await db.execute(query)
    return result.mappings().all()


# --- Statistics ---
async def get_rentals_by_status(db: AsyncSession):
    query = (
        select(
            Rental.status,
            func.count(Rental.rental_id).label("count"),
            func.coalesce(func.sum(Rental.monthly_rent), 0).label("total_monthly"),
        )
        .group_by(Rental.status)
        .order_by(Rental.status)
    )
    result = await db.execute(query)
    return result.mappings().all()


async def get_active_rentals_summary(db: AsyncSession):
    query = select(
        func.count(Rental.rental_id).label("active_count"),
        func.coalesce(func.sum(Rental.monthly_rent), 0).label("monthly_income"),
    ).where(Rental.status == RentalStatus.ACTIVE.value)
    result = await db.execute(query)
    return result.mappings().one()


async def count_expiring_rentals(db: AsyncSession, today: date, until: date) -> int:
    result = await db.execute(
        select(func.count(Rental.rental_id)).where(
            Rental.status == RentalStatus.ACTIVE.value,
            Rental.end_date.between(today, until),
        )
    )
    return result.scalar_one()


async def get_rent_value_stats(db: AsyncSession):
    query = select(
        func.avg(Rental.monthly_rent).label("avg_rent"),
        func.min(Rental.monthly_rent).label("min_rent"),
        func.max(Rental.monthly_rent).label("max_rent"),
    )
    result = await db.execute(query)
    return result.mappings().one()


async def get_rentals_by_property_type(db: AsyncSession):
    count = func.count(Rental.rental_id).label("count")
    query = (
        select(
            Property.property_type,
            count,
            func.coalesce(func.sum(Rental.monthly_rent), 0).label("total_monthly"),
        )
        .join(Property, Rental.property_id == Property.property_id)
        .group_by(Property.property_type)
        .order_by(count.desc())
    )
    result = await db.execute(query)
    return result.mappings().all()
