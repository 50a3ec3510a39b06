# app/crud/visit.py
from typing import Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from datetime import date, time, datetime

from app.core.constants import OPEN_VISIT_STATUSES
from app.models import Visit, Property, Client, Agent


def _with_parties(*columns):
    """ Visit columns joined with the property / client / agent summary columns """
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
        .select_from(Visit)
        .outerjoin(Property, Visit.property_id == Property.property_id)
        .outerjoin(Client, Visit.client_id == Client.client_id)
        .outerjoin(Agent, Visit.agent_id == Agent.agent_id)
    )


# --- Fetch Visit by ID ---
async def get_visit_by_id(db: AsyncSession, visit_id: int) -> Visit | None:
    result = await db.execute(select(Visit).where(Visit.visit_id == visit_id))
    return result.scalar_one_or_none()


async def get_visit_detail(db: AsyncSession, visit_id: int):
    result = await db.execute(_with_parties(*Visit.__table__.c).where(Visit.visit_id == visit_id))
    return result.mappings().first()


# --- Insert Visit ---
async def create_visit(db: AsyncSession, visit_data: dict) -> Visit:
    visit = Visit(**visit_data)
    db.add(visit)
    await db.flush()
    return visit


# --- Update Visit ---
async def update_visit(db: AsyncSession, visit: Visit, visit_data: dict) -> Visit:
    for field, value in visit_data.items():
        setattr(visit, field, value)
    await db.flush()
    return visit


async def update_visit_status(db: AsyncSession, visit_id: int, new_status: str) -> None:
    await db.execute(
        update(Visit)
        .where(Visit.visit_id == visit_id)
        .values(status=new_status, updated_at=datetime.utcnow())
    )


# --- Delete Visit ---
async def delete_visit(db: AsyncSession, visit_id: int) -> bool:
    result = await db.execute(delete(Visit).where(Visit.visit_id == visit_id))
    return result.rowcount > 0


# --- Open visits already holding an agent's date+time slot ---
async def count_agent_bookings(
    db: AsyncSession,
    agent_id: int,
    visit_date: date,
    visit_time: time,
    exclude_id: int | None = None,
) -> int:
    query = select(func.count(Visit.visit_id)).where(
        Visit.agent_id == agent_id,
        Visit.visit_date == visit_date,
        Visit.visit_time == visit_time,
        Visit.status.in_(OPEN_VISIT_STATUSES),
    )
    if exclude_id:
        query = query.where(Visit.visit_id != exclude_id)

    result = await db.execute(query)
    return result.scalar_one()


# --- Search ---
async def search_visits(db: AsyncSession, filters: list, limit: int):
    query = (
        _with_parties(
            Visit.visit_id,
            Visit.visit_date,
            Visit.visit_time,
            Visit.status,
            Visit.interest_rating,
        )
        .where(*filters)
        .order_by(Visit.visit_date.desc(), Visit.visit_time.desc())
        .limit(limit)
    )
    result = await db.execute(query)
    return result.mappings().all()


async def get_visits_between(
    db: AsyncSession,
    date_from: date,
    date_to: date,
    statuses: Optional[Sequence[str]] = None,
):
    """ Visits in [date_from, date_to] in schedule order """
    query = (
        _with_parties(
            Visit.visit_id,
            Visit.visit_date,
            Visit.visit_time,
            Visit.status,
        )
        .where(Visit.visit_date.between(date_from, date_to))
        .order_by(Visit.visit_date.asc(), Visit.visit_time.asc())
    )
    if statuses:
        query = query.where(Visit.status.in_(statuses))

    result = await db.execute(query)
    return result.mappings().all()


# --- Statistics ---
async def get_visits_by_status(db: AsyncSession):
    query = (
        select(Visit.status, func.count(Visit.visit_id).label("count"))
        .group_by(Visit.status)
        .order_by(Visit.status)
    )
    result = await db.execute(query)
    return result.mappings().all()


async def count_visits_between(
    db: AsyncSession,
    date_from: date,
    date_to: date,
    statuses: Optional[Sequence[str]] = None,
) -> int:
    query = select(func.count(Visit.visit_id)).where(Visit.visit_date.between(date_from, date_to))
    if statuses:
        query = query.where(Visit.status.in_(statuses))

    result = await db.execute(query)
    return result.scalar_one()


async def get_visits_by_interest(db: AsyncSession):
    count = func.count(Visit.visit_id).label("count")
    query = (
        select(Visit.interest_rating, count)
        .where(Visit.interest_rating.isnot(None), Visit.interest_rating != "")
        .group_by(Visit.interest_rating)
        .order_by(count.desc())
    )
    result = await db.execute(query)
    return result.mappings().all()


async def get_visits_by_property_type(db: AsyncSession):
    count = func.count(Visit.visit_id).label("count")
    query = (
        select(Property.property_type, count)
        .join(Property, Visit.property_id == Property.property_id)
        .group_by(Property.property_type)
        .order_by(count.desc())
    )
    result = await db.execute(query)
    return result.mappings().all()
