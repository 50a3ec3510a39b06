# app/crud/sale.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from datetime import date

from app.models import Sale, Property, Client, Agent


def _with_parties(*columns):
    """ Sale columns joined with the property / client / agent summary columns """
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
        .select_from(Sale)
        .outerjoin(Property, Sale.property_id == Property.property_id)
        .outerjoin(Client, Sale.client_id == Client.client_id)
        .outerjoin(Agent, Sale.agent_id == Agent.agent_id)
    )


# --- Fetch Sale by ID ---
async def get_sale_by_id(db: AsyncSession, sale_id: int) -> Sale | None:
    result = await db.execute(select(Sale).where(Sale.sale_id == sale_id))
    return result.scalar_one_or_none()


async def get_sale_detail(db: AsyncSession, sale_id: int):
    result = await db.execute(_with_parties(*Sale.__table__.c).where(Sale.sale_id == sale_id))
    return result.mappings().first()


# --- Insert Sale ---
async def create_sale(db: AsyncSession, sale_data: dict) -> Sale:
    sale = Sale(**sale_data)
    db.add(sale)
    await db.flush()
    return sale


# --- Update Sale ---
async def update_sale(db: AsyncSession, sale: Sale, sale_data: dict) -> Sale:
    for field, value in sale_data.items():
        setattr(sale, field, value)
    await db.flush()
    return sale


# --- Delete Sale ---
async def delete_sale(db: AsyncSession, sale_id: int) -> bool:
    result = await db.execute(delete(Sale).where(Sale.sale_id == sale_id))
    return result.rowcount > 0


# --- Search ---
async def search_sales(db: AsyncSession, filters: list, limit: int):
    query = (
        _with_parties(Sale.sale_id, Sale.sale_date, Sale.value, Sale.commission)
        .where(*filters)
        .order_by(Sale.sale_date.desc(), Sale.sale_id.desc())
        .limit(limit)
    )
    result = await db.execute(query)
    return result.mappings().all()


# --- Statistics ---
async def get_sales_totals(db: AsyncSession, date_from: date | None = None, date_to: date | None = None):
    query = select(
        func.count(Sale.sale_id).label("count"),
        func.coalesce(func.sum(Sale.value), 0).label("total_value"),
        func.coalesce(func.sum(Sale.commission), 0).label("total_commission"),
    )
    if date_from is not None:
        query = query.where(Sale.sale_date >= date_from)
    if date_to is not None:
        query = query.where(Sale.sale_date <= date_to)

    result = await db.execute(query)
    return result.mappings().one()


async def get_sales_by_property_type(db: AsyncSession):
    count = func.count(Sale.sale_id).label("count")
    query = (
        select(
            Property.property_type,
            count,
            func.coalesce(func.sum(Sale.value), 0).label("total_value"),
        )
        .join(Property, Sale.property_id == Property.property_id)
        .group_by(Property.property_type)
        .order_by(count.desc())
    )
    result = await db.execute(query)
    return result.mappings().all()
