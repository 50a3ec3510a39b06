# app/crud/agent.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func, desc

from app.core.constants import TOP_AGENTS_LIMIT
from app.models import Agent, Sale, Rental, Visit


# --- Fetch Agent by ID ---
async def get_agent_by_id(db: AsyncSession, agent_id: int) -> Agent | None:
    result = await db.execute(select(Agent).where(Agent.agent_id == agent_id))
    return result.scalar_one_or_none()


# --- Insert Agent ---
async def create_agent(db: AsyncSession, agent_data: dict) -> Agent:
    agent = Agent(**agent_data)
    db.add(agent)
    await db.flush()
    return agent


async def get_top_agents_by_sales(db: AsyncSession, limit: int = TOP_AGENTS_LIMIT):
    """ Active agents ranked by total sold value """
    total_value = func.coalesce(func.sum(Sale.value), 0).label("total_value")
    query = (
        select(
            Agent.agent_id,
            Agent.full_name,
            func.count(Sale.sale_id).label("sales_count"),
            total_value,
            func.coalesce(func.sum(Sale.commission), 0).label("total_commission"),
        )
        .outerjoin(Sale, Agent.agent_id == Sale.agent_id)
        .where(Agent.is_active.is_(True))
        .group_by(Agent.agent_id, Agent.full_name)
        .order_by(desc(total_value))
        .limit(limit)
    )

    result = await db.execute(query)
    return result.mappings().all()


async def get_top_agents_by_rentals(db: AsyncSession, limit: int = TOP_AGENTS_LIMIT):
    """ Active agents ranked by number of rentals handled """
    rental_count = func.count(Rental.rental_id).label("rental_count")
    query = (
        select(
            Agent.agent_id,
            Agent.full_name,
            rental_count,
            func.coalesce(func.sum(Rental.monthly_rent), 0).label("total_monthly"),
        )
        .outerjoin(Rental, Agent.agent_id == Rental.agent_id)
        .where(Agent.is_active.is_(True))
        .group_by(Agent.agent_id, Agent.full_name)
        .order_by(desc(rental_count))
        .limit(limit)
    )

    result = await db.execute(query)
    return result.mappings().all()


async def get_top_agents_by_visits(db: AsyncSession, limit: int = TOP_AGENTS_LIMIT):
    """ Active agents ranked by number of visits """
    visit_count = func.count(Visit.visit_id).label("visit_count")
    query = (
        select(Agent.agent_id, Agent.full_name, visit_count)
        .outerjoin(Visit, Agent.agent_id == Visit.agent_id)
        .where(Agent.is_active.is_(True))
        .group_by(Agent.agent_id, Agent.full_name)
        .order_by(desc(visit_count))
        .limit(limit)
    )

    result = await db.execute(query)
    return result.mappings().all()
