# app/crud/client.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models.client import Client


# --- Fetch Client by ID ---
async def get_client_by_id(db: AsyncSession, client_id: int) -> Client | None:
    result = await db.execute(select(Client).where(Client.client_id == client_id))
    return result.scalar_one_or_none()


# --- Insert Client ---
async def create_client(db: AsyncSession, client_data: dict) -> Client:
    client = Client(**client_data)
    db.add(client)
    await db.flush()
    return client
