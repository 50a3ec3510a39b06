from types import SimpleNamespace
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from redis.exceptions import ConnectionError as RedisConnectionError

from app import models  # noqa: F401  (registers every table on Base.metadata)
from app.db.base_class import Base
from app.db.session import get_db
from app.db.redis_client import get_redis
from app.crud import agent as crud_agent, client as crud_client, property as crud_property
from app.main import app


# ---------------------------------------------------------------------------
# Redis doubles
# ---------------------------------------------------------------------------

class FakeRedis:
    """Just enough of redis.asyncio.Redis for the statistics cache."""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiry[key] = ex
        return True


class UnreachableRedis:
    async def get(self, key):
        raise RedisConnectionError("Connection refused")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("Connection refused")


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def unreachable_redis():
    return UnreachableRedis()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(db):
    """Two agents (one inactive), two clients and three available properties."""
    agent = await crud_agent.create_agent(
        db, {"full_name": "Laura Gomez", "email": "laura@example.com", "phone": "555-0101"}
    )
    inactive_agent = await crud_agent.create_agent(
        db, {"full_name": "Pedro Ruiz", "email": "pedro@example.com", "is_active": False}
    )
    client = await crud_client.create_client(
        db, {"first_name": "Ana", "last_name": "Torres", "email": "ana@example.com"}
    )
    other_client = await crud_client.create_client(
        db, {"first_name": "Marco", "last_name": "Silva", "email": "marco@example.com"}
    )
    house = await crud_property.create_property(
        db, {"property_type": "House", "address": "12 Oak Street", "city": "Springfield"}
    )
    flat = await crud_property.create_property(
        db, {"property_type": "Apartment", "address": "40 Elm Avenue", "city": "Shelbyville"}
    )
    office = await crud_property.create_property(
        db, {"property_type": "Office", "address": "7 Market Square", "city": "Springfield"}
    )
    await db.commit()

    return SimpleNamespace(
        agent_id=agent.agent_id,
        inactive_agent_id=inactive_agent.agent_id,
        client_id=client.client_id,
        other_client_id=other_client.client_id,
        house_id=house.property_id,
        flat_id=flat.property_id,
        office_id=office.property_id,
    )


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
async def api(session_factory, fake_redis):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        yield fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
