from uuid import UUID

import pytest
import pytest_asyncio
from fakeredis import FakeServer, aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from catalog.database import create_tables
from catalog.dependencies import build_product_repository
from catalog.main import create_app
from catalog.repository import CachedProductRepository, RdbProductRepository
from catalog.security import create_access_token
from tests.helpers import CountingRepository, create_test_user


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def redis():
    client = aioredis.FakeRedis(server=FakeServer(), decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def rdb(engine) -> RdbProductRepository:
    return RdbProductRepository(engine)


@pytest.fixture
def store(rdb) -> CountingRepository:
    return CountingRepository(rdb)


@pytest.fixture
def cached(store, redis) -> CachedProductRepository:
    return CachedProductRepository(store, redis, ttl=3600)


@pytest_asyncio.fixture
async def owner_id(engine) -> UUID:
    return await create_test_user(engine, email="owner@example.com", name="Owner")


@pytest_asyncio.fixture
async def other_user_id(engine) -> UUID:
    return await create_test_user(engine, email="other@example.com", name="Other")


@pytest_asyncio.fixture
async def client(engine, redis):
    app = create_app()
    app.state.engine = engine
    app.state.redis = redis
    app.state.product_repository = build_product_repository(engine, redis, ttl=3600)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def owner_headers(owner_id) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner_id)}"}


@pytest.fixture
def other_headers(other_user_id) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(other_user_id)}"}
