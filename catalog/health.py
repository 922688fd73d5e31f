import time
from datetime import datetime, timezone

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from catalog.database import get_connection
from catalog.schemas import DependencyStatus, HealthResponse

_started_at = time.monotonic()


async def _check_database(engine: AsyncEngine) -> DependencyStatus:
    start = time.perf_counter()
    try:
        async with get_connection(engine) as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        return DependencyStatus(status="down")
    return DependencyStatus(status="up", latency_ms=(time.perf_counter() - start) * 1000)


async def _check_cache(redis: Redis | None) -> DependencyStatus:
    if redis is None:
        return DependencyStatus(status="disabled")
    start = time.perf_counter()
    try:
        await redis.ping()
    except (RedisError, OSError):
        return DependencyStatus(status="down")
    return DependencyStatus(status="up", latency_ms=(time.perf_counter() - start) * 1000)


async def check_health(engine: AsyncEngine, redis: Redis | None) -> HealthResponse:
    database = await _check_database(engine)
    cache = await _check_cache(redis)

    healthy = database.status == "up" and cache.status != "down"
    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        service="catalog-service",
        timestamp=datetime.now(timezone.utc),
        uptime=time.monotonic() - _started_at,
        services={"database": database, "cache": cache},
    )
