from uuid import UUID

from fastapi import Depends, Header, Query, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine

from catalog.database import get_connection
from catalog.errors import AuthenticationError
from catalog.queries import AsyncQuerier
from catalog.repository import CachedProductRepository, ProductRepository, RdbProductRepository
from catalog.schemas import ProductQuery, SortField, SortOrder
from catalog.security import verify_access_token


def build_product_repository(engine: AsyncEngine, redis: Redis | None, ttl: int) -> ProductRepository:
    repository: ProductRepository = RdbProductRepository(engine)
    if redis is not None:
        repository = CachedProductRepository(repository, redis, ttl=ttl)
    return repository


def get_engine(request: Request) -> AsyncEngine:
    return request.app.state.engine


def get_product_repository(request: Request) -> ProductRepository:
    return request.app.state.product_repository


def get_token_from_header(authorization: str | None = Header(default=None)) -> str | None:
    if authorization is None:
        return None
    if not authorization.startswith("Bearer "):
        return None
    return authorization[7:]


async def get_current_user_id(
    token: str | None = Depends(get_token_from_header),
    engine: AsyncEngine = Depends(get_engine),
) -> UUID:
    if token is None:
        raise AuthenticationError("인증이 필요합니다.")
    user_id = verify_access_token(token)
    if user_id is None:
        raise AuthenticationError("유효하지 않은 토큰입니다.", error="INVALID_TOKEN")

    # 토큰 발급 이후 삭제된 사용자
    async with get_connection(engine) as conn:
        user = await AsyncQuerier(conn).get_user_by_id(id=user_id)
    if user is None:
        raise AuthenticationError("사용자를 찾을 수 없습니다.", error="USER_NOT_FOUND")
    return user_id


def get_product_query(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    sort_by: SortField = Query(default="createdAt", alias="sortBy"),
    order: SortOrder = Query(default="desc"),
) -> ProductQuery:
    return ProductQuery(
        page=page,
        limit=limit,
        search=search,
        category=category,
        sort_by=sort_by,
        order=order,
    )
