import json
import logging
from typing import Any, Mapping
from uuid import UUID

import pydantic
from redis.asyncio import Redis
from redis.exceptions import RedisError

from catalog.repository.base import ProductRepository
from catalog.repository.keys import product_key, products_key, products_pattern
from catalog.schemas import ProductPage, ProductQuery, ProductResponse

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 3600


class CachedProductRepository(ProductRepository):
    """Redis 캐싱 Repository (Decorator 패턴)

    조회는 read-through, 변경은 저장소 반영 후 무효화한다.
    Redis 오류는 로그만 남기고 캐시 miss로 취급한다.
    """

    def __init__(self, inner: ProductRepository, redis: Redis, ttl: int = DEFAULT_CACHE_TTL):
        self.inner = inner
        self.redis = redis
        self.ttl = ttl

    async def list_products(self, query: ProductQuery) -> ProductPage:
        cache_key = products_key(query)

        # 캐시 조회
        cached = await self._get(cache_key)
        if cached is not None:
            try:
                return ProductPage.model_validate_json(cached)
            except pydantic.ValidationError:
                logger.warning(f"Discarding undecodable cache entry {cache_key}")

        # DB 조회 (inner repository)
        page = await self.inner.list_products(query)

        # 캐시 저장
        await self._set(cache_key, json.dumps(page.model_dump(mode="json")))

        return page

    async def get_product(self, product_id: UUID) -> ProductResponse | None:
        cache_key = product_key(product_id)

        cached = await self._get(cache_key)
        if cached is not None:
            try:
                return ProductResponse.model_validate_json(cached)
            except pydantic.ValidationError:
                logger.warning(f"Discarding undecodable cache entry {cache_key}")

        product = await self.inner.get_product(product_id)
        if product is None:
            return None

        await self._set(cache_key, json.dumps(product.model_dump(mode="json")))

        return product

    async def create_product(self, data: Mapping[str, Any], owner_id: UUID) -> ProductResponse:
        product = await self.inner.create_product(data, owner_id)
        await self._invalidate_pattern(products_pattern())
        return product

    async def update_product(
        self, product_id: UUID, changes: Mapping[str, Any], principal_id: UUID
    ) -> ProductResponse:
        product = await self.inner.update_product(product_id, changes, principal_id)
        await self._invalidate_key(product_key(product_id))
        await self._invalidate_pattern(products_pattern())
        return product

    async def delete_product(self, product_id: UUID, principal_id: UUID) -> ProductResponse:
        product = await self.inner.delete_product(product_id, principal_id)
        await self._invalidate_key(product_key(product_id))
        await self._invalidate_pattern(products_pattern())
        return product

    async def is_owner(self, product_id: UUID, principal_id: UUID) -> bool:
        return await self.inner.is_owner(product_id, principal_id)

    async def _get(self, key: str) -> str | None:
        try:
            return await self.redis.get(key)
        except RedisError as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None

    async def _set(self, key: str, value: str) -> None:
        try:
            await self.redis.set(key, value, ex=self.ttl)
        except RedisError as e:
            logger.warning(f"Cache set failed for {key}: {e}")

    async def _invalidate_key(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as e:
            logger.warning(f"Cache invalidation failed for {key}: {e}")

    async def _invalidate_pattern(self, pattern: str) -> None:
        try:
            keys = await self.redis.keys(pattern)
            if keys:
                await self.redis.delete(*keys)
                logger.info(f"Invalidated {len(keys)} cache entries for pattern: {pattern}")
        except RedisError as e:
            logger.warning(f"Cache invalidation failed for pattern {pattern}: {e}")
