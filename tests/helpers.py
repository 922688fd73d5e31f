import asyncio
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Mapping
from uuid import UUID

from catalog.database import get_connection
from catalog.queries import AsyncQuerier
from catalog.repository import ProductRepository
from catalog.schemas import ProductPage, ProductQuery, ProductResponse


class CountingRepository(ProductRepository):
    """저장소 호출 횟수를 기록하는 래퍼"""

    def __init__(self, inner: ProductRepository):
        self.inner = inner
        self.calls: Counter[str] = Counter()

    @property
    def reads(self) -> int:
        return self.calls["list_products"] + self.calls["get_product"]

    async def create_product(self, data: Mapping[str, Any], owner_id: UUID) -> ProductResponse:
        self.calls["create_product"] += 1
        return await self.inner.create_product(data, owner_id)

    async def list_products(self, query: ProductQuery) -> ProductPage:
        self.calls["list_products"] += 1
        return await self.inner.list_products(query)

    async def get_product(self, product_id: UUID) -> ProductResponse | None:
        self.calls["get_product"] += 1
        return await self.inner.get_product(product_id)

    async def update_product(
        self, product_id: UUID, changes: Mapping[str, Any], principal_id: UUID
    ) -> ProductResponse:
        self.calls["update_product"] += 1
        return await self.inner.update_product(product_id, changes, principal_id)

    async def delete_product(self, product_id: UUID, principal_id: UUID) -> ProductResponse:
        self.calls["delete_product"] += 1
        return await self.inner.delete_product(product_id, principal_id)

    async def is_owner(self, product_id: UUID, principal_id: UUID) -> bool:
        self.calls["is_owner"] += 1
        return await self.inner.is_owner(product_id, principal_id)


class GatedRepository(CountingRepository):
    """단건 조회가 DB를 읽은 뒤 release 될 때까지 반환을 멈춘다."""

    def __init__(self, inner: ProductRepository):
        super().__init__(inner)
        self.hold_reads = False
        self.fetched = asyncio.Event()
        self.release = asyncio.Event()

    async def get_product(self, product_id: UUID) -> ProductResponse | None:
        product = await super().get_product(product_id)
        if self.hold_reads:
            self.fetched.set()
            await self.release.wait()
        return product


async def create_test_user(engine, email: str | None = None, name: str = "Test User") -> UUID:
    user_id = uuid.uuid4()
    async with get_connection(engine) as conn:
        await AsyncQuerier(conn).create_user(
            id=user_id,
            email=email or f"test_{user_id.hex[:8]}@example.com",
            password_hash="not-a-real-hash",
            name=name,
            created_at=datetime.now(timezone.utc),
        )
        await conn.commit()
    return user_id


def product_data(**overrides) -> dict[str, Any]:
    data = {
        "name": "Test Product",
        "description": "Test Description",
        "price": 99.99,
        "category": "Test Category",
        "stock": 10,
    }
    data.update(overrides)
    return data
