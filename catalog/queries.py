from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator
from uuid import UUID

from sqlalchemy import Select, delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from catalog.tables import products, users

SORT_COLUMNS = {
    "name": products.c.name,
    "price": products.c.price,
    "category": products.c.category,
    "createdAt": products.c.created_at,
    "updatedAt": products.c.updated_at,
}


@dataclass
class ProductRow:
    id: UUID
    name: str
    description: str
    price: float
    category: str
    stock: int
    owner_id: UUID
    created_at: datetime
    updated_at: datetime
    owner_name: str | None = None
    owner_email: str | None = None


@dataclass
class UserRow:
    id: UUID
    email: str
    password_hash: str
    name: str
    created_at: datetime


@dataclass
class CreateProductParams:
    id: UUID
    name: str
    description: str
    price: float
    category: str
    stock: int
    owner_id: UUID
    created_at: datetime


@dataclass
class ListProductsParams:
    search: str | None
    category: str | None
    sort_by: str
    descending: bool
    limit: int
    offset: int


def _product_with_owner() -> Select:
    return select(
        products,
        users.c.name.label("owner_name"),
        users.c.email.label("owner_email"),
    ).select_from(products.outerjoin(users, products.c.owner_id == users.c.id))


class AsyncQuerier:
    """products / users 테이블 쿼리 모음"""

    def __init__(self, conn: AsyncConnection):
        self._conn = conn

    def _filters(self, search: str | None, category: str | None) -> list[Any]:
        conditions = []
        if search:
            if self._conn.dialect.name == "postgresql":
                # PostgreSQL 전문 검색 (plainto_tsquery)
                document = func.concat_ws(" ", products.c.name, products.c.description)
                conditions.append(document.match(search))
            else:
                conditions.append(
                    products.c.name.icontains(search, autoescape=True)
                    | products.c.description.icontains(search, autoescape=True)
                )
        if category:
            conditions.append(products.c.category == category)
        return conditions

    # Products
    async def create_product(self, arg: CreateProductParams) -> None:
        await self._conn.execute(
            insert(products).values(
                id=arg.id,
                name=arg.name,
                description=arg.description,
                price=arg.price,
                category=arg.category,
                stock=arg.stock,
                owner_id=arg.owner_id,
                created_at=arg.created_at,
                updated_at=arg.created_at,
            )
        )

    async def get_product_by_id(self, id: UUID) -> ProductRow | None:
        row = (
            await self._conn.execute(_product_with_owner().where(products.c.id == id))
        ).first()
        if row is None:
            return None
        return ProductRow(**row._mapping)

    async def get_product_owner(self, id: UUID) -> UUID | None:
        return await self._conn.scalar(select(products.c.owner_id).where(products.c.id == id))

    async def count_products(self, search: str | None, category: str | None) -> int:
        stmt = select(func.count()).select_from(products).where(*self._filters(search, category))
        return await self._conn.scalar(stmt) or 0

    async def list_products(self, arg: ListProductsParams) -> AsyncIterator[ProductRow]:
        sort_column = SORT_COLUMNS[arg.sort_by]
        if arg.descending:
            ordering = (sort_column.desc(), products.c.id.desc())
        else:
            ordering = (sort_column.asc(), products.c.id.asc())
        stmt = (
            _product_with_owner()
            .where(*self._filters(arg.search, arg.category))
            .order_by(*ordering)
            .limit(arg.limit)
            .offset(arg.offset)
        )
        result = await self._conn.execute(stmt)
        for row in result:
            yield ProductRow(**row._mapping)

    async def update_product(
        self, id: UUID, owner_id: UUID, updated_at: datetime, values: dict[str, Any]
    ) -> UUID | None:
        """owner_id가 일치할 때만 수정한다."""
        stmt = (
            update(products)
            .where(products.c.id == id, products.c.owner_id == owner_id)
            .values(**values, updated_at=updated_at)
            .returning(products.c.id)
        )
        return (await self._conn.execute(stmt)).scalar_one_or_none()

    async def delete_product(self, id: UUID, owner_id: UUID) -> UUID | None:
        """owner_id가 일치할 때만 삭제한다."""
        stmt = (
            delete(products)
            .where(products.c.id == id, products.c.owner_id == owner_id)
            .returning(products.c.id)
        )
        return (await self._conn.execute(stmt)).scalar_one_or_none()

    # Users
    async def create_user(
        self, id: UUID, email: str, password_hash: str, name: str, created_at: datetime
    ) -> None:
        await self._conn.execute(
            insert(users).values(
                id=id,
                email=email,
                password_hash=password_hash,
                name=name,
                created_at=created_at,
            )
        )

    async def exists_user_by_email(self, email: str) -> bool:
        found = await self._conn.scalar(select(users.c.id).where(users.c.email == email))
        return found is not None

    async def get_user_by_email(self, email: str) -> UserRow | None:
        row = (await self._conn.execute(select(users).where(users.c.email == email))).first()
        if row is None:
            return None
        return UserRow(**row._mapping)

    async def get_user_by_id(self, id: UUID) -> UserRow | None:
        row = (await self._conn.execute(select(users).where(users.c.id == id))).first()
        if row is None:
            return None
        return UserRow(**row._mapping)
