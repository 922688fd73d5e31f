import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping
from uuid import UUID

import pydantic
from sqlalchemy.ext.asyncio import AsyncEngine

from catalog.database import get_connection
from catalog.errors import AuthorizationError, NotFoundError, ValidationError
from catalog.queries import AsyncQuerier, CreateProductParams, ListProductsParams, ProductRow
from catalog.repository.base import ProductRepository
from catalog.schemas import (
    CreateProductRequest,
    OwnerSummary,
    Pagination,
    ProductPage,
    ProductQuery,
    ProductResponse,
    UpdateProductRequest,
)

logger = logging.getLogger(__name__)


def _validate(model: type[pydantic.BaseModel], data: Mapping[str, Any]):
    try:
        return model.model_validate(dict(data))
    except pydantic.ValidationError as e:
        errors = [
            {"path": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("입력값이 올바르지 않습니다.", errors=errors) from e


class RdbProductRepository(ProductRepository):
    """DB 직접 조회 Repository"""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def create_product(self, data: Mapping[str, Any], owner_id: UUID) -> ProductResponse:
        request = _validate(CreateProductRequest, data)
        product_id = uuid.uuid4()

        async with get_connection(self.engine) as conn:
            querier = AsyncQuerier(conn)
            await querier.create_product(
                CreateProductParams(
                    id=product_id,
                    name=request.name,
                    description=request.description,
                    price=request.price,
                    category=request.category,
                    stock=request.stock,
                    owner_id=owner_id,
                    created_at=datetime.now(timezone.utc),
                )
            )
            await conn.commit()

            product = await querier.get_product_by_id(id=product_id)
            return self._to_response(product)

    async def list_products(self, query: ProductQuery) -> ProductPage:
        offset = (query.page - 1) * query.limit

        async with get_connection(self.engine) as conn:
            querier = AsyncQuerier(conn)

            total = await querier.count_products(search=query.search, category=query.category)

            items = []
            async for product in querier.list_products(
                ListProductsParams(
                    search=query.search,
                    category=query.category,
                    sort_by=query.sort_by,
                    descending=query.order == "desc",
                    limit=query.limit,
                    offset=offset,
                )
            ):
                items.append(self._to_response(product))

        return ProductPage(
            products=items,
            pagination=Pagination(
                total=total,
                page=query.page,
                pages=math.ceil(total / query.limit),
            ),
        )

    async def get_product(self, product_id: UUID) -> ProductResponse | None:
        async with get_connection(self.engine) as conn:
            querier = AsyncQuerier(conn)
            product = await querier.get_product_by_id(id=product_id)

            if product is None:
                return None

            return self._to_response(product)

    async def update_product(
        self, product_id: UUID, changes: Mapping[str, Any], principal_id: UUID
    ) -> ProductResponse:
        request = _validate(UpdateProductRequest, changes)
        values = request.model_dump(exclude_none=True)

        async with get_connection(self.engine) as conn:
            querier = AsyncQuerier(conn)
            await self._check_owner(querier, product_id, principal_id, "수정")

            updated = await querier.update_product(
                id=product_id,
                owner_id=principal_id,
                updated_at=datetime.now(timezone.utc),
                values=values,
            )
            if updated is None:
                # 확인 직후 삭제된 경우
                raise NotFoundError("상품을 찾을 수 없습니다.")
            await conn.commit()

            product = await querier.get_product_by_id(id=product_id)
            return self._to_response(product)

    async def delete_product(self, product_id: UUID, principal_id: UUID) -> ProductResponse:
        async with get_connection(self.engine) as conn:
            querier = AsyncQuerier(conn)
            await self._check_owner(querier, product_id, principal_id, "삭제")

            snapshot = await querier.get_product_by_id(id=product_id)
            deleted = await querier.delete_product(id=product_id, owner_id=principal_id)
            if deleted is None or snapshot is None:
                raise NotFoundError("상품을 찾을 수 없습니다.")
            await conn.commit()

            logger.info(f"Product {product_id} deleted by {principal_id}")
            return self._to_response(snapshot)

    async def is_owner(self, product_id: UUID, principal_id: UUID) -> bool:
        async with get_connection(self.engine) as conn:
            owner_id = await AsyncQuerier(conn).get_product_owner(id=product_id)

        if owner_id is None:
            raise NotFoundError("상품을 찾을 수 없습니다.")
        return owner_id == principal_id

    async def _check_owner(
        self, querier: AsyncQuerier, product_id: UUID, principal_id: UUID, action: str
    ) -> None:
        owner_id = await querier.get_product_owner(id=product_id)
        if owner_id is None:
            raise NotFoundError("상품을 찾을 수 없습니다.")
        if owner_id != principal_id:
            logger.warning(f"Rejected {action} of product {product_id} by non-owner {principal_id}")
            raise AuthorizationError(f"상품을 {action}할 권한이 없습니다.")

    def _to_response(self, product: ProductRow) -> ProductResponse:
        owner = None
        if product.owner_name is not None:
            owner = OwnerSummary(
                id=product.owner_id,
                name=product.owner_name,
                email=product.owner_email,
            )
        return ProductResponse(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            category=product.category,
            stock=product.stock,
            owner_id=product.owner_id,
            owner=owner,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )
