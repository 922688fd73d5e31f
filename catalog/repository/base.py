from abc import ABC, abstractmethod
from typing import Any, Mapping
from uuid import UUID

from catalog.schemas import ProductPage, ProductQuery, ProductResponse


class ProductRepository(ABC):
    """상품 저장소 인터페이스"""

    @abstractmethod
    async def create_product(self, data: Mapping[str, Any], owner_id: UUID) -> ProductResponse:
        """상품 등록. 필수 필드 누락/범위 오류 시 ValidationError"""
        pass

    @abstractmethod
    async def list_products(self, query: ProductQuery) -> ProductPage:
        """상품 목록 조회"""
        pass

    @abstractmethod
    async def get_product(self, product_id: UUID) -> ProductResponse | None:
        """상품 단건 조회"""
        pass

    @abstractmethod
    async def update_product(
        self, product_id: UUID, changes: Mapping[str, Any], principal_id: UUID
    ) -> ProductResponse:
        """상품 부분 수정. 없으면 NotFoundError, 소유자가 아니면 AuthorizationError"""
        pass

    @abstractmethod
    async def delete_product(self, product_id: UUID, principal_id: UUID) -> ProductResponse:
        """상품 삭제 후 삭제 직전 스냅샷 반환"""
        pass

    @abstractmethod
    async def is_owner(self, product_id: UUID, principal_id: UUID) -> bool:
        """소유자 확인. 없으면 NotFoundError"""
        pass
