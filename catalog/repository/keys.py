import json
from uuid import UUID

from catalog.schemas import ProductQuery

PRODUCT_CACHE_PREFIX = "product:"
PRODUCTS_CACHE_PREFIX = "products:"


def product_key(product_id: UUID | str) -> str:
    return f"{PRODUCT_CACHE_PREFIX}{product_id}"


def products_key(query: ProductQuery) -> str:
    # 필드 순서 고정: page, limit, search, category, sortBy, order
    canonical = query.model_dump(by_alias=True)
    return PRODUCTS_CACHE_PREFIX + json.dumps(canonical, separators=(",", ":"), ensure_ascii=False)


def products_pattern() -> str:
    return f"{PRODUCTS_CACHE_PREFIX}*"
