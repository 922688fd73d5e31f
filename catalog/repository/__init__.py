from catalog.repository.base import ProductRepository
from catalog.repository.cached import CachedProductRepository
from catalog.repository.rdb import RdbProductRepository

__all__ = ["ProductRepository", "RdbProductRepository", "CachedProductRepository"]
