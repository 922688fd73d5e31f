from datetime import datetime
from typing import Generic, Literal, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

T = TypeVar("T")

SortField = Literal["name", "price", "category", "createdAt", "updatedAt"]
SortOrder = Literal["asc", "desc"]


# Envelope
class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: T | None = None


class ErrorDetail(BaseModel):
    path: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
    errors: list[ErrorDetail] | None = None


# Health
class DependencyStatus(BaseModel):
    status: Literal["up", "down", "disabled"]
    latency_ms: float | None = None


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    service: str
    timestamp: datetime
    uptime: float
    services: dict[str, DependencyStatus]


# Auth schemas
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=2, max_length=50)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str


class AuthResponse(BaseModel):
    token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserResponse


# Product schemas
class CreateProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(max_length=5000)
    price: float = Field(ge=0)
    category: str = Field(min_length=1, max_length=100)
    stock: int = Field(ge=0)


class UpdateProductRequest(BaseModel):
    """부분 수정. id, owner_id 등 정의되지 않은 필드는 무시된다."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    price: float | None = Field(default=None, ge=0)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    stock: int | None = Field(default=None, ge=0)


class OwnerSummary(BaseModel):
    id: UUID
    name: str
    email: str


class ProductResponse(BaseModel):
    id: UUID
    name: str
    description: str
    price: float
    category: str
    stock: int
    owner_id: UUID
    owner: OwnerSummary | None = None
    created_at: datetime
    updated_at: datetime


class ProductQuery(BaseModel):
    """목록 조회 조건. 기본값이 적용된 상태가 캐시 키의 기준이 된다."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)
    search: str | None = None
    category: str | None = None
    sort_by: SortField = Field(default="createdAt", alias="sortBy")
    order: SortOrder = "desc"

    @field_validator("search", "category", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value


class Pagination(BaseModel):
    total: int
    page: int
    pages: int


class ProductPage(BaseModel):
    products: list[ProductResponse]
    pagination: Pagination
