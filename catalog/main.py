import logging
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from catalog.auth_service import get_user_by_id, login_user, register_user
from catalog.config import Settings, settings
from catalog.database import create_engine, create_redis, create_tables
from catalog.dependencies import (
    build_product_repository,
    get_current_user_id,
    get_engine,
    get_product_query,
    get_product_repository,
)
from catalog.errors import CatalogServiceError, NotFoundError, UnexpectedError, ValidationError
from catalog.health import check_health
from catalog.repository import ProductRepository
from catalog.schemas import (
    ApiResponse,
    AuthResponse,
    CreateProductRequest,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    ProductPage,
    ProductQuery,
    ProductResponse,
    RegisterRequest,
    UpdateProductRequest,
    UserResponse,
)
from catalog.telemetry import instrument_engine, setup_telemetry

logger = logging.getLogger(__name__)


def _error_response(exc: CatalogServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.error, message=exc.message, errors=exc.errors
        ).model_dump(exclude_none=True),
    )


def create_app(config: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_engine(config)
        redis = create_redis(config)
        instrument_engine(engine)
        if config.db_create_tables:
            await create_tables(engine)

        app.state.engine = engine
        app.state.redis = redis
        app.state.product_repository = build_product_repository(
            engine, redis, ttl=config.cache_ttl_seconds
        )
        logger.info(f"Catalog service started (cache={'on' if redis else 'off'})")
        try:
            yield
        finally:
            if redis is not None:
                await redis.aclose()
            await engine.dispose()

    app = FastAPI(
        title="Catalog Service",
        description="인증 및 상품 카탈로그 서비스",
        version="1.0.0",
        lifespan=lifespan,
    )

    setup_telemetry(app)

    @app.exception_handler(CatalogServiceError)
    async def catalog_service_error_handler(request: Request, exc: CatalogServiceError):
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"path": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return _error_response(
            ValidationError("입력값이 올바르지 않습니다.", errors=errors)
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(UnexpectedError("서버 내부 오류가 발생했습니다."))

    # Health check
    @app.get("/health", response_model=ApiResponse[HealthResponse])
    async def health_check(request: Request):
        health = await check_health(request.app.state.engine, request.app.state.redis)
        return ApiResponse(message="헬스 체크 완료", data=health)

    # Auth endpoints
    @app.post("/auth/register", response_model=ApiResponse[AuthResponse], status_code=201)
    async def register(request: RegisterRequest, engine: AsyncEngine = Depends(get_engine)):
        result = await register_user(
            engine,
            email=request.email,
            password=request.password,
            name=request.name,
        )
        return ApiResponse(message="회원가입이 완료되었습니다.", data=result)

    @app.post("/auth/login", response_model=ApiResponse[AuthResponse])
    async def login(request: LoginRequest, engine: AsyncEngine = Depends(get_engine)):
        result = await login_user(engine, email=request.email, password=request.password)
        return ApiResponse(message="로그인에 성공했습니다.", data=result)

    @app.get("/auth/me", response_model=ApiResponse[UserResponse])
    async def get_me(
        user_id: UUID = Depends(get_current_user_id),
        engine: AsyncEngine = Depends(get_engine),
    ):
        user = await get_user_by_id(engine, user_id)
        return ApiResponse(message="사용자 조회 성공", data=user)

    # Product endpoints
    @app.get("/products", response_model=ApiResponse[ProductPage])
    async def list_products_endpoint(
        query: ProductQuery = Depends(get_product_query),
        repository: ProductRepository = Depends(get_product_repository),
    ):
        page = await repository.list_products(query)
        return ApiResponse(message="상품 목록 조회 성공", data=page)

    @app.post("/products", response_model=ApiResponse[ProductResponse], status_code=201)
    async def create_product_endpoint(
        request: CreateProductRequest,
        user_id: UUID = Depends(get_current_user_id),
        repository: ProductRepository = Depends(get_product_repository),
    ):
        product = await repository.create_product(request.model_dump(), owner_id=user_id)
        return ApiResponse(message="상품이 등록되었습니다.", data=product)

    @app.get("/products/{product_id}", response_model=ApiResponse[ProductResponse])
    async def get_product_endpoint(
        product_id: UUID,
        repository: ProductRepository = Depends(get_product_repository),
    ):
        product = await repository.get_product(product_id)
        if product is None:
            raise NotFoundError("상품을 찾을 수 없습니다.")
        return ApiResponse(message="상품 조회 성공", data=product)

    @app.put("/products/{product_id}", response_model=ApiResponse[ProductResponse])
    async def update_product_endpoint(
        product_id: UUID,
        request: UpdateProductRequest,
        user_id: UUID = Depends(get_current_user_id),
        repository: ProductRepository = Depends(get_product_repository),
    ):
        product = await repository.update_product(
            product_id, request.model_dump(exclude_unset=True), principal_id=user_id
        )
        return ApiResponse(message="상품이 수정되었습니다.", data=product)

    @app.delete("/products/{product_id}", response_model=ApiResponse[ProductResponse])
    async def delete_product_endpoint(
        product_id: UUID,
        user_id: UUID = Depends(get_current_user_id),
        repository: ProductRepository = Depends(get_product_repository),
    ):
        product = await repository.delete_product(product_id, principal_id=user_id)
        return ApiResponse(message="상품이 삭제되었습니다.", data=product)

    return app


app = create_app()
