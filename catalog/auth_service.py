import uuid
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncEngine

from catalog.config import settings
from catalog.database import get_connection
from catalog.errors import AuthenticationError, NotFoundError, ValidationError
from catalog.queries import AsyncQuerier, UserRow
from catalog.schemas import AuthResponse, UserResponse
from catalog.security import create_access_token, hash_password, verify_password


def _auth_response(user: UserRow) -> AuthResponse:
    return AuthResponse(
        token=create_access_token(user.id),
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserResponse(id=user.id, name=user.name, email=user.email),
    )


async def register_user(engine: AsyncEngine, email: str, password: str, name: str) -> AuthResponse:
    async with get_connection(engine) as conn:
        querier = AsyncQuerier(conn)

        exists = await querier.exists_user_by_email(email=email)
        if exists:
            raise ValidationError("이미 존재하는 이메일입니다.", error="EMAIL_EXISTS")

        user_id = uuid.uuid4()
        await querier.create_user(
            id=user_id,
            email=email,
            password_hash=hash_password(password),
            name=name,
            created_at=datetime.now(timezone.utc),
        )
        await conn.commit()

        user = await querier.get_user_by_id(id=user_id)
        return _auth_response(user)


async def login_user(engine: AsyncEngine, email: str, password: str) -> AuthResponse:
    async with get_connection(engine) as conn:
        querier = AsyncQuerier(conn)
        user = await querier.get_user_by_email(email=email)

    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError(
            "이메일 또는 비밀번호가 올바르지 않습니다.", error="INVALID_CREDENTIALS"
        )

    return _auth_response(user)


async def get_user_by_id(engine: AsyncEngine, user_id: UUID) -> UserResponse:
    async with get_connection(engine) as conn:
        querier = AsyncQuerier(conn)
        user = await querier.get_user_by_id(id=user_id)
        if user is None:
            raise NotFoundError("사용자를 찾을 수 없습니다.", error="USER_NOT_FOUND")

        return UserResponse(id=user.id, name=user.name, email=user.email)
