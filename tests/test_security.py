import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt

from catalog.config import settings
from catalog.security import (
    create_access_token,
    hash_password,
    verify_access_token,
    verify_password,
)


class TestAccessToken:
    def test_roundtrip(self):
        user_id = uuid.uuid4()

        assert verify_access_token(create_access_token(user_id)) == user_id

    def test_invalid_signature(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "type": "access"}, "wrong-secret", algorithm="HS256"
        )

        assert verify_access_token(token) is None

    def test_expired_token(self):
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "type": "access",
                "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            },
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        assert verify_access_token(token) is None

    def test_wrong_token_type(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "type": "refresh"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        assert verify_access_token(token) is None

    def test_non_uuid_subject(self):
        token = jwt.encode(
            {"sub": "admin", "type": "access"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        assert verify_access_token(token) is None


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("testpassword123")

        assert hashed != "testpassword123"
        assert verify_password("testpassword123", hashed)
        assert not verify_password("wrongpassword", hashed)
