"""Unit tests for JWT token generation and validation

Tests cover:
- Token creation with valid claims
- Token decoding and validation
- Token expiration handling
- Actor construction from claims
- The FastAPI bearer dependency
"""

from datetime import timedelta
from uuid import uuid4

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from auth.dependencies import get_current_actor
from auth.jwt import actor_from_claims, create_access_token, decode_token
from auth.roles import Actor, UserRole
from config import Settings


@pytest.fixture
def settings():
    return Settings(JWT_SECRET="test-secret-key-256-bits-minimum-length-required-for-security")


def bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestCreateAccessToken:
    """Test JWT token creation"""

    def test_token_contains_correct_claims(self, settings):
        user_id = uuid4()

        token = create_access_token(user_id, UserRole.REVIEWER, settings)

        # Decode without verification to inspect payload
        payload = jwt.decode(token, options={"verify_signature": False})
        assert payload['sub'] == str(user_id)
        assert payload['role'] == "REVIEWER"
        assert payload['exp'] - payload['iat'] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    def test_role_accepts_plain_string(self, settings):
        token = create_access_token(uuid4(), "CUSTOMER", settings)

        assert decode_token(token, settings)['role'] == "CUSTOMER"

    def test_unknown_role_rejected(self, settings):
        with pytest.raises(ValueError):
            create_access_token(uuid4(), "SUPERUSER", settings)


class TestDecodeToken:
    """Test JWT token validation"""

    def test_roundtrip(self, settings):
        user_id = uuid4()

        payload = decode_token(create_access_token(user_id, UserRole.MEMBER, settings), settings)

        assert payload['sub'] == str(user_id)

    def test_expired_token(self, settings):
        token = create_access_token(uuid4(), UserRole.MEMBER, settings, expires_in=timedelta(seconds=-10))

        with pytest.raises(jwt.ExpiredSignatureError, match="expired"):
            decode_token(token, settings)

    def test_wrong_secret(self, settings):
        other = Settings(JWT_SECRET="a-completely-different-secret-of-sufficient-length")
        token = create_access_token(uuid4(), UserRole.MEMBER, other)

        with pytest.raises(jwt.InvalidTokenError, match="Invalid token"):
            decode_token(token, settings)

    def test_garbage_token(self, settings):
        with pytest.raises(jwt.InvalidTokenError):
            decode_token("not.a.token", settings)


class TestActorFromClaims:

    def test_actor_built(self):
        user_id = uuid4()

        actor = actor_from_claims({'sub': str(user_id), 'role': "ADMIN"})

        assert actor == Actor(user_id=user_id, role=UserRole.ADMIN)

    @pytest.mark.parametrize("payload", [
        {'role': "ADMIN"},
        {'sub': str(uuid4())},
        {'sub': "not-a-uuid", 'role': "ADMIN"},
        {'sub': str(uuid4()), 'role': "OWNER"},
    ])
    def test_bad_claims(self, payload):
        with pytest.raises(ValueError):
            actor_from_claims(payload)


class TestCurrentActorDependency:
    """Test bearer token handling in the FastAPI dependency"""

    def test_valid_token(self, settings):
        user_id = uuid4()
        token = create_access_token(user_id, UserRole.CONTRACTOR, settings)

        actor = get_current_actor(bearer(token), settings)

        assert actor.user_id == user_id
        assert actor.role == UserRole.CONTRACTOR

    def test_expired_token_is_401(self, settings):
        token = create_access_token(uuid4(), UserRole.MEMBER, settings, expires_in=timedelta(seconds=-10))

        with pytest.raises(HTTPException) as exc_info:
            get_current_actor(bearer(token), settings)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"

    def test_missing_role_claim_is_401(self, settings):
        token = jwt.encode({'sub': str(uuid4())}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(HTTPException) as exc_info:
            get_current_actor(bearer(token), settings)

        assert exc_info.value.status_code == 401
