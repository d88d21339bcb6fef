"""Unit tests for Pydantic models."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from streamhub.models.auth import (
    AuthResponse,
    ChangePasswordRequest,
    RegisterRequest,
    TokenPair,
    UserSummary,
)
from streamhub.models.token import TokenKind, TokenPayload
from streamhub.models.user import DEFAULT_AVATAR, User


def _make_user(**overrides) -> User:
    now = datetime.now(timezone.utc)
    fields = {
        "id": uuid4(),
        "email": "ann@x.com",
        "password_hash": "$2b$04$secret-hash",
        "name": "Ann",
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return User(**fields)


class TestUser:
    def test_defaults(self):
        user = _make_user()
        assert user.avatar == DEFAULT_AVATAR
        assert user.bio == ""
        assert user.is_admin is False
        assert user.is_active is True
        assert user.is_verified is False

    def test_password_hash_never_dumped(self):
        user = _make_user()

        assert "password_hash" not in user.model_dump()
        assert "secret-hash" not in user.model_dump_json()
        assert "secret-hash" not in repr(user)


class TestUserSummary:
    def test_from_user_uses_camel_case(self):
        user = _make_user(is_admin=True)

        data = UserSummary.from_user(user).model_dump(by_alias=True)

        assert data["isAdmin"] is True
        assert data["createdAt"] == user.created_at
        assert "passwordHash" not in data
        assert "password_hash" not in data


class TestRequests:
    def test_accepts_camel_case(self):
        request = RegisterRequest.model_validate(
            {"name": "Ann", "email": "ann@x.com", "password": "p", "confirmPassword": "p"}
        )
        assert request.confirm_password == "p"

    def test_accepts_snake_case(self):
        request = ChangePasswordRequest(current_password="a", new_password="b")
        assert request.current_password == "a"

    def test_fields_are_optional(self):
        request = RegisterRequest.model_validate({})
        assert request.email is None

    def test_rejects_wrong_types(self):
        with pytest.raises(ValidationError):
            RegisterRequest.model_validate({"email": ["ann@x.com"]})


class TestAuthResponse:
    def test_serializes_tokens_in_camel_case(self):
        response = AuthResponse(
            message="ok",
            user=UserSummary.from_user(_make_user()),
            tokens=TokenPair(access_token="a", refresh_token="r", expires_in=900),
        )

        data = response.model_dump(by_alias=True)

        assert data["tokens"] == {"accessToken": "a", "refreshToken": "r", "expiresIn": 900}


class TestTokenPayload:
    def test_round_trips_claims(self):
        payload = TokenPayload.model_validate(
            {"sub": "u1", "kind": "refresh", "iat": 100, "exp": 200}
        )

        assert payload.subject == "u1"
        assert payload.kind is TokenKind.REFRESH
        assert payload.to_claims() == {"sub": "u1", "kind": "refresh", "iat": 100, "exp": 200}

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            TokenPayload.model_validate({"sub": "u1", "kind": "admin", "iat": 1, "exp": 2})
