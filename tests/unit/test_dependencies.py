"""Unit tests for the authentication dependencies.

Each gate is mounted on a minimal FastAPI app that shares the exception
handlers of the real application.
"""

import asyncio
from typing import Optional

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from streamhub.api.dependencies import (
    AuthContext,
    optional_auth,
    require_access_token,
    require_admin,
    require_admin_or_owner,
    require_refresh_token,
)
from streamhub.main import register_exception_handlers
from streamhub.models.user import User, UserDraft


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def gate_app(settings, store, token_issuer):
    app = FastAPI()
    register_exception_handlers(app, settings)
    app.state.user_store = store
    app.state.token_issuer = token_issuer

    @app.get("/access")
    async def access(request: Request, context: AuthContext = Depends(require_access_token)):
        assert request.state.auth is context
        return {"user_id": str(context.user_id)}

    @app.post("/refresh")
    async def refresh(context: AuthContext = Depends(require_refresh_token)):
        return {"user_id": str(context.user_id), "kind": context.payload.kind.value}

    @app.get("/admin")
    async def admin(user: User = Depends(require_admin)):
        return {"user_id": str(user.id)}

    @app.get("/owned/{owner_id}")
    async def owned(owner_id: str, user: User = Depends(require_admin_or_owner("owner_id"))):
        return {"user_id": str(user.id)}

    @app.get("/optional")
    async def optional(request: Request, context: Optional[AuthContext] = Depends(optional_auth)):
        return {
            "user_id": str(context.user_id) if context else None,
            "attached": request.state.auth is not None,
        }

    return app


@pytest.fixture
def gate_client(gate_app):
    return TestClient(gate_app)


@pytest.fixture
def create_user(store):
    """Insert a user directly into the store (sync tests)."""

    def _create(email: str = "ann@x.com", is_admin: bool = False) -> User:
        draft = UserDraft(name="Ann", email=email, password_hash="$2b$04$x", is_admin=is_admin)
        return asyncio.run(store.create(draft))

    return _create


class TestRequireAccessToken:
    def test_valid_token(self, gate_client, token_issuer, create_user):
        user = create_user()
        token = token_issuer.issue_access_token(str(user.id))

        response = gate_client.get("/access", headers=bearer(token))

        assert response.status_code == 200
        assert response.json()["user_id"] == str(user.id)

    def test_missing_header(self, gate_client):
        response = gate_client.get("/access")

        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_MISSING"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_non_bearer_scheme(self, gate_client):
        response = gate_client.get("/access", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_MISSING"

    def test_expired_token(self, gate_client, token_issuer, clock):
        token = token_issuer.issue_access_token("00000000-0000-0000-0000-000000000001")
        clock.advance(900)

        response = gate_client.get("/access", headers=bearer(token))

        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_EXPIRED"

    def test_refresh_token_rejected(self, gate_client, token_issuer):
        token = token_issuer.issue_refresh_token("00000000-0000-0000-0000-000000000001")

        response = gate_client.get("/access", headers=bearer(token))

        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_INVALID"

    def test_non_uuid_subject_rejected(self, gate_client, token_issuer):
        token = token_issuer.issue_access_token("not-a-uuid")
        response = gate_client.get("/access", headers=bearer(token))
        assert response.json()["code"] == "TOKEN_INVALID"


class TestRequireRefreshToken:
    def test_valid_token(self, gate_client, token_issuer):
        subject = "00000000-0000-0000-0000-000000000002"
        token = token_issuer.issue_refresh_token(subject)

        response = gate_client.post("/refresh", json={"refreshToken": token})

        assert response.status_code == 200
        assert response.json() == {"user_id": subject, "kind": "refresh"}

    def test_missing_body(self, gate_client):
        response = gate_client.post("/refresh")
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_missing_field(self, gate_client):
        response = gate_client.post("/refresh", json={})
        assert response.status_code == 400

    def test_expired(self, gate_client, token_issuer, clock):
        token = token_issuer.issue_refresh_token("00000000-0000-0000-0000-000000000002")
        clock.advance(7 * 24 * 60 * 60)

        response = gate_client.post("/refresh", json={"refreshToken": token})

        assert response.status_code == 401
        assert response.json()["code"] == "REFRESH_TOKEN_EXPIRED"

    def test_access_token_rejected(self, gate_client, token_issuer):
        token = token_issuer.issue_access_token("00000000-0000-0000-0000-000000000002")
        response = gate_client.post("/refresh", json={"refreshToken": token})
        assert response.json()["code"] == "TOKEN_INVALID"


class TestRequireAdmin:
    def test_admin_allowed(self, gate_client, token_issuer, create_user):
        admin = create_user(is_admin=True)
        token = token_issuer.issue_access_token(str(admin.id))

        response = gate_client.get("/admin", headers=bearer(token))

        assert response.status_code == 200

    def test_non_admin_is_forbidden_not_unauthorized(self, gate_client, token_issuer, create_user):
        user = create_user()
        token = token_issuer.issue_access_token(str(user.id))

        response = gate_client.get("/admin", headers=bearer(token))

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    def test_deleted_user(self, gate_client, token_issuer):
        token = token_issuer.issue_access_token("00000000-0000-0000-0000-000000000003")

        response = gate_client.get("/admin", headers=bearer(token))

        assert response.status_code == 401
        assert response.json()["code"] == "USER_NOT_FOUND"

    def test_no_token(self, gate_client):
        assert gate_client.get("/admin").status_code == 401


class TestRequireAdminOrOwner:
    def test_owner_allowed(self, gate_client, token_issuer, create_user):
        user = create_user()
        token = token_issuer.issue_access_token(str(user.id))

        response = gate_client.get(f"/owned/{user.id}", headers=bearer(token))

        assert response.status_code == 200

    def test_other_user_forbidden(self, gate_client, token_issuer, create_user):
        user = create_user()
        other = create_user(email="bob@x.com")
        token = token_issuer.issue_access_token(str(user.id))

        response = gate_client.get(f"/owned/{other.id}", headers=bearer(token))

        assert response.status_code == 403

    def test_admin_allowed_for_others(self, gate_client, token_issuer, create_user):
        admin = create_user(is_admin=True)
        other = create_user(email="bob@x.com")
        token = token_issuer.issue_access_token(str(admin.id))

        response = gate_client.get(f"/owned/{other.id}", headers=bearer(token))

        assert response.status_code == 200

    def test_malformed_owner_id_forbidden(self, gate_client, token_issuer, create_user):
        user = create_user()
        token = token_issuer.issue_access_token(str(user.id))

        response = gate_client.get("/owned/not-a-uuid", headers=bearer(token))

        assert response.status_code == 403


class TestOptionalAuth:
    def test_no_header(self, gate_client):
        response = gate_client.get("/optional")
        assert response.json() == {"user_id": None, "attached": False}

    def test_valid_token_attaches_identity(self, gate_client, token_issuer):
        subject = "00000000-0000-0000-0000-000000000004"
        token = token_issuer.issue_access_token(subject)

        response = gate_client.get("/optional", headers=bearer(token))

        assert response.json() == {"user_id": subject, "attached": True}

    def test_invalid_token_is_ignored(self, gate_client):
        response = gate_client.get("/optional", headers=bearer("garbage"))

        assert response.status_code == 200
        assert response.json() == {"user_id": None, "attached": False}

    def test_expired_token_is_ignored(self, gate_client, token_issuer, clock):
        token = token_issuer.issue_access_token("00000000-0000-0000-0000-000000000004")
        clock.advance(901)

        response = gate_client.get("/optional", headers=bearer(token))

        assert response.json()["user_id"] is None
