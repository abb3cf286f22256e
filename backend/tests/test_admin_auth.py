"""
Tests for admin login, logout revocation, and session checks.
"""
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from jose import jwt

from conftest import ADMIN_PASSWORD
from psychevaluator.admin.auth import AdminAuth
from psychevaluator.core.config import settings
from psychevaluator.core.error_responses import ErrorMessages
from psychevaluator.core.security import (
    authenticate_admin,
    create_admin_token,
    decode_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    def test_verify_password_with_bcrypt_hash(self):
        hashed = hash_password("my-secure-password")

        assert verify_password("my-secure-password", hashed) is True
        assert verify_password("wrong-password", hashed) is False

    def test_verify_password_with_empty_or_malformed_hash(self):
        assert verify_password("anything", "") is False
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_authenticate_admin(self):
        assert authenticate_admin("admin", ADMIN_PASSWORD) is True
        assert authenticate_admin("admin", "wrong") is False
        assert authenticate_admin("someone", ADMIN_PASSWORD) is False


class TestAdminToken:
    def test_token_carries_admin_claims(self):
        token, expires_at = create_admin_token("admin")
        payload = decode_token(token)

        assert payload["sub"] == "admin"
        assert payload["type"] == "admin"
        assert payload["jti"]
        assert payload["exp"] == int(expires_at.timestamp())

    def test_expired_token_does_not_decode(self):
        token, _ = create_admin_token("admin", expires_delta=timedelta(seconds=-5))
        assert decode_token(token) is None


class TestLoginEndpoint:
    async def test_login_success(self, client):
        response = await client.post(
            "/v1/admin/auth/login",
            json={"username": "admin", "password": ADMIN_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["expires_at"]

    async def test_login_wrong_password(self, client):
        response = await client.post(
            "/v1/admin/auth/login",
            json={"username": "admin", "password": "nope"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == ErrorMessages.INVALID_CREDENTIALS

    async def test_login_refused_when_not_configured(self, client):
        with patch.object(settings, "ADMIN_PASSWORD_HASH", ""):
            response = await client.post(
                "/v1/admin/auth/login",
                json={"username": "admin", "password": ADMIN_PASSWORD},
            )

        assert response.status_code == 503


class TestSessionChecks:
    async def test_me(self, client, admin_headers):
        response = await client.get("/v1/admin/auth/me", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["username"] == "admin"

    async def test_admin_routes_require_token(self, client, db_session):
        response = await client.get("/v1/admin/dashboard")
        assert response.status_code in (401, 403)

    async def test_garbage_token_rejected(self, client, db_session):
        response = await client.get(
            "/v1/admin/dashboard", headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401

    async def test_wrong_token_type_rejected(self, client, db_session):
        token = jwt.encode(
            {"sub": "admin", "type": "other", "jti": "x", "exp": 9999999999},
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )
        response = await client.get(
            "/v1/admin/dashboard", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == ErrorMessages.INVALID_TOKEN_TYPE

    async def test_logout_revokes_token(self, client, admin_headers):
        response = await client.post("/v1/admin/auth/logout", headers=admin_headers)
        assert response.status_code == 204

        response = await client.get("/v1/admin/auth/me", headers=admin_headers)
        assert response.status_code == 401

    async def test_revoked_token_no_longer_blocks_taking_a_test(
        self, client, admin_headers, published_test
    ):
        await client.post("/v1/admin/auth/logout", headers=admin_headers)

        response = await client.post(
            f"/v1/tests/{published_test.id}/submissions",
            json={"full_name": "Jane", "email": "jane@example.com"},
            headers=admin_headers,
        )

        assert response.status_code == 201


class TestAdminBrowserAuth:
    @pytest.fixture
    def admin_auth(self):
        return AdminAuth(secret_key="test-secret-key")

    @pytest.fixture
    def mock_request(self):
        request = MagicMock()
        request.session = {}
        return request

    async def test_login_success(self, admin_auth, mock_request):
        mock_request.form = AsyncMock(
            return_value={"username": "admin", "password": ADMIN_PASSWORD}
        )

        assert await admin_auth.login(mock_request) is True
        assert "token" in mock_request.session
        assert await admin_auth.authenticate(mock_request) is True

    async def test_login_failure(self, admin_auth, mock_request):
        mock_request.form = AsyncMock(
            return_value={"username": "admin", "password": "wrong"}
        )

        assert await admin_auth.login(mock_request) is False
        assert await admin_auth.authenticate(mock_request) is False

    async def test_logout_clears_session(self, admin_auth, mock_request):
        mock_request.session = {"token": "abc"}

        assert await admin_auth.logout(mock_request) is True
        assert mock_request.session == {}
