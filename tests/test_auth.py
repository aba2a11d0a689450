"""
Tests for JWT Session Endpoints

Tests cover:
- GET /auth/me with valid, invalid and missing tokens
- POST /auth/refresh from body and cookie
- POST /auth/logout
- Token type separation (refresh tokens are not access tokens)
"""

from datetime import timedelta

from fastapi import status
from fastapi.testclient import TestClient

from booknest.models.user import User
from booknest.services.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_token_type,
)


class TestTokens:
    def test_access_token_round_trip(self):
        token = create_access_token({"sub": "42"})

        payload = verify_token_type(token, ACCESS_TOKEN)

        assert payload["sub"] == "42"
        assert payload["type"] == "access"

    def test_refresh_token_is_not_an_access_token(self):
        token = create_refresh_token({"sub": "42"})

        assert verify_token_type(token, ACCESS_TOKEN) is None
        assert verify_token_type(token, REFRESH_TOKEN) is not None

    def test_expired_token(self):
        token = create_access_token({"sub": "42"}, expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_garbage_token(self):
        assert decode_token("not-a-jwt") is None


class TestGetMe:
    def test_me(self, client: TestClient, sample_user: User, auth_headers):
        response = client.get("/api/v1/auth/me", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == sample_user.id
        assert data["email"] == "testuser@example.com"
        assert data["auth_provider"] == "github"

    def test_me_without_token(self, client: TestClient):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_me_with_refresh_token(self, client: TestClient, sample_user: User):
        token = create_refresh_token({"sub": str(sample_user.id)})

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_me_for_deleted_user(self, client: TestClient):
        token = create_access_token({"sub": "99999"})

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_inactive_user(self, client: TestClient, db_session, sample_user: User, auth_headers):
        sample_user.is_active = False
        db_session.commit()

        response = client.get("/api/v1/auth/me", headers=auth_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestRefresh:
    def test_refresh_from_body(self, client: TestClient, sample_user: User):
        token = create_refresh_token({"sub": str(sample_user.id)})

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": token})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert verify_token_type(data["access_token"], ACCESS_TOKEN)["sub"] == str(sample_user.id)
        assert data["expires_in"] == 15 * 60

    def test_refresh_from_cookie(self, client: TestClient, sample_user: User):
        client.cookies.set("refresh_token", create_refresh_token({"sub": str(sample_user.id)}))

        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == status.HTTP_200_OK

    def test_access_token_cannot_refresh(self, client: TestClient, sample_user: User):
        token = create_access_token({"sub": str(sample_user.id)})

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": token})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh_without_token(self, client: TestClient):
        response = client.post("/api/v1/auth/refresh", json={})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestLogout:
    def test_logout_clears_cookie(self, client: TestClient, auth_headers):
        response = client.post("/api/v1/auth/logout", headers=auth_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert "refresh_token" in response.headers.get("set-cookie", "")

    def test_logout_requires_auth(self, client: TestClient):
        response = client.post("/api/v1/auth/logout")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestOptionalAuthentication:
    def test_invalid_token_on_community_endpoint_is_anonymous(
        self, client: TestClient, sample_book
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/comments",
            json={"content": "hi"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["comment"]["author_name"] == "Anonymous"
