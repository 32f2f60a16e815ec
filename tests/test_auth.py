"""Tests for session tokens and access control."""

from collections.abc import Callable
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import resolve_access
from apps.api.auth.schemas import SessionUser
from apps.api.auth.security import create_access_token, decode_access_token
from db.models import User


class TestTokens:
    """Tests for token encoding and decoding."""

    def test_round_trip(self) -> None:
        token = create_access_token(external_id=7, username="jdoe", name="John Doe", access=["admin"])

        session = SessionUser.model_validate(decode_access_token(token))

        assert session.external_id == 7
        assert session.access == ["admin"]
        assert session.has_any_role(["admin", "guest"])

    def test_expired_token(self) -> None:
        token = create_access_token(
            external_id=7, username="jdoe", name="John Doe", expires_delta=timedelta(seconds=-1)
        )

        assert decode_access_token(token) is None

    def test_tampered_token(self) -> None:
        token = create_access_token(external_id=7, username="jdoe", name="John Doe")

        assert decode_access_token(token + "x") is None

    def test_access_as_comma_separated_string(self) -> None:
        session = SessionUser.model_validate(
            {"id": 1, "username": "jdoe", "name": "John Doe", "access": "admin, guest"}
        )

        assert session.access == ["admin", "guest"]


class TestResolveAccess:
    """Tests for access args merging."""

    def test_defaults_to_public(self) -> None:
        assert resolve_access() == {"public": True, "roles": []}

    def test_most_specific_public_wins_and_roles_accumulate(self) -> None:
        access = resolve_access({"public": False, "roles": ["guest"]}, {"roles": ["admin"]})

        assert access == {"public": False, "roles": ["guest", "admin"]}


class TestRequestAuthentication:
    """Tests for authentication of requests."""

    def test_invalid_token(self, client: TestClient) -> None:
        response = client.post(
            "/api/logs",
            json={"title": "First", "text": "Hello"},
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401
        assert response.json()["errors"][0]["detail"] == "Invalid or expired token"

    def test_token_in_query(self, client: TestClient) -> None:
        token = create_access_token(external_id=1, username="jdoe", name="John Doe")

        response = client.post("/api/logs", params={"token": token}, json={"title": "First", "text": "Hello"})

        assert response.status_code == 201

    @pytest.mark.parametrize("path", ["/api/runs", "/api/logs", "/api/tags", "/api/qcFlagTypes"])
    def test_reads_are_public(self, client: TestClient, path: str) -> None:
        assert client.get(path).status_code == 200

    def test_user_created_on_first_write_and_renamed_later(
        self,
        client: TestClient,
        db_session: Session,
        auth_headers: Callable[..., dict[str, str]],
    ) -> None:
        client.post("/api/logs", json={"title": "First", "text": "Hello"}, headers=auth_headers(name="John Doe"))
        client.post("/api/logs", json={"title": "Second", "text": "Hello"}, headers=auth_headers(name="John D."))

        users = db_session.execute(select(User)).scalars().all()
        assert [(user.external_id, user.name) for user in users] == [(1, "John D.")]
