"""
Pytest configuration and fixtures.

Provides reusable fixtures for FastAPI testing:
- app: The FastAPI application instance
- engine: In-memory SQLite engine with every table created
- db_session: Database session bound to the test engine
- client: Sync TestClient whose get_db dependency uses the test engine
- auth_headers: Builds Authorization headers for a session token
"""

from collections.abc import Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from apps.api.auth.security import create_access_token
from apps.api.db import build_engine, get_db
import db.models  # noqa: F401
from db.base import Base


# =============================================================================
# App Fixture
# =============================================================================


@pytest.fixture(scope="session")
def app() -> FastAPI:
    """
    Import and return the FastAPI application.

    Scope: session (one app instance for the whole run)
    """
    from apps.api.main import app as fastapi_app

    return fastapi_app


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database per test, shared by every session through StaticPool."""
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Session used by tests to seed and inspect data."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# Client Fixture
# =============================================================================


@pytest.fixture
def client(app: FastAPI, session_factory: sessionmaker) -> Generator[TestClient, None, None]:
    """
    Create a TestClient for the FastAPI app.

    Scope: function (fresh client per test)
    Requests get sessions on the test engine.
    """

    def override_get_db() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Auth Fixtures
# =============================================================================


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Factory of Authorization headers.

    Usage:
        client.post("/api/logs", json=..., headers=auth_headers())
        client.delete("/api/qcFlags/1", headers=auth_headers(access=["admin"]))
    """

    def _headers(
        external_id: int = 1,
        name: str = "John Doe",
        access: list[str] | None = None,
    ) -> dict[str, str]:
        token = create_access_token(
            external_id=external_id,
            username=name.lower().replace(" ", ""),
            name=name,
            access=access,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
