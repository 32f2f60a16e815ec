"""FastAPI dependencies for authentication and authorization."""

from collections.abc import Callable, Mapping
from typing import Any

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session

from apps.api.auth.schemas import SessionUser
from apps.api.auth.security import decode_access_token
from apps.api.auth.service import get_or_create_user
from apps.api.db import get_db
from db.models import User
from packages.bookkeeping.enums import Role
from packages.shared.deepmerge import deep_merge
from packages.shared.exceptions import AccessDeniedError, UnauthorizedError

# Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)

# Access args of a route when neither its router nor itself says otherwise
DEFAULT_ACCESS: dict[str, Any] = {"public": True, "roles": []}

# Routers that only serve authenticated sessions
PROTECTED: dict[str, Any] = {"public": False}

# Data pass QC management: freezing and GAQ detectors
QC_ADMIN_ROLES = [Role.ADMIN.value, Role.DPG_ASYNC_QC_ADMIN.value]


# =============================================================================
# Session
# =============================================================================


def get_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    token: str | None = Query(default=None, description="Session token"),
) -> str | None:
    """Extract the session token from the Authorization header or the query."""
    if credentials:
        return credentials.credentials
    return token


def get_session(token: str | None = Depends(get_token)) -> SessionUser | None:
    """Decode the session of the request, None for anonymous requests."""
    if not token:
        return None

    payload = decode_access_token(token)
    if not payload:
        raise UnauthorizedError("Invalid or expired token")

    try:
        return SessionUser.model_validate(payload)
    except ValidationError:
        raise UnauthorizedError("Invalid token payload") from None


def require_session(session: SessionUser | None = Depends(get_session)) -> SessionUser:
    if session is None:
        raise UnauthorizedError()
    return session


def get_current_user(
    session: SessionUser = Depends(require_session),
    db: Session = Depends(get_db),
) -> User:
    """The stored user behind the session."""
    return get_or_create_user(db, session)


# =============================================================================
# Access control
# =============================================================================


def resolve_access(*levels: Mapping[str, Any]) -> dict[str, Any]:
    """Merge access args from the most general level to the most specific one.

    Role lists accumulate, ``public`` is decided by the most specific level
    that sets it.
    """
    access = dict(DEFAULT_ACCESS)
    for level in levels:
        access = deep_merge(access, level)
    return access


def require_access(*levels: Mapping[str, Any]) -> Callable[..., SessionUser | None]:
    """Dependency factory enforcing the merged access args of a route.

    Usage:
        @router.delete("/{id}")
        def delete(session=Depends(require_access(ROUTER_ACCESS, {"roles": ["admin"]}))):
            ...
    """
    access = resolve_access(*levels)
    roles = list(dict.fromkeys(access.get("roles") or []))
    public = bool(access.get("public")) and not roles

    def access_checker(session: SessionUser | None = Depends(get_session)) -> SessionUser | None:
        if public:
            return session
        if session is None:
            raise UnauthorizedError()
        if roles and not session.has_any_role(roles):
            raise AccessDeniedError(f"One of the following roles is required: {', '.join(roles)}")
        return session

    return access_checker
