"""User service layer."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.auth.schemas import SessionUser
from db.models import User
from packages.shared.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def get_user_by_external_id(db: Session, external_id: int) -> User | None:
    stmt = select(User).where(User.external_id == external_id)
    return db.execute(stmt).scalar_one_or_none()


def get_or_create_user(db: Session, session: SessionUser) -> User:
    """Return the user behind a session, creating it on first sight.

    The stored name follows the name carried by the latest token.
    """
    user = get_user_by_external_id(db, session.external_id)
    if user is None:
        user = User(external_id=session.external_id, name=session.name)
        db.add(user)
        db.flush()
        logger.info(f"Registered user {session.external_id} ({session.name})")
    elif user.name != session.name:
        user.name = session.name
        db.flush()
    return user


def get_user_or_fail(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user
