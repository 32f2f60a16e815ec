"""
Database connection setup (sync SQLAlchemy).
"""

from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from apps.api.config import get_settings


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine. SQLite connections get foreign keys enforced."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(database_url, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(database_url, pool_pre_ping=True, **kwargs)


# --- Engine ---
engine = build_engine(get_settings().database_url)

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


# --- Dependency ---
def get_db() -> Generator[Session, None, None]:
    """Yield a database session. Use as FastAPI dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
