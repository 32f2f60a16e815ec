"""Alembic migration environment configuration (sync SQLAlchemy)."""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

# Import Base first
from db.base import Base

# Import all models here so Alembic can detect them for autogenerate
from db.models import (  # noqa: F401
    DataPass,
    DataPassVersion,
    Detector,
    Environment,
    EnvironmentHistory,
    GaqDetector,
    LhcPeriod,
    Log,
    QcFlag,
    QcFlagEffectivePeriod,
    QcFlagType,
    QcFlagVerification,
    Run,
    RunType,
    SimulationPass,
    Tag,
    User,
)

# this is the Alembic Config object
config = context.config

# Get database URL from environment (takes precedence) or alembic.ini
database_url = os.getenv("DATABASE_URL")
if database_url:
    config.set_main_option("sqlalchemy.url", database_url)

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (sync)."""
    url = config.get_main_option("sqlalchemy.url")
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
