"""
Alembic Migration Environment
===============================

What:  Runs the scholar/sponsor migrations against the async engine.
How:   The URL comes from DATABASE_URL (application settings) unless one is
       passed on the command line; migrations run through
       connection.run_sync() on an unpooled async engine.
Who:   `alembic upgrade head` and friends, run from the backend directory.

Examples:
    alembic upgrade head
    alembic -x database_url=sqlite+aiosqlite:///./dev.db upgrade head
    alembic revision --autogenerate -m "add scholar phone"

SQLite (local development) cannot ALTER most columns in place, so its
migrations run in batch mode, which rebuilds the table instead.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from scholar_registry.config import settings
from scholar_registry.database import Base

# Registers scholars and sponsors with Base.metadata for --autogenerate
import scholar_registry.models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    """`-x database_url=...` wins over DATABASE_URL."""
    return context.get_x_argument(as_dictionary=True).get("database_url", settings.database_url)


def configure_context(**options) -> None:
    url = options.get("url") or database_url()
    context.configure(
        target_metadata=target_metadata,
        # JSON vs JSONB and String lengths matter for major/institution/image
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **options,
    )


def run_migrations_offline() -> None:
    """Emit migration SQL to stdout without connecting."""
    configure_context(
        url=database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_on(connection: Connection) -> None:
    configure_context(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = database_url()
    connectable = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(run_migrations_on)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
