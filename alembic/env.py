"""Alembic migration environment for the round engine schema."""
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# ORM modules must be imported so their tables land on Base.metadata
from peer_rounds.config import get_settings
from peer_rounds.database.base import Base
from peer_rounds.database.orm import (  # noqa: F401
    Agreement,
    Assessment,
    ContributorRoundCompensation,
    Organization,
    Round,
    User,
)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    """DATABASE_URL from settings; overrides sqlalchemy.url in alembic.ini."""
    return get_settings().database_url


def _is_sqlite(url: str) -> bool:
    # SQLite cannot ALTER constraints in place; batch mode recreates the table
    return url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit SQL for the migrations without connecting."""
    url = get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_is_sqlite(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply the migrations over a live connection."""
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = get_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=_is_sqlite(section["sqlalchemy.url"]),
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
