"""Alembic environment — runs revisions against DATABASE_URL_SYNC (psycopg2)."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from timeoff.config import settings
from timeoff.database import Base

# Import ALL model modules so autogenerate sees every table
import timeoff.absences.models  # noqa: F401
import timeoff.calendars.models  # noqa: F401
import timeoff.common.audit  # noqa: F401
import timeoff.core_hr.models  # noqa: F401
import timeoff.vacations.models  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL_SYNC)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=settings.DATABASE_URL_SYNC,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
