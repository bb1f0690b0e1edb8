"""
Migration environment for the booking schema.

Online runs use the sync driver URL from settings. SQLite cannot ALTER most
constraints in place, so it migrates in batch mode.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from companion_booking.db.base import Base
from companion_booking.models import (  # noqa: F401 - registers tables on Base.metadata
    Block,
    Booking,
    ChatWindow,
    CompanionSchedule,
    Message,
    Notification,
    PaymentRequest,
)
from companion_booking.core.config import get_settings

config = context.config
settings = get_settings()

config.set_main_option("sqlalchemy.url", settings.DATABASE_URL_SYNC)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
        compare_type=True,
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
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
