"""
Alembic environment for the hotel booking schema.

The target database defaults to DATABASE_URL_SYNC and can be overridden per
run with ``alembic -x db_url=sqlite:///hotel.db upgrade head``. SQLite runs in
batch mode so column changes survive its limited ALTER TABLE.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from hotel_booking.core.config import get_settings
from hotel_booking.db.base import Base
import hotel_booking.models  # noqa: F401  registers users, rooms, reservations

config = context.config

x_args = context.get_x_argument(as_dictionary=True)
config.set_main_option("sqlalchemy.url", x_args.get("db_url") or get_settings().DATABASE_URL_SYNC)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=config.get_main_option("sqlalchemy.url").startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
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
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
