"""
Alembic migration environment configuration.

Each league has its own database; pick the one to migrate with `-x league=`:

    alembic -x league=atp upgrade head
    alembic -x league=wta upgrade head

Only the `ranking` table is managed here. The other tables are created and
filled by the import pipeline, so autogenerate is restricted to `ranking`.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from tennisrank.config import League, settings
from tennisrank.db.models import Base

MANAGED_TABLES = {"ranking"}

config = context.config

league = League(context.get_x_argument(as_dictionary=True).get("league", League.ATP.value))
config.set_main_option("sqlalchemy.url", settings.database_url_for(league))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to):
    if type_ == "table":
        return name in MANAGED_TABLES
    table = getattr(obj, "table", None)
    if table is not None:
        return table.name in MANAGED_TABLES
    return True


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode (SQL script, no connection).

    Usage:
        alembic -x league=atp upgrade head --sql > migration.sql
    """
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against the league database."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,  # Don't pool connections for migrations
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
