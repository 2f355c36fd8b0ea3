from logging.config import fileConfig
from typing import Any

from sqlalchemy import engine_from_config, pool
from sqlalchemy.schema import CreateSchema

from alembic import context  # type: ignore[attr-defined]
from story_market.config import DATABASE_URL, SCHEMA
from story_market.models.base import Base
from story_market.models.bookings import Booking  # noqa: F401
from story_market.models.fees import FeeStructure  # noqa: F401
from story_market.models.listings import Listing  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

config.set_main_option("sqlalchemy.url", DATABASE_URL)


def include_object(object_: Any, name: str, type_: str, reflected: bool, compare_to: Any) -> bool:
    """Autogenerate only looks at the marketplace schema."""
    return getattr(object_, "schema", SCHEMA) == SCHEMA


def skip_empty_revisions(context_: Any, revision: Any, directives: list[Any]) -> None:
    script = directives[0]
    if config.cmd_opts and getattr(config.cmd_opts, "autogenerate", False) and script.upgrade_ops.is_empty():
        directives[:] = []


def marketplace_options() -> dict[str, Any]:
    return {
        "target_metadata": Base.metadata,
        "include_schemas": True,
        "include_object": include_object,
        "version_table_schema": SCHEMA,
        "compare_type": True,
        "process_revision_directives": skip_empty_revisions,
    }


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **marketplace_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Migrate a live database; the schema holds the version table so it is created first."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        connection.execute(CreateSchema(SCHEMA, if_not_exists=True))
        connection.commit()

        context.configure(connection=connection, **marketplace_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
