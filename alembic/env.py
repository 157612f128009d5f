import asyncio
import os, sys
from logging.config import fileConfig
from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

# Ensure the project root is importable so repos.models resolves
sys.path.insert(0, os.getcwd())

# Load .env (local) or platform env vars
load_dotenv()

from repos.database import normalize_database_url

# Same URL rules as the application (async drivers)
config = context.config
config.set_main_option(
    "sqlalchemy.url",
    normalize_database_url(os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./dev.db")))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from repos.models import Base

target_metadata = Base.metadata


def run_migrations_offline():
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
