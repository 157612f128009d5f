# repos/database.py

import os
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker


def normalize_database_url(raw_url: str) -> str:
    """Patch legacy/missing asyncpg schemes (Heroku-style postgres:// URLs)."""
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return raw_url


DATABASE_URL = normalize_database_url(
    os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./dev.db"))

# SQL echo stays off, the request logs are noisy enough
async_engine = create_async_engine(DATABASE_URL, echo=False)

AsyncSessionLocal = sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_models():
    """Create any missing tables. Alembic handles real migrations."""
    from .models import Base

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
