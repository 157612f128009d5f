"""Shared test fixtures for the OSZap test suite."""

import asyncio
import os
import tempfile

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from .helpers import FakeGateway, FakeLLM


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    Module-level config reads os.environ on import, so this has to run first.
    """
    os.environ.setdefault("OPENAI_API_KEY", "test-openai-key-123")
    os.environ.setdefault("EVOLUTION_API_URL", "http://evolution.test")
    os.environ.setdefault("EVOLUTION_API_KEY", "test-evolution-key")
    os.environ.setdefault("EVOLUTION_INSTANCE_NAME", "OSZapTest")
    os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    os.environ.setdefault("PDF_TEMP_DIR", tempfile.mkdtemp(prefix="oszap-pdf-"))
    os.environ.setdefault("BASE_URL", "http://oszap.test")


# ── Database ─────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine():
    from repos.models import Base

    engine = create_async_engine("sqlite+aiosqlite://",
                                 poolclass=StaticPool,
                                 connect_args={"check_same_thread": False})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(session):
    from repos.user_repo import UserRepo

    return await UserRepo(session).get_or_create("5511999990000", "Carlos")


@pytest.fixture
def ctx(user):
    from modules.assistant.results import ToolContext

    return ToolContext(user_id=user.id, user_phone=user.telefone, user_name=user.nome)


@pytest.fixture
def api_session_factory(tmp_path):
    """File-backed database for TestClient tests (the app runs in its own loop)."""
    from repos.models import Base

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def client(api_session_factory):
    """FastAPI test client with every router's session dependency overridden."""
    from fastapi.testclient import TestClient

    import api.balance
    import api.leads
    import api.orders
    from main import app

    async def _session():
        async with api_session_factory() as session:
            yield session

    for module in (api.leads, api.orders, api.balance):
        app.dependency_overrides[module.get_session] = _session
    yield TestClient(app)
    app.dependency_overrides.clear()


# ── Fakes for external services ──────────────────────────────────────


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def llm():
    return FakeLLM()
