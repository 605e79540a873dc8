"""Shared fixtures: a throwaway SQLite store, an app client and signed tokens."""

import asyncio
import os
import tempfile
from pathlib import Path

_TMP_DIR = Path(tempfile.mkdtemp(prefix="examprep-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR / 'app.db'}")
os.environ.setdefault("SEED_ON_STARTUP", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from examprep.db import Base, get_db, get_session_factory  # noqa: E402
from examprep.main import app  # noqa: E402
from examprep.services.question_catalog import (  # noqa: E402
    QuestionCatalogService,
    load_local_catalog,
)
from examprep.services.realtime import realtime_hub  # noqa: E402

from .factories import token_for  # noqa: E402


@pytest.fixture
def session_factory(tmp_path):
    """Session factory over a fresh SQLite file for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_realtime():
    yield
    realtime_hub.clear()


@pytest.fixture
def seeded_catalog(session_factory):
    """The bundled catalog stored in the test database, with store ids."""

    async def seed():
        async with session_factory() as session:
            service = QuestionCatalogService(session)
            await service.seed(load_local_catalog())
            await session.commit()
            return await service.all_questions()

    return asyncio.run(seed())


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {token_for('user-1', email='asha@example.com')}"}


@pytest.fixture
def other_headers():
    return {"Authorization": f"Bearer {token_for('user-2', email='ravi@example.com')}"}
