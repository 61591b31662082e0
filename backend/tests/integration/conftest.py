"""SQLite-backed fixtures for the integration tests."""

import pytest
import pytest_asyncio

from newsroom.infrastructure.database import Base, build_engine, build_session_factory
from newsroom.infrastructure.database.unit_of_work import sqlalchemy_uow_factory


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'newsroom.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def uow_factory(session_factory):
    return sqlalchemy_uow_factory(session_factory)
