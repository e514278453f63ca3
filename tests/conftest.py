import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./.pytest_budget_savings.db")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from budget_savings.api.deps import get_db, get_deposit_ledger, get_feed
from budget_savings.core.database import Base
from budget_savings.models import SavingsGoal
from budget_savings.services.deposit_ledger import DepositLedger
from budget_savings.services.subscriptions import SnapshotFeed
import budget_savings.models

@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session

@pytest.fixture
def feed():
    return SnapshotFeed()

@pytest.fixture
def ledger(session_factory, feed):
    return DepositLedger(session_factory, feed)

@pytest.fixture
def make_goal(session_factory):
    async def _make_goal(owner_id="user-1", **fields):
        data = {"name": "Vacation", "target_amount": 1000, "current_amount": 0}
        data.update(fields)
        async with session_factory() as session:
            goal = SavingsGoal(owner_id=owner_id, **data)
            session.add(goal)
            await session.commit()
            return goal.id
    return _make_goal

@pytest.fixture
async def client(session_factory, feed, ledger):
    from budget_savings.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_feed] = lambda: feed
    app.dependency_overrides[get_deposit_ledger] = lambda: ledger

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
