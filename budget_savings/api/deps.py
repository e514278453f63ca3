"""
FastAPI Dependencies
"""

from typing import AsyncGenerator
from fastapi.requests import HTTPConnection
from sqlalchemy.ext.asyncio import AsyncSession
from budget_savings.core.database import async_session
from budget_savings.services.deposit_ledger import DepositLedger
from budget_savings.services.subscriptions import SnapshotFeed

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency"""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()

def get_feed(connection: HTTPConnection) -> SnapshotFeed:
    """Application-wide snapshot feed"""
    return connection.app.state.feed

def get_deposit_ledger(connection: HTTPConnection) -> DepositLedger:
    """Application-wide deposit ledger (holds the per-goal locks)"""
    return connection.app.state.deposit_ledger
