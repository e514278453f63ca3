"""
Record Service
Owner-scoped CRUD over the persisted collections, publishing a fresh
snapshot to subscribers after every write
"""

import logging
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import and_, case, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_savings.core.constants import PRIORITY_RANK
from budget_savings.core.database import Base
from budget_savings.core.datetime_utils import convert_timezone_aware_datetimes
from budget_savings.models import Deposit, Expense, IncomeStream, SavingsGoal
from budget_savings.services.subscriptions import Listener, SnapshotFeed, Unsubscribe

logger = logging.getLogger(__name__)

FETCH_ERRORS = {
    IncomeStream.__tablename__: "Failed to fetch income streams.",
    Expense.__tablename__: "Failed to fetch expenses.",
    SavingsGoal.__tablename__: "Failed to fetch savings goals.",
    Deposit.__tablename__: "Failed to fetch deposits.",
}

class RecordService:
    """
    CRUD for one model, restricted to a single owner's records
    """

    def __init__(self, db: AsyncSession, model: Type[Base], feed: Optional[SnapshotFeed] = None):
        self.db = db
        self.model = model
        self.feed = feed

    @property
    def collection(self) -> str:
        return self.model.__tablename__

    def _ordering(self) -> list:
        if self.model is SavingsGoal:
            # Highest priority first, newest first within a priority
            rank = case(PRIORITY_RANK, value=SavingsGoal.priority, else_=0)
            return [rank.desc(), SavingsGoal.created_at.desc(), SavingsGoal.id.desc()]
        if self.model is Deposit:
            return [Deposit.date.asc(), Deposit.id.asc()]
        return [self.model.created_at.desc(), self.model.id.desc()]

    def _accepts_null(self, field: str) -> bool:
        """Only optional columns without a default can be cleared"""
        column = self.model.__table__.columns.get(field)
        return column is not None and column.nullable and column.default is None

    async def list(self, owner_id: str) -> List[Any]:
        stmt = select(self.model).where(self.model.owner_id == owner_id).order_by(*self._ordering())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get(self, owner_id: str, record_id: int) -> Optional[Any]:
        stmt = select(self.model).where(
            and_(
                self.model.id == record_id,
                self.model.owner_id == owner_id
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, owner_id: str, data: Dict[str, Any]) -> Any:
        data = convert_timezone_aware_datetimes(dict(data))
        record = self.model(owner_id=owner_id, **data)
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)

        await self.publish(owner_id)
        return record

    async def update(self, owner_id: str, record_id: int, data: Dict[str, Any]) -> Optional[Any]:
        record = await self.get(owner_id, record_id)
        if record is None:
            return None

        for key, value in convert_timezone_aware_datetimes(dict(data)).items():
            if value is None and not self._accepts_null(key):
                continue
            setattr(record, key, value)

        await self.db.commit()
        await self.db.refresh(record)

        await self.publish(owner_id)
        return record

    async def delete(self, owner_id: str, record_id: int) -> bool:
        record = await self.get(owner_id, record_id)
        if record is None:
            return False

        if self.model is SavingsGoal:
            count_stmt = select(func.count(Deposit.id)).where(Deposit.goal_id == record.id)
            deposit_count = (await self.db.execute(count_stmt)).scalar() or 0
            if deposit_count:
                logger.info(f"Deleting goal {record.id} together with {deposit_count} deposits")
            await self.db.execute(delete(Deposit).where(Deposit.goal_id == record.id))

        await self.db.delete(record)
        await self.db.commit()

        await self.publish(owner_id)
        return True

    async def publish(self, owner_id: str) -> None:
        """Push the owner's current collection to its subscribers, if any"""
        if self.feed is None or not self.feed.has_listeners(self.collection, owner_id):
            return
        try:
            records = await self.list(owner_id)
        except SQLAlchemyError as e:
            logger.error(f"Could not refresh {self.collection} snapshot for owner {owner_id}: {e}")
            return
        self.feed.publish(self.collection, owner_id, records)

    async def subscribe(self, owner_id: str, callback: Listener) -> Optional[Unsubscribe]:
        """
        Deliver the current snapshot, then every later one, to callback.

        Returns the unsubscribe handle. If the initial query fails the
        callback receives an empty snapshot with an error message and
        None is returned.
        """
        try:
            records = await self.list(owner_id)
        except SQLAlchemyError as e:
            logger.error(f"Subscription to {self.collection} for owner {owner_id} failed: {e}")
            callback([], FETCH_ERRORS.get(self.collection, "Failed to fetch records."))
            return None

        if self.feed is not None:
            unsubscribe = self.feed.subscribe(self.collection, owner_id, callback)
        else:
            unsubscribe = lambda: None
        callback(records, None)
        return unsubscribe
