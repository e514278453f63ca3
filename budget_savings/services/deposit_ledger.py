"""
Deposit Ledger
Appends deposits and moves the goal balance in the same transaction
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple
from weakref import WeakValueDictionary

from sqlalchemy import and_, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from budget_savings.config import settings
from budget_savings.core.datetime_utils import utcnow
from budget_savings.core.exceptions import (
    BackendUnavailableError,
    BudgetSavingsError,
    GoalNotFoundError,
    NegativeDepositError,
    TransactionConflictError,
    ValidationError
)
from budget_savings.models import Deposit, SavingsGoal
from budget_savings.services.frequency import to_decimal
from budget_savings.services.records import RecordService
from budget_savings.services.subscriptions import SnapshotFeed

logger = logging.getLogger(__name__)

# Amount columns are Numeric(12, 2)
CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("1E10")

# Serialization failure, deadlock, lock not available
CONFLICT_SQLSTATES = {"40001", "40P01", "55P03"}

@dataclass
class DepositResult:
    success: bool
    deposit_id: Optional[int] = None
    current_amount: Optional[Decimal] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

def parse_deposit_amount(amount: Any) -> Decimal:
    """Strict amount parsing: garbage is a validation error, not zero"""
    if amount is None or isinstance(amount, bool):
        raise ValidationError("Deposit amount must be a number.")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Deposit amount must be a number.")
    if not value.is_finite():
        raise ValidationError("Deposit amount must be a number.")
    if value < 0:
        raise NegativeDepositError()
    if value >= MAX_AMOUNT:
        raise ValidationError("Deposit amount is too large.")
    if value != value.quantize(CENT):
        raise ValidationError("Deposit amount can have at most 2 decimal places.")
    return value.quantize(CENT)

def is_write_conflict(error: DBAPIError) -> bool:
    """True for driver errors that mean another writer got there first"""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in CONFLICT_SQLSTATES:
        return True
    # SQLite reports lock contention only in the message
    return "locked" in str(orig).lower()

class DepositLedger:
    """
    Records deposits against savings goals.

    Each deposit runs as one transaction: lock and read the goal, append the
    deposit, write the new balance. The balance UPDATE is guarded by the
    goal's version counter, so a writer that read a stale balance is rolled
    back and retried rather than overwriting a concurrent deposit. Within
    this process, deposits to the same goal also queue on a per-goal lock.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        feed: Optional[SnapshotFeed] = None,
        max_retries: Optional[int] = None
    ):
        self.session_factory = session_factory
        self.feed = feed
        self.max_retries = settings.DEPOSIT_MAX_RETRIES if max_retries is None else max_retries
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._locks: "WeakValueDictionary[Any, asyncio.Lock]" = WeakValueDictionary()

    def _lock_for(self, goal_id: Any) -> asyncio.Lock:
        lock = self._locks.get(goal_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[goal_id] = lock
        return lock

    async def record_deposit(self, owner_id: str, goal_id: Any, amount: Any) -> DepositResult:
        """
        Add `amount` to the goal and append a deposit record, all or nothing.
        Failures come back as an error result with a user-facing message.
        """
        try:
            async with self._lock_for(goal_id):
                deposit_id, balance = await self._commit_with_retry(owner_id, goal_id, amount)
        except BackendUnavailableError as e:
            logger.error(f"Deposit to goal {goal_id} failed: {e.message}")
            return DepositResult(success=False, error=e.message, error_code=e.code)
        except BudgetSavingsError as e:
            logger.info(f"Deposit to goal {goal_id} rejected: {e.message}")
            return DepositResult(success=False, error=e.message, error_code=e.code)

        logger.info(f"Recorded deposit {deposit_id} of {amount} to goal {goal_id}, balance now {balance}")
        await self._publish(owner_id)

        return DepositResult(
            success=True,
            deposit_id=deposit_id,
            current_amount=balance
        )

    async def _commit_with_retry(self, owner_id: str, goal_id: Any, amount: Any) -> Tuple[int, Decimal]:
        for attempt in range(1, self.max_retries + 1):
            try:
                return await self._apply(owner_id, goal_id, amount)
            except (StaleDataError, DBAPIError) as e:
                if isinstance(e, DBAPIError) and not is_write_conflict(e):
                    raise BackendUnavailableError(f"Failed to record deposit: {e.__class__.__name__}") from e
                logger.warning(
                    f"Deposit to goal {goal_id} hit a write conflict "
                    f"(attempt {attempt}/{self.max_retries}): {e}"
                )
                await asyncio.sleep(0.01 * attempt)
            except SQLAlchemyError as e:
                raise BackendUnavailableError(f"Failed to record deposit: {e.__class__.__name__}") from e

        raise TransactionConflictError("Failed to record deposit because the goal was being updated. Please try again.")

    async def _apply(self, owner_id: str, goal_id: Any, amount: Any) -> Tuple[int, Decimal]:
        async with self.session_factory() as session:
            async with session.begin():
                goal = await session.get(SavingsGoal, goal_id, with_for_update=True)
                if goal is None or goal.owner_id != owner_id:
                    raise GoalNotFoundError()

                value = parse_deposit_amount(amount)

                deposit = Deposit(
                    owner_id=owner_id,
                    goal_id=goal.id,
                    amount=value,
                    date=utcnow()
                )
                balance = to_decimal(goal.current_amount) + value
                if balance >= MAX_AMOUNT:
                    raise ValidationError("Deposit would take the goal balance past the largest supported amount.")

                session.add(deposit)
                goal.current_amount = balance

                # Flush inside the transaction so the version check runs here
                await session.flush()
                deposit_id, balance = deposit.id, goal.current_amount

            return deposit_id, balance

    async def list_deposits(self, owner_id: str, goal_id: Any) -> List[Deposit]:
        """Deposits of one goal, oldest first"""
        async with self.session_factory() as session:
            stmt = select(Deposit).where(
                and_(
                    Deposit.owner_id == owner_id,
                    Deposit.goal_id == goal_id
                )
            ).order_by(Deposit.date.asc(), Deposit.id.asc())
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def _publish(self, owner_id: str) -> None:
        if self.feed is None:
            return
        async with self.session_factory() as session:
            for model in (SavingsGoal, Deposit):
                await RecordService(session, model, self.feed).publish(owner_id)
