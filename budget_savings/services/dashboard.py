"""
Dashboard computation and live dashboard sessions
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from budget_savings.models import Expense, IncomeStream, SavingsGoal
from budget_savings.schemas.analytics import DashboardResponse
from budget_savings.services.aggregators import as_records, calculate_monthly_expenses, calculate_monthly_income
from budget_savings.services.frequency import ZERO, get_field, to_decimal
from budget_savings.services.insights import generate_financial_insights
from budget_savings.services.records import RecordService
from budget_savings.services.subscriptions import SnapshotFeed, Unsubscribe

logger = logging.getLogger(__name__)

def build_dashboard(
    income_streams: Any,
    expenses: Any,
    savings_goals: Any,
    monthly_summaries: Any = None,
    now: Optional[datetime] = None
) -> DashboardResponse:
    """Monthly totals, balance and insights, computed from scratch"""
    monthly_income = calculate_monthly_income(income_streams)
    monthly_expenses = calculate_monthly_expenses(expenses, now)
    savings_total = sum(
        (to_decimal(get_field(goal, "current_amount")) for goal in as_records(savings_goals)),
        ZERO
    )

    return DashboardResponse(
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        balance=monthly_income - monthly_expenses,
        savings_total=savings_total,
        insights=generate_financial_insights(income_streams, expenses, savings_goals, monthly_summaries, now)
    )

class DashboardSession:
    """
    Keeps one owner's dashboard current.

    Subscribes to the owner's income, expense and goal snapshots and calls
    `on_update` with a freshly built dashboard after every delivery.
    `close()` releases all subscriptions.
    """

    COLLECTIONS = (IncomeStream, Expense, SavingsGoal)

    def __init__(
        self,
        owner_id: str,
        feed: SnapshotFeed,
        on_update: Callable[[DashboardResponse], None],
        monthly_summaries: Optional[List[Any]] = None
    ):
        self.owner_id = owner_id
        self.feed = feed
        self.on_update = on_update
        self.monthly_summaries = monthly_summaries or []
        self.snapshots: Dict[str, List[Any]] = {model.__tablename__: [] for model in self.COLLECTIONS}
        self.errors: Dict[str, str] = {}
        self.latest: Optional[DashboardResponse] = None
        self._unsubscribes: List[Unsubscribe] = []

    async def start(self, db: AsyncSession) -> None:
        for model in self.COLLECTIONS:
            unsubscribe = await RecordService(db, model, self.feed).subscribe(
                self.owner_id, self._listener(model.__tablename__)
            )
            if unsubscribe is not None:
                self._unsubscribes.append(unsubscribe)

    def _listener(self, collection: str) -> Callable[[Sequence[Any], Optional[str]], None]:
        def deliver(records: Sequence[Any], error: Optional[str]) -> None:
            self.snapshots[collection] = list(records)
            if error:
                self.errors[collection] = error
            else:
                self.errors.pop(collection, None)
            self.refresh()
        return deliver

    def refresh(self) -> DashboardResponse:
        self.latest = build_dashboard(
            self.snapshots[IncomeStream.__tablename__],
            self.snapshots[Expense.__tablename__],
            self.snapshots[SavingsGoal.__tablename__],
            self.monthly_summaries
        )
        self.on_update(self.latest)
        return self.latest

    def close(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes.clear()
        logger.debug(f"Dashboard session for owner {self.owner_id} closed")
