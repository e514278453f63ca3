"""
Monthly Summary Store
Historical per-month totals used for trend comparison
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_savings.config import settings
from budget_savings.core.datetime_utils import utcnow
from budget_savings.models.analytics import MonthlySummary
from budget_savings.services.frequency import get_field, to_decimal

logger = logging.getLogger(__name__)

def calculate_percentage_change(current: Any, previous: Any) -> float:
    """Change from previous to current in percent; 0 when there is no baseline"""
    previous_value = to_decimal(previous)
    if previous_value == 0:
        return 0.0
    return float((to_decimal(current) - previous_value) / previous_value * 100)

def window_start(months: int, now: Optional[datetime] = None) -> datetime:
    """First day of the oldest month in a window of `months` ending with the current month"""
    now = now or utcnow()
    index = now.year * 12 + (now.month - 1) - (max(1, months) - 1)
    year, month_zero = divmod(index, 12)
    return datetime(year, month_zero + 1, 1)

def get_spending_trend(summaries: List[Any]) -> List[Dict[str, Any]]:
    """
    Month-by-month totals with the expense change against the previous entry.
    Expects summaries sorted oldest first.
    """
    trend = []
    previous_expenses = None
    for summary in summaries:
        month = get_field(summary, "month")
        year = get_field(summary, "year")
        expenses = to_decimal(get_field(summary, "total_expenses"))
        trend.append({
            'month': month,
            'year': year,
            'month_name': datetime(year, month, 1).strftime('%B'),
            'total_expenses': expenses,
            'total_income': to_decimal(get_field(summary, "total_income")),
            'expense_change_percentage': round(calculate_percentage_change(expenses, previous_expenses), 1)
        })
        previous_expenses = expenses
    return trend

class MonthlySummaryStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_monthly_summary(self, owner_id: str, data: Dict[str, Any], now: Optional[datetime] = None) -> MonthlySummary:
        """
        Persist a summary; month and year default to the current ones and
        balance defaults to income minus expenses
        """
        now = now or utcnow()
        total_income = to_decimal(data.get('total_income'))
        total_expenses = to_decimal(data.get('total_expenses'))
        balance = data.get('balance')

        summary = MonthlySummary(
            owner_id=owner_id,
            month=data.get('month') or now.month,
            year=data.get('year') or now.year,
            total_income=total_income,
            total_expenses=total_expenses,
            total_savings=to_decimal(data.get('total_savings')),
            balance=to_decimal(balance) if balance is not None else total_income - total_expenses
        )
        self.db.add(summary)
        await self.db.commit()
        await self.db.refresh(summary)
        return summary

    async def get_monthly_summaries(
        self,
        owner_id: str,
        months: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> List[MonthlySummary]:
        """Summaries of the last `months` months, oldest first"""
        months = months or settings.SUMMARY_WINDOW_MONTHS
        start = window_start(months, now)

        stmt = select(MonthlySummary).where(
            and_(
                MonthlySummary.owner_id == owner_id,
                MonthlySummary.year * 12 + MonthlySummary.month >= start.year * 12 + start.month
            )
        ).order_by(
            MonthlySummary.year.asc(),
            MonthlySummary.month.asc(),
            MonthlySummary.created_at.asc()
        )
        result = await self.db.execute(stmt)
        summaries = list(result.scalars().all())

        duplicates = [key for key, count in Counter((s.year, s.month) for s in summaries).items() if count > 1]
        if duplicates:
            logger.warning(f"Owner {owner_id} has more than one summary for {duplicates}")

        return summaries
