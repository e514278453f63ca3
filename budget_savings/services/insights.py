"""
Insight Generator
Turns current financial records into rule-based advice
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from budget_savings.config import settings
from budget_savings.core.constants import InsightType
from budget_savings.core.datetime_utils import utcnow
from budget_savings.schemas.analytics import Insight
from budget_savings.services.aggregators import as_records, get_expenses_by_category
from budget_savings.services.frequency import ZERO, get_field, to_decimal
from budget_savings.services.goal_progress import is_goal_overdue

def _total(records: List[Any], field: str) -> Decimal:
    return sum((to_decimal(get_field(record, field)) for record in records), ZERO)

def _find_emergency_fund(goals: List[Any]) -> Optional[Any]:
    for goal in goals:
        name = (get_field(goal, "name") or "").lower()
        if get_field(goal, "category") == "emergency" or "emergency" in name:
            return goal
    return None

def generate_financial_insights(
    income_streams: Any,
    expenses: Any,
    savings_goals: Any,
    monthly_summaries: Any = None,
    now: Optional[datetime] = None
) -> List[Insight]:
    """
    Evaluate every insight rule against raw record totals.

    Rules run in a fixed order and never suppress each other:
    savings rate, dominant expense category, overdue goals, emergency fund.
    monthly_summaries is accepted for trend rules; none of the current
    rules read it.
    """
    incomes = as_records(income_streams)
    expense_list = as_records(expenses)
    goals = as_records(savings_goals)
    if not incomes and not expense_list and not goals:
        return []

    now = now or utcnow()
    insights: List[Insight] = []

    monthly_income = _total(incomes, "amount")
    monthly_expenses = _total(expense_list, "amount")
    total_savings = _total(goals, "current_amount")

    # Savings rate
    target_rate = Decimal(str(settings.SAVINGS_RATE_TARGET))
    savings_rate = total_savings / monthly_income * 100 if monthly_income > 0 else ZERO
    if savings_rate < target_rate:
        insights.append(Insight(
            type=InsightType.WARNING,
            title="Increase Savings Rate",
            message=f"Your current savings rate is {savings_rate:.1f}%. Aim for at least {target_rate:.0f}% of income.",
            action="Review and reduce expenses"
        ))
    elif savings_rate > target_rate:
        insights.append(Insight(
            type=InsightType.SUCCESS,
            title="Great Savings Rate!",
            message=f"You're saving {savings_rate:.1f}% of your income. Keep it up!",
            action="Consider increasing investment goals"
        ))

    # Dominant expense category
    categories = get_expenses_by_category(expense_list)
    if categories:
        top_category = max(categories, key=categories.get)
        top_amount = categories[top_category]
        if top_amount > monthly_income * Decimal(str(settings.EXPENSE_CATEGORY_LIMIT)):
            if monthly_income > 0:
                share = top_amount / monthly_income * 100
                message = f"{top_category} accounts for {share:.1f}% of your income."
            else:
                message = f"{top_category} accounts for {top_amount:.0f} of spending with no recorded income."
            insights.append(Insight(
                type=InsightType.WARNING,
                title="High Expense Category",
                message=message,
                action="Consider reducing expenses in this category"
            ))

    # Overdue goals
    overdue_goals = [
        goal for goal in goals
        if is_goal_overdue(get_field(goal, "deadline"), now)
        and to_decimal(get_field(goal, "current_amount")) < to_decimal(get_field(goal, "target_amount"))
    ]
    if overdue_goals:
        insights.append(Insight(
            type=InsightType.WARNING,
            title="Overdue Savings Goals",
            message=f"You have {len(overdue_goals)} overdue savings goals.",
            action="Review deadlines and adjust savings contributions"
        ))

    # Emergency fund
    months = settings.EMERGENCY_FUND_MONTHS
    recommended = monthly_expenses * months
    emergency_fund = _find_emergency_fund(goals)
    if emergency_fund is None or to_decimal(get_field(emergency_fund, "current_amount")) < recommended:
        insights.append(Insight(
            type=InsightType.INFO,
            title="Emergency Fund",
            message=f"Aim for {months} months of expenses ({recommended:.0f}) in your emergency fund.",
            action="Set up or increase emergency fund contributions"
        ))

    return insights
