"""
Income and Expense Aggregators
Sum heterogeneous records into monthly totals
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from budget_savings.core.constants import DEFAULT_CATEGORY, Frequency
from budget_savings.core.datetime_utils import is_same_month, utcnow
from budget_savings.services.frequency import ZERO, get_field, normalize_to_monthly, to_decimal

def as_records(collection: Any) -> List[Any]:
    """Materialize a record collection; anything else is treated as empty"""
    if collection is None or isinstance(collection, (str, bytes, Mapping)):
        return []
    if not isinstance(collection, Iterable):
        return []
    return [record for record in collection if record is not None]

def calculate_monthly_income(income_streams: Any) -> Decimal:
    """
    Total monthly income. Every stream is considered active.
    """
    total = ZERO
    for income in as_records(income_streams):
        total += normalize_to_monthly(get_field(income, "amount"), get_field(income, "frequency"))
    return total

def calculate_monthly_expenses(expenses: Any, now: Optional[datetime] = None) -> Decimal:
    """
    Total monthly expenses.

    One-time expenses only count in the calendar month they happened in,
    using the expense date when set and the creation time otherwise.
    """
    now = now or utcnow()
    total = ZERO
    for expense in as_records(expenses):
        frequency = get_field(expense, "frequency")
        if frequency == Frequency.ONE_TIME.value:
            when = get_field(expense, "date") or get_field(expense, "created_at")
            if not is_same_month(when, now):
                continue
        total += normalize_to_monthly(get_field(expense, "amount"), frequency)
    return total

def get_expenses_by_category(expenses: Any) -> Dict[str, Decimal]:
    """Raw (not normalized) expense amount per category"""
    categories: Dict[str, Decimal] = {}
    for expense in as_records(expenses):
        category = get_field(expense, "category") or DEFAULT_CATEGORY
        categories[category] = categories.get(category, ZERO) + to_decimal(get_field(expense, "amount"))
    return categories
