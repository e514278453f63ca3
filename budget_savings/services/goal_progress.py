"""
Goal Progress Evaluator
"""

import math
from datetime import datetime
from typing import Any, Optional

from budget_savings.core.datetime_utils import DateLike, parse_datetime, utcnow
from budget_savings.schemas.savings import GoalProgress
from budget_savings.services.frequency import ZERO, get_field, to_decimal

SECONDS_PER_DAY = 24 * 60 * 60

def calculate_goal_progress(current_amount: Any, target_amount: Any) -> float:
    """
    Completion percentage clamped to [0, 100]. A missing or non-positive
    target gives 0.
    """
    target = to_decimal(target_amount)
    if target <= 0:
        return 0.0
    current = to_decimal(current_amount)
    progress = float(current / target * 100)
    return max(0.0, min(100.0, progress))

def get_days_until_deadline(deadline: Optional[DateLike], now: Optional[datetime] = None) -> Optional[int]:
    """
    Whole days left until the deadline, rounded up.
    Negative when overdue, 0 when due today, None without a deadline.
    """
    deadline_at = parse_datetime(deadline)
    if deadline_at is None:
        return None
    now = now or utcnow()
    return math.ceil((deadline_at - now).total_seconds() / SECONDS_PER_DAY)

def is_goal_overdue(deadline: Optional[DateLike], now: Optional[datetime] = None) -> bool:
    deadline_at = parse_datetime(deadline)
    if deadline_at is None:
        return False
    return deadline_at < (now or utcnow())

def evaluate_goal(goal: Any, now: Optional[datetime] = None) -> GoalProgress:
    """Progress snapshot for a single goal"""
    now = now or utcnow()
    current = to_decimal(get_field(goal, "current_amount"))
    target = to_decimal(get_field(goal, "target_amount"))
    deadline = get_field(goal, "deadline")

    return GoalProgress(
        progress_percentage=round(calculate_goal_progress(current, target), 1),
        remaining_amount=max(ZERO, target - current),
        days_until_deadline=get_days_until_deadline(deadline, now),
        is_overdue=is_goal_overdue(deadline, now)
    )
