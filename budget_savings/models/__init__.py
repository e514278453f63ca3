"""Database models initialization."""

# Import all models to ensure they're registered with SQLAlchemy
from .income import IncomeStream
from .expense import Expense
from .savings import SavingsGoal, Deposit
from .analytics import MonthlySummary, FinancialHealthScore

__all__ = [
    "IncomeStream",
    "Expense",
    "SavingsGoal",
    "Deposit",
    "MonthlySummary",
    "FinancialHealthScore"
]
