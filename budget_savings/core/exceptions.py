"""
Error taxonomy for the analytics and deposit core
"""


class BudgetSavingsError(Exception):
    """Base error. `message` is safe to show to the user as-is."""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BudgetSavingsError):
    code = "not_found"


class GoalNotFoundError(NotFoundError):
    def __init__(self, message: str = "Goal not found"):
        super().__init__(message)


class ValidationError(BudgetSavingsError):
    code = "validation_error"


class NegativeDepositError(ValidationError):
    def __init__(self, message: str = "Withdrawals are not allowed. Deposit amount must not be negative."):
        super().__init__(message)


class TransactionConflictError(BudgetSavingsError):
    code = "transaction_conflict"


class BackendUnavailableError(BudgetSavingsError):
    code = "backend_unavailable"
