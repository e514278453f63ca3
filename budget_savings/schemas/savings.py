from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Literal

GoalPriority = Literal["low", "medium", "high"]

class SavingsGoalBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    target_amount: Decimal = Field(..., gt=0)
    deadline: Optional[datetime] = None
    priority: GoalPriority = "medium"
    category: str = Field("general", max_length=50)

class SavingsGoalCreate(SavingsGoalBase):
    current_amount: Decimal = Field(Decimal("0"), ge=0)

class SavingsGoalUpdate(BaseModel):
    """Corrective edits. Regular contributions go through deposits."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    target_amount: Optional[Decimal] = Field(None, gt=0)
    current_amount: Optional[Decimal] = Field(None, ge=0)
    deadline: Optional[datetime] = None
    priority: Optional[GoalPriority] = None
    category: Optional[str] = Field(None, max_length=50)
    is_completed: Optional[bool] = None

class GoalProgress(BaseModel):
    progress_percentage: float
    remaining_amount: Decimal
    days_until_deadline: Optional[int] = None
    is_overdue: bool

class SavingsGoalResponse(SavingsGoalBase):
    id: int
    owner_id: str
    current_amount: Decimal
    is_completed: bool
    created_at: datetime
    progress: Optional[GoalProgress] = None

    class Config:
        from_attributes = True

class DepositCreate(BaseModel):
    # Sign and precision are checked by the ledger
    amount: Decimal

class DepositResponse(BaseModel):
    id: int
    owner_id: str
    goal_id: int
    amount: Decimal
    date: datetime

    class Config:
        from_attributes = True

class DepositResultResponse(BaseModel):
    message: str
    deposit_id: int
    current_amount: Decimal
