from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Literal, Dict

ExpenseFrequency = Literal["one-time", "weekly", "monthly", "yearly"]

class ExpenseBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    category: str = Field("general", max_length=50)
    frequency: ExpenseFrequency = "monthly"
    is_recurring: bool = False
    date: Optional[datetime] = None
    description: Optional[str] = None

class ExpenseCreate(ExpenseBase):
    pass

class ExpenseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=50)
    frequency: Optional[ExpenseFrequency] = None
    is_recurring: Optional[bool] = None
    date: Optional[datetime] = None
    description: Optional[str] = None

class ExpenseResponse(ExpenseBase):
    id: int
    owner_id: str
    created_at: datetime

    class Config:
        from_attributes = True

class CategoryBreakdownResponse(BaseModel):
    categories: Dict[str, Decimal]
