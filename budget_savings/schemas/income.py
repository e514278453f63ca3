from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Literal

IncomeFrequency = Literal["weekly", "monthly", "yearly"]

class IncomeStreamBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    frequency: IncomeFrequency = "monthly"
    is_recurring: bool = False

class IncomeStreamCreate(IncomeStreamBase):
    pass

class IncomeStreamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(None, ge=0)
    frequency: Optional[IncomeFrequency] = None
    is_recurring: Optional[bool] = None

class IncomeStreamResponse(IncomeStreamBase):
    id: int
    owner_id: str
    monthly_amount: Optional[Decimal] = None
    created_at: datetime

    class Config:
        from_attributes = True
