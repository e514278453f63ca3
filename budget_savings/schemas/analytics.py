from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any

from budget_savings.core.constants import InsightType

class Insight(BaseModel):
    type: InsightType
    title: str
    message: str
    action: str

class InsightsResponse(BaseModel):
    insights: List[Insight]

class DashboardResponse(BaseModel):
    monthly_income: Decimal
    monthly_expenses: Decimal
    balance: Decimal
    savings_total: Decimal
    insights: List[Insight]

class MonthlySummaryCreate(BaseModel):
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1900, le=9999)
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_savings: Decimal = Decimal("0")
    balance: Optional[Decimal] = None

class MonthlySummaryResponse(BaseModel):
    id: int
    owner_id: str
    month: int
    year: int
    total_income: Decimal
    total_expenses: Decimal
    total_savings: Decimal
    balance: Decimal
    created_at: datetime

    class Config:
        from_attributes = True

class TrendPoint(BaseModel):
    month: int
    year: int
    month_name: str
    total_expenses: Decimal
    total_income: Decimal
    expense_change_percentage: float

class HealthScoreUpdate(BaseModel):
    score: float = Field(..., ge=0, le=100)
    factors: Dict[str, Any] = {}

class HealthScoreResponse(BaseModel):
    owner_id: str
    score: float
    factors: Dict[str, Any]
    last_updated: datetime

    class Config:
        from_attributes = True
