from sqlalchemy import Column, Integer, String, Numeric, Float, DateTime, JSON
from budget_savings.core.database import Base
from budget_savings.core.datetime_utils import utcnow

class MonthlySummary(Base):
    __tablename__ = "monthly_summaries"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), nullable=False, index=True)

    # Not unique per (owner, month, year)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    total_income = Column(Numeric(12, 2), default=0)
    total_expenses = Column(Numeric(12, 2), default=0)
    total_savings = Column(Numeric(12, 2), default=0)
    balance = Column(Numeric(12, 2), default=0)

    created_at = Column(DateTime, default=utcnow)

class FinancialHealthScore(Base):
    __tablename__ = "financial_health_scores"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), nullable=False, unique=True, index=True)

    score = Column(Float, nullable=False)
    factors = Column(JSON, default=dict)

    last_updated = Column(DateTime, default=utcnow, onupdate=utcnow)
