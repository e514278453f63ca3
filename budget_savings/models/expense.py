from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Text
from budget_savings.core.database import Base
from budget_savings.core.datetime_utils import utcnow

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String(50), default="general", index=True)
    frequency = Column(String(20), default="monthly")  # one-time, weekly, monthly, yearly
    is_recurring = Column(Boolean, default=False)

    date = Column(DateTime, nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
