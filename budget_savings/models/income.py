from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime
from budget_savings.core.database import Base
from budget_savings.core.datetime_utils import utcnow

class IncomeStream(Base):
    __tablename__ = "income_streams"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), nullable=False, index=True)

    name = Column(String(100), nullable=False)  # Salary, Freelance, Rent...
    amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(String(20), default="monthly")  # weekly, monthly, yearly
    is_recurring = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow, index=True)
