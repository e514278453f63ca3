from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from budget_savings.core.database import Base
from budget_savings.core.datetime_utils import utcnow

class SavingsGoal(Base):
    __tablename__ = "savings_goals"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), nullable=False, index=True)

    name = Column(String(100), nullable=False)  # Emergency fund, Vacation, etc.
    target_amount = Column(Numeric(12, 2), nullable=False)
    current_amount = Column(Numeric(12, 2), default=0)
    deadline = Column(DateTime, nullable=True)

    priority = Column(String(10), default="medium")  # low, medium, high
    category = Column(String(50), default="general")  # emergency, vacation, investment...
    is_completed = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Bumped on every UPDATE; a stale write fails instead of overwriting
    version_id = Column(Integer, nullable=False)

    # Relationships
    deposits = relationship("Deposit", back_populates="goal", cascade="all, delete-orphan", passive_deletes=True)

    __mapper_args__ = {"version_id_col": version_id}

class Deposit(Base):
    __tablename__ = "deposits"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), nullable=False, index=True)
    goal_id = Column(Integer, ForeignKey("savings_goals.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    goal = relationship("SavingsGoal", back_populates="deposits")
