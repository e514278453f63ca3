"""
Financial health score persistence (one row per owner)
"""

from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_savings.core.datetime_utils import utcnow
from budget_savings.models.analytics import FinancialHealthScore

async def get_financial_health_score(db: AsyncSession, owner_id: str) -> Optional[FinancialHealthScore]:
    result = await db.execute(
        select(FinancialHealthScore).where(FinancialHealthScore.owner_id == owner_id)
    )
    return result.scalar_one_or_none()

async def update_financial_health_score(
    db: AsyncSession,
    owner_id: str,
    score: float,
    factors: Dict[str, Any]
) -> FinancialHealthScore:
    """Update the owner's score, creating the row on first use"""
    health = await get_financial_health_score(db, owner_id)
    if health is None:
        health = FinancialHealthScore(owner_id=owner_id)
        db.add(health)

    health.score = score
    health.factors = dict(factors or {})
    health.last_updated = utcnow()

    await db.commit()
    await db.refresh(health)
    return health
