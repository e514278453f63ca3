"""
Analytics API Endpoints
"""

import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from budget_savings.api.deps import get_db, get_feed
from budget_savings.schemas.analytics import (
    DashboardResponse,
    HealthScoreResponse,
    HealthScoreUpdate,
    InsightsResponse,
    MonthlySummaryCreate,
    MonthlySummaryResponse,
    TrendPoint
)
from budget_savings.models import Expense, IncomeStream, SavingsGoal
from budget_savings.services.dashboard import DashboardSession, build_dashboard
from budget_savings.services.health_score import get_financial_health_score, update_financial_health_score
from budget_savings.services.insights import generate_financial_insights
from budget_savings.services.monthly_summary import MonthlySummaryStore, get_spending_trend
from budget_savings.services.records import RecordService
from budget_savings.services.subscriptions import SnapshotFeed

logger = logging.getLogger(__name__)

router = APIRouter()

async def _load_records(db: AsyncSession, owner_id: str):
    incomes = await RecordService(db, IncomeStream).list(owner_id)
    expenses = await RecordService(db, Expense).list(owner_id)
    goals = await RecordService(db, SavingsGoal).list(owner_id)
    return incomes, expenses, goals

@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """
    Monthly income, expenses, balance, savings and insights
    """
    incomes, expenses, goals = await _load_records(db, owner_id)
    summaries = await MonthlySummaryStore(db).get_monthly_summaries(owner_id)
    return build_dashboard(incomes, expenses, goals, summaries)

@router.get("/insights", response_model=InsightsResponse)
async def get_insights(
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Rule-based financial insights"""
    incomes, expenses, goals = await _load_records(db, owner_id)
    summaries = await MonthlySummaryStore(db).get_monthly_summaries(owner_id)
    return InsightsResponse(insights=generate_financial_insights(incomes, expenses, goals, summaries))

@router.post("/summaries", response_model=MonthlySummaryResponse)
async def create_monthly_summary(
    summary: MonthlySummaryCreate,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Store a monthly summary (defaults to the current month)"""
    return await MonthlySummaryStore(db).create_monthly_summary(owner_id, summary.model_dump())

@router.get("/summaries", response_model=List[MonthlySummaryResponse])
async def get_monthly_summaries(
    owner_id: str = Query(..., description="Owner ID"),
    months: Optional[int] = Query(None, ge=1, le=120, description="Months to look back"),
    db: AsyncSession = Depends(get_db)
):
    """Monthly summaries in the window, oldest first"""
    return await MonthlySummaryStore(db).get_monthly_summaries(owner_id, months)

@router.get("/trend", response_model=List[TrendPoint])
async def get_trend(
    owner_id: str = Query(..., description="Owner ID"),
    months: Optional[int] = Query(None, ge=1, le=120, description="Months to analyze"),
    db: AsyncSession = Depends(get_db)
):
    """Monthly expense trend with month-over-month change"""
    summaries = await MonthlySummaryStore(db).get_monthly_summaries(owner_id, months)
    return get_spending_trend(summaries)

@router.put("/health-score", response_model=HealthScoreResponse)
async def put_health_score(
    health: HealthScoreUpdate,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Create or update the financial health score"""
    return await update_financial_health_score(db, owner_id, health.score, health.factors)

@router.get("/health-score", response_model=HealthScoreResponse)
async def get_health_score(
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get the financial health score"""
    health = await get_financial_health_score(db, owner_id)
    if not health:
        raise HTTPException(status_code=404, detail="Health score not found")
    return health

@router.websocket("/ws/dashboard")
async def dashboard_stream(
    websocket: WebSocket,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """
    Push a fresh dashboard every time the owner's income, expenses or goals change
    """
    await websocket.accept()

    updates: asyncio.Queue = asyncio.Queue()
    summaries = await MonthlySummaryStore(db).get_monthly_summaries(owner_id)
    session = DashboardSession(owner_id, feed, updates.put_nowait, summaries)
    await session.start(db)

    async def pump():
        while True:
            dashboard = await updates.get()
            await websocket.send_json(dashboard.model_dump(mode="json"))

    pump_task = asyncio.create_task(pump())
    try:
        while True:
            # Client messages are ignored; this only detects the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Dashboard stream for owner {owner_id} disconnected")
    finally:
        session.close()
        pump_task.cancel()
        try:
            await pump_task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning(f"Dashboard stream for owner {owner_id} stopped sending: {e}")
