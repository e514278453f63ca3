"""
Income Stream API Endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from budget_savings.api.deps import get_db, get_feed
from budget_savings.schemas.income import (
    IncomeStreamCreate,
    IncomeStreamResponse,
    IncomeStreamUpdate
)
from budget_savings.models.income import IncomeStream
from budget_savings.services.aggregators import calculate_monthly_income
from budget_savings.services.frequency import normalize_to_monthly
from budget_savings.services.records import RecordService
from budget_savings.services.subscriptions import SnapshotFeed

router = APIRouter()

def _to_response(income: IncomeStream) -> IncomeStreamResponse:
    response = IncomeStreamResponse.model_validate(income)
    response.monthly_amount = normalize_to_monthly(income.amount, income.frequency)
    return response

@router.post("/", response_model=IncomeStreamResponse)
async def create_income_stream(
    income: IncomeStreamCreate,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """Add an income stream"""
    service = RecordService(db, IncomeStream, feed)
    db_income = await service.create(owner_id, income.model_dump())
    return _to_response(db_income)

@router.get("/", response_model=List[IncomeStreamResponse])
async def get_income_streams(
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get all income streams, newest first"""
    incomes = await RecordService(db, IncomeStream).list(owner_id)
    return [_to_response(income) for income in incomes]

@router.get("/monthly-total")
async def get_monthly_income(
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Monthly-equivalent total of all income streams"""
    incomes = await RecordService(db, IncomeStream).list(owner_id)
    return {"monthly_income": calculate_monthly_income(incomes)}

@router.patch("/{income_id}", response_model=IncomeStreamResponse)
async def update_income_stream(
    income_id: int,
    update_data: IncomeStreamUpdate,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """Update an income stream"""
    service = RecordService(db, IncomeStream, feed)
    income = await service.update(owner_id, income_id, update_data.model_dump(exclude_unset=True))
    if not income:
        raise HTTPException(status_code=404, detail="Income stream not found")
    return _to_response(income)

@router.delete("/{income_id}")
async def delete_income_stream(
    income_id: int,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """Delete an income stream"""
    deleted = await RecordService(db, IncomeStream, feed).delete(owner_id, income_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Income stream not found")
    return {"message": "Income stream deleted successfully"}
