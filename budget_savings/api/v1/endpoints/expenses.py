"""
Expense API Endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from budget_savings.api.deps import get_db, get_feed
from budget_savings.schemas.expense import (
    CategoryBreakdownResponse,
    ExpenseCreate,
    ExpenseResponse,
    ExpenseUpdate
)
from budget_savings.models.expense import Expense
from budget_savings.services.aggregators import calculate_monthly_expenses, get_expenses_by_category
from budget_savings.services.records import RecordService
from budget_savings.services.subscriptions import SnapshotFeed

router = APIRouter()

@router.post("/", response_model=ExpenseResponse)
async def add_expense(
    expense: ExpenseCreate,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """Add an expense"""
    return await RecordService(db, Expense, feed).create(owner_id, expense.model_dump())

@router.get("/", response_model=List[ExpenseResponse])
async def get_expenses(
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get all expenses, newest first"""
    return await RecordService(db, Expense).list(owner_id)

@router.get("/monthly-total")
async def get_monthly_expenses(
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """
    Monthly-equivalent expense total; one-time expenses only count in their own month
    """
    expenses = await RecordService(db, Expense).list(owner_id)
    return {"monthly_expenses": calculate_monthly_expenses(expenses)}

@router.get("/by-category", response_model=CategoryBreakdownResponse)
async def get_expense_categories(
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Expense totals per category"""
    expenses = await RecordService(db, Expense).list(owner_id)
    return CategoryBreakdownResponse(categories=get_expenses_by_category(expenses))

@router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    update_data: ExpenseUpdate,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """Update an expense"""
    expense = await RecordService(db, Expense, feed).update(
        owner_id, expense_id, update_data.model_dump(exclude_unset=True)
    )
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense

@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: int,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """Delete an expense"""
    deleted = await RecordService(db, Expense, feed).delete(owner_id, expense_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"message": "Expense deleted successfully"}
