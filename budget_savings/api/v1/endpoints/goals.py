"""
Savings Goal and Deposit API Endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from budget_savings.api.deps import get_db, get_deposit_ledger, get_feed
from budget_savings.schemas.savings import (
    DepositCreate,
    DepositResponse,
    DepositResultResponse,
    SavingsGoalCreate,
    SavingsGoalResponse,
    SavingsGoalUpdate
)
from budget_savings.models.savings import SavingsGoal
from budget_savings.services.deposit_ledger import DepositLedger
from budget_savings.services.goal_progress import evaluate_goal
from budget_savings.services.records import RecordService
from budget_savings.services.subscriptions import SnapshotFeed

router = APIRouter()

# Ledger error codes to HTTP status
ERROR_STATUS = {
    "not_found": 404,
    "validation_error": 422,
    "transaction_conflict": 409,
    "backend_unavailable": 503,
}

def _to_response(goal: SavingsGoal) -> SavingsGoalResponse:
    response = SavingsGoalResponse.model_validate(goal)
    response.progress = evaluate_goal(goal)
    return response

@router.post("/", response_model=SavingsGoalResponse)
async def create_savings_goal(
    goal: SavingsGoalCreate,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """Create a savings goal; current_amount is the starting balance"""
    db_goal = await RecordService(db, SavingsGoal, feed).create(owner_id, goal.model_dump())
    return _to_response(db_goal)

@router.get("/", response_model=List[SavingsGoalResponse])
async def get_savings_goals(
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get all savings goals, highest priority first"""
    goals = await RecordService(db, SavingsGoal).list(owner_id)
    return [_to_response(goal) for goal in goals]

@router.get("/{goal_id}", response_model=SavingsGoalResponse)
async def get_savings_goal(
    goal_id: int,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get a savings goal with its progress"""
    goal = await RecordService(db, SavingsGoal).get(owner_id, goal_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Savings goal not found")
    return _to_response(goal)

@router.patch("/{goal_id}", response_model=SavingsGoalResponse)
async def update_savings_goal(
    goal_id: int,
    update_data: SavingsGoalUpdate,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """Correct a savings goal. Contributions belong in deposits."""
    goal = await RecordService(db, SavingsGoal, feed).update(
        owner_id, goal_id, update_data.model_dump(exclude_unset=True)
    )
    if not goal:
        raise HTTPException(status_code=404, detail="Savings goal not found")
    return _to_response(goal)

@router.delete("/{goal_id}")
async def delete_savings_goal(
    goal_id: int,
    owner_id: str = Query(..., description="Owner ID"),
    db: AsyncSession = Depends(get_db),
    feed: SnapshotFeed = Depends(get_feed)
):
    """Delete a savings goal together with its deposits"""
    deleted = await RecordService(db, SavingsGoal, feed).delete(owner_id, goal_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Savings goal not found")
    return {"message": "Savings goal deleted successfully"}

@router.post("/{goal_id}/deposits", response_model=DepositResultResponse)
async def record_deposit(
    goal_id: int,
    deposit: DepositCreate,
    owner_id: str = Query(..., description="Owner ID"),
    ledger: DepositLedger = Depends(get_deposit_ledger)
):
    """
    Deposit money into a savings goal
    """
    result = await ledger.record_deposit(owner_id, goal_id, deposit.amount)
    if not result.success:
        raise HTTPException(status_code=ERROR_STATUS.get(result.error_code, 400), detail=result.error)

    return DepositResultResponse(
        message="Deposit recorded!",
        deposit_id=result.deposit_id,
        current_amount=result.current_amount
    )

@router.get("/{goal_id}/deposits", response_model=List[DepositResponse])
async def get_deposits(
    goal_id: int,
    owner_id: str = Query(..., description="Owner ID"),
    ledger: DepositLedger = Depends(get_deposit_ledger)
):
    """Deposit history of a goal, oldest first"""
    return await ledger.list_deposits(owner_id, goal_id)
