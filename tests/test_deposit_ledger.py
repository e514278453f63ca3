import asyncio
import pytest
from decimal import Decimal
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from budget_savings.core.exceptions import ValidationError
from budget_savings.models import Deposit, SavingsGoal
from budget_savings.services.deposit_ledger import DepositLedger, parse_deposit_amount

async def _goal_state(session_factory, goal_id):
    async with session_factory() as session:
        goal = await session.get(SavingsGoal, goal_id)
        count = (await session.execute(
            select(func.count(Deposit.id)).where(Deposit.goal_id == goal_id)
        )).scalar()
        return goal.current_amount, count

async def test_record_deposit_updates_goal(ledger, make_goal, session_factory):
    goal_id = await make_goal(current_amount=Decimal("25"))

    result = await ledger.record_deposit("user-1", goal_id, Decimal("75.50"))

    assert result.success is True
    assert result.deposit_id is not None
    assert result.current_amount == Decimal("100.50")
    assert await _goal_state(session_factory, goal_id) == (Decimal("100.50"), 1)

async def test_concurrent_deposits_are_not_lost(ledger, make_goal, session_factory):
    goal_id = await make_goal()

    results = await asyncio.gather(*[
        ledger.record_deposit("user-1", goal_id, Decimal("10")) for _ in range(50)
    ])

    assert all(result.success for result in results)
    assert await _goal_state(session_factory, goal_id) == (Decimal("500"), 50)

async def test_goals_do_not_share_locks(ledger, make_goal, session_factory):
    first = await make_goal(name="First")
    second = await make_goal(name="Second", current_amount=Decimal("5"))

    assert ledger._lock_for(first) is ledger._lock_for(first)
    assert ledger._lock_for(first) is not ledger._lock_for(second)

    await ledger.record_deposit("user-1", first, 1)
    await ledger.record_deposit("user-1", second, 2)

    assert await _goal_state(session_factory, first) == (Decimal("1"), 1)
    assert await _goal_state(session_factory, second) == (Decimal("7"), 1)

async def test_negative_deposit_is_rejected(ledger, make_goal, session_factory):
    goal_id = await make_goal(current_amount=Decimal("40"))

    result = await ledger.record_deposit("user-1", goal_id, -10)

    assert result.success is False
    assert result.error_code == "validation_error"
    assert "Withdrawals are not allowed" in result.error
    assert await _goal_state(session_factory, goal_id) == (Decimal("40"), 0)

async def test_non_numeric_deposit_is_rejected(ledger, make_goal, session_factory):
    goal_id = await make_goal()

    result = await ledger.record_deposit("user-1", goal_id, "ten")

    assert result.success is False
    assert result.error_code == "validation_error"
    assert await _goal_state(session_factory, goal_id) == (Decimal("0"), 0)

async def test_missing_goal(ledger):
    result = await ledger.record_deposit("user-1", 9999, 10)

    assert result.success is False
    assert result.error_code == "not_found"
    assert result.error == "Goal not found"

async def test_other_owners_goal_is_not_found(ledger, make_goal, session_factory):
    goal_id = await make_goal(owner_id="user-2")

    result = await ledger.record_deposit("user-1", goal_id, 10)

    assert result.error_code == "not_found"
    assert await _goal_state(session_factory, goal_id) == (Decimal("0"), 0)

async def test_zero_deposit_is_allowed(ledger, make_goal):
    goal_id = await make_goal()
    result = await ledger.record_deposit("user-1", goal_id, 0)
    assert result.success is True

async def test_list_deposits_oldest_first(ledger, make_goal):
    goal_id = await make_goal()
    for amount in (1, 2, 3):
        await ledger.record_deposit("user-1", goal_id, amount)

    deposits = await ledger.list_deposits("user-1", goal_id)

    assert [deposit.amount for deposit in deposits] == [Decimal("1"), Decimal("2"), Decimal("3")]
    assert await ledger.list_deposits("user-2", goal_id) == []

async def test_retries_exhausted_is_a_conflict(session_factory, make_goal, monkeypatch):
    from sqlalchemy.orm.exc import StaleDataError

    ledger = DepositLedger(session_factory, max_retries=3)
    goal_id = await make_goal()
    attempts = []

    async def always_stale(owner_id, goal_id, amount):
        attempts.append(amount)
        raise StaleDataError("version mismatch")

    monkeypatch.setattr(ledger, "_apply", always_stale)

    result = await ledger.record_deposit("user-1", goal_id, 10)

    assert result.success is False
    assert result.error_code == "transaction_conflict"
    assert len(attempts) == 3

async def test_deposit_publishes_goal_snapshot(ledger, make_goal, feed):
    goal_id = await make_goal()
    snapshots = []
    feed.subscribe("savings_goals", "user-1", lambda records, error: snapshots.append(records))

    await ledger.record_deposit("user-1", goal_id, 15)

    assert len(snapshots) == 1
    assert snapshots[0][0].current_amount == Decimal("15")

async def test_sub_cent_deposit_is_rejected(ledger, make_goal, session_factory):
    goal_id = await make_goal()

    results = [await ledger.record_deposit("user-1", goal_id, Decimal("0.005")) for _ in range(3)]

    assert all(result.error_code == "validation_error" for result in results)
    assert results[0].error == "Deposit amount can have at most 2 decimal places."
    assert await _goal_state(session_factory, goal_id) == (Decimal("0"), 0)

async def test_balance_matches_seed_plus_deposits(ledger, make_goal, session_factory):
    goal_id = await make_goal(current_amount=Decimal("0.05"))

    for amount in ["0.10", "1.500", Decimal("2.25")]:
        result = await ledger.record_deposit("user-1", goal_id, amount)
        assert result.success is True

    deposits = await ledger.list_deposits("user-1", goal_id)
    current_amount, _ = await _goal_state(session_factory, goal_id)
    assert result.current_amount == Decimal("3.90")
    assert current_amount == Decimal("0.05") + sum(deposit.amount for deposit in deposits)

async def test_oversized_deposit_is_a_validation_error(ledger, make_goal, session_factory):
    goal_id = await make_goal(current_amount=Decimal("9999999999"))

    too_big = await ledger.record_deposit("user-1", goal_id, Decimal("1E12"))
    overflow = await ledger.record_deposit("user-1", goal_id, Decimal("1"))

    assert too_big.error_code == "validation_error"
    assert overflow.error_code == "validation_error"
    assert await _goal_state(session_factory, goal_id) == (Decimal("9999999999"), 0)

def test_parse_deposit_amount_normalizes_to_cents():
    assert parse_deposit_amount("12.5") == Decimal("12.50")
    assert parse_deposit_amount(Decimal("3.000")) == Decimal("3.00")
    with pytest.raises(ValidationError):
        parse_deposit_amount("0.001")
    with pytest.raises(ValidationError):
        parse_deposit_amount("abc")

async def test_connection_failure_is_backend_unavailable(session_factory, make_goal, monkeypatch):
    ledger = DepositLedger(session_factory, max_retries=3)
    goal_id = await make_goal()
    attempts = []

    async def connection_refused(owner_id, goal_id, amount):
        attempts.append(amount)
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))

    monkeypatch.setattr(ledger, "_apply", connection_refused)

    result = await ledger.record_deposit("user-1", goal_id, 10)

    assert result.error_code == "backend_unavailable"
    assert len(attempts) == 1

async def test_locked_database_is_retried(session_factory, make_goal, monkeypatch):
    ledger = DepositLedger(session_factory, max_retries=3)
    goal_id = await make_goal()
    attempts = []

    async def locked(owner_id, goal_id, amount):
        attempts.append(amount)
        raise OperationalError("UPDATE savings_goals", {}, Exception("database is locked"))

    monkeypatch.setattr(ledger, "_apply", locked)

    result = await ledger.record_deposit("user-1", goal_id, 10)

    assert result.error_code == "transaction_conflict"
    assert len(attempts) == 3

def test_zero_retries_is_rejected():
    with pytest.raises(ValueError):
        DepositLedger(None, max_retries=0)
