from datetime import timedelta
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from budget_savings.core.datetime_utils import utcnow
from budget_savings.models import Expense, IncomeStream, SavingsGoal
from budget_savings.services.dashboard import DashboardSession
from budget_savings.services.records import RecordService
from budget_savings.services.subscriptions import SnapshotFeed

def test_feed_delivers_to_matching_listeners_only():
    feed = SnapshotFeed()
    mine, theirs = [], []
    feed.subscribe("expenses", "user-1", lambda records, error: mine.append(records))
    feed.subscribe("expenses", "user-2", lambda records, error: theirs.append(records))

    feed.publish("expenses", "user-1", ["a", "b"])

    assert mine == [["a", "b"]]
    assert theirs == []

def test_unsubscribe_stops_delivery_and_is_idempotent():
    feed = SnapshotFeed()
    received = []
    unsubscribe = feed.subscribe("expenses", "user-1", lambda records, error: received.append(records))

    unsubscribe()
    unsubscribe()
    feed.publish("expenses", "user-1", ["a"])

    assert received == []
    assert feed.listener_count("expenses", "user-1") == 0

def test_failing_listener_does_not_block_others():
    feed = SnapshotFeed()
    received = []

    def broken(records, error):
        raise RuntimeError("boom")

    feed.subscribe("expenses", "user-1", broken)
    feed.subscribe("expenses", "user-1", lambda records, error: received.append(records))

    feed.publish("expenses", "user-1", [1])

    assert received == [[1]]

async def test_subscribe_delivers_initial_and_later_snapshots(db, feed):
    service = RecordService(db, Expense, feed)
    await service.create("user-1", {"name": "Coffee", "amount": Decimal("4")})
    snapshots = []

    unsubscribe = await service.subscribe("user-1", lambda records, error: snapshots.append([r.name for r in records]))
    await service.create("user-1", {"name": "Lunch", "amount": Decimal("12")})
    unsubscribe()
    await service.create("user-1", {"name": "Dinner", "amount": Decimal("30")})

    assert snapshots == [["Coffee"], ["Lunch", "Coffee"]]

async def test_subscribe_failure_delivers_empty_snapshot(tmp_path, feed):
    # No tables created: every query fails
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    calls = []
    try:
        async with async_sessionmaker(engine, class_=AsyncSession)() as session:
            unsubscribe = await RecordService(session, SavingsGoal, feed).subscribe(
                "user-1", lambda records, error: calls.append((records, error))
            )
    finally:
        await engine.dispose()

    assert unsubscribe is None
    assert calls == [([], "Failed to fetch savings goals.")]
    assert feed.listener_count("savings_goals", "user-1") == 0

async def test_goals_are_listed_by_priority_then_newest(db):
    service = RecordService(db, SavingsGoal)
    now = utcnow()
    await service.create("user-1", {"name": "Low", "target_amount": 100, "priority": "low", "created_at": now})
    await service.create("user-1", {"name": "Old high", "target_amount": 100, "priority": "high", "created_at": now - timedelta(days=2)})
    await service.create("user-1", {"name": "Medium", "target_amount": 100, "priority": "medium", "created_at": now})
    await service.create("user-1", {"name": "New high", "target_amount": 100, "priority": "high", "created_at": now})
    await service.create("user-2", {"name": "Not mine", "target_amount": 100, "priority": "high"})

    goals = await service.list("user-1")

    assert [goal.name for goal in goals] == ["New high", "Old high", "Medium", "Low"]

async def test_records_are_owner_scoped(db):
    service = RecordService(db, IncomeStream)
    income = await service.create("user-1", {"name": "Salary", "amount": Decimal("3000")})

    assert await service.get("user-2", income.id) is None
    assert await service.update("user-2", income.id, {"amount": Decimal("1")}) is None
    assert await service.delete("user-2", income.id) is False
    assert (await service.get("user-1", income.id)).amount == Decimal("3000")

async def test_dashboard_session_recomputes_on_every_snapshot(db, feed):
    updates = []
    session = DashboardSession("user-1", feed, updates.append)
    await session.start(db)

    # One initial delivery per collection
    assert len(updates) == 3
    assert updates[-1].monthly_income == 0
    assert updates[-1].insights == []

    await RecordService(db, IncomeStream, feed).create(
        "user-1", {"name": "Salary", "amount": Decimal("1000"), "frequency": "monthly"}
    )
    await RecordService(db, Expense, feed).create(
        "user-1", {"name": "Rent", "amount": Decimal("400"), "frequency": "monthly", "category": "utilities"}
    )

    assert len(updates) == 5
    latest = updates[-1]
    assert latest.monthly_income == Decimal("1000")
    assert latest.monthly_expenses == Decimal("400")
    assert latest.balance == Decimal("600")
    assert [insight.title for insight in latest.insights] == [
        "Increase Savings Rate", "High Expense Category", "Emergency Fund"
    ]

    session.close()
    await RecordService(db, Expense, feed).create("user-1", {"name": "Gym", "amount": Decimal("30")})
    assert len(updates) == 5
