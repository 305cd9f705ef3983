# financehub/services/operations.py
#
# Operations Reporting
# Income/expense aggregation for the small-business side: paid orders versus
# inventory purchases, task costs and workshop costs over a reporting window.

from collections import defaultdict
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from financehub.services.money import from_cents, iter_days, percent_of, period_range
from models import Item, Order, Task, TaskCost, Transaction, Workshop, WorkshopCost, utctoday

INVENTORY_PURCHASE = "Inventory Purchase"


def _bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Datetime window [start 00:00, end+1 00:00) for timestamp columns."""
    return datetime.combine(start, time.min), datetime.combine(end + timedelta(days=1), time.min)


def collect_entries(db: Session, user_id: int, start: date, end: date) -> dict[str, list[tuple[date, int]]]:
    """
    Dated money movements in [start, end], grouped by source.

    Each source maps to a list of (day, cents) pairs.
    """
    start_dt, end_dt = _bounds(start, end)

    orders = (
        db.query(Order.paid_at, Order.amount)
        .filter(
            Order.user_id == user_id,
            Order.status == "PAID",
            Order.paid_at >= start_dt,
            Order.paid_at < end_dt,
        )
        .all()
    )
    inventory = (
        db.query(Transaction.date, Transaction.amount)
        .filter(
            Transaction.user_id == user_id,
            Transaction.type == "EXPENSE",
            Transaction.description == INVENTORY_PURCHASE,
            Transaction.date >= start,
            Transaction.date <= end,
        )
        .all()
    )
    task_costs = (
        db.query(TaskCost.created_at, TaskCost.amount)
        .join(Task, TaskCost.task_id == Task.id)
        .filter(Task.user_id == user_id, TaskCost.created_at >= start_dt, TaskCost.created_at < end_dt)
        .all()
    )
    workshop_costs = (
        db.query(WorkshopCost.created_at, WorkshopCost.amount)
        .join(Workshop, WorkshopCost.workshop_id == Workshop.id)
        .filter(
            Workshop.user_id == user_id,
            WorkshopCost.created_at >= start_dt,
            WorkshopCost.created_at < end_dt,
        )
        .all()
    )

    def _day(value) -> date:
        return value.date() if isinstance(value, datetime) else value

    return {
        "orders": [(_day(d), amount) for d, amount in orders],
        "inventory": [(_day(d), abs(amount)) for d, amount in inventory],
        "taskCosts": [(_day(d), amount) for d, amount in task_costs],
        "workshopCosts": [(_day(d), amount) for d, amount in workshop_costs],
    }


def _total(entries: list[tuple[date, int]]) -> int:
    return sum(amount for _, amount in entries)


def dashboard(db: Session, user_id: int, period: str, today: date | None = None) -> dict:
    start, end, period = period_range(period, today)
    entries = collect_entries(db, user_id, start, end)

    income = _total(entries["orders"])
    inventory = _total(entries["inventory"])
    task_costs = _total(entries["taskCosts"])
    workshop_costs = _total(entries["workshopCosts"])
    expenses = inventory + task_costs + workshop_costs
    net = income - expenses

    daily_income: dict[date, int] = defaultdict(int)
    daily_expenses: dict[date, int] = defaultdict(int)
    for day, amount in entries["orders"]:
        daily_income[day] += amount
    for source in ("inventory", "taskCosts", "workshopCosts"):
        for day, amount in entries[source]:
            daily_expenses[day] += amount

    return {
        "summary": {
            "totalIncome": from_cents(income),
            "totalExpenses": from_cents(expenses),
            "netProfit": from_cents(net),
            "profitMargin": percent_of(net, income),
        },
        "breakdown": {
            "income": {"orders": from_cents(income), "orderCount": len(entries["orders"])},
            "expenses": {
                "inventory": from_cents(inventory),
                "taskCosts": from_cents(task_costs),
                "workshopCosts": from_cents(workshop_costs),
            },
        },
        "charts": {
            "daily": [
                {
                    "date": day.isoformat(),
                    "income": from_cents(daily_income[day]),
                    "expenses": from_cents(daily_expenses[day]),
                }
                for day in iter_days(start, end)
            ],
            "categories": [
                {"name": "Inventory", "value": from_cents(inventory)},
                {"name": "Task Costs", "value": from_cents(task_costs)},
                {"name": "Workshop Costs", "value": from_cents(workshop_costs)},
            ],
        },
        "period": period,
        "dateRange": {"start": start.isoformat(), "end": end.isoformat()},
    }


def summary(db: Session, user_id: int, today: date | None = None) -> dict:
    today = today or utctoday()

    orders_total = db.query(Order).filter(Order.user_id == user_id).count()
    orders_unpaid = db.query(Order).filter(Order.user_id == user_id, Order.status == "UNPAID").count()
    items_active = db.query(Item).filter(Item.user_id == user_id, Item.is_active.is_(True)).count()
    items_low = (
        db.query(Item)
        .filter(
            Item.user_id == user_id,
            Item.is_active.is_(True),
            Item.quantity <= Item.min_stock,
        )
        .count()
    )
    tasks_total = db.query(Task).filter(Task.user_id == user_id).count()
    tasks_pending = db.query(Task).filter(Task.user_id == user_id, Task.status == "PENDING").count()
    workshops_total = db.query(Workshop).filter(Workshop.user_id == user_id).count()

    start, end, _ = period_range("monthly", today)
    entries = collect_entries(db, user_id, start, end)
    income = _total(entries["orders"])
    expenses = _total(entries["inventory"]) + _total(entries["taskCosts"]) + _total(entries["workshopCosts"])

    return {
        "orders": {"total": orders_total, "unpaid": orders_unpaid},
        "inventory": {"total": items_active, "lowStock": items_low},
        "tasks": {"total": tasks_total, "pending": tasks_pending},
        "workshops": {"total": workshops_total},
        "monthly": {
            "income": from_cents(income),
            "expenses": from_cents(expenses),
            "profit": from_cents(income - expenses),
        },
    }
