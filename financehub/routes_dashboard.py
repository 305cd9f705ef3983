# financehub/routes_dashboard.py
# Role: Personal dashboard: this month's totals, KPIs versus last month,
#       recent activity, savings, freelance summary, and upcoming recurring items.

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session, joinedload

from financehub.deps import get_current_user, get_db
from financehub.errors import success
from financehub.serializers import recurring_out, savings_goal_out, transaction_out
from financehub.services.invoices import invoice_remaining
from financehub.services.ledger import FREELANCE_CATEGORY
from financehub.services.money import (
    from_cents,
    month_range,
    percent_of,
    percentage_change,
    previous_month_range,
)
from models import (
    Account,
    Category,
    FreelanceProject,
    Invoice,
    RecurringTransaction,
    SavingsGoal,
    Transaction,
    User,
    utctoday,
)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def _month_totals(db: Session, user_id: int, start: date, end: date) -> dict[str, int]:
    """Income, expenses and freelance income (cents) for [start, end]."""
    freelance_name, _ = FREELANCE_CATEGORY
    is_freelance = or_(
        Transaction.description.ilike("%freelance%"),
        Category.name == freelance_name,
    )

    income, expenses, freelance = (
        db.query(
            func.coalesce(
                func.sum(case((Transaction.type == "INCOME", Transaction.amount), else_=0)), 0
            ).label("income"),
            func.coalesce(
                func.sum(case((Transaction.type == "EXPENSE", Transaction.amount), else_=0)), 0
            ).label("expenses"),
            func.coalesce(
                func.sum(
                    case(
                        ((Transaction.type == "INCOME") & is_freelance, Transaction.amount),
                        else_=0,
                    )
                ),
                0,
            ).label("freelance"),
        )
        .select_from(Transaction)
        .outerjoin(Category, Transaction.category_id == Category.id)
        .filter(
            Transaction.user_id == user_id,
            Transaction.date >= start,
            Transaction.date <= end,
        )
        .one()
    )

    income = int(income)
    expenses = abs(int(expenses))
    return {
        "income": income,
        "expenses": expenses,
        "net": income - expenses,
        "freelance": int(freelance),
    }


@router.get("/overview")
def overview(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    start, end = month_range(utctoday())
    totals = _month_totals(db, user.id, start, end)

    total_balance = (
        db.query(func.coalesce(func.sum(Account.balance), 0))
        .filter(Account.user_id == user.id, Account.is_active.is_(True))
        .scalar()
        or 0
    )
    saved, target = (
        db.query(
            func.coalesce(func.sum(SavingsGoal.current), 0),
            func.coalesce(func.sum(SavingsGoal.target), 0),
        )
        .filter(SavingsGoal.user_id == user.id)
        .one()
    )

    return success(
        "Dashboard overview retrieved successfully",
        {
            "monthlyIncome": from_cents(totals["income"]),
            "monthlyExpenses": from_cents(totals["expenses"]),
            "netSavings": from_cents(totals["net"]),
            "freelanceIncome": from_cents(totals["freelance"]),
            "totalBalance": from_cents(int(total_balance)),
            "savingsProgress": percent_of(int(saved), int(target)),
        },
    )


@router.get("/kpis")
def kpis(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    today = utctoday()
    current = _month_totals(db, user.id, *month_range(today))
    previous = _month_totals(db, user.id, *previous_month_range(today))

    def _kpi(title, key, icon, color, lower_is_better=False):
        cur, prev = current[key], previous[key]
        if lower_is_better:
            change_type = "decrease" if cur <= prev else "increase"
        else:
            change_type = "increase" if cur >= prev else "decrease"
        return {
            "title": title,
            "value": from_cents(cur),
            "change": percentage_change(cur, prev),
            "changeType": change_type,
            "icon": icon,
            "color": color,
        }

    data = [
        _kpi("Monthly Income", "income", "arrow-trending-up", "green"),
        _kpi("Monthly Expenses", "expenses", "arrow-trending-down", "red", lower_is_better=True),
        _kpi("Net Savings", "net", "banknotes", "blue"),
        _kpi("Freelance Income", "freelance", "briefcase", "purple"),
    ]
    return success("KPIs retrieved successfully", data)


@router.get("/recent-transactions")
def recent_transactions(
    limit: int = Query(5, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = (
        db.query(Transaction)
        .options(joinedload(Transaction.account), joinedload(Transaction.category))
        .filter(Transaction.user_id == user.id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .limit(limit)
        .all()
    )
    return success("Recent transactions retrieved successfully", [transaction_out(t) for t in rows])


@router.get("/savings-goals")
def savings_goals(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    goals = (
        db.query(SavingsGoal)
        .filter(SavingsGoal.user_id == user.id)
        .order_by(SavingsGoal.created_at.desc(), SavingsGoal.id.desc())
        .all()
    )
    return success("Savings goals retrieved successfully", [savings_goal_out(g) for g in goals])


@router.get("/freelance-summary")
def freelance_summary(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    active_projects = (
        db.query(FreelanceProject)
        .filter(FreelanceProject.user_id == user.id, FreelanceProject.status == "ACTIVE")
        .count()
    )
    hours_logged = (
        db.query(func.coalesce(func.sum(FreelanceProject.total_hours), 0.0))
        .filter(FreelanceProject.user_id == user.id)
        .scalar()
        or 0.0
    )
    open_invoices = (
        db.query(Invoice)
        .filter(Invoice.user_id == user.id, Invoice.status.in_(("SENT", "OVERDUE")))
        .all()
    )

    return success(
        "Freelance summary retrieved successfully",
        {
            "activeProjects": active_projects,
            "hoursLogged": round(float(hours_logged), 2),
            "unpaidInvoices": len(open_invoices),
            "totalUnpaid": from_cents(sum(invoice_remaining(i) for i in open_invoices)),
        },
    )


@router.get("/upcoming-recurring")
def upcoming_recurring(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    today = utctoday()
    rows = (
        db.query(RecurringTransaction)
        .filter(
            RecurringTransaction.user_id == user.id,
            RecurringTransaction.is_active.is_(True),
            RecurringTransaction.next_due_date >= today,
            RecurringTransaction.next_due_date <= today + timedelta(days=7),
        )
        .order_by(RecurringTransaction.next_due_date.asc())
        .all()
    )
    return success("Upcoming recurring transactions retrieved successfully", [recurring_out(r) for r in rows])
