# financehub/services/freelance.py
#
# Freelance Rules
# Work-session duration, project hour counters, and the income transactions
# recorded when sessions or projects get paid.

import math
from datetime import date

from sqlalchemy.orm import Session

from financehub.logger import get_logger
from financehub.services.ledger import (
    FREELANCE_CATEGORY,
    record_transaction,
    resolve_account,
    resolve_income_category,
)
from financehub.services.money import from_cents, hours_value_cents
from models import FreelanceProject, Transaction, WorkSession

logger = get_logger(__name__)


# ---- Duration ----

def session_minutes(ws: WorkSession) -> int:
    """Whole worked minutes of a completed session (0 while it is running)."""
    if ws.end_time is None:
        return 0
    elapsed = math.floor((ws.end_time - ws.start_time).total_seconds() / 60)
    return max(elapsed - (ws.break_duration or 0), 0)


def session_hours(ws: WorkSession) -> float:
    return session_minutes(ws) / 60


def session_value_cents(ws: WorkSession) -> int:
    """What a session is worth: its custom amount when set, else hours x rate."""
    if ws.custom_amount is not None:
        return ws.custom_amount
    return hours_value_cents(session_hours(ws), ws.project.hourly_rate)


# ---- Counters ----

def add_completed_hours(project: FreelanceProject, hours: float, paid: bool) -> None:
    project.total_hours = (project.total_hours or 0.0) + hours
    if paid:
        project.paid_hours = (project.paid_hours or 0.0) + hours
    else:
        project.unpaid_hours = (project.unpaid_hours or 0.0) + hours


def remove_completed_hours(project: FreelanceProject, hours: float, paid: bool) -> None:
    project.total_hours = max((project.total_hours or 0.0) - hours, 0.0)
    if paid:
        project.paid_hours = max((project.paid_hours or 0.0) - hours, 0.0)
    else:
        project.unpaid_hours = max((project.unpaid_hours or 0.0) - hours, 0.0)


def move_hours(project: FreelanceProject, hours: float, to_paid: bool) -> None:
    """Shift hours between the paid and unpaid counters; total stays the same."""
    if to_paid:
        project.unpaid_hours = max((project.unpaid_hours or 0.0) - hours, 0.0)
        project.paid_hours = (project.paid_hours or 0.0) + hours
    else:
        project.paid_hours = max((project.paid_hours or 0.0) - hours, 0.0)
        project.unpaid_hours = (project.unpaid_hours or 0.0) + hours


# ---- Income ----

def session_income(project: FreelanceProject, ws: WorkSession) -> tuple[int, str]:
    """Amount (cents) and ledger description for a paid session."""
    hours = session_hours(ws)
    rate = from_cents(project.hourly_rate)
    if project.payment_type == "REFERENCE_ONLY":
        if ws.custom_amount is not None:
            return (
                ws.custom_amount,
                f"Freelance work - {project.name} (Custom amount: ${from_cents(ws.custom_amount):.2f})",
            )
        return (
            hours_value_cents(hours, project.hourly_rate),
            f"Freelance work - {project.name} ({hours:.2f}h, reference rate: ${rate:.2f}/h)",
        )
    return (
        hours_value_cents(hours, project.hourly_rate),
        f"Freelance work - {project.name} ({hours:.2f}h @ ${rate:.2f}/h)",
    )


def record_freelance_income(
    db: Session,
    user_id: int,
    project: FreelanceProject,
    amount_cents: int,
    description: str,
    on_date: date | None = None,
    account_id: int | None = None,
    category_id: int | None = None,
) -> Transaction:
    account = resolve_account(db, user_id, account_id)
    category = resolve_income_category(db, user_id, category_id, FREELANCE_CATEGORY)
    tx = record_transaction(
        db, user_id, account, category, amount_cents, description, "INCOME", on_date
    )
    project.total_amount = (project.total_amount or 0) + amount_cents
    logger.info(
        "Recorded freelance income of %s cents for project %s (user %s)",
        amount_cents,
        project.id,
        user_id,
    )
    return tx


def mark_session_paid(
    db: Session, user_id: int, ws: WorkSession, create_transaction: bool = True
) -> Transaction | None:
    """
    Flip a completed session to paid and move its hours to the paid counter.

    With `create_transaction` the part of the session income not yet covered by
    partial payments is booked and linked to the session.
    """
    project = ws.project
    tx = None
    if create_transaction:
        amount, description = session_income(project, ws)
        already_paid = sum(p.amount for p in ws.partial_payments)
        amount -= already_paid
        if already_paid:
            description += f" - balance after ${from_cents(already_paid):.2f} paid"
        if amount > 0:
            tx = record_freelance_income(
                db, user_id, project, amount, description, on_date=ws.end_time.date()
            )
            ws.transaction = tx
            ws.income_share = amount
    ws.is_paid = True
    move_hours(project, session_hours(ws), to_paid=True)
    return tx


def mark_session_unpaid(db: Session, ws: WorkSession) -> None:
    """
    Flip a paid session back to unpaid.

    The session's share of its income transaction comes off the project total.
    A transaction shared with other sessions (bulk payments) shrinks by that
    share; otherwise it is removed.
    """
    project = ws.project
    tx = ws.transaction
    share = ws.income_share or 0
    ws.is_paid = False
    ws.transaction = None
    ws.income_share = 0
    move_hours(project, session_hours(ws), to_paid=False)

    if tx is None:
        return
    project.total_amount = max((project.total_amount or 0) - share, 0)
    shared = (
        db.query(WorkSession)
        .filter(WorkSession.transaction_id == tx.id, WorkSession.id != ws.id)
        .count()
    )
    if shared:
        tx.amount -= share
        logger.info("Took %s cents for session %s off shared transaction %s", share, ws.id, tx.id)
        return
    db.delete(tx)
    logger.info("Removed income transaction %s for unpaid session %s", tx.id, ws.id)


def allocate(amount_cents: int, weights: list[float]) -> list[int]:
    """Split `amount_cents` proportionally to `weights`; the last share takes the rounding remainder."""
    if not weights:
        return []
    total = sum(weights)
    if total <= 0:
        shares = [0] * len(weights)
        shares[-1] = amount_cents
        return shares
    shares = [int(amount_cents * w / total) for w in weights[:-1]]
    shares.append(amount_cents - sum(shares))
    return shares
