# financehub/services/invoices.py
#
# Invoice & Partial Payment Rules
# Invoice numbering, paid-balance arithmetic, and recording partial payments
# against an invoice or a single work session.

from datetime import date

from sqlalchemy.orm import Session

from financehub.errors import ApiError
from financehub.logger import get_logger
from financehub.services.freelance import (
    mark_session_paid,
    record_freelance_income,
    session_value_cents,
)
from models import Invoice, PartialPayment, WorkSession, utctoday

logger = get_logger(__name__)


# ---- Numbering ----

def next_invoice_number(db: Session, today: date | None = None) -> str:
    """INV-YYYYMMDD-NNN, sequence counted over invoices numbered that day."""
    today = today or utctoday()
    prefix = f"INV-{today:%Y%m%d}-"
    seq = db.query(Invoice).filter(Invoice.invoice_number.like(f"{prefix}%")).count() + 1
    candidate = f"{prefix}{seq:03d}"
    while db.query(Invoice.id).filter(Invoice.invoice_number == candidate).first():
        seq += 1
        candidate = f"{prefix}{seq:03d}"
    return candidate


# ---- Balances ----

def invoice_total_paid(invoice: Invoice) -> int:
    return sum(p.amount for p in invoice.partial_payments)


def invoice_remaining(invoice: Invoice) -> int:
    return max(invoice.amount - invoice_total_paid(invoice), 0)


def settle_invoice_if_paid(db: Session, user_id: int, invoice: Invoice) -> bool:
    """
    Mark the invoice PAID once its payments cover the amount.

    Billed sessions still unpaid are flipped to paid without booking another
    transaction: the partial payments already did.
    """
    if invoice_total_paid(invoice) < invoice.amount:
        return False
    if invoice.status != "PAID" or invoice.paid_date is None:
        invoice.status = "PAID"
        invoice.paid_date = invoice.paid_date or utctoday()
        logger.info("Invoice %s is fully paid", invoice.invoice_number)
    for link in invoice.session_links:
        ws = link.work_session
        if ws.end_time is not None and not ws.is_paid:
            mark_session_paid(db, user_id, ws, create_transaction=False)
    return True


# ---- Partial payments ----

def record_partial_payment(
    db: Session,
    user_id: int,
    amount_cents: int,
    invoice: Invoice | None = None,
    work_session: WorkSession | None = None,
    payment_date: date | None = None,
    description: str | None = None,
    account_id: int | None = None,
    category_id: int | None = None,
) -> PartialPayment:
    """Book a payment (income transaction + PartialPayment row) and settle what it covers."""
    if invoice is None and work_session is None:
        raise ApiError("Either invoiceId or workSessionId is required")

    if invoice is not None:
        if invoice_total_paid(invoice) >= invoice.amount:
            raise ApiError("Invoice is already fully paid")
        project = invoice.project
        label = f"Invoice {invoice.invoice_number}"
    else:
        if work_session.end_time is None:
            raise ApiError("Cannot record a payment for an active work session")
        if work_session.is_paid:
            raise ApiError("Work session is already paid")
        project = work_session.project
        label = f"{project.name} session #{work_session.id}"

    payment_date = payment_date or utctoday()
    tx = record_freelance_income(
        db,
        user_id,
        project,
        amount_cents,
        f"Freelance payment - {label}" + (f": {description}" if description else ""),
        on_date=payment_date,
        account_id=account_id,
        category_id=category_id,
    )

    payment = PartialPayment(
        user_id=user_id,
        invoice=invoice,
        work_session=work_session,
        amount=amount_cents,
        payment_date=payment_date,
        description=description,
        transaction=tx,
    )
    db.add(payment)
    db.flush()

    if invoice is not None:
        settle_invoice_if_paid(db, user_id, invoice)
    else:
        paid = sum(p.amount for p in work_session.partial_payments)
        if paid >= session_value_cents(work_session):
            mark_session_paid(db, user_id, work_session, create_transaction=False)
    return payment
