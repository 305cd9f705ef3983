# financehub/routes_invoices.py
# Role: Freelance invoices (billing sessions of a project), their printable
#       export, and partial payments against invoices or single sessions.

from datetime import timedelta

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db, templates
from financehub.errors import ApiError, success
from financehub.logger import get_logger
from financehub.schemas import InvoiceCreate, InvoiceUpdate, PartialPaymentCreate
from financehub.serializers import invoice_out, partial_payment_out, session_payment_state
from financehub.services.export import invoice_context
from financehub.services.invoices import (
    invoice_remaining,
    next_invoice_number,
    record_partial_payment,
    settle_invoice_if_paid,
)
from financehub.services.ledger import get_owned
from financehub.services.money import to_cents
from models import (
    FreelanceProject,
    Invoice,
    InvoiceWorkSession,
    PartialPayment,
    User,
    WorkSession,
    utctoday,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/freelance", tags=["invoices"])

DEFAULT_DUE_DAYS = 30


def _get_invoice(db: Session, invoice_id: int, user_id: int) -> Invoice:
    return get_owned(db, Invoice, invoice_id, user_id, "Invoice")


# -------------------------------------------------------------------
# Invoices
# -------------------------------------------------------------------

@router.get("/invoices")
def list_invoices(
    project_id: int | None = Query(None, alias="projectId"),
    status: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Invoice).filter(Invoice.user_id == user.id)
    if project_id is not None:
        query = query.filter(Invoice.project_id == project_id)
    if status:
        query = query.filter(Invoice.status == status.upper())
    invoices = query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()
    return success("Invoices retrieved successfully", [invoice_out(i) for i in invoices])


@router.post("/invoices", status_code=201)
def create_invoice(
    payload: InvoiceCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = get_owned(db, FreelanceProject, payload.project_id, user.id, "Project")

    session_ids = list(dict.fromkeys(payload.work_session_ids))
    sessions = []
    if session_ids:
        sessions = (
            db.query(WorkSession)
            .filter(
                WorkSession.id.in_(session_ids),
                WorkSession.user_id == user.id,
                WorkSession.project_id == project.id,
                WorkSession.end_time.isnot(None),
            )
            .all()
        )
        if len(sessions) != len(session_ids):
            raise ApiError("Some work sessions not found, not completed, or not part of this project")
        if any(ws.invoice_link is not None for ws in sessions):
            raise ApiError("Some work sessions are already invoiced")

    number = payload.invoice_number or next_invoice_number(db)
    if db.query(Invoice.id).filter(Invoice.invoice_number == number).first():
        raise ApiError("Invoice number already exists", 409, "DUPLICATE_ENTRY")

    invoice = Invoice(
        user_id=user.id,
        project=project,
        invoice_number=number,
        amount=to_cents(payload.amount),
        status=payload.status,
        due_date=payload.due_date or utctoday() + timedelta(days=DEFAULT_DUE_DAYS),
        description=payload.description,
    )
    if payload.status == "PAID":
        invoice.paid_date = utctoday()
    db.add(invoice)
    for ws in sessions:
        db.add(InvoiceWorkSession(invoice=invoice, work_session=ws))

    db.commit()
    db.refresh(invoice)
    logger.info("Created invoice %s for project %s", invoice.invoice_number, project.id)
    return success("Invoice created successfully", invoice_out(invoice))


@router.get("/invoices/{invoice_id}")
def get_invoice(
    invoice_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    invoice = _get_invoice(db, invoice_id, user.id)
    return success("Invoice retrieved successfully", invoice_out(invoice))


@router.put("/invoices/{invoice_id}")
def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    invoice = _get_invoice(db, invoice_id, user.id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "amount" in changes:
        invoice.amount = to_cents(changes["amount"])
    if "due_date" in changes:
        invoice.due_date = changes["due_date"]
    if "description" in changes:
        invoice.description = changes["description"]

    status = changes.get("status")
    if status == "PAID":
        remaining = invoice_remaining(invoice)
        if remaining > 0:
            # settling the balance books it like any other payment
            record_partial_payment(
                db,
                user.id,
                remaining,
                invoice=invoice,
                description=f"Final payment - {invoice.invoice_number}",
            )
        else:
            settle_invoice_if_paid(db, user.id, invoice)
    elif status is not None:
        if invoice.status == "PAID" and invoice_remaining(invoice) == 0:
            raise ApiError("Cannot change the status of a fully paid invoice")
        invoice.status = status
        invoice.paid_date = None
    elif "amount" in changes:
        if not settle_invoice_if_paid(db, user.id, invoice) and invoice.status == "PAID":
            # a raised amount reopens the balance
            invoice.status = "SENT"
            invoice.paid_date = None

    db.commit()
    db.refresh(invoice)
    return success("Invoice updated successfully", invoice_out(invoice))


@router.delete("/invoices/{invoice_id}")
def delete_invoice(
    invoice_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    invoice = _get_invoice(db, invoice_id, user.id)
    if invoice.partial_payments:
        raise ApiError("Cannot delete invoice with recorded payments")

    db.delete(invoice)
    db.commit()
    return success("Invoice deleted successfully")


@router.get("/invoices/{invoice_id}/export", response_class=HTMLResponse)
def export_invoice(
    request: Request,
    invoice_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    invoice = _get_invoice(db, invoice_id, user.id)
    return templates.TemplateResponse(request, "invoice.html", invoice_context(invoice, user))


# -------------------------------------------------------------------
# Partial payments
# -------------------------------------------------------------------

@router.get("/partial-payments")
def list_partial_payments(
    invoice_id: int | None = Query(None, alias="invoiceId"),
    work_session_id: int | None = Query(None, alias="workSessionId"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(PartialPayment).filter(PartialPayment.user_id == user.id)
    if invoice_id is not None:
        query = query.filter(PartialPayment.invoice_id == invoice_id)
    if work_session_id is not None:
        query = query.filter(PartialPayment.work_session_id == work_session_id)
    payments = query.order_by(PartialPayment.payment_date.desc(), PartialPayment.id.desc()).all()
    return success("Partial payments retrieved successfully", [partial_payment_out(p) for p in payments])


@router.post("/partial-payments", status_code=201)
def create_partial_payment(
    payload: PartialPaymentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if payload.invoice_id is None and payload.work_session_id is None:
        raise ApiError("Either invoiceId or workSessionId is required")

    invoice = _get_invoice(db, payload.invoice_id, user.id) if payload.invoice_id else None
    work_session = (
        get_owned(db, WorkSession, payload.work_session_id, user.id, "Work session")
        if payload.work_session_id and invoice is None
        else None
    )

    payment = record_partial_payment(
        db,
        user.id,
        to_cents(payload.amount),
        invoice=invoice,
        work_session=work_session,
        payment_date=payload.payment_date,
        description=payload.description,
        account_id=payload.account_id,
        category_id=payload.category_id,
    )
    db.commit()
    db.refresh(payment)

    data = partial_payment_out(payment)
    if payment.invoice is not None:
        data["invoice"] = invoice_out(payment.invoice)
    elif payment.work_session is not None:
        data["workSession"].update(session_payment_state(payment.work_session))
        data["workSession"]["isPaid"] = payment.work_session.is_paid
    return success("Partial payment recorded successfully", data)
