# financehub/routes_freelance.py
# Role: Freelance projects, work-session timer and manual entries,
#       session/project/bulk payments, and the freelance summary.

"""
Freelance tracking.

A project keeps running hour counters (total/paid/unpaid) over its completed
sessions. Every route that completes, pays, un-pays or deletes a session keeps
those counters in step within the same commit.
"""

from datetime import datetime, time, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from financehub.deps import get_current_user, get_db
from financehub.errors import ApiError, success
from financehub.logger import get_logger
from financehub.schemas import (
    BulkPaymentRequest,
    EndSessionRequest,
    ManualSessionRequest,
    ProjectCreate,
    ProjectPaymentRequest,
    ProjectUpdate,
    SessionUpdate,
    StartSessionRequest,
)
from financehub.serializers import project_out, transaction_out, work_session_out
from financehub.services.freelance import (
    add_completed_hours,
    allocate,
    mark_session_paid,
    mark_session_unpaid,
    record_freelance_income,
    remove_completed_hours,
    session_hours,
)
from financehub.services.ledger import get_owned
from financehub.services.money import format_hours, from_cents, to_cents
from models import FreelanceProject, PartialPayment, User, WorkSession, utcnow

logger = get_logger(__name__)

router = APIRouter(prefix="/api/freelance", tags=["freelance"])


def _get_session(db: Session, session_id: int, user_id: int) -> WorkSession:
    return get_owned(db, WorkSession, session_id, user_id, "Work session")


# -------------------------------------------------------------------
# Projects
# -------------------------------------------------------------------

@router.get("/projects")
def list_projects(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    projects = (
        db.query(FreelanceProject)
        .options(selectinload(FreelanceProject.work_sessions))
        .filter(FreelanceProject.user_id == user.id)
        .order_by(FreelanceProject.created_at.desc(), FreelanceProject.id.desc())
        .all()
    )
    return success(
        "Projects retrieved successfully",
        [project_out(p, with_stats=True) for p in projects],
    )


@router.post("/projects", status_code=201)
def create_project(
    payload: ProjectCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = FreelanceProject(
        user_id=user.id,
        name=payload.name,
        client=payload.client,
        hourly_rate=to_cents(payload.hourly_rate),
        payment_type=payload.payment_type,
        status=payload.status,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    return success("Project created successfully", project_out(project))


@router.put("/projects/{project_id}")
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = get_owned(db, FreelanceProject, project_id, user.id, "Project")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "hourly_rate" in changes:
        changes["hourly_rate"] = to_cents(changes["hourly_rate"])
    for field, value in changes.items():
        setattr(project, field, value)
    db.commit()
    db.refresh(project)
    return success("Project updated successfully", project_out(project))


@router.delete("/projects/{project_id}")
def delete_project(
    project_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = get_owned(db, FreelanceProject, project_id, user.id, "Project")
    # invoice payments go with their invoices; session payments have no cascade path
    for ws in project.work_sessions:
        for payment in ws.partial_payments:
            db.delete(payment)
    db.delete(project)
    db.commit()
    logger.info("Deleted project %s for user %s", project_id, user.id)
    return success("Project deleted successfully")


@router.post("/projects/{project_id}/payment", status_code=201)
def record_project_payment(
    project_id: int,
    payload: ProjectPaymentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = get_owned(db, FreelanceProject, project_id, user.id, "Project")
    tx = record_freelance_income(
        db,
        user.id,
        project,
        to_cents(payload.amount),
        f"Freelance payment - {project.name}",
        on_date=payload.date,
        account_id=payload.account_id,
        category_id=payload.category_id,
    )
    db.commit()
    db.refresh(tx)
    return success("Payment recorded successfully", {"transaction": transaction_out(tx)})


# -------------------------------------------------------------------
# Work sessions
# -------------------------------------------------------------------

@router.get("/work-sessions")
def list_work_sessions(
    project_id: int | None = Query(None, alias="projectId"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(WorkSession).filter(WorkSession.user_id == user.id)
    if project_id is not None:
        query = query.filter(WorkSession.project_id == project_id)
    sessions = query.order_by(WorkSession.start_time.desc(), WorkSession.id.desc()).all()
    return success("Work sessions retrieved successfully", [work_session_out(s) for s in sessions])


@router.post("/work-sessions/start", status_code=201)
def start_work_session(
    payload: StartSessionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = get_owned(db, FreelanceProject, payload.project_id, user.id, "Project")

    running = (
        db.query(WorkSession.id)
        .filter(WorkSession.project_id == project.id, WorkSession.end_time.is_(None))
        .first()
    )
    if running:
        raise ApiError("There is already an active work session for this project")

    ws = WorkSession(
        user_id=user.id,
        project=project,
        start_time=utcnow(),
        description=payload.description,
    )
    db.add(ws)
    db.commit()
    db.refresh(ws)
    return success("Work session started successfully", work_session_out(ws))


@router.post("/work-sessions/manual", status_code=201)
def create_manual_session(
    payload: ManualSessionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = get_owned(db, FreelanceProject, payload.project_id, user.id, "Project")

    minutes = round(payload.work_hours * 60)
    if minutes <= 0:
        raise ApiError("Work hours must be greater than 0")

    if payload.date is not None:
        start = datetime.combine(payload.date, time.min)
    else:
        start = utcnow() - timedelta(minutes=minutes)

    ws = WorkSession(
        user_id=user.id,
        project=project,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        break_duration=0,
        description=payload.description,
        is_paid=False,
    )
    db.add(ws)
    db.flush()

    add_completed_hours(project, session_hours(ws), paid=False)
    if payload.is_paid:
        # raises before commit when the user has no active account
        mark_session_paid(db, user.id, ws)

    db.commit()
    db.refresh(ws)
    return success("Manual work session created successfully", work_session_out(ws))


@router.put("/work-sessions/{session_id}/end")
def end_work_session(
    session_id: int,
    payload: EndSessionRequest | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ws = _get_session(db, session_id, user.id)
    if ws.end_time is not None:
        raise ApiError("Work session is already ended")

    break_minutes = payload.break_duration if payload else 0
    end = utcnow()
    elapsed = int((end - ws.start_time).total_seconds() // 60)
    if break_minutes > elapsed:
        raise ApiError("Break duration cannot exceed the session length")

    ws.end_time = end
    ws.break_duration = break_minutes
    add_completed_hours(ws.project, session_hours(ws), paid=False)

    db.commit()
    db.refresh(ws)
    return success("Work session ended successfully", work_session_out(ws))


@router.put("/work-sessions/{session_id}")
def update_work_session(
    session_id: int,
    payload: SessionUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ws = _get_session(db, session_id, user.id)
    if ws.end_time is None:
        raise ApiError("Cannot update an active work session")

    changes = payload.model_dump(exclude_unset=True)
    if "description" in changes:
        ws.description = changes["description"]
    if changes.get("custom_amount") is not None:
        ws.custom_amount = to_cents(changes["custom_amount"])

    is_paid = changes.get("is_paid")
    if is_paid is True and not ws.is_paid:
        mark_session_paid(db, user.id, ws)
    elif is_paid is False and ws.is_paid:
        mark_session_unpaid(db, ws)

    db.commit()
    db.refresh(ws)
    return success("Work session updated successfully", work_session_out(ws))


@router.delete("/work-sessions/{session_id}")
def delete_work_session(
    session_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ws = _get_session(db, session_id, user.id)
    if ws.end_time is not None:
        remove_completed_hours(ws.project, session_hours(ws), paid=ws.is_paid)

    # payments keep their ledger rows but lose the session link
    db.query(PartialPayment).filter(PartialPayment.work_session_id == ws.id).update(
        {PartialPayment.work_session_id: None}, synchronize_session=False
    )
    db.delete(ws)
    db.commit()
    return success("Work session deleted successfully")


@router.post("/work-sessions/bulk-payment", status_code=201)
def bulk_payment(
    payload: BulkPaymentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session_ids = list(dict.fromkeys(payload.session_ids))
    sessions = (
        db.query(WorkSession)
        .filter(
            WorkSession.id.in_(session_ids),
            WorkSession.user_id == user.id,
            WorkSession.end_time.isnot(None),
        )
        .order_by(WorkSession.start_time.asc(), WorkSession.id.asc())
        .all()
    )
    if len(sessions) != len(session_ids):
        raise ApiError("Some sessions not found or not completed")
    if any(s.is_paid for s in sessions):
        raise ApiError("Some sessions are already paid")

    # group hours per project, keeping first-seen order
    per_project: dict[int, tuple[FreelanceProject, float]] = {}
    for ws in sessions:
        project, hours = per_project.get(ws.project_id, (ws.project, 0.0))
        per_project[ws.project_id] = (project, hours + session_hours(ws))

    total_hours = sum(hours for _, hours in per_project.values())
    names = ", ".join(project.name for project, _ in per_project.values())
    amount = to_cents(payload.amount)
    shares = allocate(amount, [session_hours(ws) for ws in sessions])

    first_project = next(iter(per_project.values()))[0]
    tx = record_freelance_income(
        db,
        user.id,
        first_project,
        amount,
        f"Freelance work - Bulk payment ({len(sessions)} sessions: {names}) - Total: {total_hours:.2f}h",
        on_date=payload.date,
        account_id=payload.account_id,
        category_id=payload.category_id,
    )
    # income was credited to the first project; spread it over the sessions by hours
    first_project.total_amount -= amount
    for ws, share in zip(sessions, shares):
        ws.is_paid = True
        ws.transaction = tx
        ws.income_share = share
        ws.project.total_amount = (ws.project.total_amount or 0) + share

    for project, hours in per_project.values():
        project.unpaid_hours = max((project.unpaid_hours or 0.0) - hours, 0.0)
        project.paid_hours = (project.paid_hours or 0.0) + hours

    db.commit()
    db.refresh(tx)
    logger.info(
        "Bulk payment of %s cents over %s sessions for user %s", amount, len(sessions), user.id
    )
    return success(
        "Bulk payment recorded successfully",
        {
            "transaction": transaction_out(tx),
            "sessionsUpdated": len(sessions),
            "totalHours": format_hours(total_hours),
        },
    )


# -------------------------------------------------------------------
# Summary
# -------------------------------------------------------------------

@router.get("/summary")
def freelance_summary(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    active_projects = (
        db.query(FreelanceProject)
        .filter(FreelanceProject.user_id == user.id, FreelanceProject.status == "ACTIVE")
        .count()
    )
    total_hours, paid_hours, unpaid_hours, earnings = (
        db.query(
            func.coalesce(func.sum(FreelanceProject.total_hours), 0.0),
            func.coalesce(func.sum(FreelanceProject.paid_hours), 0.0),
            func.coalesce(func.sum(FreelanceProject.unpaid_hours), 0.0),
            func.coalesce(func.sum(FreelanceProject.total_amount), 0),
        )
        .filter(FreelanceProject.user_id == user.id)
        .one()
    )
    return success(
        "Freelance summary retrieved successfully",
        {
            "activeProjects": active_projects,
            "totalHours": format_hours(total_hours),
            "paidHours": format_hours(paid_hours),
            "unpaidHours": format_hours(unpaid_hours),
            "totalEarnings": from_cents(int(earnings)),
        },
    )
