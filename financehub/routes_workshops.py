# financehub/routes_workshops.py
# Role: Workshops (events delivered for a client), their costs, and a
#       per-workshop export bundling order, tasks and cost totals.

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import NotFoundError, success
from financehub.schemas import WorkshopCostIn, WorkshopCreate, WorkshopUpdate
from financehub.serializers import order_brief, task_out, workshop_cost_out, workshop_out
from financehub.services.ledger import get_owned
from financehub.services.money import from_cents, to_cents
from models import Order, User, Workshop, WorkshopCost

router = APIRouter(prefix="/api/operations/workshops", tags=["workshops"])

SORT_COLUMNS = {
    "date": Workshop.date,
    "title": Workshop.title,
    "createdAt": Workshop.created_at,
}


@router.get("")
def list_workshops(
    client: str | None = Query(None),
    organization: str | None = Query(None),
    location: str | None = Query(None),
    order_id: int | None = Query(None, alias="orderId"),
    sort_by: str = Query("date", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Workshop).filter(Workshop.user_id == user.id)
    if client:
        query = query.filter(Workshop.client.ilike(f"%{client}%"))
    if organization:
        query = query.filter(Workshop.organization.ilike(f"%{organization}%"))
    if location:
        query = query.filter(Workshop.location.ilike(f"%{location}%"))
    if order_id is not None:
        query = query.filter(Workshop.order_id == order_id)

    column = SORT_COLUMNS.get(sort_by, Workshop.date)
    order_by = column.asc() if sort_order.lower() == "asc" else column.desc()
    workshops = query.order_by(order_by, Workshop.id.desc()).all()
    return success("Workshops retrieved successfully", [workshop_out(w) for w in workshops])


@router.get("/{workshop_id}")
def get_workshop(
    workshop_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workshop = get_owned(db, Workshop, workshop_id, user.id, "Workshop")
    return success("Workshop retrieved successfully", workshop_out(workshop, with_tasks=True))


@router.get("/{workshop_id}/export")
def export_workshop(
    workshop_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workshop = get_owned(db, Workshop, workshop_id, user.id, "Workshop")

    task_costs = sum(c.amount for t in workshop.tasks for c in t.costs)
    workshop_costs = sum(c.amount for c in workshop.costs)
    data = {
        "workshop": workshop_out(workshop),
        "order": order_brief(workshop.order),
        "tasks": [task_out(t) for t in workshop.tasks],
        "costs": {
            "taskCosts": from_cents(task_costs),
            "workshopCosts": from_cents(workshop_costs),
            "total": from_cents(task_costs + workshop_costs),
        },
        "summary": {
            "totalTasks": len(workshop.tasks),
            "completedTasks": sum(1 for t in workshop.tasks if t.status == "COMPLETED"),
            "totalCosts": from_cents(task_costs + workshop_costs),
        },
    }
    return success("Workshop export generated successfully", data)


@router.post("", status_code=201)
def create_workshop(
    payload: WorkshopCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if payload.order_id is not None:
        get_owned(db, Order, payload.order_id, user.id, "Order")

    data = payload.model_dump(exclude={"costs"})
    workshop = Workshop(user_id=user.id, **data)
    workshop.costs = [
        WorkshopCost(description=c.description, amount=to_cents(c.amount)) for c in payload.costs
    ]
    db.add(workshop)
    db.commit()
    db.refresh(workshop)
    return success("Workshop created successfully", workshop_out(workshop))


@router.put("/{workshop_id}")
def update_workshop(
    workshop_id: int,
    payload: WorkshopUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workshop = get_owned(db, Workshop, workshop_id, user.id, "Workshop")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("order_id") is not None:
        get_owned(db, Order, changes["order_id"], user.id, "Order")

    for field, value in changes.items():
        # title and date are required columns
        if value is None and field in ("title", "date"):
            continue
        setattr(workshop, field, value)
    db.commit()
    db.refresh(workshop)
    return success("Workshop updated successfully", workshop_out(workshop))


@router.delete("/{workshop_id}")
def delete_workshop(
    workshop_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workshop = get_owned(db, Workshop, workshop_id, user.id, "Workshop")
    db.delete(workshop)
    db.commit()
    return success("Workshop deleted successfully")


@router.post("/{workshop_id}/costs", status_code=201)
def add_workshop_cost(
    workshop_id: int,
    payload: WorkshopCostIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workshop = get_owned(db, Workshop, workshop_id, user.id, "Workshop")
    cost = WorkshopCost(description=payload.description, amount=to_cents(payload.amount))
    workshop.costs.append(cost)
    db.commit()
    db.refresh(cost)
    return success("Workshop cost added successfully", workshop_cost_out(cost))


@router.delete("/{workshop_id}/costs/{cost_id}")
def remove_workshop_cost(
    workshop_id: int,
    cost_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workshop = get_owned(db, Workshop, workshop_id, user.id, "Workshop")
    cost = (
        db.query(WorkshopCost)
        .filter(WorkshopCost.id == cost_id, WorkshopCost.workshop_id == workshop.id)
        .first()
    )
    if cost is None:
        raise NotFoundError("Workshop cost not found")
    db.delete(cost)
    db.commit()
    return success("Workshop cost removed successfully")
