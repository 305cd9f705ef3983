# financehub/routes_tasks.py
# Role: Tasks linked to orders or workshops, a status board view, and per-task costs.

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import NotFoundError, success
from financehub.schemas import TaskCostIn, TaskCreate, TaskStatusUpdate, TaskUpdate
from financehub.serializers import task_cost_out, task_out
from financehub.services.ledger import get_owned
from financehub.services.money import to_cents
from models import Item, Order, Task, TaskCost, User, Workshop

router = APIRouter(prefix="/api/operations/tasks", tags=["tasks"])

STATUSES = ("PENDING", "IN_PROGRESS", "COMPLETED")

SORT_COLUMNS = {
    "createdAt": Task.created_at,
    "dueDate": Task.due_date,
    "title": Task.title,
    "status": Task.status,
}


def _check_links(db: Session, user_id: int, order_id: int | None, workshop_id: int | None) -> None:
    if order_id is not None:
        get_owned(db, Order, order_id, user_id, "Order")
    if workshop_id is not None:
        get_owned(db, Workshop, workshop_id, user_id, "Workshop")


def _build_cost(db: Session, user_id: int, cost: TaskCostIn) -> TaskCost:
    if cost.item_id is not None:
        get_owned(db, Item, cost.item_id, user_id, "Item")
    return TaskCost(description=cost.description, amount=to_cents(cost.amount), item_id=cost.item_id)


@router.get("")
def list_tasks(
    status: str | None = Query(None),
    order_id: int | None = Query(None, alias="orderId"),
    workshop_id: int | None = Query(None, alias="workshopId"),
    assigned_to: str | None = Query(None, alias="assignedTo"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Task).filter(Task.user_id == user.id)
    if status:
        query = query.filter(Task.status == status.upper())
    if order_id is not None:
        query = query.filter(Task.order_id == order_id)
    if workshop_id is not None:
        query = query.filter(Task.workshop_id == workshop_id)
    if assigned_to:
        query = query.filter(Task.assigned_to.ilike(f"%{assigned_to}%"))

    column = SORT_COLUMNS.get(sort_by, Task.created_at)
    order_by = column.asc() if sort_order.lower() == "asc" else column.desc()
    tasks = query.order_by(order_by, Task.id.desc()).all()
    return success("Tasks retrieved successfully", [task_out(t) for t in tasks])


@router.get("/by-status")
def tasks_by_status(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    tasks = (
        db.query(Task)
        .filter(Task.user_id == user.id)
        .order_by(Task.due_date.is_(None), Task.due_date.asc(), Task.created_at.desc())
        .all()
    )
    grouped = {s: [] for s in STATUSES}
    for task in tasks:
        grouped.setdefault(task.status, []).append(task_out(task))
    return success("Tasks grouped by status", grouped)


@router.get("/{task_id}")
def get_task(task_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    task = get_owned(db, Task, task_id, user.id, "Task")
    return success("Task retrieved successfully", task_out(task))


@router.post("", status_code=201)
def create_task(
    payload: TaskCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_links(db, user.id, payload.order_id, payload.workshop_id)

    task = Task(
        user_id=user.id,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        assigned_to=payload.assigned_to,
        order_id=payload.order_id,
        workshop_id=payload.workshop_id,
        status="PENDING",
    )
    task.costs = [_build_cost(db, user.id, c) for c in payload.costs]
    db.add(task)
    db.commit()
    db.refresh(task)
    return success("Task created successfully", task_out(task))


@router.put("/{task_id}")
def update_task(
    task_id: int,
    payload: TaskUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task = get_owned(db, Task, task_id, user.id, "Task")
    changes = payload.model_dump(exclude_unset=True)
    _check_links(db, user.id, changes.get("order_id"), changes.get("workshop_id"))

    for field, value in changes.items():
        # title and status are required columns
        if value is None and field in ("title", "status"):
            continue
        setattr(task, field, value)
    db.commit()
    db.refresh(task)
    return success("Task updated successfully", task_out(task))


@router.patch("/{task_id}/status")
def update_task_status(
    task_id: int,
    payload: TaskStatusUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task = get_owned(db, Task, task_id, user.id, "Task")
    task.status = payload.status
    db.commit()
    db.refresh(task)
    return success("Task status updated successfully", task_out(task))


@router.delete("/{task_id}")
def delete_task(task_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    task = get_owned(db, Task, task_id, user.id, "Task")
    db.delete(task)
    db.commit()
    return success("Task deleted successfully")


@router.post("/{task_id}/costs", status_code=201)
def add_task_cost(
    task_id: int,
    payload: TaskCostIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task = get_owned(db, Task, task_id, user.id, "Task")
    cost = _build_cost(db, user.id, payload)
    task.costs.append(cost)
    db.commit()
    db.refresh(cost)
    return success("Task cost added successfully", task_cost_out(cost))


@router.delete("/{task_id}/costs/{cost_id}")
def remove_task_cost(
    task_id: int,
    cost_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task = get_owned(db, Task, task_id, user.id, "Task")
    cost = db.query(TaskCost).filter(TaskCost.id == cost_id, TaskCost.task_id == task.id).first()
    if cost is None:
        raise NotFoundError("Task cost not found")
    db.delete(cost)
    db.commit()
    return success("Task cost removed successfully")
