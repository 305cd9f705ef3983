# financehub/routes_orders.py
# Role: Customer orders with line items; paying an order books income and deducts stock.

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import ApiError, NotFoundError, success
from financehub.logger import get_logger
from financehub.schemas import OrderCreate, OrderUpdate
from financehub.serializers import order_out
from financehub.services.ledger import get_owned
from financehub.services.money import to_cents
from financehub.services.orders import mark_order_paid, next_order_number
from models import Item, Order, OrderItem, User

logger = get_logger(__name__)

router = APIRouter(prefix="/api/operations/orders", tags=["orders"])

SORT_COLUMNS = {
    "createdAt": Order.created_at,
    "dueDate": Order.due_date,
    "amount": Order.amount,
    "orderNumber": Order.order_number,
    "priority": Order.priority,
}


@router.get("")
def list_orders(
    status: str | None = Query(None),
    priority: str | None = Query(None),
    order_type: str | None = Query(None, alias="type"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Order).filter(Order.user_id == user.id)
    if status:
        query = query.filter(Order.status == status.upper())
    if priority:
        query = query.filter(Order.priority == priority.upper())
    if order_type:
        query = query.filter(Order.type == order_type)

    column = SORT_COLUMNS.get(sort_by, Order.created_at)
    order_by = column.asc() if sort_order.lower() == "asc" else column.desc()
    orders = query.order_by(order_by, Order.id.desc()).all()
    return success("Orders retrieved successfully", [order_out(o) for o in orders])


@router.get("/{order_id}")
def get_order(
    order_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order = get_owned(db, Order, order_id, user.id, "Order")
    return success("Order retrieved successfully", order_out(order))


@router.post("", status_code=201)
def create_order(
    payload: OrderCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item_ids = {line.item_id for line in payload.items}
    if item_ids:
        found = {
            i.id for i in db.query(Item.id).filter(Item.user_id == user.id, Item.id.in_(item_ids))
        }
        missing = sorted(item_ids - found)
        if missing:
            raise NotFoundError(f"Items not found: {', '.join(str(i) for i in missing)}")

    order = Order(
        user_id=user.id,
        order_number=next_order_number(db),
        amount=to_cents(payload.amount),
        type=payload.type,
        due_date=payload.due_date,
        priority=payload.priority,
        description=payload.description,
        status="UNPAID",
    )
    order.order_items = [
        OrderItem(item_id=line.item_id, quantity=line.quantity, unit_price=to_cents(line.unit_price))
        for line in payload.items
    ]
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("Created order %s for user %s", order.order_number, user.id)
    return success("Order created successfully", order_out(order))


@router.put("/{order_id}")
def update_order(
    order_id: int,
    payload: OrderUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order = get_owned(db, Order, order_id, user.id, "Order")
    changes = payload.model_dump(exclude_unset=True)

    new_status = changes.pop("status", None)
    if "amount" in changes and changes["amount"] is not None:
        changes["amount"] = to_cents(changes["amount"])
    for field, value in changes.items():
        # dueDate and description can be cleared, the rest ignore nulls
        if value is None and field not in ("due_date", "description"):
            continue
        setattr(order, field, value)

    if new_status and new_status != order.status:
        if order.status == "PAID":
            raise ApiError("Paid orders cannot change status")
        if new_status == "PAID":
            mark_order_paid(db, user.id, order)
        else:
            order.status = new_status

    db.commit()
    db.refresh(order)
    return success("Order updated successfully", order_out(order))


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order = get_owned(db, Order, order_id, user.id, "Order")
    db.delete(order)
    db.commit()
    return success("Order deleted successfully")
