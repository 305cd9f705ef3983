# financehub/routes_inventory.py
# Role: Inventory items, low-stock alerts, and bulk restocking.

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import ApiError, NotFoundError, success
from financehub.logger import get_logger
from financehub.schemas import BulkStockUpdate, ItemCreate, ItemUpdate
from financehub.serializers import item_out, order_brief, task_cost_out
from financehub.services.ledger import get_owned, record_transaction
from financehub.services.money import from_cents, to_cents
from financehub.services.operations import INVENTORY_PURCHASE
from models import Account, Category, Item, User

logger = get_logger(__name__)

router = APIRouter(prefix="/api/operations/inventory", tags=["inventory"])

SORT_COLUMNS = {
    "name": Item.name,
    "quantity": Item.quantity,
    "unitCost": Item.unit_cost,
    "createdAt": Item.created_at,
}


@router.get("")
def list_items(
    search: str | None = Query(None),
    low_stock: bool | None = Query(None, alias="lowStock"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Item).filter(Item.user_id == user.id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Item.name.ilike(pattern), Item.description.ilike(pattern)))
    if low_stock:
        query = query.filter(Item.quantity <= Item.min_stock)

    column = SORT_COLUMNS.get(sort_by, Item.created_at)
    order = column.asc() if sort_order.lower() == "asc" else column.desc()
    items = query.order_by(order, Item.id.asc()).all()
    return success("Inventory retrieved successfully", [item_out(i) for i in items])


@router.get("/low-stock")
def low_stock_alerts(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    items = (
        db.query(Item)
        .filter(
            Item.user_id == user.id,
            Item.is_active.is_(True),
            Item.quantity <= Item.min_stock,
        )
        .order_by(Item.quantity.asc(), Item.id.asc())
        .all()
    )
    data = [
        {**item_out(i), "reorderSuggestion": max(i.min_stock * 2, 10)}
        for i in items
    ]
    return success("Low stock alerts retrieved successfully", data)


@router.post("/bulk-update")
def bulk_update_stock(
    payload: BulkStockUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item_ids = [entry.item_id for entry in payload.items]
    items = {
        i.id: i
        for i in db.query(Item).filter(Item.user_id == user.id, Item.id.in_(item_ids)).all()
    }
    missing = [str(i) for i in item_ids if i not in items]
    if missing:
        raise NotFoundError(f"Items not found: {', '.join(missing)}")

    total_cost = 0
    for entry in payload.items:
        item = items[entry.item_id]
        unit_cost = to_cents(entry.unit_cost)
        item.quantity += entry.quantity
        item.unit_cost = unit_cost
        total_cost += entry.quantity * unit_cost

    tx = None
    if payload.account_id is not None and payload.category_id is not None:
        account = get_owned(db, Account, payload.account_id, user.id, "Account")
        category = get_owned(db, Category, payload.category_id, user.id, "Category")
        tx = record_transaction(
            db, user.id, account, category, total_cost, INVENTORY_PURCHASE, "EXPENSE"
        )
    elif payload.account_id is not None or payload.category_id is not None:
        raise ApiError("Both accountId and categoryId are required to record the purchase")

    db.commit()
    logger.info(
        "Restocked %s items for user %s (total %s cents)", len(payload.items), user.id, total_cost
    )
    return success(
        "Inventory updated successfully",
        {
            "items": [item_out(items[i]) for i in dict.fromkeys(item_ids)],
            "totalCost": from_cents(total_cost),
            "transactionId": tx.id if tx else None,
        },
    )


@router.get("/{item_id}")
def get_item(
    item_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = get_owned(db, Item, item_id, user.id, "Item")
    data = item_out(item)
    data["orderItems"] = [
        {
            "id": oi.id,
            "quantity": oi.quantity,
            "unitPrice": from_cents(oi.unit_price),
            "order": order_brief(oi.order),
        }
        for oi in item.order_items
    ]
    data["taskCosts"] = [task_cost_out(c) for c in item.task_costs]
    return success("Item retrieved successfully", data)


@router.post("", status_code=201)
def create_item(
    payload: ItemCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = payload.model_dump()
    data["unit_cost"] = to_cents(data["unit_cost"])
    item = Item(user_id=user.id, **data)
    db.add(item)
    db.commit()
    db.refresh(item)
    return success("Item created successfully", item_out(item))


@router.put("/{item_id}")
def update_item(
    item_id: int,
    payload: ItemUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = get_owned(db, Item, item_id, user.id, "Item")
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        # maxStock can be cleared, the rest ignore nulls
        if value is None and field != "max_stock":
            continue
        if field == "unit_cost":
            value = to_cents(value)
        setattr(item, field, value)
    db.commit()
    db.refresh(item)
    return success("Item updated successfully", item_out(item))


@router.delete("/{item_id}")
def delete_item(
    item_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = get_owned(db, Item, item_id, user.id, "Item")
    db.delete(item)
    db.commit()
    return success("Item deleted successfully")
