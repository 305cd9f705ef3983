# financehub/routes_recurring.py
# Role: CRUD for recurring transaction templates (bills, salaries, subscriptions).

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import success
from financehub.schemas import RecurringCreate, RecurringUpdate
from financehub.serializers import recurring_out
from financehub.services.ledger import get_owned
from financehub.services.money import to_cents
from models import Account, Category, RecurringTransaction, User

router = APIRouter(prefix="/api/recurring", tags=["recurring"])


@router.get("")
def list_recurring(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = (
        db.query(RecurringTransaction)
        .filter(RecurringTransaction.user_id == user.id)
        .order_by(RecurringTransaction.next_due_date.asc(), RecurringTransaction.id.asc())
        .all()
    )
    return success("Recurring transactions retrieved successfully", [recurring_out(r) for r in rows])


@router.post("", status_code=201)
def create_recurring(
    payload: RecurringCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_owned(db, Account, payload.account_id, user.id, "Account")
    get_owned(db, Category, payload.category_id, user.id, "Category")

    data = payload.model_dump()
    data["amount"] = to_cents(data["amount"])
    rec = RecurringTransaction(user_id=user.id, **data)
    db.add(rec)
    db.commit()
    db.refresh(rec)
    return success("Recurring transaction created successfully", recurring_out(rec))


@router.put("/{recurring_id}")
def update_recurring(
    recurring_id: int,
    payload: RecurringUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rec = get_owned(db, RecurringTransaction, recurring_id, user.id, "Recurring transaction")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "account_id" in changes:
        get_owned(db, Account, changes["account_id"], user.id, "Account")
    if "category_id" in changes:
        get_owned(db, Category, changes["category_id"], user.id, "Category")
    if "amount" in changes:
        changes["amount"] = to_cents(changes["amount"])

    for field, value in changes.items():
        setattr(rec, field, value)
    db.commit()
    db.refresh(rec)
    return success("Recurring transaction updated successfully", recurring_out(rec))


@router.delete("/{recurring_id}")
def delete_recurring(
    recurring_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rec = get_owned(db, RecurringTransaction, recurring_id, user.id, "Recurring transaction")
    db.delete(rec)
    db.commit()
    return success("Recurring transaction deleted successfully")
