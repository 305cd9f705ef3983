# financehub/routes_transactions.py
"""
Routes for the transaction ledger: list with filters, CRUD, and CSV export.
"""

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import or_
from sqlalchemy.orm import Query as OrmQuery, Session, joinedload

from financehub.deps import get_current_user, get_db
from financehub.errors import success
from financehub.schemas import TransactionCreate, TransactionType, TransactionUpdate
from financehub.serializers import transaction_out
from financehub.services.export import transactions_csv
from financehub.services.ledger import get_owned
from financehub.services.money import pagination_meta, to_cents
from models import Account, Category, Transaction, User, utctoday

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


def _filtered(
    db: Session,
    user_id: int,
    search: str | None = None,
    account_id: int | None = None,
    category_id: int | None = None,
    tx_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    cleared: bool | None = None,
) -> OrmQuery:
    query = db.query(Transaction).filter(Transaction.user_id == user_id)

    # Search
    if search:
        pattern = f"%{search}%"
        query = query.outerjoin(Category, Transaction.category_id == Category.id).filter(
            or_(
                Transaction.description.ilike(pattern),
                Category.name.ilike(pattern),
            )
        )

    if account_id is not None:
        query = query.filter(Transaction.account_id == account_id)
    if category_id is not None:
        query = query.filter(Transaction.category_id == category_id)
    if tx_type:
        query = query.filter(Transaction.type == tx_type)
    if start_date:
        query = query.filter(Transaction.date >= start_date)
    if end_date:
        # inclusive end date
        query = query.filter(Transaction.date < end_date + timedelta(days=1))
    if cleared is not None:
        query = query.filter(Transaction.cleared.is_(cleared))
    return query


def _ordered(query: OrmQuery) -> OrmQuery:
    return query.options(
        joinedload(Transaction.account), joinedload(Transaction.category)
    ).order_by(Transaction.date.desc(), Transaction.id.desc())


@router.get("")
def list_transactions(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: str | None = Query(None),
    account_id: int | None = Query(None, alias="accountId"),
    category_id: int | None = Query(None, alias="categoryId"),
    tx_type: TransactionType | None = Query(None, alias="type"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    cleared: bool | None = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = _filtered(
        db, user.id, search, account_id, category_id, tx_type, start_date, end_date, cleared
    )
    total = query.count()
    rows = _ordered(query).offset(offset).limit(limit).all()

    return success(
        "Transactions retrieved successfully",
        [transaction_out(t) for t in rows],
        pagination=pagination_meta(total, limit, offset),
    )


@router.get("/export")
def export_transactions(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = _ordered(_filtered(db, user.id, start_date=start_date, end_date=end_date)).all()
    buffer = transactions_csv(user.id, rows)
    filename = f"transactions-{utctoday().isoformat()}.csv"
    return StreamingResponse(
        buffer,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", status_code=201)
def create_transaction(
    payload: TransactionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    get_owned(db, Account, payload.account_id, user.id, "Account")
    get_owned(db, Category, payload.category_id, user.id, "Category")

    tx = Transaction(
        user_id=user.id,
        account_id=payload.account_id,
        category_id=payload.category_id,
        description=payload.description,
        amount=abs(to_cents(payload.amount)),
        date=payload.date or utctoday(),
        type=payload.type,
        cleared=payload.cleared,
    )
    db.add(tx)
    db.commit()
    db.refresh(tx)
    return success("Transaction created successfully", transaction_out(tx))


@router.get("/{transaction_id}")
def get_transaction(
    transaction_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tx = get_owned(db, Transaction, transaction_id, user.id, "Transaction")
    return success("Transaction retrieved successfully", transaction_out(tx))


@router.put("/{transaction_id}")
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tx = get_owned(db, Transaction, transaction_id, user.id, "Transaction")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "account_id" in changes:
        get_owned(db, Account, changes["account_id"], user.id, "Account")
    if "category_id" in changes:
        get_owned(db, Category, changes["category_id"], user.id, "Category")
    if "amount" in changes:
        changes["amount"] = abs(to_cents(changes["amount"]))

    for field, value in changes.items():
        setattr(tx, field, value)
    db.commit()
    db.refresh(tx)
    return success("Transaction updated successfully", transaction_out(tx))


@router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tx = get_owned(db, Transaction, transaction_id, user.id, "Transaction")
    db.delete(tx)
    db.commit()
    return success("Transaction deleted successfully")
