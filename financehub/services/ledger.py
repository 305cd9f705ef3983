# financehub/services/ledger.py
#
# Ledger Helpers
# Ownership-checked lookups and the shared rules for writing transactions
# on behalf of other features (freelance payments, order payments, stock purchases).

from datetime import date
from typing import TypeVar

from sqlalchemy.orm import Session

from financehub.errors import ApiError, NotFoundError
from financehub.logger import get_logger
from models import Account, Category, Transaction, utctoday

logger = get_logger(__name__)

T = TypeVar("T")

FREELANCE_CATEGORY = ("Freelance", "#10B981")
ORDERS_CATEGORY = ("Orders", "#3B82F6")


# ---- Lookups ----

def get_owned(db: Session, model: type[T], row_id: int, user_id: int, label: str) -> T:
    """Fetch `model` row `row_id` owned by `user_id` or raise a 404 "<label> not found"."""
    row = db.query(model).filter(model.id == row_id, model.user_id == user_id).first()
    if row is None:
        raise NotFoundError(f"{label} not found")
    return row


def first_active_account(db: Session, user_id: int) -> Account | None:
    return (
        db.query(Account)
        .filter(Account.user_id == user_id, Account.is_active.is_(True))
        .order_by(Account.created_at.asc(), Account.id.asc())
        .first()
    )


def resolve_account(db: Session, user_id: int, account_id: int | None = None) -> Account:
    """Explicit account when given, otherwise the user's first active account."""
    if account_id is not None:
        return get_owned(db, Account, account_id, user_id, "Account")
    account = first_active_account(db, user_id)
    if account is None:
        raise ApiError("No active account found. Please create an account first.")
    return account


def get_or_create_category(
    db: Session, user_id: int, name: str, color: str, category_type: str = "INCOME"
) -> Category:
    category = (
        db.query(Category)
        .filter(
            Category.user_id == user_id,
            Category.name == name,
            Category.type == category_type,
        )
        .first()
    )
    if category is None:
        category = Category(user_id=user_id, name=name, color=color, type=category_type)
        db.add(category)
        db.flush()
        logger.info("Created %s category %r for user %s", category_type, name, user_id)
    return category


def resolve_income_category(
    db: Session, user_id: int, category_id: int | None, default: tuple[str, str]
) -> Category:
    if category_id is not None:
        return get_owned(db, Category, category_id, user_id, "Category")
    name, color = default
    return get_or_create_category(db, user_id, name, color, "INCOME")


# ---- Writes ----

def record_transaction(
    db: Session,
    user_id: int,
    account: Account,
    category: Category,
    amount_cents: int,
    description: str,
    tx_type: str = "INCOME",
    on_date: date | None = None,
) -> Transaction:
    tx = Transaction(
        user_id=user_id,
        account_id=account.id,
        category_id=category.id,
        description=description[:200],
        amount=abs(amount_cents),
        date=on_date or utctoday(),
        type=tx_type,
    )
    db.add(tx)
    db.flush()
    return tx
