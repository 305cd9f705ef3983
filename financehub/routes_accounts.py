# financehub/routes_accounts.py
# Role: CRUD for the user's money accounts.

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import ApiError, success
from financehub.schemas import AccountCreate, AccountUpdate
from financehub.serializers import account_out
from financehub.services.ledger import get_owned
from financehub.services.money import to_cents
from models import Account, Transaction, User

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("")
def list_accounts(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    accounts = (
        db.query(Account)
        .filter(Account.user_id == user.id)
        .order_by(Account.created_at.desc(), Account.id.desc())
        .all()
    )
    return success("Accounts retrieved successfully", [account_out(a) for a in accounts])


@router.post("", status_code=201)
def create_account(
    payload: AccountCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    account = Account(
        user_id=user.id,
        name=payload.name,
        type=payload.type,
        balance=to_cents(payload.balance),
        currency=payload.currency.upper(),
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return success("Account created successfully", account_out(account))


@router.put("/{account_id}")
def update_account(
    account_id: int,
    payload: AccountUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    account = get_owned(db, Account, account_id, user.id, "Account")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "balance" in changes:
        changes["balance"] = to_cents(changes["balance"])
    if "currency" in changes:
        changes["currency"] = changes["currency"].upper()
    for field, value in changes.items():
        setattr(account, field, value)

    db.commit()
    db.refresh(account)
    return success("Account updated successfully", account_out(account))


@router.delete("/{account_id}")
def delete_account(
    account_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    account = get_owned(db, Account, account_id, user.id, "Account")

    if db.query(Transaction.id).filter(Transaction.account_id == account.id).first():
        raise ApiError("Cannot delete account with existing transactions")

    db.delete(account)
    db.commit()
    return success("Account deleted successfully")
