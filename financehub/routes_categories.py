# financehub/routes_categories.py
# Role: CRUD for income/expense categories.

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import ApiError, success
from financehub.schemas import CategoryCreate, CategoryUpdate
from financehub.serializers import category_out
from financehub.services.ledger import get_owned
from models import Category, Transaction, User

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
def list_categories(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    categories = (
        db.query(Category)
        .filter(Category.user_id == user.id)
        .order_by(Category.created_at.desc(), Category.id.desc())
        .all()
    )
    return success("Categories retrieved successfully", [category_out(c) for c in categories])


@router.post("", status_code=201)
def create_category(
    payload: CategoryCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    category = Category(user_id=user.id, **payload.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return success("Category created successfully", category_out(category))


@router.put("/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    category = get_owned(db, Category, category_id, user.id, "Category")
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return success("Category updated successfully", category_out(category))


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    category = get_owned(db, Category, category_id, user.id, "Category")

    if db.query(Transaction.id).filter(Transaction.category_id == category.id).first():
        raise ApiError("Cannot delete category with existing transactions")

    db.delete(category)
    db.commit()
    return success("Category deleted successfully")
