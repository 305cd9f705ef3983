# financehub/routes_operations.py
# Role: Operations dashboard (profit over a period) and headline counts.

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import success
from financehub.services import operations
from models import User

router = APIRouter(prefix="/api/operations", tags=["operations"])


@router.get("/dashboard")
def operations_dashboard(
    period: str = Query("monthly"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = operations.dashboard(db, user.id, period.lower())
    return success("Operations dashboard retrieved successfully", data)


@router.get("/summary")
def operations_summary(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return success("Operations summary retrieved successfully", operations.summary(db, user.id))
