# financehub/routes_savings.py
# Role: CRUD for savings goals.

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import success
from financehub.schemas import SavingsGoalCreate, SavingsGoalUpdate
from financehub.serializers import savings_goal_out
from financehub.services.ledger import get_owned
from financehub.services.money import to_cents
from models import SavingsGoal, User

router = APIRouter(prefix="/api/savings-goals", tags=["savings"])

_MONEY_FIELDS = ("target", "current")


@router.get("")
def list_goals(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    goals = (
        db.query(SavingsGoal)
        .filter(SavingsGoal.user_id == user.id)
        .order_by(SavingsGoal.created_at.desc(), SavingsGoal.id.desc())
        .all()
    )
    return success("Savings goals retrieved successfully", [savings_goal_out(g) for g in goals])


@router.post("", status_code=201)
def create_goal(
    payload: SavingsGoalCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goal = SavingsGoal(
        user_id=user.id,
        name=payload.name,
        target=to_cents(payload.target),
        current=to_cents(payload.current),
        color=payload.color,
        target_date=payload.target_date,
    )
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return success("Savings goal created successfully", savings_goal_out(goal))


@router.put("/{goal_id}")
def update_goal(
    goal_id: int,
    payload: SavingsGoalUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goal = get_owned(db, SavingsGoal, goal_id, user.id, "Savings goal")
    for field, value in payload.model_dump(exclude_unset=True).items():
        # targetDate may be cleared explicitly, other fields ignore nulls
        if value is None and field != "target_date":
            continue
        if field in _MONEY_FIELDS:
            value = to_cents(value)
        setattr(goal, field, value)
    db.commit()
    db.refresh(goal)
    return success("Savings goal updated successfully", savings_goal_out(goal))


@router.delete("/{goal_id}")
def delete_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goal = get_owned(db, SavingsGoal, goal_id, user.id, "Savings goal")
    db.delete(goal)
    db.commit()
    return success("Savings goal deleted successfully")
