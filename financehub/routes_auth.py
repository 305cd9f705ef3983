# financehub/routes_auth.py
# Role: Registration, login, token refresh, and profile management.

"""
Auth endpoints.

Tokens are stateless JWTs; logout only tells the client to drop them.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financehub.deps import get_current_user, get_db
from financehub.errors import ApiError, success
from financehub.logger import get_logger
from financehub.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
)
from financehub.security import (
    REFRESH_TOKEN,
    create_token_pair,
    decode_token,
    hash_password,
    is_valid_email,
    validate_password,
    verify_password,
)
from financehub.serializers import user_out
from models import User

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _normalize_email(email: str) -> str:
    email = email.strip().lower()
    if not is_valid_email(email):
        raise ApiError("Invalid email format")
    return email


def _check_password(password: str) -> None:
    errors = validate_password(password)
    if errors:
        raise ApiError(f"Password validation failed: {', '.join(errors)}")


def _email_taken(db: Session, email: str, exclude_id: int | None = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    email = _normalize_email(payload.email)
    _check_password(payload.password)

    if _email_taken(db, email):
        raise ApiError("User with this email already exists", 409, "USER_EXISTS")

    user = User(
        name=payload.name,
        email=email,
        password_hash=hash_password(payload.password),
        timezone=payload.timezone,
        currency=payload.currency.upper(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    return success(
        "User registered successfully",
        {"user": user_out(user), **create_token_pair(user.id)},
    )


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise ApiError("Invalid email or password", 401, "INVALID_CREDENTIALS")

    logger.info("User %s logged in", user.id)
    return success("Login successful", {"user": user_out(user), **create_token_pair(user.id)})


@router.post("/refresh")
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)):
    if not payload.refresh_token:
        raise ApiError("Refresh token is required")

    claims = decode_token(payload.refresh_token, REFRESH_TOKEN)
    if claims is None:
        raise ApiError("Invalid or expired refresh token", 401, "INVALID_TOKEN")

    user = db.get(User, claims["userId"])
    if user is None:
        raise ApiError("User not found", 404)

    return success("Token refreshed successfully", create_token_pair(user.id))


@router.get("/profile")
def get_profile(user: User = Depends(get_current_user)):
    return success("Profile retrieved successfully", {"user": user_out(user)})


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in changes:
        changes["email"] = _normalize_email(changes["email"])
        if _email_taken(db, changes["email"], exclude_id=user.id):
            raise ApiError("User with this email already exists", 409, "USER_EXISTS")
    if "currency" in changes:
        changes["currency"] = changes["currency"].upper()

    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    return success("Profile updated successfully", {"user": user_out(user)})


@router.put("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_password(payload.new_password)
    if not verify_password(payload.current_password, user.password_hash):
        raise ApiError("Current password is incorrect")

    user.password_hash = hash_password(payload.new_password)
    db.commit()
    logger.info("User %s changed password", user.id)
    return success("Password changed successfully")


@router.post("/logout")
def logout(user: User = Depends(get_current_user)):
    return success("Logout successful")
