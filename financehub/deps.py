# financehub/deps.py
# Role: Shared FastAPI dependencies and globals.
#       Provides the Jinja2 templates loader, the standard SQLAlchemy session
#       dependency, and bearer-token resolution of the current user.

"""
Shared dependencies for the FinanceHub API.
"""

import os
from typing import Generator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from db import SessionLocal
from financehub.errors import ApiError
from financehub.security import ACCESS_TOKEN, decode_token
from models import User

# -------------------------------------------------------------------
# Templates
# -------------------------------------------------------------------

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

# Jinja2 templates loader (printable documents such as invoices)
templates = Jinja2Templates(directory=TEMPLATES_DIR)

# -------------------------------------------------------------------
# Database dependency
# -------------------------------------------------------------------

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it is closed.

    Typical usage in routes:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# -------------------------------------------------------------------
# Auth dependency
# -------------------------------------------------------------------

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the user behind `Authorization: Bearer <access token>`."""
    if credentials is None or not credentials.credentials:
        raise ApiError("Access token is required", 401, "MISSING_TOKEN")

    payload = decode_token(credentials.credentials, ACCESS_TOKEN)
    if payload is None:
        raise ApiError("Invalid or expired token", 401, "INVALID_TOKEN")

    user = db.get(User, payload["userId"])
    if user is None:
        raise ApiError("User not found", 401, "USER_NOT_FOUND")
    return user
