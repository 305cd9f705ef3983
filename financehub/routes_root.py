# financehub/routes_root.py
# Role: Root redirect and the health probe.

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

import config
from models import utcnow

router = APIRouter(tags=["health"])


@router.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/health")


@router.get("/health")
def health():
    return {
        "success": True,
        "message": "FinanceHub API is running",
        "timestamp": utcnow().isoformat() + "Z",
        "environment": config.ENVIRONMENT,
    }
