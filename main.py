# main.py
# Role: Application entry point for the FinanceHub API.
#       Initializes logging and the FastAPI app, creates database tables on startup,
#       installs CORS and exception handlers, and registers all route modules.

"""
Main FastAPI app for FinanceHub.

Here we only:
- create the FastAPI app
- set up CORS and error handling
- create DB tables
- include route modules
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
import models  # noqa: F401  (registers tables on Base.metadata)
from db import Base, engine
from financehub.errors import register_exception_handlers
from financehub.logger import configure_logging, get_logger
from financehub.routes_accounts import router as accounts_router
from financehub.routes_auth import router as auth_router
from financehub.routes_categories import router as categories_router
from financehub.routes_dashboard import router as dashboard_router
from financehub.routes_freelance import router as freelance_router
from financehub.routes_inventory import router as inventory_router
from financehub.routes_invoices import router as invoices_router
from financehub.routes_operations import router as operations_router
from financehub.routes_orders import router as orders_router
from financehub.routes_recurring import router as recurring_router
from financehub.routes_root import router as root_router
from financehub.routes_savings import router as savings_router
from financehub.routes_tasks import router as tasks_router
from financehub.routes_transactions import router as transactions_router
from financehub.routes_workshops import router as workshops_router

configure_logging()
logger = get_logger(__name__)


# -------------------------------------------------------------------
# App & DB setup
# -------------------------------------------------------------------

@asynccontextmanager
async def lifespan(_: FastAPI):
    # Create database tables (only if they don't exist yet).
    Base.metadata.create_all(bind=engine)
    logger.info("FinanceHub API started (%s)", config.ENVIRONMENT)
    yield


# FastAPI application instance
app = FastAPI(title="FinanceHub API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# -------------------------------------------------------------------
# Include routers
# -------------------------------------------------------------------

# Health probe
app.include_router(root_router)

# Auth & profile
app.include_router(auth_router)

# Personal finance
app.include_router(accounts_router)
app.include_router(categories_router)
app.include_router(transactions_router)
app.include_router(savings_router)
app.include_router(recurring_router)
app.include_router(dashboard_router)

# Freelance (projects, sessions, invoices, payments)
app.include_router(freelance_router)
app.include_router(invoices_router)

# Operations (inventory, orders, tasks, workshops, reporting)
app.include_router(inventory_router)
app.include_router(orders_router)
app.include_router(tasks_router)
app.include_router(workshops_router)
app.include_router(operations_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=config.ENVIRONMENT == "development")
