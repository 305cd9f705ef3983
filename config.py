# config.py
# Role: Runtime settings for the FinanceHub API.
#       Values come from the process environment, optionally seeded from a
#       local .env file, and are exposed as plain module constants.

"""
Application settings.

Everything here can be overridden through environment variables or a `.env`
file next to this module. Defaults are suitable for local development.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Base directory of the project (where this module lives)
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# -------------------------------------------------------------------
# Database
# -------------------------------------------------------------------

# Default SQLite file lives under <project_root>/database/
DB_DIR = os.path.join(BASE_DIR, "database")
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(DB_DIR, 'financehub.db')}",
)

# -------------------------------------------------------------------
# Auth
# -------------------------------------------------------------------

DEFAULT_JWT_SECRET = "fallback-secret-key"
JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30"))

# -------------------------------------------------------------------
# HTTP / runtime
# -------------------------------------------------------------------

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Currency assigned to new users and accounts when none is given
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")
