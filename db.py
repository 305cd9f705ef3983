# db.py
# Role: Database bootstrap for the FinanceHub API.
#       Defines the SQLAlchemy engine, session factory, and declarative Base.
#       Also ensures the on-disk database directory exists for the default SQLite URL.

"""
Database setup.

- Uses DATABASE_URL from config (SQLite file under <project_root>/database/ by default).
- SQLite connections get foreign key enforcement switched on.
"""

import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import DATABASE_URL, DB_DIR


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


if DATABASE_URL.startswith(f"sqlite:///{DB_DIR}"):
    os.makedirs(DB_DIR, exist_ok=True)  # ensure folder exists


def build_engine(url: str, **kwargs) -> Engine:
    """
    Create an engine for `url`.

    For SQLite we need check_same_thread=False because FastAPI serves sync
    routes from a thread pool.
    """
    if _is_sqlite(url):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    return create_engine(url, **kwargs)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    if dbapi_connection.__class__.__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(DATABASE_URL)

# Standard session factory used via dependency injection (see financehub/deps.py:get_db)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Declarative base class for ORM models
Base = declarative_base()
