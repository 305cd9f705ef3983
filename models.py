# models.py
# Role: SQLAlchemy ORM models for the FinanceHub domain.
#       Personal finance (accounts, categories, transactions, savings, recurring),
#       freelance tracking (projects, work sessions, invoices, payments) and
#       small-business operations (inventory, orders, tasks, workshops).
#
# All money columns hold integer cents. Conversion to currency units happens
# only when rows are serialized (see financehub/serializers.py).

from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from db import Base


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite has no timezone-aware column type)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utctoday() -> date:
    """Calendar day on the same UTC clock as `utcnow`."""
    return utcnow().date()


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


# -------------------------------------------------------------------
# Users & personal finance
# -------------------------------------------------------------------

class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)

    # scrypt hash string, see financehub/security.py
    password_hash = Column(String, nullable=False)

    timezone = Column(String, nullable=False, default="UTC")
    currency = Column(String(3), nullable=False, default="USD")


class Account(TimestampMixin, Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)

    # CHECKING / SAVINGS / CREDIT / INVESTMENT
    type = Column(String, nullable=False)

    # Manually maintained balance (cents)
    balance = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    is_active = Column(Boolean, nullable=False, default=True)

    transactions = relationship("Transaction", back_populates="account")


class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)

    # Hex colour used by the UI, e.g. "#10B981"
    color = Column(String(7), nullable=False)

    # INCOME / EXPENSE
    type = Column(String, nullable=False)

    transactions = relationship("Transaction", back_populates="category")


class Transaction(TimestampMixin, Base):
    """
    A single ledger entry.

    `amount` is always stored as a non-negative number of cents; the direction
    comes from `type` (INCOME adds, EXPENSE subtracts).
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)

    description = Column(String(200), nullable=False)
    amount = Column(Integer, nullable=False)
    date = Column(Date, nullable=False, index=True)

    # INCOME / EXPENSE
    type = Column(String, nullable=False)

    # Reconciled against a bank statement
    cleared = Column(Boolean, nullable=False, default=False)

    account = relationship("Account", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")


class SavingsGoal(TimestampMixin, Base):
    __tablename__ = "savings_goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    target = Column(Integer, nullable=False)
    current = Column(Integer, nullable=False, default=0)
    color = Column(String(7), nullable=False, default="#3B82F6")
    target_date = Column(Date, nullable=True)


class RecurringTransaction(TimestampMixin, Base):
    __tablename__ = "recurring_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)

    description = Column(String(200), nullable=False)
    amount = Column(Integer, nullable=False)
    type = Column(String, nullable=False)

    # DAILY / WEEKLY / MONTHLY / YEARLY
    frequency = Column(String, nullable=False)
    next_due_date = Column(Date, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    account = relationship("Account")
    category = relationship("Category")


# -------------------------------------------------------------------
# Freelance
# -------------------------------------------------------------------

class FreelanceProject(TimestampMixin, Base):
    __tablename__ = "freelance_projects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    client = Column(String, nullable=False)

    # ACTIVE / COMPLETED / PAUSED
    status = Column(String, nullable=False, default="ACTIVE")

    # HOURLY_RATE: sessions are billed at hourly_rate
    # REFERENCE_ONLY: rate is informational, sessions may carry a custom amount
    payment_type = Column(String, nullable=False, default="HOURLY_RATE")
    hourly_rate = Column(Integer, nullable=False)

    # Running counters over completed sessions
    total_hours = Column(Float, nullable=False, default=0.0)
    paid_hours = Column(Float, nullable=False, default=0.0)
    unpaid_hours = Column(Float, nullable=False, default=0.0)

    # Freelance income recorded for this project (cents)
    total_amount = Column(Integer, nullable=False, default=0)

    work_sessions = relationship(
        "WorkSession", back_populates="project", cascade="all, delete-orphan"
    )
    invoices = relationship(
        "Invoice", back_populates="project", cascade="all, delete-orphan"
    )


class WorkSession(TimestampMixin, Base):
    __tablename__ = "work_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(
        Integer, ForeignKey("freelance_projects.id", ondelete="CASCADE"), nullable=False, index=True
    )

    start_time = Column(DateTime, nullable=False)
    # NULL while the timer is running
    end_time = Column(DateTime, nullable=True)
    # Minutes
    break_duration = Column(Integer, nullable=False, default=0)

    is_paid = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)
    custom_amount = Column(Integer, nullable=True)

    # Income transaction recorded when the session was marked paid
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    # Part of that transaction credited to this session (cents); bulk payments split it by hours
    income_share = Column(Integer, nullable=False, default=0)

    project = relationship("FreelanceProject", back_populates="work_sessions")
    transaction = relationship("Transaction")
    invoice_link = relationship(
        "InvoiceWorkSession",
        back_populates="work_session",
        uselist=False,
        cascade="all, delete-orphan",
    )
    partial_payments = relationship("PartialPayment", back_populates="work_session")


class Invoice(TimestampMixin, Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(
        Integer, ForeignKey("freelance_projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    invoice_number = Column(String, nullable=False, unique=True)
    amount = Column(Integer, nullable=False)

    # DRAFT / SENT / PAID / OVERDUE
    status = Column(String, nullable=False, default="DRAFT")
    due_date = Column(Date, nullable=False)
    paid_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)

    project = relationship("FreelanceProject", back_populates="invoices")
    session_links = relationship(
        "InvoiceWorkSession", back_populates="invoice", cascade="all, delete-orphan"
    )
    partial_payments = relationship(
        "PartialPayment", back_populates="invoice", cascade="all, delete-orphan"
    )


class InvoiceWorkSession(Base):
    __tablename__ = "invoice_work_sessions"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    # A session can be billed on one invoice only
    work_session_id = Column(
        Integer, ForeignKey("work_sessions.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    invoice = relationship("Invoice", back_populates="session_links")
    work_session = relationship("WorkSession", back_populates="invoice_link")


class PartialPayment(TimestampMixin, Base):
    __tablename__ = "partial_payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=True, index=True)
    work_session_id = Column(
        Integer, ForeignKey("work_sessions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount = Column(Integer, nullable=False)
    payment_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)

    invoice = relationship("Invoice", back_populates="partial_payments")
    work_session = relationship("WorkSession", back_populates="partial_payments")
    transaction = relationship("Transaction")


# -------------------------------------------------------------------
# Operations
# -------------------------------------------------------------------

class Item(TimestampMixin, Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit_cost = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    max_stock = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    order_items = relationship("OrderItem", back_populates="item", cascade="all, delete-orphan")
    task_costs = relationship("TaskCost", back_populates="item")


class Order(TimestampMixin, Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # ORD-YYYYMMDD-NNNN
    order_number = Column(String, nullable=False, unique=True)
    amount = Column(Integer, nullable=False)
    type = Column(String, nullable=False)

    # UNPAID / PAID / CANCELLED
    status = Column(String, nullable=False, default="UNPAID")
    # LOW / NORMAL / HIGH / URGENT
    priority = Column(String, nullable=False, default="NORMAL")
    due_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)

    # Set on the UNPAID -> PAID transition; drives the operations dashboard
    paid_at = Column(DateTime, nullable=True)

    order_items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="order")
    workshops = relationship("Workshop", back_populates="order")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="order_items")
    item = relationship("Item", back_populates="order_items")


class Workshop(TimestampMixin, Base):
    __tablename__ = "workshops"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    client = Column(String, nullable=True)
    organization = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    location = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)

    order = relationship("Order", back_populates="workshops")
    tasks = relationship("Task", back_populates="workshop")
    costs = relationship("WorkshopCost", back_populates="workshop", cascade="all, delete-orphan")


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    # PENDING / IN_PROGRESS / COMPLETED
    status = Column(String, nullable=False, default="PENDING")
    due_date = Column(Date, nullable=True)
    assigned_to = Column(String, nullable=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    workshop_id = Column(Integer, ForeignKey("workshops.id", ondelete="SET NULL"), nullable=True)

    order = relationship("Order", back_populates="tasks")
    workshop = relationship("Workshop", back_populates="tasks")
    costs = relationship("TaskCost", back_populates="task", cascade="all, delete-orphan")


class TaskCost(TimestampMixin, Base):
    __tablename__ = "task_costs"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True)

    task = relationship("Task", back_populates="costs")
    item = relationship("Item", back_populates="task_costs")


class WorkshopCost(TimestampMixin, Base):
    __tablename__ = "workshop_costs"

    id = Column(Integer, primary_key=True, index=True)
    workshop_id = Column(Integer, ForeignKey("workshops.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)

    workshop = relationship("Workshop", back_populates="costs")


__all__ = [
    "utcnow",
    "utctoday",
    "User",
    "Account",
    "Category",
    "Transaction",
    "SavingsGoal",
    "RecurringTransaction",
    "FreelanceProject",
    "WorkSession",
    "Invoice",
    "InvoiceWorkSession",
    "PartialPayment",
    "Item",
    "Order",
    "OrderItem",
    "Workshop",
    "Task",
    "TaskCost",
    "WorkshopCost",
]
