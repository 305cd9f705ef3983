# financehub/schemas.py
# Role: Pydantic request bodies for every JSON endpoint.
#       Fields are snake_case in Python and camelCase on the wire.
#       Money fields are decimal currency units; routes convert them to cents.

import datetime as dt
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

AccountType = Literal["CHECKING", "SAVINGS", "CREDIT", "INVESTMENT"]
TransactionType = Literal["INCOME", "EXPENSE"]
Frequency = Literal["DAILY", "WEEKLY", "MONTHLY", "YEARLY"]
ProjectStatus = Literal["ACTIVE", "COMPLETED", "PAUSED"]
PaymentType = Literal["HOURLY_RATE", "REFERENCE_ONLY"]
InvoiceStatus = Literal["DRAFT", "SENT", "PAID", "OVERDUE"]
OrderStatus = Literal["UNPAID", "PAID", "CANCELLED"]
OrderPriority = Literal["LOW", "NORMAL", "HIGH", "URGENT"]
TaskStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED"]

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

# Passwords are taken verbatim, surrounding spaces included
Password = Annotated[str, StringConstraints(strip_whitespace=False)]


class BaseSchema(BaseModel):
    """Common config: camelCase aliases, snake_case accepted too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# -------------------------------------------------------------------
# Auth
# -------------------------------------------------------------------

class RegisterRequest(BaseSchema):
    name: str = Field(min_length=2, max_length=50)
    email: str
    password: Password
    timezone: str = "UTC"
    currency: str = Field(default="USD", min_length=3, max_length=3)


class LoginRequest(BaseSchema):
    email: str
    password: Password


class RefreshRequest(BaseSchema):
    refresh_token: str | None = None


class ProfileUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    email: str | None = None
    timezone: str | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class ChangePasswordRequest(BaseSchema):
    current_password: Password
    new_password: Password


# -------------------------------------------------------------------
# Personal finance
# -------------------------------------------------------------------

class AccountCreate(BaseSchema):
    name: str = Field(min_length=2, max_length=50)
    type: AccountType
    balance: float = 0
    currency: str = Field(default="USD", min_length=3, max_length=3)


class AccountUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    type: AccountType | None = None
    balance: float | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    is_active: bool | None = None


class CategoryCreate(BaseSchema):
    name: str = Field(min_length=2, max_length=50)
    color: str = Field(pattern=HEX_COLOR)
    type: TransactionType


class CategoryUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    color: str | None = Field(default=None, pattern=HEX_COLOR)
    type: TransactionType | None = None


class TransactionCreate(BaseSchema):
    account_id: int
    category_id: int
    description: str = Field(min_length=1, max_length=200)
    amount: float
    date: dt.date | None = None
    type: TransactionType
    cleared: bool = False


class TransactionUpdate(BaseSchema):
    account_id: int | None = None
    category_id: int | None = None
    description: str | None = Field(default=None, min_length=1, max_length=200)
    amount: float | None = None
    date: dt.date | None = None
    type: TransactionType | None = None
    cleared: bool | None = None


class SavingsGoalCreate(BaseSchema):
    name: str = Field(min_length=2, max_length=50)
    target: float = Field(gt=0)
    current: float = Field(default=0, ge=0)
    color: str = Field(default="#3B82F6", pattern=HEX_COLOR)
    target_date: dt.date | None = None


class SavingsGoalUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    target: float | None = Field(default=None, gt=0)
    current: float | None = Field(default=None, ge=0)
    color: str | None = Field(default=None, pattern=HEX_COLOR)
    target_date: dt.date | None = None


class RecurringCreate(BaseSchema):
    account_id: int
    category_id: int
    description: str = Field(min_length=1, max_length=200)
    amount: float = Field(gt=0)
    type: TransactionType
    frequency: Frequency
    next_due_date: dt.date


class RecurringUpdate(BaseSchema):
    account_id: int | None = None
    category_id: int | None = None
    description: str | None = Field(default=None, min_length=1, max_length=200)
    amount: float | None = Field(default=None, gt=0)
    type: TransactionType | None = None
    frequency: Frequency | None = None
    next_due_date: dt.date | None = None
    is_active: bool | None = None


# -------------------------------------------------------------------
# Freelance
# -------------------------------------------------------------------

class ProjectCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    client: str = Field(min_length=1, max_length=100)
    hourly_rate: float = Field(gt=0)
    payment_type: PaymentType = "HOURLY_RATE"
    status: ProjectStatus = "ACTIVE"


class ProjectUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    client: str | None = Field(default=None, min_length=1, max_length=100)
    hourly_rate: float | None = Field(default=None, gt=0)
    payment_type: PaymentType | None = None
    status: ProjectStatus | None = None


class StartSessionRequest(BaseSchema):
    project_id: int
    description: str | None = None


class ManualSessionRequest(BaseSchema):
    project_id: int
    work_hours: float = Field(gt=0)
    date: dt.date | None = None
    description: str | None = None
    is_paid: bool = False


class EndSessionRequest(BaseSchema):
    break_duration: int = Field(default=0, ge=0)


class SessionUpdate(BaseSchema):
    is_paid: bool | None = None
    description: str | None = None
    custom_amount: float | None = Field(default=None, ge=0)


class ProjectPaymentRequest(BaseSchema):
    amount: float = Field(gt=0)
    date: dt.date | None = None
    account_id: int | None = None
    category_id: int | None = None


class BulkPaymentRequest(BaseSchema):
    session_ids: list[int] = Field(min_length=1)
    amount: float = Field(gt=0)
    date: dt.date | None = None
    account_id: int | None = None
    category_id: int | None = None


class InvoiceCreate(BaseSchema):
    project_id: int
    work_session_ids: list[int] = Field(default_factory=list)
    amount: float = Field(gt=0)
    due_date: dt.date | None = None
    description: str | None = None
    status: InvoiceStatus = "DRAFT"
    invoice_number: str | None = Field(default=None, min_length=1, max_length=50)


class InvoiceUpdate(BaseSchema):
    amount: float | None = Field(default=None, gt=0)
    due_date: dt.date | None = None
    description: str | None = None
    status: InvoiceStatus | None = None


class PartialPaymentCreate(BaseSchema):
    invoice_id: int | None = None
    work_session_id: int | None = None
    amount: float = Field(gt=0)
    payment_date: dt.date | None = None
    description: str | None = None
    account_id: int | None = None
    category_id: int | None = None


# -------------------------------------------------------------------
# Operations
# -------------------------------------------------------------------

class ItemCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    quantity: int = Field(default=0, ge=0)
    unit_cost: float = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)
    max_stock: int | None = Field(default=None, ge=0)
    is_active: bool = True


class ItemUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    quantity: int | None = Field(default=None, ge=0)
    unit_cost: float | None = Field(default=None, ge=0)
    min_stock: int | None = Field(default=None, ge=0)
    max_stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class StockEntry(BaseSchema):
    item_id: int
    quantity: int = Field(gt=0)
    unit_cost: float = Field(ge=0)


class BulkStockUpdate(BaseSchema):
    items: list[StockEntry] = Field(min_length=1)
    account_id: int | None = None
    category_id: int | None = None


class OrderItemIn(BaseSchema):
    item_id: int
    quantity: int = Field(gt=0)
    unit_price: float = Field(ge=0)


class OrderCreate(BaseSchema):
    amount: float = Field(ge=0)
    type: str = Field(min_length=1, max_length=50)
    due_date: dt.date | None = None
    priority: OrderPriority = "NORMAL"
    description: str | None = None
    items: list[OrderItemIn] = Field(default_factory=list)


class OrderUpdate(BaseSchema):
    status: OrderStatus | None = None
    amount: float | None = Field(default=None, ge=0)
    type: str | None = Field(default=None, min_length=1, max_length=50)
    due_date: dt.date | None = None
    priority: OrderPriority | None = None
    description: str | None = None


class TaskCostIn(BaseSchema):
    description: str = Field(min_length=1, max_length=200)
    amount: float = Field(ge=0)
    item_id: int | None = None


class TaskCreate(BaseSchema):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    due_date: dt.date | None = None
    assigned_to: str | None = None
    order_id: int | None = None
    workshop_id: int | None = None
    costs: list[TaskCostIn] = Field(default_factory=list)


class TaskUpdate(BaseSchema):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: TaskStatus | None = None
    due_date: dt.date | None = None
    assigned_to: str | None = None
    order_id: int | None = None
    workshop_id: int | None = None


class TaskStatusUpdate(BaseSchema):
    status: TaskStatus


class WorkshopCostIn(BaseSchema):
    description: str = Field(min_length=1, max_length=200)
    amount: float = Field(ge=0)


class WorkshopCreate(BaseSchema):
    title: str = Field(min_length=1, max_length=200)
    date: dt.date
    client: str | None = None
    organization: str | None = None
    location: str | None = None
    notes: str | None = None
    order_id: int | None = None
    costs: list[WorkshopCostIn] = Field(default_factory=list)


class WorkshopUpdate(BaseSchema):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    date: dt.date | None = None
    client: str | None = None
    organization: str | None = None
    location: str | None = None
    notes: str | None = None
    order_id: int | None = None
