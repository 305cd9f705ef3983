# financehub/services/orders.py
#
# Order Rules
# Order numbering and the side effects of an order getting paid
# (stock deduction and the matching income transaction).

from datetime import date

from sqlalchemy.orm import Session

from financehub.logger import get_logger
from financehub.services.ledger import (
    ORDERS_CATEGORY,
    first_active_account,
    get_or_create_category,
    record_transaction,
)
from models import Order, Transaction, utcnow, utctoday

logger = get_logger(__name__)


def next_order_number(db: Session, today: date | None = None) -> str:
    """ORD-YYYYMMDD-NNNN where NNNN is one more than the orders numbered that day."""
    today = today or utctoday()
    prefix = f"ORD-{today:%Y%m%d}-"
    seq = db.query(Order).filter(Order.order_number.like(f"{prefix}%")).count() + 1
    candidate = f"{prefix}{seq:04d}"
    while db.query(Order.id).filter(Order.order_number == candidate).first():
        seq += 1
        candidate = f"{prefix}{seq:04d}"
    return candidate


def mark_order_paid(db: Session, user_id: int, order: Order) -> Transaction | None:
    """
    Apply the UNPAID -> PAID transition.

    Ordered quantities leave stock, `paid_at` is stamped, and the order amount
    is booked as income on the user's first active account. Without an active
    account the income is not booked.
    """
    for line in order.order_items:
        item = line.item
        if item.quantity < line.quantity:
            logger.warning(
                "Item %s has %s in stock, order %s takes %s",
                item.id,
                item.quantity,
                order.order_number,
                line.quantity,
            )
        item.quantity = max(item.quantity - line.quantity, 0)

    order.status = "PAID"
    order.paid_at = utcnow()

    account = first_active_account(db, user_id)
    if account is None:
        logger.warning(
            "Order %s paid but user %s has no active account; income not recorded",
            order.order_number,
            user_id,
        )
        return None

    name, color = ORDERS_CATEGORY
    category = get_or_create_category(db, user_id, name, color, "INCOME")
    tx = record_transaction(
        db,
        user_id,
        account,
        category,
        order.amount,
        f"Order Payment - {order.order_number}",
        "INCOME",
    )
    logger.info("Order %s paid: %s cents booked", order.order_number, order.amount)
    return tx
