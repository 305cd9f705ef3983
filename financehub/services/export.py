# financehub/services/export.py
#
# Exports
# CSV download of the ledger (pandas) and the context for the printable invoice template.

import io

import pandas as pd

from financehub.logger import get_logger
from financehub.services.freelance import session_hours
from financehub.services.invoices import invoice_remaining, invoice_total_paid
from financehub.services.money import format_money
from models import Invoice, Transaction, User

logger = get_logger(__name__)

TRANSACTION_COLUMNS = ["date", "description", "type", "amount", "account", "category", "cleared"]


def transactions_csv(user_id: int, transactions: list[Transaction]) -> io.BytesIO:
    """Serialize transactions to CSV; expenses are written as negative amounts."""
    data = [
        {
            "date": tx.date.isoformat(),
            "description": tx.description,
            "type": tx.type,
            "amount": (tx.amount if tx.type == "INCOME" else -tx.amount) / 100,
            "account": tx.account.name if tx.account else "",
            "category": tx.category.name if tx.category else "",
            "cleared": tx.cleared,
        }
        for tx in transactions
    ]

    df = pd.DataFrame(data, columns=TRANSACTION_COLUMNS)
    buffer = io.BytesIO()
    df.to_csv(buffer, index=False, encoding="utf-8")
    buffer.seek(0)
    logger.info("Exported %s transactions as CSV for user %s", len(data), user_id)
    return buffer


def invoice_context(invoice: Invoice, user: User) -> dict:
    """Template variables for templates/invoice.html."""
    project = invoice.project
    currency = user.currency

    lines = []
    for link in invoice.session_links:
        ws = link.work_session
        hours = session_hours(ws)
        lines.append(
            {
                "date": ws.start_time.date().isoformat(),
                "description": ws.description or "Work session",
                "hours": f"{hours:.2f}",
            }
        )

    return {
        "invoice": invoice,
        "project": project,
        "user": user,
        "lines": lines,
        "amount": format_money(invoice.amount, currency),
        "hourly_rate": format_money(project.hourly_rate, currency),
        "total_paid": format_money(invoice_total_paid(invoice), currency),
        "remaining": format_money(invoice_remaining(invoice), currency),
        "payments": [
            {
                "date": p.payment_date.isoformat(),
                "amount": format_money(p.amount, currency),
                "description": p.description or "",
            }
            for p in sorted(invoice.partial_payments, key=lambda p: (p.payment_date, p.id))
        ],
    }
