# financehub/services/money.py
#
# Money & Period Helpers
# Cents <-> currency-unit conversion, percentage change, reporting windows,
# and currency display metadata.

from calendar import monthrange
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from models import utctoday


# ---- Cents Conversion ----

def to_cents(amount: float | int | Decimal | None) -> int:
    """Convert a currency amount to integer cents, rounding half up."""
    if amount is None:
        return 0
    cents = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def from_cents(cents: int | None) -> float:
    """Convert integer cents to a currency amount for JSON responses."""
    if not cents:
        return 0.0
    return cents / 100


def hours_value_cents(hours: float, rate_cents: int) -> int:
    """Value of `hours` billed at `rate_cents` per hour, rounded to a whole cent."""
    value = Decimal(str(hours)) * Decimal(rate_cents)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_hours(hours: float | None) -> str:
    return f"{(hours or 0.0):.2f}"


# ---- Ratios ----

def percentage_change(current: float, previous: float) -> float:
    """
    Percent change from `previous` to `current`, rounded to 2 decimals.

    With no previous value the change is 100 when something happened and 0 otherwise.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 2)


def percent_of(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


# ---- Date Ranges ----

def month_range(day: date) -> tuple[date, date]:
    """Inclusive (first, last) day of the month containing `day`."""
    last = monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def previous_month_range(day: date) -> tuple[date, date]:
    first_of_month = day.replace(day=1)
    return month_range(first_of_month - timedelta(days=1))


def period_range(period: str, today: date | None = None) -> tuple[date, date, str]:
    """
    Reporting window for the operations dashboard.

    Returns (start, end, normalized_period); unknown periods fall back to monthly.
    """
    today = today or utctoday()
    if period == "daily":
        return today, today, "daily"
    if period == "weekly":
        return today - timedelta(days=6), today, "weekly"
    if period == "yearly":
        return date(today.year, 1, 1), today, "yearly"
    return today.replace(day=1), today, "monthly"


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


# ---- Pagination ----

def pagination_meta(total: int, limit: int, offset: int) -> dict:
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasNext": offset + limit < total,
        "hasPrev": offset > 0,
    }


# ---- Currency Display ----

CURRENCIES = {
    "USD": {"symbol": "$", "name": "US Dollar"},
    "EUR": {"symbol": "€", "name": "Euro"},
    "GBP": {"symbol": "£", "name": "British Pound"},
    "JPY": {"symbol": "¥", "name": "Japanese Yen"},
    "CAD": {"symbol": "C$", "name": "Canadian Dollar"},
    "AUD": {"symbol": "A$", "name": "Australian Dollar"},
    "CHF": {"symbol": "CHF", "name": "Swiss Franc"},
    "CNY": {"symbol": "¥", "name": "Chinese Yuan"},
    "JOD": {"symbol": "JD", "name": "Jordanian Dinar"},
}


def currency_symbol(code: str | None) -> str:
    return CURRENCIES.get((code or "").upper(), {}).get("symbol", code or "")


def format_money(cents: int, currency: str = "USD") -> str:
    return f"{currency_symbol(currency)}{from_cents(cents):,.2f}"
