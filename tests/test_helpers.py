from __future__ import annotations

from datetime import date

import pytest

from financehub.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    is_valid_email,
    validate_password,
    verify_password,
)
from financehub.services.freelance import allocate
from financehub.services.invoices import next_invoice_number
from financehub.services.money import (
    format_money,
    from_cents,
    month_range,
    pagination_meta,
    percentage_change,
    period_range,
    previous_month_range,
    to_cents,
)
from financehub.services.orders import next_order_number
from models import FreelanceProject, Invoice, Order, User


@pytest.mark.parametrize(
    ("amount", "cents"),
    [(0, 0), (12.5, 1250), (0.1 + 0.2, 30), (19.99, 1999), (2.675, 268), (-4.005, -401)],
)
def test_to_cents_rounds_half_up(amount, cents) -> None:
    assert to_cents(amount) == cents


def test_from_cents() -> None:
    assert from_cents(1999) == 19.99
    assert from_cents(None) == 0.0


def test_percentage_change() -> None:
    assert percentage_change(150, 100) == 50.0
    assert percentage_change(50, 100) == -50.0
    assert percentage_change(10, 0) == 100.0
    assert percentage_change(0, 0) == 0.0


def test_month_ranges() -> None:
    assert month_range(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert previous_month_range(date(2024, 1, 15)) == (date(2023, 12, 1), date(2023, 12, 31))


def test_period_range() -> None:
    today = date(2024, 5, 15)
    assert period_range("daily", today) == (today, today, "daily")
    assert period_range("weekly", today) == (date(2024, 5, 9), today, "weekly")
    assert period_range("yearly", today) == (date(2024, 1, 1), today, "yearly")
    assert period_range("fortnightly", today) == (date(2024, 5, 1), today, "monthly")


def test_pagination_meta() -> None:
    assert pagination_meta(120, 50, 50) == {
        "total": 120,
        "limit": 50,
        "offset": 50,
        "hasNext": True,
        "hasPrev": True,
    }


def test_allocate_keeps_the_total() -> None:
    shares = allocate(1000, [1.0, 2.0])
    assert shares == [333, 667]
    assert sum(allocate(999, [0.5, 0.25, 0.25])) == 999


def test_format_money() -> None:
    assert format_money(123456, "USD") == "$1,234.56"
    assert format_money(500, "JOD") == "JD5.00"


def test_password_hashing() -> None:
    hashed = hash_password("Sup3r$ecret")

    assert hashed.startswith("scrypt$")
    assert verify_password("Sup3r$ecret", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("Sup3r$ecret", "not-a-hash")


def test_password_rules() -> None:
    assert validate_password("Sup3r$ecret") == []
    assert len(validate_password("abc")) == 4


def test_email_rule() -> None:
    assert is_valid_email("a@b.co")
    assert not is_valid_email("a b@c.d")
    assert not is_valid_email("missing-at.example")


def test_tokens_are_typed() -> None:
    access = create_access_token(7)
    refresh = create_refresh_token(7)

    assert decode_token(access, "access")["userId"] == 7
    assert decode_token(access, "refresh") is None
    assert decode_token(refresh, "refresh")["userId"] == 7
    assert decode_token("nonsense", "access") is None


def _user(db_session) -> User:
    user = User(name="Ada", email="ada@example.com", password_hash=hash_password("Sup3r$ecret"))
    db_session.add(user)
    db_session.flush()
    return user


def test_order_numbers_are_sequential_per_day(db_session) -> None:
    user = _user(db_session)
    day = date(2024, 5, 17)

    first = next_order_number(db_session, day)
    db_session.add(Order(user_id=user.id, order_number=first, amount=100, type="Retail"))
    db_session.flush()

    assert first == "ORD-20240517-0001"
    assert next_order_number(db_session, day) == "ORD-20240517-0002"
    assert next_order_number(db_session, date(2024, 5, 18)) == "ORD-20240518-0001"


def test_invoice_numbers_skip_taken_values(db_session) -> None:
    user = _user(db_session)
    project = FreelanceProject(user_id=user.id, name="Site", client="Acme", hourly_rate=5000)
    db_session.add(project)
    db_session.flush()
    # a manually numbered invoice already took the first slot
    db_session.add(
        Invoice(
            user_id=user.id,
            project_id=project.id,
            invoice_number="INV-20240517-001",
            amount=1000,
            due_date=date(2024, 6, 16),
        )
    )
    db_session.flush()

    assert next_invoice_number(db_session, date(2024, 5, 17)) == "INV-20240517-002"
