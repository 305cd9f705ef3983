from __future__ import annotations

import re
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from models import utctoday


@pytest.fixture()
def project(client: TestClient, auth_headers) -> dict:
    return client.post(
        "/api/freelance/projects",
        json={"name": "Branding", "client": "Umbrella", "hourlyRate": 50},
        headers=auth_headers,
    ).json()["data"]


@pytest.fixture()
def sessions(client: TestClient, auth_headers, project) -> list[dict]:
    created = []
    for hours in (2, 4):
        response = client.post(
            "/api/freelance/work-sessions/manual",
            json={"projectId": project["id"], "workHours": hours, "date": utctoday().isoformat()},
            headers=auth_headers,
        )
        created.append(response.json()["data"])
    return created


def _invoice(client, headers, project, sessions, amount=300, **extra) -> dict:
    response = client.post(
        "/api/freelance/invoices",
        json={
            "projectId": project["id"],
            "workSessionIds": [s["id"] for s in sessions],
            "amount": amount,
            "description": "Logo and guidelines",
            **extra,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _pay(client, headers, invoice_id, amount):
    return client.post(
        "/api/freelance/partial-payments",
        json={"invoiceId": invoice_id, "amount": amount},
        headers=headers,
    )


def test_create_invoice(client: TestClient, auth_headers, project, sessions) -> None:
    invoice = _invoice(client, auth_headers, project, sessions)

    assert re.fullmatch(r"INV-\d{8}-001", invoice["invoiceNumber"])
    assert invoice["status"] == "DRAFT"
    assert invoice["dueDate"] == (utctoday() + timedelta(days=30)).isoformat()
    assert invoice["amount"] == 300.0
    assert invoice["remainingAmount"] == 300.0
    assert invoice["isFullyPaid"] is False
    assert invoice["project"]["client"] == "Umbrella"
    assert sorted(link["workSession"]["workHours"] for link in invoice["invoiceWorkSessions"]) == ["2.00", "4.00"]

    listed = client.get("/api/freelance/work-sessions", headers=auth_headers).json()["data"]
    assert {s["invoiceId"] for s in listed} == {invoice["id"]}


def test_sessions_can_only_be_invoiced_once(client: TestClient, auth_headers, project, sessions) -> None:
    _invoice(client, auth_headers, project, sessions[:1])

    response = client.post(
        "/api/freelance/invoices",
        json={"projectId": project["id"], "workSessionIds": [sessions[0]["id"]], "amount": 50},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_duplicate_invoice_number(client: TestClient, auth_headers, project) -> None:
    _invoice(client, auth_headers, project, [], invoiceNumber="INV-2024-001")

    response = client.post(
        "/api/freelance/invoices",
        json={"projectId": project["id"], "amount": 10, "invoiceNumber": "INV-2024-001"},
        headers=auth_headers,
    )
    assert response.status_code == 409


def test_partial_payments_settle_invoice(client: TestClient, auth_headers, account, project, sessions) -> None:
    invoice = _invoice(client, auth_headers, project, sessions)

    first = _pay(client, auth_headers, invoice["id"], 100)
    assert first.status_code == 201, first.text
    state = first.json()["data"]["invoice"]
    assert state["totalPaid"] == 100.0
    assert state["remainingAmount"] == 200.0
    assert state["status"] == "DRAFT"

    second = _pay(client, auth_headers, invoice["id"], 200).json()["data"]["invoice"]
    assert second["isFullyPaid"] is True
    assert second["status"] == "PAID"
    assert second["paidDate"] == utctoday().isoformat()
    assert all(link["workSession"]["isPaid"] for link in second["invoiceWorkSessions"])

    # billed hours moved to paid without extra transactions
    projects = client.get("/api/freelance/projects", headers=auth_headers).json()["data"]
    assert projects[0]["paidHours"] == 6
    assert projects[0]["unpaidHours"] == 0
    assert projects[0]["totalAmount"] == 300.0
    txs = client.get("/api/transactions", headers=auth_headers).json()["data"]
    assert sorted(t["amount"] for t in txs) == [100.0, 200.0]
    assert all(t["category"]["name"] == "Freelance" for t in txs)

    overpay = _pay(client, auth_headers, invoice["id"], 1)
    assert overpay.status_code == 400
    assert overpay.json()["message"] == "Invoice is already fully paid"

    listed = client.get(
        f"/api/freelance/partial-payments?invoiceId={invoice['id']}", headers=auth_headers
    ).json()["data"]
    assert len(listed) == 2
    assert listed[0]["invoice"]["invoiceNumber"] == invoice["invoiceNumber"]
    assert listed[0]["invoice"]["project"]["name"] == "Branding"


def test_partial_payment_needs_a_target(client: TestClient, auth_headers, account) -> None:
    response = client.post("/api/freelance/partial-payments", json={"amount": 10}, headers=auth_headers)
    assert response.status_code == 400


def test_session_partial_payments(client: TestClient, auth_headers, account, project, sessions) -> None:
    ws = sessions[0]  # 2h at $50/h

    half = client.post(
        "/api/freelance/partial-payments",
        json={"workSessionId": ws["id"], "amount": 40},
        headers=auth_headers,
    ).json()["data"]
    assert half["workSession"]["remainingAmount"] == 60.0
    assert half["workSession"]["isPaid"] is False

    rest = client.post(
        "/api/freelance/partial-payments",
        json={"workSessionId": ws["id"], "amount": 60},
        headers=auth_headers,
    ).json()["data"]
    assert rest["workSession"]["isPaid"] is True

    listed = client.get(
        f"/api/freelance/partial-payments?workSessionId={ws['id']}", headers=auth_headers
    ).json()["data"]
    assert [p["amount"] for p in listed] == [60.0, 40.0]


def test_marking_invoice_paid_books_remaining_balance(
    client: TestClient, auth_headers, account, project, sessions
) -> None:
    invoice = _invoice(client, auth_headers, project, sessions, amount=250)
    _pay(client, auth_headers, invoice["id"], 50)

    response = client.put(
        f"/api/freelance/invoices/{invoice['id']}", json={"status": "PAID"}, headers=auth_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "PAID"
    assert data["totalPaid"] == 250.0
    assert [p["amount"] for p in data["partialPayments"]].count(200.0) == 1

    locked = client.put(
        f"/api/freelance/invoices/{invoice['id']}", json={"status": "SENT"}, headers=auth_headers
    )
    assert locked.status_code == 400


def test_invoice_filters_update_and_delete(client: TestClient, auth_headers, account, project, sessions) -> None:
    draft = _invoice(client, auth_headers, project, sessions[:1], amount=100)
    sent = _invoice(client, auth_headers, project, sessions[1:], amount=200, status="SENT")

    only_sent = client.get("/api/freelance/invoices?status=SENT", headers=auth_headers).json()["data"]
    assert [i["id"] for i in only_sent] == [sent["id"]]

    summary = client.get("/api/dashboard/freelance-summary", headers=auth_headers).json()["data"]
    assert summary["unpaidInvoices"] == 1
    assert summary["totalUnpaid"] == 200.0
    assert summary["hoursLogged"] == 6.0
    assert summary["activeProjects"] == 1

    updated = client.put(
        f"/api/freelance/invoices/{draft['id']}",
        json={"status": "SENT", "dueDate": "2030-01-31", "description": "Revised"},
        headers=auth_headers,
    ).json()["data"]
    assert updated["status"] == "SENT"
    assert updated["dueDate"] == "2030-01-31"

    assert client.delete(f"/api/freelance/invoices/{draft['id']}", headers=auth_headers).status_code == 200
    sessions_now = client.get("/api/freelance/work-sessions", headers=auth_headers).json()["data"]
    assert sorted(s["invoiceId"] or 0 for s in sessions_now) == [0, sent["id"]]

    _pay(client, auth_headers, sent["id"], 20)
    blocked = client.delete(f"/api/freelance/invoices/{sent['id']}", headers=auth_headers)
    assert blocked.status_code == 400
    assert blocked.json()["message"] == "Cannot delete invoice with recorded payments"


def test_invoice_export(client: TestClient, auth_headers, project, sessions) -> None:
    invoice = _invoice(client, auth_headers, project, sessions)

    response = client.get(f"/api/freelance/invoices/{invoice['id']}/export", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert invoice["invoiceNumber"] in response.text
    assert "Umbrella" in response.text
    assert "$300.00" in response.text


def test_raising_amount_reopens_paid_invoice(client: TestClient, auth_headers, account, project, sessions) -> None:
    invoice = _invoice(client, auth_headers, project, sessions, amount=100)
    _pay(client, auth_headers, invoice["id"], 100)

    reopened = client.put(
        f"/api/freelance/invoices/{invoice['id']}", json={"amount": 150}, headers=auth_headers
    ).json()["data"]
    assert reopened["status"] == "SENT"
    assert reopened["paidDate"] is None
    assert reopened["isFullyPaid"] is False
    assert reopened["remainingAmount"] == 50.0

    settled = _pay(client, auth_headers, invoice["id"], 50).json()["data"]["invoice"]
    assert settled["status"] == "PAID"
    assert settled["totalPaid"] == 150.0


def test_paying_session_books_only_the_unpaid_balance(
    client: TestClient, auth_headers, account, project, sessions
) -> None:
    ws = sessions[0]  # 2h at $50/h
    client.post(
        "/api/freelance/partial-payments",
        json={"workSessionId": ws["id"], "amount": 40},
        headers=auth_headers,
    )

    paid = client.put(f"/api/freelance/work-sessions/{ws['id']}", json={"isPaid": True}, headers=auth_headers)
    assert paid.json()["data"]["isPaid"] is True

    txs = client.get("/api/transactions", headers=auth_headers).json()["data"]
    assert sorted(t["amount"] for t in txs) == [40.0, 60.0]
    assert any(t["description"].endswith("balance after $40.00 paid") for t in txs)
    projects = client.get("/api/freelance/projects", headers=auth_headers).json()["data"]
    assert projects[0]["totalAmount"] == 100.0
