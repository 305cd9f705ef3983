from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from models import utctoday


@pytest.fixture()
def project(client: TestClient, auth_headers) -> dict:
    response = client.post(
        "/api/freelance/projects",
        json={"name": "Website", "client": "Acme", "hourlyRate": 40},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _manual(client, headers, project_id, hours, paid=False) -> dict:
    response = client.post(
        "/api/freelance/work-sessions/manual",
        json={
            "projectId": project_id,
            "workHours": hours,
            "date": utctoday().isoformat(),
            "description": "Layout work",
            "isPaid": paid,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _project(client, headers, project_id) -> dict:
    projects = client.get("/api/freelance/projects", headers=headers).json()["data"]
    return next(p for p in projects if p["id"] == project_id)


def _transactions(client, headers) -> list[dict]:
    return client.get("/api/transactions", headers=headers).json()["data"]


def test_project_defaults(project) -> None:
    assert project["hourlyRate"] == 40.0
    assert project["paymentType"] == "HOURLY_RATE"
    assert project["status"] == "ACTIVE"
    assert project["totalHours"] == 0


def test_manual_unpaid_session_updates_counters(client: TestClient, auth_headers, project) -> None:
    ws = _manual(client, auth_headers, project["id"], 2.5)

    assert ws["workHours"] == "2.50"
    assert ws["isPaid"] is False
    assert ws["project"]["name"] == "Website"

    stats = _project(client, auth_headers, project["id"])
    assert stats["totalHours"] == 2.5
    assert stats["unpaidHours"] == 2.5
    assert stats["paidHours"] == 0
    assert stats["totalSessions"] == 1
    assert stats["completedSessions"] == 1
    assert stats["paidSessions"] == 0


def test_manual_paid_session_books_income(client: TestClient, auth_headers, account, project) -> None:
    _manual(client, auth_headers, project["id"], 1.5, paid=True)

    txs = _transactions(client, auth_headers)
    assert len(txs) == 1
    assert txs[0]["amount"] == 60.0
    assert txs[0]["type"] == "INCOME"
    assert txs[0]["description"] == "Freelance work - Website (1.50h @ $40.00/h)"
    assert txs[0]["category"]["name"] == "Freelance"
    assert txs[0]["category"]["color"] == "#10B981"

    stats = _project(client, auth_headers, project["id"])
    assert stats["paidHours"] == 1.5
    assert stats["unpaidHours"] == 0
    assert stats["totalAmount"] == 60.0


def test_paid_session_without_account_writes_nothing(client: TestClient, auth_headers, project) -> None:
    response = client.post(
        "/api/freelance/work-sessions/manual",
        json={"projectId": project["id"], "workHours": 1, "isPaid": True},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert "No active account" in response.json()["message"]
    assert client.get("/api/freelance/work-sessions", headers=auth_headers).json()["data"] == []
    assert _project(client, auth_headers, project["id"])["totalHours"] == 0


def test_manual_session_needs_positive_hours(client: TestClient, auth_headers, project) -> None:
    response = client.post(
        "/api/freelance/work-sessions/manual",
        json={"projectId": project["id"], "workHours": 0},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_timer_start_and_end(client: TestClient, auth_headers, project) -> None:
    started = client.post(
        "/api/freelance/work-sessions/start",
        json={"projectId": project["id"], "description": "Bug bash"},
        headers=auth_headers,
    )
    assert started.status_code == 201
    ws = started.json()["data"]
    assert ws["isActive"] is True
    assert ws["endTime"] is None

    again = client.post(
        "/api/freelance/work-sessions/start", json={"projectId": project["id"]}, headers=auth_headers
    )
    assert again.status_code == 400
    assert again.json()["message"] == "There is already an active work session for this project"

    # a running session cannot be paid
    assert client.put(
        f"/api/freelance/work-sessions/{ws['id']}", json={"isPaid": True}, headers=auth_headers
    ).status_code == 400

    too_long_break = client.put(
        f"/api/freelance/work-sessions/{ws['id']}/end", json={"breakDuration": 30}, headers=auth_headers
    )
    assert too_long_break.status_code == 400

    ended = client.put(f"/api/freelance/work-sessions/{ws['id']}/end", json={}, headers=auth_headers)
    assert ended.status_code == 200
    assert ended.json()["data"]["isActive"] is False
    assert ended.json()["data"]["workHours"] == "0.00"

    twice = client.put(f"/api/freelance/work-sessions/{ws['id']}/end", json={}, headers=auth_headers)
    assert twice.status_code == 400


def test_start_on_missing_project(client: TestClient, auth_headers) -> None:
    response = client.post("/api/freelance/work-sessions/start", json={"projectId": 404}, headers=auth_headers)
    assert response.status_code == 404


def test_toggle_paid_books_and_removes_income(client: TestClient, auth_headers, account, project) -> None:
    ws = _manual(client, auth_headers, project["id"], 2)

    paid = client.put(f"/api/freelance/work-sessions/{ws['id']}", json={"isPaid": True}, headers=auth_headers)
    assert paid.status_code == 200
    assert paid.json()["data"]["isPaid"] is True
    assert paid.json()["data"]["transactionId"] is not None
    assert [t["amount"] for t in _transactions(client, auth_headers)] == [80.0]
    assert _project(client, auth_headers, project["id"])["paidHours"] == 2

    unpaid = client.put(f"/api/freelance/work-sessions/{ws['id']}", json={"isPaid": False}, headers=auth_headers)
    assert unpaid.json()["data"]["isPaid"] is False
    assert unpaid.json()["data"]["transactionId"] is None
    assert _transactions(client, auth_headers) == []

    stats = _project(client, auth_headers, project["id"])
    assert stats["paidHours"] == 0
    assert stats["unpaidHours"] == 2
    assert stats["totalAmount"] == 0


def test_reference_only_project_uses_custom_amount(client: TestClient, auth_headers, account) -> None:
    project = client.post(
        "/api/freelance/projects",
        json={"name": "Retainer", "client": "Globex", "hourlyRate": 50, "paymentType": "REFERENCE_ONLY"},
        headers=auth_headers,
    ).json()["data"]
    ws = _manual(client, auth_headers, project["id"], 3)

    client.put(
        f"/api/freelance/work-sessions/{ws['id']}",
        json={"isPaid": True, "customAmount": 125},
        headers=auth_headers,
    )

    txs = _transactions(client, auth_headers)
    assert txs[0]["amount"] == 125.0
    assert txs[0]["description"] == "Freelance work - Retainer (Custom amount: $125.00)"


def test_delete_session_adjusts_counters(client: TestClient, auth_headers, project) -> None:
    keep = _manual(client, auth_headers, project["id"], 1)
    drop = _manual(client, auth_headers, project["id"], 2)

    assert client.delete(f"/api/freelance/work-sessions/{drop['id']}", headers=auth_headers).status_code == 200

    stats = _project(client, auth_headers, project["id"])
    assert stats["totalHours"] == 1
    assert stats["unpaidHours"] == 1
    sessions = client.get(
        f"/api/freelance/work-sessions?projectId={project['id']}", headers=auth_headers
    ).json()["data"]
    assert [s["id"] for s in sessions] == [keep["id"]]


def test_bulk_payment(client: TestClient, auth_headers, account, project) -> None:
    other = client.post(
        "/api/freelance/projects",
        json={"name": "App", "client": "Initech", "hourlyRate": 60},
        headers=auth_headers,
    ).json()["data"]
    a = _manual(client, auth_headers, project["id"], 1)
    b = _manual(client, auth_headers, project["id"], 2)
    c = _manual(client, auth_headers, other["id"], 1)

    response = client.post(
        "/api/freelance/work-sessions/bulk-payment",
        json={"sessionIds": [a["id"], b["id"], c["id"]], "amount": 400},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    assert data["sessionsUpdated"] == 3
    assert data["totalHours"] == "4.00"
    assert data["transaction"]["amount"] == 400.0
    assert data["transaction"]["description"] == (
        "Freelance work - Bulk payment (3 sessions: Website, App) - Total: 4.00h"
    )

    website = _project(client, auth_headers, project["id"])
    app = _project(client, auth_headers, other["id"])
    assert website["paidHours"] == 3 and website["unpaidHours"] == 0
    assert app["paidHours"] == 1 and app["unpaidHours"] == 0
    assert website["totalAmount"] + app["totalAmount"] == 400.0
    assert website["totalAmount"] == 300.0

    repeat = client.post(
        "/api/freelance/work-sessions/bulk-payment",
        json={"sessionIds": [a["id"]], "amount": 10},
        headers=auth_headers,
    )
    assert repeat.status_code == 400

    # un-paying one session keeps the shared transaction
    client.put(f"/api/freelance/work-sessions/{a['id']}", json={"isPaid": False}, headers=auth_headers)
    assert len(_transactions(client, auth_headers)) == 1


def test_bulk_payment_rejects_running_or_unknown_sessions(client: TestClient, auth_headers, account, project) -> None:
    running = client.post(
        "/api/freelance/work-sessions/start", json={"projectId": project["id"]}, headers=auth_headers
    ).json()["data"]

    response = client.post(
        "/api/freelance/work-sessions/bulk-payment",
        json={"sessionIds": [running["id"], 999], "amount": 10},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Some sessions not found or not completed"

    empty = client.post(
        "/api/freelance/work-sessions/bulk-payment",
        json={"sessionIds": [], "amount": 10},
        headers=auth_headers,
    )
    assert empty.status_code == 400


def test_project_payment_and_summary(client: TestClient, auth_headers, account, project) -> None:
    _manual(client, auth_headers, project["id"], 1.25)
    _manual(client, auth_headers, project["id"], 0.75, paid=True)

    response = client.post(
        f"/api/freelance/projects/{project['id']}/payment",
        json={"amount": 250, "accountId": account["id"]},
        headers=auth_headers,
    )
    assert response.status_code == 201
    tx = response.json()["data"]["transaction"]
    assert tx["description"] == "Freelance payment - Website"
    assert tx["amount"] == 250.0

    summary = client.get("/api/freelance/summary", headers=auth_headers).json()["data"]
    assert summary == {
        "activeProjects": 1,
        "totalHours": "2.00",
        "paidHours": "0.75",
        "unpaidHours": "1.25",
        "totalEarnings": 280.0,
    }


def test_update_and_delete_project(client: TestClient, auth_headers, project) -> None:
    _manual(client, auth_headers, project["id"], 1)

    updated = client.put(
        f"/api/freelance/projects/{project['id']}",
        json={"status": "PAUSED", "hourlyRate": 45.5},
        headers=auth_headers,
    ).json()["data"]
    assert updated["status"] == "PAUSED"
    assert updated["hourlyRate"] == 45.5

    assert client.delete(f"/api/freelance/projects/{project['id']}", headers=auth_headers).status_code == 200
    assert client.get("/api/freelance/work-sessions", headers=auth_headers).json()["data"] == []


def test_unpaying_bulk_sessions_returns_each_project_share(client: TestClient, auth_headers, account, project) -> None:
    other = client.post(
        "/api/freelance/projects",
        json={"name": "App", "client": "Initech", "hourlyRate": 60},
        headers=auth_headers,
    ).json()["data"]
    a = _manual(client, auth_headers, project["id"], 1)
    b = _manual(client, auth_headers, other["id"], 1)
    client.post(
        "/api/freelance/work-sessions/bulk-payment",
        json={"sessionIds": [a["id"], b["id"]], "amount": 100},
        headers=auth_headers,
    )

    client.put(f"/api/freelance/work-sessions/{a['id']}", json={"isPaid": False}, headers=auth_headers)

    # the shared transaction keeps only the part still covering the other session
    assert [t["amount"] for t in _transactions(client, auth_headers)] == [50.0]
    assert _project(client, auth_headers, project["id"])["totalAmount"] == 0
    assert _project(client, auth_headers, other["id"])["totalAmount"] == 50.0

    client.put(f"/api/freelance/work-sessions/{b['id']}", json={"isPaid": False}, headers=auth_headers)

    assert _transactions(client, auth_headers) == []
    assert _project(client, auth_headers, project["id"])["totalAmount"] == 0
    assert _project(client, auth_headers, other["id"])["totalAmount"] == 0


def test_deleting_project_removes_session_payments(client: TestClient, auth_headers, account, project) -> None:
    ws = _manual(client, auth_headers, project["id"], 2)
    client.post(
        "/api/freelance/partial-payments",
        json={"workSessionId": ws["id"], "amount": 40},
        headers=auth_headers,
    )

    assert client.delete(f"/api/freelance/projects/{project['id']}", headers=auth_headers).status_code == 200
    assert client.get("/api/freelance/partial-payments", headers=auth_headers).json()["data"] == []
