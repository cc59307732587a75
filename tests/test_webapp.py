import sqlite3

import pytest
from sqlalchemy.exc import OperationalError

from finance_tracker.models import db


@pytest.fixture
def seeded(client):
    client.post("/api/users", json={"id": "u1", "email": "u1@example.com", "name": "User One"})
    categories = client.post("/api/categories/default/u1").get_json()
    return {c["name"]: c for c in categories}


def _create(client, category, amount, kind, date="2024-01-15", description="x", user_id="u1"):
    return client.post(
        "/api/transactions",
        json={
            "userId": user_id,
            "categoryId": category["id"],
            "type": kind,
            "amount": amount,
            "description": description,
            "date": date,
        },
    )


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "message": "Server is running"}


def test_upsert_user_refreshes_email(client):
    client.post("/api/users", json={"id": "u1", "email": "old@example.com", "name": "Old"})
    resp = client.post("/api/users", json={"id": "u1", "email": "new@example.com"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["email"] == "new@example.com"
    assert body["name"] == "new"


def test_upsert_user_requires_id(client):
    resp = client.post("/api/users", json={"email": "a@example.com"})
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "validation_error"


def test_bootstrap_endpoint(client, seeded):
    assert len(seeded) == 14
    again = client.post("/api/categories/default/u1").get_json()
    assert sorted(c["name"] for c in again) == sorted(seeded)
    listed = client.get("/api/categories/u1").get_json()
    assert [c["name"] for c in listed] == sorted(seeded)


def test_bootstrap_unknown_user(client):
    resp = client.post("/api/categories/default/ghost")
    assert resp.status_code == 404
    assert resp.get_json()["kind"] == "not_found"


def test_create_category_and_duplicate(client, seeded):
    body = {"userId": "u1", "name": "Pets", "type": "expense"}
    first = client.post("/api/categories", json=body)
    assert first.status_code == 201
    assert first.get_json()["type"] == "expense"
    second = client.post("/api/categories", json=body)
    assert second.status_code == 409
    assert second.get_json()["kind"] == "conflict"


def test_delete_category_requires_owner(client, seeded):
    pets = client.post("/api/categories", json={"userId": "u1", "name": "Pets", "type": "expense"}).get_json()
    assert client.delete(f"/api/categories/{pets['id']}").status_code == 400
    assert client.delete(f"/api/categories/{pets['id']}", headers={"X-User-Id": "u2"}).status_code == 404
    resp = client.delete(f"/api/categories/{pets['id']}", headers={"X-User-Id": "u1"})
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Category deleted"}


def test_transaction_lifecycle(client, seeded):
    created = _create(client, seeded["Salary"], "100", "income", description="Paycheck")
    assert created.status_code == 201
    txn = created.get_json()
    assert txn["amount"] == 100
    assert txn["category"]["name"] == "Salary"

    _create(client, seeded["Rent"], 40, "expense", date="2024-01-20")
    summary = client.get("/api/transactions/summary/u1").get_json()
    assert summary == {"totalIncome": 100.0, "totalExpenses": 40.0, "balance": 60.0}

    listed = client.get("/api/transactions/u1").get_json()
    assert [t["date"] for t in listed] == ["2024-01-20", "2024-01-15"]

    updated = client.put(
        f"/api/transactions/{txn['id']}",
        json={
            "userId": "u1",
            "amount": "150.25",
            "description": "Bonus",
            "date": "2024-01-16",
            "categoryId": seeded["Gift"]["id"],
        },
    )
    assert updated.status_code == 200
    assert updated.get_json()["amount"] == 150.25
    assert updated.get_json()["categoryId"] == seeded["Gift"]["id"]

    deleted = client.delete(f"/api/transactions/{txn['id']}", headers={"X-User-Id": "u1"})
    assert deleted.get_json() == {"message": "Transaction deleted"}
    assert len(client.get("/api/transactions/u1").get_json()) == 1


def test_create_transaction_type_mismatch(client, seeded):
    resp = _create(client, seeded["Rent"], "10", "income")
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "validation_error"


def test_create_transaction_bad_amount(client, seeded):
    resp = _create(client, seeded["Rent"], "ten", "expense")
    assert resp.status_code == 400
    assert "amount" in resp.get_json()["error"]


def test_delete_missing_transaction(client, seeded):
    resp = client.delete("/api/transactions/nope", headers={"X-User-Id": "u1"})
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Transaction not found", "kind": "not_found"}


def test_list_filters_via_query(client, seeded):
    _create(client, seeded["Salary"], "100", "income", date="2024-01-05")
    _create(client, seeded["Rent"], "40", "expense", date="2024-02-05")
    resp = client.get("/api/transactions/u1?type=expense")
    assert [t["type"] for t in resp.get_json()] == ["expense"]
    resp = client.get("/api/transactions/u1?startDate=2024-01-01&endDate=2024-01-31")
    assert [t["date"] for t in resp.get_json()] == ["2024-01-05"]
    summary = client.get("/api/transactions/summary/u1?startDate=2024-02-01").get_json()
    assert summary == {"totalIncome": 0.0, "totalExpenses": 40.0, "balance": -40.0}


def test_invalid_filter(client, seeded):
    resp = client.get("/api/transactions/u1?type=transfer")
    assert resp.status_code == 400


def test_category_breakdown(client, seeded):
    _create(client, seeded["Rent"], "40", "expense")
    rows = client.get("/api/transactions/summary/u1/categories").get_json()
    assert rows == [{"categoryId": seeded["Rent"]["id"], "name": "Rent", "type": "expense", "total": 40.0}]


def test_summary_unknown_user(client):
    assert client.get("/api/transactions/summary/ghost").status_code == 404


def test_unknown_route_uses_error_shape(client):
    resp = client.get("/api/nothing/here/at/all")
    assert resp.status_code == 404
    assert resp.get_json()["kind"] == "not_found"


def test_cors_allows_configured_origin(client):
    resp = client.get("/api/health", headers={"Origin": "http://localhost:3000"})
    assert resp.headers.get("Access-Control-Allow-Origin") == "http://localhost:3000"
    assert resp.headers.get("Access-Control-Allow-Credentials") == "true"


def test_cors_rejects_other_origin(client):
    resp = client.get("/api/health", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers


def test_create_transaction_amount_out_of_range(client, seeded):
    for amount in ("1e30", 10**17, "99999999999999999999"):
        resp = _create(client, seeded["Rent"], amount, "expense")
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "validation_error"


def test_upsert_user_coerces_numeric_id(client):
    resp = client.post("/api/users", json={"id": 123, "email": "n@example.com"})
    assert resp.status_code == 200
    assert resp.get_json()["id"] == "123"


def test_create_category_coerces_numeric_name(client, seeded):
    resp = client.post("/api/categories", json={"userId": "u1", "name": 5, "type": "expense"})
    assert resp.status_code == 201
    assert resp.get_json()["name"] == "5"


def test_store_failure_is_retryable(client, seeded, monkeypatch):
    def locked(*args, **kwargs):
        raise OperationalError("SELECT", {}, sqlite3.OperationalError("database is locked"))

    monkeypatch.setattr(db.session, "get", locked)
    resp = client.get("/api/categories/u1")
    assert resp.status_code == 503
    assert resp.get_json()["kind"] == "store_error"
    assert resp.headers["Retry-After"] == "5"


def test_sum_overflow_is_not_retryable(client, seeded, monkeypatch):
    def overflow(*args, **kwargs):
        raise OperationalError("SELECT", {}, sqlite3.OperationalError("integer overflow"))

    monkeypatch.setattr(db.session, "execute", overflow)
    resp = client.get("/api/transactions/summary/u1")
    assert resp.status_code == 422
    assert resp.get_json()["kind"] == "out_of_range"
    assert "Retry-After" not in resp.headers


def test_unsupported_method_uses_error_shape(client):
    resp = client.patch("/api/transactions/x", json={})
    assert resp.status_code == 405
    assert resp.get_json()["kind"] == "method_not_allowed"
