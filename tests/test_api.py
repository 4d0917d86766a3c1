import json

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_fetcher
from loaders.document_fetcher import DocumentText, FetchFailure

from conftest import FakeFetcher, message, receipt


@pytest.fixture
def fetcher():
    return FakeFetcher(
        responses={
            "https://cbe.com.et/r1": DocumentText(receipt(amount="200.00", date="1/10/2024, 8:00:00 AM")),
            "https://cbe.com.et/r2": DocumentText(receipt(amount="50.00", date="2/3/2024, 8:00:00 AM", receiver="HANA")),
        },
        default=FetchFailure("HTTP error: 404"),
    )


@pytest.fixture
def client(fetcher):
    app.dependency_overrides[get_fetcher] = lambda: fetcher
    yield TestClient(app)
    app.dependency_overrides.clear()


def upload(client, payload, filename="messages.json"):
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return client.post("/process", files={"file": (filename, body, "application/json")})


def test_root_and_health(client):
    assert "endpoints" in client.get("/").json()

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_process_returns_transactions_and_report(client, fetcher):
    response = upload(client, [
        {"text": message("https://cbe.com.et/r1")},
        {"text": "no link"},
        {"text": message("https://cbe.com.et/r2", balance="950.00")},
        {"text": message("https://cbe.com.et/gone")},
    ])

    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "success"
    assert data["total_messages"] == 4
    assert [t["date"] for t in data["transactions"]] == ["2024-02-03", "2024-01-10"]
    assert data["transactions"][0]["currentBalance"] == 950.0
    assert data["error_count"] == 1
    assert data["errors"][0]["index"] == 3
    assert data["report"]["summary"]["total_income"] == 250.0
    assert [m["month"] for m in data["report"]["monthly"]] == ["2024-01", "2024-02"]
    assert len(fetcher.calls) == 3


def test_process_without_transactions(client):
    response = upload(client, [{"text": "hello"}])

    assert response.status_code == 200
    assert response.json()["status"] == "no_data"
    assert response.json()["no_data"] is True


def test_process_rejects_malformed_batch(client):
    response = upload(client, {"text": "not a list"})

    assert response.status_code == 400
    assert "Expected an array of messages" in response.json()["detail"]


def test_process_rejects_invalid_json(client):
    response = upload(client, b"{oops")

    assert response.status_code == 400
    assert "valid JSON" in response.json()["detail"]


def test_process_rejects_wrong_file_type(client):
    response = upload(client, [{"text": "a"}], filename="messages.csv")

    assert response.status_code == 400
    assert "Invalid file type" in response.json()["detail"]


def test_query_sorts_and_filters(client):
    transactions = [
        {"amount": 10.0, "date": "2024-01-05", "receiver": "A"},
        {"amount": 30.0, "date": "2024-03-01", "receiver": "B"},
        {"amount": 20.0, "date": "2024-02-10", "receiver": "C"},
    ]

    response = client.post("/transactions/query", json={
        "transactions": transactions,
        "key": "amount",
        "direction": "desc",
        "start": "2024-02-01",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert [t["receiver"] for t in data["transactions"]] == ["B", "C"]


def test_query_rejects_bad_bounds(client):
    response = client.post("/transactions/query", json={"transactions": [], "start": "yesterday"})

    assert response.status_code == 400


@pytest.mark.parametrize("key", ["totalAmount", "total_amount"])
def test_query_sorts_by_output_keys(client, key):
    transactions = [{"totalAmount": 5.0}, {"totalAmount": 1.0}, {"totalAmount": 9.0}]

    response = client.post("/transactions/query", json={"transactions": transactions, "key": key})

    assert response.status_code == 200
    assert [t["totalAmount"] for t in response.json()["transactions"]] == [1.0, 5.0, 9.0]


def test_query_sorts_by_current_balance_descending(client):
    transactions = [{"currentBalance": 300.0}, {"currentBalance": None}, {"currentBalance": 700.0}]

    response = client.post("/transactions/query", json={
        "transactions": transactions,
        "key": "currentBalance",
        "direction": "desc",
    })

    assert [t["currentBalance"] for t in response.json()["transactions"]] == [700.0, 300.0, None]


def test_query_rejects_unknown_key(client):
    response = client.post("/transactions/query", json={"transactions": [{"amount": 1.0}], "key": "foo"})

    assert response.status_code == 400
    assert "foo" in response.json()["detail"]
