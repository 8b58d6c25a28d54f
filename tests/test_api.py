"""API integration tests for the cash-shift ledger."""

from decimal import Decimal

from fastapi.testclient import TestClient

HTTP_200_OK = 200
HTTP_201_CREATED = 201
HTTP_404_NOT_FOUND = 404
HTTP_409_CONFLICT = 409
HTTP_422_UNPROCESSABLE = 422


def _check_status(response, expected: int) -> None:
    if response.status_code != expected:
        msg = f"Expected status {expected}, got {response.status_code}: {response.text}"
        raise AssertionError(msg)


def test_health(client: TestClient) -> None:
    """Test the /health endpoint returns status ok."""
    response = client.get("/health")
    _check_status(response, HTTP_200_OK)
    if response.json() != {"status": "ok"}:
        msg = f"Expected response {{'status': 'ok'}}, got {response.json()}"
        raise AssertionError(msg)


def test_scalar_docs(client: TestClient) -> None:
    """Test the /scalar endpoint returns OpenAPI or Swagger docs."""
    response = client.get("/scalar")
    _check_status(response, HTTP_200_OK)
    if not ("openapi" in response.text or "swagger" in response.text):
        msg = "Expected 'openapi' or 'swagger' in response text"
        raise AssertionError(msg)


def test_shift_lifecycle(client: TestClient) -> None:
    """Open a shift, record a sale and an expense, read the summary and close it."""
    response = client.post("/shifts", json={"starting_balance": "0", "name": "Morning"})
    _check_status(response, HTTP_201_CREATED)
    shift_id = response.json()["id"]
    _check_status(client.post("/shifts", json={}), HTTP_409_CONFLICT)

    current = client.get("/shifts/current").json()
    if current is None or current["id"] != shift_id:
        msg = f"Expected the open shift to be current, got {current}"
        raise AssertionError(msg)

    sale = client.post(f"/shifts/{shift_id}/transactions", json={"amount": "100000", "type": "kassa"})
    _check_status(sale, HTTP_201_CREATED)
    expense = client.post(
        f"/shifts/{shift_id}/transactions",
        json={"amount": "30000", "type": "xarajat", "description": "lunch", "category": "Tabaka"},
    )
    _check_status(expense, HTTP_201_CREATED)
    if expense.json()["category"] != "Tabaka":
        msg = f"Expected category Tabaka, got {expense.json()}"
        raise AssertionError(msg)

    summary = client.get(f"/shifts/{shift_id}/summary")
    _check_status(summary, HTTP_200_OK)
    body = summary.json()
    if Decimal(body["net_profit"]) != Decimal(70000) or body["net_profit_display"] != "70 000 UZS":
        msg = f"Unexpected summary: {body}"
        raise AssertionError(msg)
    types = sorted(t["type"] for t in body["transactions"])
    if Decimal(body["totals_by_type"]["kassa"]) != Decimal(100000) or types != ["kassa", "xarajat"]:
        msg = f"Unexpected summary totals: {body['totals_by_type']}"
        raise AssertionError(msg)

    closed = client.post(f"/shifts/{shift_id}/close")
    _check_status(closed, HTTP_200_OK)
    if closed.json()["status"] != "closed" or Decimal(closed.json()["ending_balance"]) != Decimal(70000):
        msg = f"Unexpected closed shift: {closed.json()}"
        raise AssertionError(msg)
    if client.get("/shifts/current").json() is not None:
        msg = "Expected no open shift after closing"
        raise AssertionError(msg)
    _check_status(client.post(f"/shifts/{shift_id}/close"), HTTP_404_NOT_FOUND)


def test_closed_shift_is_read_only(client: TestClient) -> None:
    shift_id = client.post("/shifts", json={}).json()["id"]
    txn_id = client.post(f"/shifts/{shift_id}/transactions", json={"amount": "500", "type": "humo"}).json()["id"]
    _check_status(client.post(f"/shifts/{shift_id}/close", json={"ending_balance": "500"}), HTTP_200_OK)

    add = client.post(f"/shifts/{shift_id}/transactions", json={"amount": "1", "type": "kassa"})
    _check_status(add, HTTP_409_CONFLICT)
    _check_status(client.patch(f"/transactions/{txn_id}", json={"amount": "1"}), HTTP_409_CONFLICT)
    _check_status(client.delete(f"/transactions/{txn_id}"), HTTP_409_CONFLICT)
    _check_status(client.delete(f"/shifts/{shift_id}/expenses"), HTTP_409_CONFLICT)

    listed = client.get(f"/shifts/{shift_id}/transactions")
    _check_status(listed, HTTP_200_OK)
    if [t["id"] for t in listed.json()] != [txn_id]:
        msg = f"Expected the closed shift's transaction to stay readable, got {listed.json()}"
        raise AssertionError(msg)


def test_transaction_validation_and_idempotent_delete(client: TestClient) -> None:
    shift_id = client.post("/shifts", json={}).json()["id"]
    zero = client.post(f"/shifts/{shift_id}/transactions", json={"amount": "0", "type": "kassa"})
    _check_status(zero, HTTP_422_UNPROCESSABLE)
    tagged_payment = client.post(
        f"/shifts/{shift_id}/transactions", json={"amount": "10", "type": "click", "category": "Tabaka"}
    )
    _check_status(tagged_payment, HTTP_422_UNPROCESSABLE)
    _check_status(client.get("/shifts/missing"), HTTP_404_NOT_FOUND)

    missing = client.delete("/transactions/does-not-exist")
    _check_status(missing, HTTP_200_OK)
    if missing.json() != {"deleted": False}:
        msg = f"Expected an idempotent no-op delete, got {missing.json()}"
        raise AssertionError(msg)


def test_category_rename_and_stats(client: TestClient) -> None:
    _check_status(client.post("/categories", json={"name": "Tabaka"}), HTTP_201_CREATED)
    _check_status(client.post("/categories", json={"name": "Marketing"}), HTTP_201_CREATED)
    _check_status(client.post("/categories", json={"name": "tabaka"}), HTTP_409_CONFLICT)

    shift_id = client.post("/shifts", json={}).json()["id"]
    client.post(
        f"/shifts/{shift_id}/transactions",
        json={"amount": "30000", "type": "xarajat", "description": "lunch", "category": "Tabaka"},
    )
    _check_status(client.put("/categories/Tabaka/sales", json={"amount": "50000"}), HTTP_200_OK)
    stats = client.get("/categories/Tabaka/stats").json()
    if stats["count"] != 1 or Decimal(stats["profit_or_loss"]["amount"]) != Decimal(20000):
        msg = f"Unexpected category stats: {stats}"
        raise AssertionError(msg)

    _check_status(client.patch("/categories/Tabaka", json={"name": "marketing"}), HTTP_409_CONFLICT)
    if client.get("/categories").json() != ["Tabaka", "Marketing"]:
        msg = "A conflicting rename must not change the categories"
        raise AssertionError(msg)

    renamed = client.patch("/categories/Tabaka", json={"name": "Chicken"})
    _check_status(renamed, HTTP_200_OK)
    if len(renamed.json()["retagged"]) != 1 or renamed.json()["failed"]:
        msg = f"Unexpected rename report: {renamed.json()}"
        raise AssertionError(msg)
    moved = client.get("/categories/Chicken/stats").json()
    if moved["count"] != 1 or Decimal(moved["sales"]) != Decimal(50000):
        msg = f"Expected expenses and sales to follow the rename, got {moved}"
        raise AssertionError(msg)


def test_export_csv(client: TestClient) -> None:
    shift_id = client.post("/shifts", json={}).json()["id"]
    client.post(
        f"/shifts/{shift_id}/transactions",
        json={"amount": "1500", "type": "xarajat", "description": "bread", "category": "Non"},
    )
    response = client.get("/transactions/export", params={"shift_id": shift_id})
    _check_status(response, HTTP_200_OK)
    if not response.headers["content-type"].startswith("text/csv"):
        msg = f"Expected a CSV response, got {response.headers['content-type']}"
        raise AssertionError(msg)
    lines = response.text.strip().splitlines()
    if lines[0] != "date,type,category,description,amount,shift_id" or "Non,bread" not in lines[1]:
        msg = f"Unexpected CSV content: {lines}"
        raise AssertionError(msg)


def test_statistics_endpoints(client: TestClient) -> None:
    monthly = client.get("/stats/monthly", params={"year": 2025})
    _check_status(monthly, HTTP_200_OK)
    if [p["month"] for p in monthly.json()] != list(range(1, 13)):
        msg = f"Expected twelve months, got {monthly.json()}"
        raise AssertionError(msg)
    dashboard = client.get("/stats/dashboard")
    _check_status(dashboard, HTTP_200_OK)
    if dashboard.json()["income_change"] != "0%":
        msg = f"Expected no change on an empty ledger, got {dashboard.json()}"
        raise AssertionError(msg)


def test_preferences(client: TestClient) -> None:
    if client.get("/preferences").json() != {"currency": "UZS", "theme": "blue"}:
        msg = "Expected default preferences"
        raise AssertionError(msg)
    updated = client.put("/preferences", json={"currency": "USD", "theme": "dark"})
    _check_status(updated, HTTP_200_OK)
    if client.get("/preferences").json()["currency"] != "USD":
        msg = "Expected the preference to persist"
        raise AssertionError(msg)
    _check_status(client.put("/preferences", json={"currency": "GBP"}), HTTP_422_UNPROCESSABLE)
