from datetime import date
from decimal import Decimal


def _create_category(client, name="Courses"):
    response = client.post("/api/categories", json={"name": name})
    assert response.status_code == 201
    return response.json()


def _create_expense(client, category_id, amount, expense_date=None, payment_mode="UPI"):
    payload = {
        "category_id": category_id,
        "amount": amount,
        "description": "Supermarché",
        "payment_mode": payment_mode,
    }
    if expense_date:
        payload["expense_date"] = expense_date
    return client.post("/api/expenses", json=payload)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Expense Tracker API"}


def test_category_lifecycle(client):
    category = _create_category(client, "Transport")
    _create_category(client, "Alimentation")

    listing = client.get("/api/categories")
    assert [c["name"] for c in listing.json()] == ["Alimentation", "Transport"]

    renamed = client.put(f"/api/categories/{category['id']}", json={"name": "Déplacements"})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Déplacements"

    assert client.delete(f"/api/categories/{category['id']}").status_code == 204
    assert client.get(f"/api/categories/{category['id']}").status_code == 404
    assert client.delete(f"/api/categories/{category['id']}").status_code == 404


def test_category_validation(client):
    _create_category(client, "Santé")

    assert client.post("/api/categories", json={"name": ""}).status_code == 400
    assert client.post("/api/categories", json={"name": "Santé"}).status_code == 400
    assert client.post("/api/categories", json={}).status_code == 400
    assert client.put("/api/categories/999", json={"name": "Autres"}).status_code == 404


def test_create_expense_defaults(client):
    category = _create_category(client)

    response = _create_expense(client, category["id"], 100)

    assert response.status_code == 201
    body = response.json()
    assert body["amount"] == 100
    assert body["payment_mode"] == "UPI"
    assert body["expense_date"] == date.today().isoformat()
    assert "warning" not in body


def test_create_expense_errors(client):
    category = _create_category(client)

    assert _create_expense(client, 999, 10).status_code == 400
    assert _create_expense(client, category["id"], 10, payment_mode="Card").status_code == 400
    assert _create_expense(client, category["id"], 10, expense_date="15/01/2024").status_code == 400
    assert client.post("/api/expenses", content="pas du json").status_code == 400
    assert client.get("/api/expenses").json() == []


def test_expense_warning_when_budget_exceeded(client):
    category = _create_category(client)
    budget = client.post("/api/budgets", json={"month": 1, "year": 2024, "budget_amount": 5000})
    assert budget.status_code == 201

    first = _create_expense(client, category["id"], 4000, "2024-01-10")
    second = _create_expense(client, category["id"], 2000, "2024-01-20")

    assert "warning" not in first.json()
    assert second.json()["warning"]

    status = client.get("/api/budgets/1/2024")
    assert status.status_code == 200
    body = status.json()
    assert body["budget"]["budget_amount"] == 5000
    assert body["spent_amount"] == 6000
    assert body["remaining"] == -1000
    assert body["status"] == "exceeded"

    # L'avertissement n'est pas stocké
    stored = client.get(f"/api/expenses/{second.json()['id']}").json()
    assert "warning" not in stored


def test_spent_amount_matches_listed_amounts(client):
    category = _create_category(client)
    client.post("/api/budgets", json={"month": 1, "year": 2024, "budget_amount": 100})

    for _ in range(3):
        assert _create_expense(client, category["id"], 0.335, "2024-01-15").status_code == 201

    listing = client.get("/api/expenses").json()
    status = client.get("/api/budgets/1/2024").json()

    assert [e["amount"] for e in listing] == [0.34, 0.34, 0.34]
    assert status["spent_amount"] == 1.02
    assert sum(Decimal(str(e["amount"])) for e in listing) == Decimal(str(status["spent_amount"]))


def test_update_expense(client):
    category = _create_category(client)
    other = _create_category(client, "Loisirs")
    created = _create_expense(client, category["id"], 80, "2024-05-01").json()

    response = client.put(
        f"/api/expenses/{created['id']}",
        json={"amount": 0, "description": "", "category_id": other["id"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["amount"] == 0
    assert body["description"] == ""
    assert body["category_id"] == other["id"]
    assert body["payment_mode"] == "UPI"
    assert body["expense_date"] == "2024-05-01"


def test_update_expense_errors(client):
    category = _create_category(client)
    created = _create_expense(client, category["id"], 80, "2024-05-01").json()

    assert client.put("/api/expenses/999", json={"amount": 1}).status_code == 404
    assert client.put(f"/api/expenses/{created['id']}", json={"payment_mode": "Card"}).status_code == 400
    assert client.put(f"/api/expenses/{created['id']}", json={"category_id": 999}).status_code == 400


def test_list_expenses_with_filters(client):
    category = _create_category(client)
    other = _create_category(client, "Loisirs")
    _create_expense(client, category["id"], 10, "2024-01-05")
    _create_expense(client, category["id"], 20, "2024-01-20", payment_mode="Cash")
    _create_expense(client, other["id"], 30, "2024-02-01", payment_mode="Cash")

    everything = client.get("/api/expenses").json()
    assert [e["amount"] for e in everything] == [30, 20, 10]

    cash = client.get("/api/expenses", params={"payment_mode": "Cash"}).json()
    assert [e["amount"] for e in cash] == [30, 20]

    january = client.get(
        "/api/expenses",
        params={"category_id": category["id"], "start_date": "2024-01-01", "end_date": "2024-01-31"},
    ).json()
    assert [e["amount"] for e in january] == [20, 10]

    # Mode de paiement inconnu: filtre ignoré
    unknown = client.get("/api/expenses", params={"payment_mode": "Card"}).json()
    assert len(unknown) == 3


def test_delete_expense(client):
    category = _create_category(client)
    created = _create_expense(client, category["id"], 10).json()

    assert client.delete(f"/api/expenses/{created['id']}").status_code == 204
    assert client.get(f"/api/expenses/{created['id']}").status_code == 404
    assert client.delete(f"/api/expenses/{created['id']}").status_code == 404


def test_budget_endpoints(client):
    created = client.post("/api/budgets", json={"month": 3, "year": 2024, "budget_amount": 100})
    updated = client.post("/api/budgets", json={"month": 3, "year": 2024, "budget_amount": 250.5})

    assert updated.status_code == 201
    assert updated.json()["id"] == created.json()["id"]
    assert updated.json()["budget_amount"] == 250.5

    budgets = client.get("/api/budgets").json()
    assert len(budgets) == 1

    status = client.get("/api/budgets/3/2024").json()
    assert status["spent_amount"] == 0
    assert status["status"] == "within_budget"

    assert client.delete(f"/api/budgets/{created.json()['id']}").status_code == 204
    assert client.get("/api/budgets/3/2024").status_code == 404
    assert client.delete(f"/api/budgets/{created.json()['id']}").status_code == 404


def test_budget_validation(client):
    assert client.post("/api/budgets", json={"month": 13, "year": 2024, "budget_amount": 100}).status_code == 400
    assert client.post("/api/budgets", json={"month": 1, "year": 2024, "budget_amount": -1}).status_code == 400
    assert client.get("/api/budgets").json() == []
    assert client.get("/api/budgets/janvier/2024").status_code == 400
