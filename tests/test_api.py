"""Tests for the REST API."""

import pytest


@pytest.fixture
def account_id(client):
    response = client.post("/api/accounts", json={"name": "Pessoal", "type": "personal"})
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def card_id(client, account_id):
    response = client.post(
        f"/api/accounts/{account_id}/credit-cards",
        json={"name": "Visa Gold", "brand": "Visa", "creditLimit": "2000.00", "closingDay": 25, "dueDate": 5},
    )
    assert response.status_code == 201
    return response.json()["id"]


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": True}


class TestAccountsApi:
    """Tests for account endpoints."""

    def test_create_returns_camel_case(self, client):
        response = client.post("/api/accounts", json={"name": "Empresa", "type": "business"})
        body = response.json()
        assert response.status_code == 201
        assert body["type"] == "business"
        assert "createdAt" in body

    def test_invalid_body_is_400(self, client):
        response = client.post("/api/accounts", json={"name": "", "type": "family"})
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid data"
        assert {error["field"] for error in body["errors"]} == {"name", "type"}

    def test_unknown_account_is_404(self, client):
        response = client.get("/api/accounts/999")
        assert response.status_code == 404
        assert response.json() == {"message": "Account 999 not found"}

    def test_type_change_is_400(self, client, account_id):
        response = client.patch(f"/api/accounts/{account_id}", json={"type": "business"})
        assert response.status_code == 400
        assert response.json()["errors"][0]["issueType"] == "immutable"

    def test_delete_with_transactions_is_409(self, client, account_id):
        client.post(
            f"/api/accounts/{account_id}/transactions",
            json={"description": "Mercado", "amount": "10.00", "date": "2024-03-01"},
        )
        response = client.delete(f"/api/accounts/{account_id}")
        assert response.status_code == 409

    def test_select_and_current(self, client, account_id):
        other = client.post("/api/accounts", json={"name": "Empresa", "type": "business"}).json()
        assert client.get("/api/accounts/current").json()["id"] == account_id

        assert client.post(f"/api/accounts/{other['id']}/select").status_code == 200
        assert client.get("/api/accounts/current").json()["id"] == other["id"]

    def test_categories_filtered_by_type(self, client, account_id):
        response = client.get(f"/api/accounts/{account_id}/categories", params={"type": "income"})
        assert response.status_code == 200
        assert response.json() == []


class TestTransactionsApi:
    """Tests for ledger endpoints."""

    def test_installments_as_decimal_strings(self, client, account_id):
        response = client.post(
            f"/api/accounts/{account_id}/transactions",
            json={"description": "Sofá", "amount": "100.00", "date": "2024-01-31", "installmentTotal": 3},
        )
        assert response.status_code == 201
        rows = response.json()
        assert [row["amount"] for row in rows] == ["33.34", "33.33", "33.33"]
        assert [row["date"] for row in rows] == ["2024-01-31", "2024-02-29", "2024-03-31"]
        assert rows[0]["installmentIndex"] == 1

        series = client.get(f"/api/series/{rows[0]['seriesId']}").json()
        assert len(series) == 3

    def test_scoped_update(self, client, account_id):
        rows = client.post(
            f"/api/accounts/{account_id}/transactions",
            json={"description": "Curso", "amount": "300.00", "date": "2024-01-10", "installmentTotal": 3},
        ).json()
        response = client.patch(
            f"/api/transactions/{rows[1]['id']}",
            params={"scope": "future"},
            json={"description": "Curso online"},
        )
        assert response.status_code == 200
        assert [row["id"] for row in response.json()] == [rows[1]["id"], rows[2]["id"]]

    def test_unknown_scope_is_400(self, client, account_id):
        tx = client.post(
            f"/api/accounts/{account_id}/transactions",
            json={"description": "x", "amount": "1.00", "date": "2024-01-10"},
        ).json()[0]
        response = client.delete(f"/api/transactions/{tx['id']}", params={"scope": "everything"})
        assert response.status_code == 400

    def test_bad_amount_is_400(self, client, account_id):
        response = client.post(
            f"/api/accounts/{account_id}/transactions",
            json={"description": "x", "amount": "1.234", "date": "2024-01-10"},
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "amount"

    def test_missing_transaction_is_404(self, client):
        assert client.get("/api/transactions/12345").status_code == 404

    def test_recurring_transaction(self, client, account_id):
        response = client.post(
            f"/api/accounts/{account_id}/transactions",
            json={
                "description": "Academia",
                "amount": "99.90",
                "date": "2024-01-10",
                "recurrenceFrequency": "quarterly",
                "recurrenceEndDate": "2024-12-31",
            },
        )
        assert response.status_code == 201
        rows = response.json()
        assert [row["date"] for row in rows] == ["2024-01-10", "2024-04-10", "2024-07-10", "2024-10-10"]
        assert {row["amount"] for row in rows} == {"99.90"}
        assert rows[0]["recurrenceFrequency"] == "quarterly"

    def test_unknown_frequency_is_400(self, client, account_id):
        response = client.post(
            f"/api/accounts/{account_id}/transactions",
            json={
                "description": "x",
                "amount": "1.00",
                "date": "2024-01-10",
                "recurrenceFrequency": "daily",
                "recurrenceEndDate": "2024-02-01",
            },
        )
        assert response.status_code == 400


class TestCardsApi:
    """Tests for card, card purchase and invoice endpoints."""

    def test_card_purchase_requires_card(self, client, account_id):
        response = client.post(
            f"/api/accounts/{account_id}/credit-card-transactions",
            json={"description": "x", "amount": "1.00", "date": "2024-01-10"},
        )
        assert response.status_code == 400

    def test_card_purchase_lists_and_invoices(self, client, account_id, card_id):
        response = client.post(
            f"/api/accounts/{account_id}/credit-card-transactions",
            json={"description": "Livro", "amount": "59.90", "date": "2024-03-27", "creditCardId": card_id},
        )
        assert response.status_code == 201

        purchases = client.get(
            f"/api/accounts/{account_id}/credit-card-transactions",
            params={"creditCardId": card_id},
        ).json()
        assert [p["description"] for p in purchases] == ["Livro"]
        assert client.get(f"/api/accounts/{account_id}/transactions").json() == []

        invoice = client.get(f"/api/credit-cards/{card_id}/invoices/2024-04").json()
        assert invoice["total"] == "59.90"
        assert invoice["dueDate"] == "2024-05-05"

    def test_ledger_row_is_not_a_card_purchase(self, client, account_id):
        tx = client.post(
            f"/api/accounts/{account_id}/transactions",
            json={"description": "x", "amount": "1.00", "date": "2024-01-10"},
        ).json()[0]
        response = client.delete(f"/api/credit-card-transactions/{tx['id']}")
        assert response.status_code == 404

    def test_invalid_due_day_is_400(self, client, account_id):
        response = client.post(
            f"/api/accounts/{account_id}/credit-cards",
            json={"name": "X", "closingDay": 10, "dueDate": 0},
        )
        assert response.status_code == 400

    def test_overview(self, client, account_id, card_id):
        overview = client.get(f"/api/accounts/{account_id}/credit-cards/overview").json()
        assert overview[0]["brandIcon"] == "fab fa-cc-visa"
        assert overview[0]["availableLimit"] == "2000.00"

    def test_process_overdue(self, client, account_id, card_id):
        client.post(
            f"/api/accounts/{account_id}/credit-card-transactions",
            json={"description": "Livro", "amount": "59.90", "date": "2020-03-10", "creditCardId": card_id},
        )
        first = client.post(f"/api/accounts/{account_id}/invoice-payments/process-overdue").json()
        second = client.post(f"/api/accounts/{account_id}/invoice-payments/process-overdue").json()
        assert first["processedCount"] == 1
        assert second["processedCount"] == 0
        assert len(client.get(f"/api/accounts/{account_id}/invoice-payments").json()) == 1

    def test_settled_purchase_delete_is_409(self, client, account_id, card_id):
        purchase = client.post(
            f"/api/accounts/{account_id}/credit-card-transactions",
            json={"description": "Livro", "amount": "59.90", "date": "2020-03-10", "creditCardId": card_id},
        ).json()[0]
        client.post(f"/api/accounts/{account_id}/invoice-payments/process-overdue")

        response = client.delete(f"/api/credit-card-transactions/{purchase['id']}")
        assert response.status_code == 409
        assert client.get(f"/api/transactions/{purchase['id']}").json()["settledInvoiceMonth"] == "2020-03"


class TestReportsApi:

    def test_stats_and_dashboard(self, client, account_id):
        client.post(
            f"/api/accounts/{account_id}/transactions",
            json={"description": "Salário", "amount": "1000.00", "type": "income", "date": "2024-03-05"},
        )
        stats = client.get(f"/api/accounts/{account_id}/stats", params={"month": "2024-03"}).json()
        assert stats["monthlyIncome"] == "1000.00"
        assert stats["projectedBalance"] == "2000.00"

        dashboard = client.get(f"/api/accounts/{account_id}/dashboard", params={"month": "2024-03"}).json()
        assert dashboard["account"]["id"] == account_id
        assert dashboard["stats"]["transactionCount"] == 1

    def test_bad_month_is_400(self, client, account_id):
        response = client.get(f"/api/accounts/{account_id}/stats", params={"month": "2024-13"})
        assert response.status_code == 400

    def test_monthly_report(self, client, account_id):
        summary = client.get(f"/api/accounts/{account_id}/reports/monthly", params={"year": 2024}).json()
        assert [row["month"] for row in summary][:2] == ["2024-01", "2024-02"]


class TestBusinessApi:

    def test_personal_account_is_400(self, client, account_id):
        response = client.post(f"/api/accounts/{account_id}/projects", json={"name": "Site"})
        assert response.status_code == 400

    def test_project_budget(self, client):
        business_id = client.post("/api/accounts", json={"name": "Empresa", "type": "business"}).json()["id"]
        project = client.post(
            f"/api/accounts/{business_id}/projects",
            json={"name": "Site", "budget": "800.00"},
        ).json()
        client.post(
            f"/api/accounts/{business_id}/transactions",
            json={"description": "Hosting", "amount": "80.00", "date": "2024-03-01", "projectId": project["id"]},
        )
        usage = client.get(f"/api/projects/{project['id']}/stats").json()
        assert usage["spent"] == "80.00"
        assert usage["remaining"] == "720.00"
