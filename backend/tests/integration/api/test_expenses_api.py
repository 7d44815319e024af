"""
Integration tests for expense categories and expenses.
"""

import csv
import io
from decimal import Decimal

import pytest

from tests.factories import ExpenseCategoryFactory, VendorFactory, auth_headers


async def record_expense(client, headers, category_id, amount, expense_date, **extra):
    response = await client.post(
        "/api/expenses",
        json={"category_id": category_id, "amount": amount, "expense_date": expense_date, **extra},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


class TestCategories:
    @pytest.mark.asyncio
    async def test_crud(self, client, manager):
        headers = auth_headers(manager)
        created = await client.post(
            "/api/expense-categories", json={"name": "Utilities"}, headers=headers
        )
        assert created.status_code == 201
        category_id = created.json()["id"]

        renamed = await client.put(
            f"/api/expense-categories/{category_id}",
            json={"name": "Power and Water"},
            headers=headers,
        )
        assert renamed.json()["name"] == "Power and Water"

        listing = await client.get("/api/expense-categories", headers=headers)
        assert [c["name"] for c in listing.json()] == ["Power and Water"]

        deleted = await client.delete(f"/api/expense-categories/{category_id}", headers=headers)
        assert deleted.status_code == 204

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, client, db_session, test_org, owner):
        await ExpenseCategoryFactory.create(db_session, test_org, name="Rent")
        response = await client.post(
            "/api/expense-categories", json={"name": "Rent"}, headers=auth_headers(owner)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_blocked_while_in_use(self, client, db_session, test_org, owner):
        category = await ExpenseCategoryFactory.create(db_session, test_org)
        headers = auth_headers(owner)
        await record_expense(client, headers, category.id, "900.00", "2026-01-01")
        await record_expense(client, headers, category.id, "900.00", "2026-02-01")

        response = await client.delete(f"/api/expense-categories/{category.id}", headers=headers)

        assert response.status_code == 409
        body = response.json()
        assert body["kind"] == "referential_block"
        assert body["message"] == "Cannot delete: This category is used by 2 expense(s)"
        assert body["details"]["reference_count"] == 2
        still_there = await client.get(f"/api/expense-categories/{category.id}", headers=headers)
        assert still_there.status_code == 200

    @pytest.mark.asyncio
    async def test_accounts_cannot_create_categories(self, client, accountant):
        response = await client.post(
            "/api/expense-categories", json={"name": "Travel"}, headers=auth_headers(accountant)
        )
        assert response.status_code == 403


class TestExpenses:
    @pytest.mark.asyncio
    async def test_filters(self, client, db_session, test_org, owner):
        rent = await ExpenseCategoryFactory.create(db_session, test_org, name="Rent")
        supplies = await ExpenseCategoryFactory.create(db_session, test_org, name="Supplies")
        vendor = await VendorFactory.create(db_session, test_org)
        headers = auth_headers(owner)
        await record_expense(client, headers, rent.id, "900.00", "2026-01-01")
        await record_expense(client, headers, supplies.id, "45.50", "2026-01-15", vendor_id=vendor.id)
        await record_expense(client, headers, supplies.id, "12.00", "2026-02-03")

        by_category = await client.get(
            f"/api/expenses?category_id={supplies.id}", headers=headers
        )
        assert len(by_category.json()) == 2

        by_vendor = await client.get(f"/api/expenses?vendor_id={vendor.id}", headers=headers)
        assert [Decimal(e["amount"]) for e in by_vendor.json()] == [Decimal("45.50")]

        january = await client.get(
            "/api/expenses?date_from=2026-01-01&date_to=2026-01-31", headers=headers
        )
        assert len(january.json()) == 2

    @pytest.mark.asyncio
    async def test_unknown_category_is_404(self, client, owner):
        response = await client.post(
            "/api/expenses",
            json={"category_id": 424242, "amount": "5.00"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_and_owner_only_delete(self, client, db_session, test_org, owner, manager):
        category = await ExpenseCategoryFactory.create(db_session, test_org)
        expense = await record_expense(
            client, auth_headers(owner), category.id, "100.00", "2026-01-10"
        )

        updated = await client.put(
            f"/api/expenses/{expense['id']}",
            json={"amount": "110.00", "reference": "RCPT-9"},
            headers=auth_headers(manager),
        )
        assert Decimal(updated.json()["amount"]) == Decimal("110.00")
        assert updated.json()["reference"] == "RCPT-9"

        denied = await client.delete(f"/api/expenses/{expense['id']}", headers=auth_headers(manager))
        assert denied.status_code == 403
        allowed = await client.delete(f"/api/expenses/{expense['id']}", headers=auth_headers(owner))
        assert allowed.status_code == 204


class TestExport:
    @pytest.mark.asyncio
    async def test_export_with_date_filter(self, client, db_session, test_org, owner, manager):
        category = await ExpenseCategoryFactory.create(db_session, test_org, name="Supplies")
        headers = auth_headers(owner)
        await record_expense(client, headers, category.id, "45.50", "2026-01-15", reference="R-1")
        await record_expense(client, headers, category.id, "12.00", "2026-02-03")

        response = await client.get(
            "/api/expenses/export?date_from=2026-01-01&date_to=2026-01-31",
            headers=auth_headers(manager),
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert len(rows) == 1
        assert rows[0]["amount"] == "45.50"
        assert rows[0]["expense_date"] == "2026-01-15"
        assert rows[0]["reference"] == "R-1"
        assert rows[0]["vendor_id"] == ""

    @pytest.mark.asyncio
    async def test_accounts_cannot_export(self, client, accountant):
        response = await client.get("/api/expenses/export", headers=auth_headers(accountant))
        assert response.status_code == 403
