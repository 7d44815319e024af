"""Integration tests for the customer API."""

import pytest

from tests.factories import CustomerFactory, auth_headers


class TestCustomers:
    @pytest.mark.asyncio
    async def test_create_and_get(self, client, sales):
        headers = auth_headers(sales)
        created = await client.post(
            "/api/customers",
            json={"name": "Blue Door Bakery", "email": "hello@bluedoor.example"},
            headers=headers,
        )

        assert created.status_code == 201
        fetched = await client.get(f"/api/customers/{created.json()['id']}", headers=headers)
        assert fetched.json()["email"] == "hello@bluedoor.example"

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, client, db_session, test_org, owner):
        await CustomerFactory.create(db_session, test_org, name="Harbor Cafe")
        await CustomerFactory.create(db_session, test_org, name="Hilltop Gym")

        response = await client.get("/api/customers?q=harbor", headers=auth_headers(owner))

        assert response.json()["total"] == 1
        assert response.json()["items"][0]["name"] == "Harbor Cafe"

    @pytest.mark.asyncio
    async def test_list_sorted_by_name(self, client, db_session, test_org, owner):
        await CustomerFactory.create(db_session, test_org, name="Zenith Florist")
        await CustomerFactory.create(db_session, test_org, name="Alder Books")

        response = await client.get("/api/customers", headers=auth_headers(owner))

        assert [c["name"] for c in response.json()["items"]] == ["Alder Books", "Zenith Florist"]
        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_name_required(self, client, owner):
        response = await client.post(
            "/api/customers", json={"name": ""}, headers=auth_headers(owner)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_designer_cannot_view(self, client, designer):
        response = await client.get("/api/customers", headers=auth_headers(designer))
        assert response.status_code == 403


class TestCustomerCsv:
    @pytest.mark.asyncio
    async def test_export_lists_org_customers(
        self, client, db_session, test_org, other_org, manager
    ):
        await CustomerFactory.create(db_session, test_org, name="Harbor Cafe")
        await CustomerFactory.create(db_session, test_org, name="Alder Books", email=None)
        await CustomerFactory.create(db_session, other_org, name="Elsewhere Ltd")

        response = await client.get("/api/customers/export", headers=auth_headers(manager))

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="customers.csv"' in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0] == "id,name,email,phone,address,notes,created_at"
        assert len(lines) == 3
        assert lines[1].split(",")[1:3] == ["Alder Books", ""]
        assert lines[2].split(",")[1:3] == ["Harbor Cafe", "accounts@harborcafe.example"]

    @pytest.mark.asyncio
    async def test_sales_cannot_export(self, client, sales):
        response = await client.get("/api/customers/export", headers=auth_headers(sales))

        assert response.status_code == 403
        assert response.json()["details"]["action"] == "export"

    @pytest.mark.asyncio
    async def test_import_creates_valid_rows_and_reports_bad_lines(self, client, manager):
        content = (
            "Name,Email,Phone\n"
            "Acme Traders,acme@example.com,555-0100\n"
            ",nobody@example.com,\n"
            "Beta Ltd,beta@example.com\n"
            "\n"
            '"Gamma, Inc",,\n'
        )

        response = await client.post(
            "/api/customers/import",
            files={"file": ("customers.csv", content.encode(), "text/csv")},
            headers=auth_headers(manager),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["imported"] == 2
        assert body["failed"] == 2
        assert "Line 4: expected 3 columns, got 2" in body["errors"]
        assert "Line 3: invalid name" in body["errors"]

        listed = await client.get("/api/customers", headers=auth_headers(manager))
        assert [c["name"] for c in listed.json()["items"]] == ["Acme Traders", "Gamma, Inc"]
        assert listed.json()["items"][0]["phone"] == "555-0100"
        assert listed.json()["items"][1]["email"] is None

    @pytest.mark.asyncio
    async def test_import_without_name_column_rejected(self, client, owner):
        response = await client.post(
            "/api/customers/import",
            files={"file": ("customers.csv", b"email\nx@example.com\n", "text/csv")},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "validation_failure"
        assert response.json()["details"]["missing"] == ["name"]

    @pytest.mark.asyncio
    async def test_import_rejects_non_csv_upload(self, client, owner):
        response = await client.post(
            "/api/customers/import",
            files={"file": ("logo.png", b"\x89PNG", "image/png")},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_sales_cannot_import(self, client, sales):
        response = await client.post(
            "/api/customers/import",
            files={"file": ("customers.csv", b"name\nAcme\n", "text/csv")},
            headers=auth_headers(sales),
        )

        assert response.status_code == 403
