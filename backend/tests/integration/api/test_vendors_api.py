"""
Integration tests for the vendor API: bills, payments, dues and the ledger.
"""

from decimal import Decimal

import pytest

from tests.factories import VendorFactory, auth_headers


async def add_bill(client, headers, vendor_id, amount, bill_date="2026-03-01"):
    response = await client.post(
        f"/api/vendors/{vendor_id}/bills",
        json={"amount": amount, "bill_date": bill_date},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


async def pay(client, headers, vendor_id, amount, payment_date="2026-03-05", bill_id=None):
    payload = {"amount": amount, "payment_date": payment_date}
    if bill_id is not None:
        payload["bill_id"] = bill_id
    response = await client.post(
        f"/api/vendors/{vendor_id}/payments", json=payload, headers=headers
    )
    assert response.status_code == 201
    return response.json()


class TestVendorCrud:
    @pytest.mark.asyncio
    async def test_create_and_get(self, client, accountant):
        headers = auth_headers(accountant)
        created = await client.post(
            "/api/vendors", json={"name": "Paint Depot", "phone": "555-0101"}, headers=headers
        )

        assert created.status_code == 201
        fetched = await client.get(f"/api/vendors/{created.json()['id']}", headers=headers)
        assert fetched.json()["name"] == "Paint Depot"
        assert fetched.json()["is_active"] is True

    @pytest.mark.asyncio
    async def test_update(self, client, db_session, test_org, manager):
        vendor = await VendorFactory.create(db_session, test_org)
        response = await client.put(
            f"/api/vendors/{vendor.id}",
            json={"is_active": False, "notes": "Closed for winter"},
            headers=auth_headers(manager),
        )
        assert response.json()["is_active"] is False
        assert response.json()["notes"] == "Closed for winter"

    @pytest.mark.asyncio
    async def test_delete_blocked_by_bills(self, client, db_session, test_org, owner):
        vendor = await VendorFactory.create(db_session, test_org)
        headers = auth_headers(owner)
        await add_bill(client, headers, vendor.id, "80.00")

        response = await client.delete(f"/api/vendors/{vendor.id}", headers=headers)

        assert response.status_code == 409
        assert response.json()["kind"] == "referential_block"
        assert (await client.get(f"/api/vendors/{vendor.id}", headers=headers)).status_code == 200

    @pytest.mark.asyncio
    async def test_delete_unused_vendor(self, client, db_session, test_org, owner):
        vendor = await VendorFactory.create(db_session, test_org)
        headers = auth_headers(owner)
        assert (await client.delete(f"/api/vendors/{vendor.id}", headers=headers)).status_code == 204
        assert (await client.get(f"/api/vendors/{vendor.id}", headers=headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_only_owner_deletes(self, client, db_session, test_org, manager):
        vendor = await VendorFactory.create(db_session, test_org)
        response = await client.delete(f"/api/vendors/{vendor.id}", headers=auth_headers(manager))
        assert response.status_code == 403


class TestBillsAndPayments:
    @pytest.mark.asyncio
    async def test_payment_against_bill_updates_status(self, client, db_session, test_org, owner):
        vendor = await VendorFactory.create(db_session, test_org)
        headers = auth_headers(owner)
        bill = await add_bill(client, headers, vendor.id, "200.00")
        assert bill["status"] == "unpaid"

        partial = await pay(client, headers, vendor.id, "50.00", bill_id=bill["id"])
        assert partial["bill"]["status"] == "partial"
        assert partial["payment"]["bill_id"] == bill["id"]

        settled = await pay(client, headers, vendor.id, "150.00", bill_id=bill["id"])
        assert settled["bill"]["status"] == "paid"

    @pytest.mark.asyncio
    async def test_unlinked_payment(self, client, db_session, test_org, owner):
        vendor = await VendorFactory.create(db_session, test_org)
        result = await pay(client, auth_headers(owner), vendor.id, "10.00")
        assert result["bill"] is None

    @pytest.mark.asyncio
    async def test_bill_of_other_vendor_rejected(self, client, db_session, test_org, owner):
        first = await VendorFactory.create(db_session, test_org, name="First")
        second = await VendorFactory.create(db_session, test_org, name="Second")
        headers = auth_headers(owner)
        bill = await add_bill(client, headers, first.id, "20.00")

        response = await client.post(
            f"/api/vendors/{second.id}/payments",
            json={"amount": "20.00", "bill_id": bill["id"]},
            headers=headers,
        )

        assert response.status_code == 404
        payments = await client.get(f"/api/vendors/{second.id}/payments", headers=headers)
        assert payments.json() == []

    @pytest.mark.asyncio
    async def test_list_bills_and_payments(self, client, db_session, test_org, owner):
        vendor = await VendorFactory.create(db_session, test_org)
        headers = auth_headers(owner)
        await add_bill(client, headers, vendor.id, "10.00")
        await add_bill(client, headers, vendor.id, "20.00")
        await pay(client, headers, vendor.id, "5.00")

        bills = (await client.get(f"/api/vendors/{vendor.id}/bills", headers=headers)).json()
        payments = (await client.get(f"/api/vendors/{vendor.id}/payments", headers=headers)).json()

        assert len(bills) == 2
        assert len(payments) == 1


class TestDuesAndLedger:
    @pytest.mark.asyncio
    async def test_list_with_due_and_summary(self, client, db_session, test_org, owner):
        vendor = await VendorFactory.create(db_session, test_org)
        idle = await VendorFactory.create(db_session, test_org, name="Idle Vendor")
        headers = auth_headers(owner)
        await add_bill(client, headers, vendor.id, "300.00")
        await add_bill(client, headers, vendor.id, "200.00")
        await pay(client, headers, vendor.id, "150.00")

        listing = {v["id"]: v for v in (await client.get("/api/vendors", headers=headers)).json()}
        assert Decimal(listing[vendor.id]["total_billed"]) == Decimal("500.00")
        assert Decimal(listing[vendor.id]["total_paid"]) == Decimal("150.00")
        assert Decimal(listing[vendor.id]["due"]) == Decimal("350.00")
        assert Decimal(listing[idle.id]["due"]) == Decimal("0")

        summary = (await client.get(f"/api/vendors/{vendor.id}/summary", headers=headers)).json()
        assert Decimal(summary["due"]) == Decimal("350.00")
        assert summary["bill_count"] == 2
        assert summary["payment_count"] == 1

    @pytest.mark.asyncio
    async def test_ledger_running_balance(self, client, db_session, test_org, owner):
        vendor = await VendorFactory.create(db_session, test_org)
        headers = auth_headers(owner)
        await add_bill(client, headers, vendor.id, "100.00", bill_date="2026-03-01")
        await pay(client, headers, vendor.id, "40.00", payment_date="2026-03-02")
        await add_bill(client, headers, vendor.id, "60.00", bill_date="2026-03-03")

        ledger = (await client.get(f"/api/vendors/{vendor.id}/ledger", headers=headers)).json()

        assert [e["entry_type"] for e in ledger["entries"]] == ["bill", "payment", "bill"]
        assert [Decimal(e["balance"]) for e in ledger["entries"]] == [
            Decimal("100.00"),
            Decimal("60.00"),
            Decimal("120.00"),
        ]
        assert Decimal(ledger["closing_balance"]) == Decimal("120.00")

    @pytest.mark.asyncio
    async def test_empty_ledger(self, client, db_session, test_org, owner):
        vendor = await VendorFactory.create(db_session, test_org)
        ledger = (
            await client.get(f"/api/vendors/{vendor.id}/ledger", headers=auth_headers(owner))
        ).json()
        assert ledger["entries"] == []
        assert Decimal(ledger["closing_balance"]) == Decimal("0")
