"""
Integration tests for the quotation API.

WHAT: The workflow end to end over HTTP, including conversion, the error
envelope for rejected transitions and the role gates.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from bizledger.models.quotation import QuotationStatus
from tests.factories import QuotationFactory, auth_headers

TODAY = date.today()


def quotation_payload(customer_id=None, **overrides):
    payload = {
        "customer_id": customer_id,
        "valid_until": (TODAY + timedelta(days=30)).isoformat(),
        "items": [
            {"description": "Oak table", "quantity": "2", "unit_price": "50.00"},
            {"description": "Delivery", "quantity": "1", "unit_price": "30.00"},
        ],
    }
    payload.update(overrides)
    return payload


class TestCreateAndEdit:
    @pytest.mark.asyncio
    async def test_create(self, client, sales, customer):
        response = await client.post(
            "/api/quotations", json=quotation_payload(customer.id), headers=auth_headers(sales)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["quotation_number"] == "QT-0001"
        assert data["status"] == "draft"
        assert Decimal(data["total"]) == Decimal("130.00")
        assert data["is_editable"] is True
        assert data["is_deletable"] is True
        assert [i["description"] for i in data["items"]] == ["Oak table", "Delivery"]

    @pytest.mark.asyncio
    async def test_validity_before_issue_rejected(self, client, owner):
        response = await client.post(
            "/api/quotations",
            json=quotation_payload(
                issue_date=TODAY.isoformat(),
                valid_until=(TODAY - timedelta(days=1)).isoformat(),
            ),
            headers=auth_headers(owner),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_draft(self, client, owner):
        created = (
            await client.post("/api/quotations", json=quotation_payload(), headers=auth_headers(owner))
        ).json()

        response = await client.put(
            f"/api/quotations/{created['id']}",
            json={"tax_amount": "13.00", "notes": "Includes assembly"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        assert Decimal(response.json()["total"]) == Decimal("143.00")
        assert response.json()["notes"] == "Includes assembly"

    @pytest.mark.asyncio
    async def test_edit_after_send_is_409(self, client, db_session, owner):
        quotation = await QuotationFactory.create(db_session, owner, status=QuotationStatus.SENT)

        response = await client.put(
            f"/api/quotations/{quotation.id}",
            json={"items": [{"description": "Cheaper", "quantity": "1", "unit_price": "1.00"}]},
            headers=auth_headers(owner),
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "invalid_transition"
        detail = await client.get(f"/api/quotations/{quotation.id}", headers=auth_headers(owner))
        assert Decimal(detail.json()["total"]) == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_delete_draft_only(self, client, db_session, manager):
        draft = await QuotationFactory.create(db_session, manager)
        sent = await QuotationFactory.create(db_session, manager, status=QuotationStatus.SENT)

        assert (
            await client.delete(f"/api/quotations/{draft.id}", headers=auth_headers(manager))
        ).status_code == 204
        assert (
            await client.delete(f"/api/quotations/{sent.id}", headers=auth_headers(manager))
        ).status_code == 409
        assert (
            await client.get(f"/api/quotations/{draft.id}", headers=auth_headers(manager))
        ).status_code == 404


class TestWorkflow:
    @pytest.mark.asyncio
    async def test_send_accept_convert(self, client, owner, customer):
        headers = auth_headers(owner)
        quotation = (
            await client.post("/api/quotations", json=quotation_payload(customer.id), headers=headers)
        ).json()
        qid = quotation["id"]

        sent = await client.post(f"/api/quotations/{qid}/send", headers=headers)
        assert sent.json()["status"] == "sent"
        assert sent.json()["is_editable"] is False

        accepted = await client.post(f"/api/quotations/{qid}/accept", headers=headers)
        assert accepted.json()["status"] == "accepted"

        converted = await client.post(f"/api/quotations/{qid}/convert", headers=headers)
        assert converted.status_code == 201
        invoice = converted.json()
        assert invoice["invoice_number"] == "INV-0001"
        assert invoice["quotation_id"] == qid
        assert Decimal(invoice["total"]) == Decimal("130.00")
        assert Decimal(invoice["due_amount"]) == Decimal("130.00")
        assert invoice["display_status"] == "due"
        assert len(invoice["items"]) == 2

        after = (await client.get(f"/api/quotations/{qid}", headers=headers)).json()
        assert after["status"] == "converted"
        assert after["converted_invoice_id"] == invoice["id"]

        again = await client.post(f"/api/quotations/{qid}/convert", headers=headers)
        assert again.status_code == 409
        invoices = (await client.get("/api/invoices", headers=headers)).json()
        assert invoices["total"] == 1

    @pytest.mark.asyncio
    async def test_reject_with_reason(self, client, db_session, sales):
        quotation = await QuotationFactory.create(db_session, sales, status=QuotationStatus.SENT)

        response = await client.post(
            f"/api/quotations/{quotation.id}/reject",
            json={"reason": "Budget cut"},
            headers=auth_headers(sales),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert response.json()["rejection_reason"] == "Budget cut"
        assert response.json()["rejected_by"] == sales.id

    @pytest.mark.asyncio
    async def test_reject_without_body(self, client, db_session, owner):
        quotation = await QuotationFactory.create(db_session, owner, status=QuotationStatus.SENT)
        response = await client.post(
            f"/api/quotations/{quotation.id}/reject", headers=auth_headers(owner)
        )
        assert response.status_code == 200
        assert response.json()["rejection_reason"] is None

    @pytest.mark.asyncio
    async def test_out_of_graph_transition(self, client, db_session, owner):
        quotation = await QuotationFactory.create(db_session, owner)

        response = await client.post(
            f"/api/quotations/{quotation.id}/accept", headers=auth_headers(owner)
        )

        assert response.status_code == 409
        body = response.json()
        assert body["kind"] == "invalid_transition"
        assert body["details"]["current_state"] == "draft"
        assert body["details"]["requested_state"] == "accepted"

    @pytest.mark.asyncio
    async def test_sales_staff_can_convert(self, client, db_session, owner, sales):
        quotation = await QuotationFactory.create(db_session, owner, status=QuotationStatus.ACCEPTED)
        response = await client.post(
            f"/api/quotations/{quotation.id}/convert", headers=auth_headers(sales)
        )
        assert response.status_code == 201


class TestListingAndExpiry:
    @pytest.mark.asyncio
    async def test_list_schedules_sweep_for_caller_org(self, client, db_session, owner, monkeypatch):
        calls = []

        async def fake_sweep(org_id=None, today=None, session_factory=None):
            calls.append(org_id)
            return 0

        monkeypatch.setattr("bizledger.api.quotations.expire_quotations", fake_sweep)
        await QuotationFactory.create(db_session, owner)

        response = await client.get("/api/quotations", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert calls == [owner.org_id]

    @pytest.mark.asyncio
    async def test_status_filter_and_stats(self, client, db_session, owner):
        await QuotationFactory.create(db_session, owner)
        await QuotationFactory.create(db_session, owner, status=QuotationStatus.SENT)
        await QuotationFactory.create(db_session, owner, status=QuotationStatus.SENT)
        headers = auth_headers(owner)

        sent = (await client.get("/api/quotations?status=sent", headers=headers)).json()
        assert sent["total"] == 2
        assert {q["status"] for q in sent["items"]} == {"sent"}

        stats = (await client.get("/api/quotations/stats", headers=headers)).json()
        assert stats["total"] == 3
        assert stats["by_status"]["sent"] == 2
        assert stats["by_status"]["converted"] == 0

    @pytest.mark.asyncio
    async def test_manual_expire_sweep(self, client, db_session, owner):
        quotation = await QuotationFactory.create(
            db_session,
            owner,
            status=QuotationStatus.SENT,
            issue_date=TODAY - timedelta(days=20),
            valid_until=TODAY - timedelta(days=1),
        )

        response = await client.post("/api/quotations/expire-sweep", headers=auth_headers(owner))

        assert response.json() == {"expired": 1}
        detail = await client.get(f"/api/quotations/{quotation.id}", headers=auth_headers(owner))
        assert detail.json()["status"] == "expired"


class TestRoleGates:
    @pytest.mark.asyncio
    async def test_designer_views_but_cannot_create(self, client, designer):
        headers = auth_headers(designer)
        assert (await client.get("/api/quotations", headers=headers)).status_code == 200

        response = await client.post("/api/quotations", json=quotation_payload(), headers=headers)
        assert response.status_code == 403
        body = response.json()
        assert body["kind"] == "forbidden"
        assert body["details"] == {
            "role": "designer",
            "resource": "quotations",
            "action": "create",
        }

    @pytest.mark.asyncio
    async def test_employee_cannot_view(self, client, employee):
        response = await client.get("/api/quotations", headers=auth_headers(employee))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_sales_cannot_delete(self, client, db_session, owner, sales):
        quotation = await QuotationFactory.create(db_session, owner)
        response = await client.delete(
            f"/api/quotations/{quotation.id}", headers=auth_headers(sales)
        )
        assert response.status_code == 403
