"""
Integration tests for the application shell: health, middleware,
authentication and the error envelope.
"""

from datetime import timedelta

import pytest

from bizledger.core.auth import create_access_token
from tests.factories import MemberFactory, auth_headers


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert "running" in body["scheduler"]

    @pytest.mark.asyncio
    async def test_security_headers_and_request_id(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    @pytest.mark.asyncio
    async def test_api_responses_are_not_cached(self, client, owner):
        response = await client.get("/api/customers", headers=auth_headers(owner))
        assert "no-store" in response.headers["Cache-Control"]

    @pytest.mark.asyncio
    async def test_generated_request_id(self, client):
        response = await client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 36


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/quotations")
        assert response.status_code == 401
        assert response.json()["kind"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get(
            "/api/quotations", headers={"Authorization": "Bearer nonsense"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, client, owner):
        token = create_access_token(
            {"member_id": owner.id, "org_id": owner.org_id}, expires_delta=timedelta(minutes=-1)
        )
        response = await client.get("/api/quotations", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "TokenExpiredError"

    @pytest.mark.asyncio
    async def test_token_for_another_organization(self, client, owner, other_org):
        token = create_access_token({"member_id": owner.id, "org_id": other_org.id})
        response = await client.get("/api/quotations", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_inactive_member(self, client, db_session, test_org):
        retired = await MemberFactory.create(db_session, org=test_org, is_active=False)
        response = await client.get("/api/customers", headers=auth_headers(retired))
        assert response.status_code == 401


class TestErrorEnvelope:
    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/nowhere")
        assert response.status_code == 404
        assert set(response.json()) == {"error", "kind", "message", "status_code", "details"}

    @pytest.mark.asyncio
    async def test_body_validation_is_400(self, client, owner):
        response = await client.post(
            "/api/quotations", json={"items": []}, headers=auth_headers(owner)
        )
        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "validation_failure"
        assert any(e["field"].endswith("items") for e in body["details"]["errors"])
