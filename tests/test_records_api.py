"""Integration tests for the CRM record API endpoints.

Uses the fully wired app from conftest (seeded in-memory repository) and an
httpx AsyncClient. Covers CRUD for all four record kinds, validation of deal
stages, not-found mapping, the Account 360 view, health and metrics routes,
and 503 responses when the record store is missing.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.crm.api.v1.router import router


# ── Leads ────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_leads(client):
    """GET /records/leads -> 200 with the seeded leads in order."""
    response = await client.get("/api/v1/records/leads")
    assert response.status_code == 200
    assert [lead["id"] for lead in response.json()] == [
        "lead-001",
        "lead-002",
        "lead-003",
        "lead-004",
    ]


@pytest.mark.asyncio
async def test_create_and_update_lead(client):
    """POST then PATCH /records/leads -> partial update keeps other fields."""
    created = await client.post(
        "/api/v1/records/leads",
        json={"name": "Eve Adams", "company": "Acme", "score": 70},
    )
    assert created.status_code == 201
    lead_id = created.json()["id"]
    assert created.json()["status"] == "New"

    updated = await client.patch(f"/api/v1/records/leads/{lead_id}", json={"score": 88})
    assert updated.status_code == 200
    assert updated.json()["score"] == 88
    assert updated.json()["company"] == "Acme"


@pytest.mark.asyncio
async def test_lead_score_out_of_range(client):
    """POST /records/leads with score > 100 -> 422."""
    response = await client.post("/api/v1/records/leads", json={"name": "X", "score": 140})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_lead_not_found(client):
    """GET /records/leads/{bad_id} -> 404 with kind in detail."""
    response = await client.get("/api/v1/records/leads/missing")
    assert response.status_code == 404
    assert response.json()["detail"] == "Lead not found"


# ── Accounts / Contacts ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_account_crud(client):
    """Account create, read, update and delete round trip through the API."""
    created = await client.post(
        "/api/v1/records/accounts",
        json={"name": "Beta Inc", "type": "Customer", "revenue": "$1M"},
    )
    assert created.status_code == 201
    account_id = created.json()["id"]

    fetched = await client.get(f"/api/v1/records/accounts/{account_id}")
    assert fetched.json()["name"] == "Beta Inc"

    patched = await client.patch(
        f"/api/v1/records/accounts/{account_id}", json={"rating": "Hot"}
    )
    assert patched.json()["rating"] == "Hot"

    deleted = await client.delete(f"/api/v1/records/accounts/{account_id}")
    assert deleted.status_code == 204
    assert (await client.get(f"/api/v1/records/accounts/{account_id}")).status_code == 404


@pytest.mark.asyncio
async def test_account_360(client):
    """GET /records/accounts/{id}/360 -> related records and health score."""
    response = await client.get("/api/v1/records/accounts/account-001/360")
    assert response.status_code == 200
    data = response.json()
    assert data["account"]["id"] == "account-001"
    assert data["health_score"] == 100
    assert [c["id"] for c in data["contacts"]] == ["contact-001"]
    assert [d["id"] for d in data["deals"]] == ["deal-001"]
    assert data["recommendations"][0]["action_type"] == "meeting"


@pytest.mark.asyncio
async def test_account_360_not_found(client):
    """GET /records/accounts/{bad_id}/360 -> 404."""
    response = await client.get("/api/v1/records/accounts/missing/360")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_contact_stamps_timestamps(client):
    """POST /records/contacts -> created_at and updated_at set."""
    response = await client.post(
        "/api/v1/records/contacts",
        json={"first_name": "Ann", "last_name": "Lee", "status": "Prospect"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["created_at"] is not None
    assert data["updated_at"] is not None


@pytest.mark.asyncio
async def test_delete_contact(client):
    """DELETE /records/contacts/{id} -> 204, then 404."""
    assert (await client.delete("/api/v1/records/contacts/contact-005")).status_code == 204
    assert (await client.delete("/api/v1/records/contacts/contact-005")).status_code == 404


# ── Deals ────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_deal_defaults_numbers(client):
    """POST /records/deals with malformed numbers -> 201 with zeros."""
    response = await client.post(
        "/api/v1/records/deals",
        json={"name": "Half-filled", "value": "TBD", "probability": None},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["value"] == 0
    assert data["probability"] == 0
    assert data["stage"] == "Opportunity Identified"


@pytest.mark.asyncio
async def test_create_deal_parses_currency(client):
    """POST /records/deals with "$85,000" and stage name spelling -> normalised."""
    response = await client.post(
        "/api/v1/records/deals",
        json={
            "name": "Migration",
            "value": "$85,000",
            "probability": "60",
            "stage": "PROPOSAL_SUBMITTED",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["value"] == 85000
    assert data["stage"] == "Proposal Submitted"


@pytest.mark.asyncio
async def test_create_deal_unknown_stage(client):
    """POST /records/deals with an unknown stage -> 422."""
    response = await client.post(
        "/api/v1/records/deals", json={"name": "X", "stage": "Discovery"}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_deal(client):
    """PATCH /records/deals/{id} -> merged record."""
    response = await client.patch(
        "/api/v1/records/deals/deal-002", json={"probability": 90, "stage": "Closing"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["probability"] == 90
    assert data["stage"] == "Closing"
    assert data["name"] == "Cloud Migration Services"


@pytest.mark.asyncio
async def test_update_deal_unknown_stage(client):
    """PATCH /records/deals/{id} with an unknown stage -> 422, record unchanged."""
    response = await client.patch(
        "/api/v1/records/deals/deal-002", json={"stage": "Discovery"}
    )
    assert response.status_code == 422

    unchanged = await client.get("/api/v1/records/deals/deal-002")
    assert unchanged.json()["stage"] == "Proposal Submitted"


@pytest.mark.asyncio
async def test_update_deal_not_found(client):
    """PATCH /records/deals/{bad_id} -> 404."""
    response = await client.patch("/api/v1/records/deals/missing", json={"probability": 10})
    assert response.status_code == 404
    assert response.json()["detail"] == "Deal not found"


# ── Health / Metrics ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client):
    """GET /health -> ok with records ready."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["records_ready"] is True


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    """GET /metrics -> Prometheus exposition including request counters."""
    await client.get("/api/v1/health")
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "crm_http_requests_total" in response.text


@pytest.mark.asyncio
async def test_request_id_header(client):
    """Every response carries an X-Request-ID."""
    response = await client.get("/api/v1/health")
    assert response.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_request_id_header_is_propagated(client):
    """A caller-supplied X-Request-ID is echoed back unchanged."""
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


# ── 503 When Not Initialized ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_records_api_503_when_not_initialized():
    """app.state.crm_repository = None -> 503."""
    app = FastAPI()
    app.include_router(router, prefix="/v1")
    app.state.crm_repository = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/v1/records/deals")
        assert response.status_code == 503
        assert "not initialized" in response.json()["detail"]

        health = await client.get("/v1/health")
        assert health.json()["records_ready"] is False
