"""Integration tests for the deal, board and record endpoints.

Runs the real app against in-memory SQLite through httpx ASGITransport.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.dealboard.api.v1.router import router as v1_router

DEAL = {"company_name": "Harbor Coffee Roasters", "revenue": 1250000, "owner": "Dana"}


async def _create_deal(client, **overrides) -> dict:
    response = await client.post("/api/deals", json={**DEAL, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


# ── Deals ────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_deal_defaults(client):
    deal = await _create_deal(client)

    assert deal["stage"] == "onboarding"
    assert deal["priority"] == "medium"
    assert deal["health_score"] == 85
    assert deal["health_band"] == "healthy"
    assert deal["touches"] == 0
    assert deal["id"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {**DEAL, "revenue": 0},
        {**DEAL, "company_name": "   "},
        {**DEAL, "owner": ""},
        {**DEAL, "stage": "closing"},
        {"company_name": "No Revenue LLC", "owner": "Dana"},
    ],
)
async def test_create_deal_validation(client, payload):
    response = await client.post("/api/deals", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_deal_not_found(client):
    response = await client.get("/api/deals/missing")
    assert response.status_code == 404
    assert "missing" in response.json()["detail"]


@pytest.mark.asyncio
async def test_list_deals_by_stage(client):
    await _create_deal(client, company_name="Alpha Plumbing")
    await _create_deal(client, company_name="Beta Bakery", stage="sold")

    everything = await client.get("/api/deals")
    sold = await client.get("/api/deals", params={"stage": "sold"})

    assert len(everything.json()) == 2
    assert [d["company_name"] for d in sold.json()] == ["Beta Bakery"]


# ── Stage Moves ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_stage_move_needs_valuation(client):
    deal = await _create_deal(client)

    response = await client.patch(f"/api/deals/{deal['id']}/stage", json={"stage": "valuation"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Needs Valuation"
    stored = await client.get(f"/api/deals/{deal['id']}")
    assert stored.json()["stage"] == "onboarding"


@pytest.mark.asyncio
async def test_stage_move_after_valuation_attached(client):
    deal = await _create_deal(client, touches=4, age_in_stage=9)
    await client.post("/api/documents", json={"deal_id": deal["id"], "name": "Valuation.xlsx"})

    response = await client.patch(f"/api/deals/{deal['id']}/stage", json={"stage": "valuation"})

    assert response.status_code == 200
    body = response.json()
    assert body["stage"] == "valuation"
    assert body["touches"] == 4
    assert body["age_in_stage"] == 9


@pytest.mark.asyncio
async def test_stage_move_rejects_unknown_stage(client):
    deal = await _create_deal(client)
    response = await client.patch(f"/api/deals/{deal['id']}/stage", json={"stage": "closed"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_stage_move_unknown_deal(client):
    response = await client.patch("/api/deals/nope/stage", json={"stage": "sold"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_generic_patch_goes_through_guard(client):
    deal = await _create_deal(client)

    rejected = await client.patch(
        f"/api/deals/{deal['id']}", json={"stage": "sold", "priority": "high"}
    )
    assert rejected.status_code == 409

    stored = (await client.get(f"/api/deals/{deal['id']}")).json()
    assert stored["stage"] == "onboarding"
    assert stored["priority"] == "medium"

    accepted = await client.patch(f"/api/deals/{deal['id']}", json={"priority": "high"})
    assert accepted.status_code == 200
    assert accepted.json()["priority"] == "high"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"company_name": None},
        {"company_name": "  "},
        {"owner": None},
        {"revenue": None},
        {"priority": None},
        {"touches": None},
        {"stage": None},
    ],
)
async def test_patch_cannot_clear_required_fields(client, payload):
    deal = await _create_deal(client)

    response = await client.patch(f"/api/deals/{deal['id']}", json=payload)

    assert response.status_code == 422
    stored = (await client.get(f"/api/deals/{deal['id']}")).json()
    assert stored["company_name"] == DEAL["company_name"]
    assert stored["revenue"] == DEAL["revenue"]


@pytest.mark.asyncio
async def test_patch_can_clear_optional_fields(client):
    deal = await _create_deal(client, description="Family owned")

    response = await client.patch(f"/api/deals/{deal['id']}", json={"description": None})

    assert response.status_code == 200
    assert response.json()["description"] is None


# ── Notes ────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_notes_patch_saves_and_adds_activity(client):
    deal = await _create_deal(client)

    response = await client.patch(
        f"/api/deals/{deal['id']}/notes", json={"notes": "Seller prefers asset sale"}
    )
    assert response.status_code == 200
    assert response.json()["notes"] == "Seller prefers asset sale"

    activities = (await client.get("/api/activities", params={"entityId": deal["id"]})).json()
    assert [a["title"] for a in activities] == ["Internal notes updated"]
    assert activities[0]["type"] == "system"


@pytest.mark.asyncio
async def test_notes_patch_unknown_deal(client):
    response = await client.patch("/api/deals/nope/notes", json={"notes": "x"})
    assert response.status_code == 404


# ── Board ────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_pipeline_board(client):
    first = await _create_deal(client, company_name="Alpha Plumbing")
    await _create_deal(client, company_name="Beta Bakery", stage="due_diligence")
    await client.post("/api/documents", json={"deal_id": first["id"], "name": "alpha valuation.pdf"})

    response = await client.get("/api/deals/pipeline")

    assert response.status_code == 200
    board = response.json()
    assert [c["stage"] for c in board["columns"]] == [
        "onboarding",
        "valuation",
        "buyer_matching",
        "due_diligence",
        "sold",
    ]
    assert board["total_deals"] == 2
    onboarding = board["columns"][0]
    assert onboarding["count"] == 1
    assert onboarding["cards"][0]["has_valuation_document"] is True
    assert board["columns"][3]["cards"][0]["has_valuation_document"] is False


# ── Pinned Documents / Templates ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_pinned_documents(client):
    deal = await _create_deal(client)
    for name in ["Valuation Model.xlsx", "Valuation Deck.pptx", "Harbor CIM.pptx", "Mutual NDA.pdf"]:
        await client.post("/api/documents", json={"deal_id": deal["id"], "name": name})

    pinned = (await client.get(f"/api/deals/{deal['id']}/documents/pinned")).json()

    assert pinned["valuation_excel"]["name"] == "Valuation Model.xlsx"
    assert pinned["valuation_ppt"]["name"] == "Valuation Deck.pptx"
    assert pinned["cim_ppt"]["name"] == "Harbor CIM.pptx"
    assert pinned["nda_pdf"]["name"] == "Mutual NDA.pdf"


@pytest.mark.asyncio
async def test_pinned_documents_empty(client):
    deal = await _create_deal(client)
    pinned = (await client.get(f"/api/deals/{deal['id']}/documents/pinned")).json()
    assert pinned == {
        "valuation_excel": None,
        "valuation_ppt": None,
        "cim_ppt": None,
        "nda_pdf": None,
    }


@pytest.mark.asyncio
async def test_activity_template(client):
    deal = await _create_deal(client)

    response = await client.post(f"/api/deals/{deal['id']}/activities/templates/send_nda")

    assert response.status_code == 201
    activity = response.json()
    assert activity["title"] == "NDA sent"
    assert activity["type"] == "document"
    assert activity["status"] == "completed"
    assert activity["deal_id"] == deal["id"]


@pytest.mark.asyncio
async def test_unknown_activity_template_falls_back(client):
    deal = await _create_deal(client)
    response = await client.post(f"/api/deals/{deal['id']}/activities/templates/fax")
    assert response.status_code == 201
    assert response.json()["title"] == "Activity"
    assert response.json()["type"] == "task"


# ── Documents / Activities / Contacts ────────────────────────────────────────


@pytest.mark.asyncio
async def test_documents_filter_by_entity(client):
    deal = await _create_deal(client)
    other = await _create_deal(client, company_name="Other Co")
    await client.post("/api/documents", json={"deal_id": deal["id"], "name": "Tax return 2025.pdf"})
    await client.post("/api/documents", json={"deal_id": other["id"], "name": "Lease.pdf"})

    docs = (await client.get("/api/documents", params={"entityId": deal["id"]})).json()

    assert [d["name"] for d in docs] == ["Tax return 2025.pdf"]
    assert docs[0]["status"] == "draft"


@pytest.mark.asyncio
async def test_activity_create_and_filter_by_type(client):
    deal = await _create_deal(client)
    await client.post(
        "/api/activities",
        json={"deal_id": deal["id"], "type": "meeting", "title": "Site visit"},
    )
    await client.post(
        "/api/activities",
        json={"deal_id": deal["id"], "type": "email", "title": "Intro email"},
    )

    meetings = (
        await client.get("/api/activities", params={"entityId": deal["id"], "type": "meeting"})
    ).json()
    assert [a["title"] for a in meetings] == ["Site visit"]


@pytest.mark.asyncio
async def test_contacts_with_tagged_owner(client):
    deal = await _create_deal(client)
    party = (await client.post("/api/buying-parties", json={"name": "Ridgeline Capital"})).json()

    seller = await client.post(
        "/api/contacts",
        json={
            "name": "Maria Lopez",
            "role": "Owner",
            "email": "maria@harbor.example",
            "owner": {"kind": "deal", "id": deal["id"]},
        },
    )
    assert seller.status_code == 201
    assert seller.json()["owner"] == {"kind": "deal", "id": deal["id"]}

    await client.post(
        "/api/contacts",
        json={
            "name": "Tom Reed",
            "role": "Partner",
            "owner": {"kind": "buying_party", "id": party["id"]},
        },
    )

    by_deal = (await client.get("/api/contacts", params={"entityId": deal["id"]})).json()
    assert [c["name"] for c in by_deal] == ["Maria Lopez"]

    buyers = (await client.get("/api/contacts", params={"entityType": "buying_party"})).json()
    assert [c["name"] for c in buyers] == ["Tom Reed"]

    search = (await client.get("/api/contacts", params={"search": "HARBOR"})).json()
    assert [c["name"] for c in search] == ["Maria Lopez"]


@pytest.mark.asyncio
async def test_contact_owner_kind_is_validated(client):
    response = await client.post(
        "/api/contacts",
        json={"name": "X", "role": "Y", "owner": {"kind": "vendor", "id": "1"}},
    )
    assert response.status_code == 422


# ── 503 When Not Initialized ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_deals_api_503_when_not_initialized():
    app = FastAPI()
    app.include_router(v1_router)
    app.state.deal_repository = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/deals")
        assert response.status_code == 503
        assert "not initialized" in response.json()["detail"]
