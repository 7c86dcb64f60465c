"""Integration tests for the match and deal stage checklist endpoints."""

from __future__ import annotations

import pytest


@pytest.fixture
def deal_payload() -> dict:
    return {"company_name": "Harbor Coffee Roasters", "revenue": 1250000, "owner": "Dana"}


async def _match_id(client, deal_payload) -> str:
    deal = (await client.post("/api/deals", json=deal_payload)).json()
    party = (await client.post("/api/buying-parties", json={"name": "Ridgeline Capital"})).json()
    match = await client.post(
        "/api/matches", json={"deal_id": deal["id"], "buying_party_id": party["id"]}
    )
    return match.json()["id"]


# ── Match Checklists ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_unsaved_match_checklist_returns_defaults(client, deal_payload):
    match_id = await _match_id(client, deal_payload)

    response = await client.get(f"/api/matches/{match_id}/checklist")

    assert response.status_code == 200
    body = response.json()
    assert body["is_default"] is True
    assert body["version"] == 0
    assert body["owner_kind"] == "match"
    assert [i["key"] for i in body["items"]][:2] == ["nda_sent", "nda_signed"]
    assert len(body["items"]) == 7


@pytest.mark.asyncio
async def test_toggle_saves_full_sequence(client, deal_payload):
    match_id = await _match_id(client, deal_payload)

    response = await client.post(f"/api/matches/{match_id}/checklist/toggle/nda_sent")

    assert response.status_code == 200
    body = response.json()
    assert body["is_default"] is False
    assert body["version"] == 1
    assert len(body["items"]) == 7
    assert body["items"][0]["done"] is True

    reread = (await client.get(f"/api/matches/{match_id}/checklist")).json()
    assert reread["items"] == body["items"]


@pytest.mark.asyncio
async def test_toggle_unknown_key(client, deal_payload):
    match_id = await _match_id(client, deal_payload)
    response = await client.post(f"/api/matches/{match_id}/checklist/toggle/bogus")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_add_custom_item(client, deal_payload):
    match_id = await _match_id(client, deal_payload)

    response = await client.post(
        f"/api/matches/{match_id}/checklist/items", json={"label": "Site visit"}
    )

    assert response.status_code == 201
    items = response.json()["items"]
    assert items[-1] == {
        "key": "site_visit",
        "label": "Site visit",
        "done": False,
        "note": None,
        "ts": None,
    }


@pytest.mark.asyncio
async def test_add_duplicate_item_conflicts(client, deal_payload):
    match_id = await _match_id(client, deal_payload)

    response = await client.post(
        f"/api/matches/{match_id}/checklist/items", json={"label": "CIM sent"}
    )

    assert response.status_code == 409
    unchanged = (await client.get(f"/api/matches/{match_id}/checklist")).json()
    assert unchanged["is_default"] is True


@pytest.mark.asyncio
async def test_add_item_without_usable_label(client, deal_payload):
    match_id = await _match_id(client, deal_payload)
    response = await client.post(
        f"/api/matches/{match_id}/checklist/items", json={"label": "!!!"}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_replace_match_checklist(client, deal_payload):
    match_id = await _match_id(client, deal_payload)
    items = [
        {"key": "call_seller", "label": "Call seller", "done": True, "note": "Tuesday"},
        {"key": "send_loi", "label": "Send LOI"},
    ]

    response = await client.patch(f"/api/matches/{match_id}/checklist", json={"items": items})

    assert response.status_code == 200
    body = response.json()
    assert [i["key"] for i in body["items"]] == ["call_seller", "send_loi"]
    assert body["items"][0]["note"] == "Tuesday"
    assert body["items"][1]["done"] is False


@pytest.mark.asyncio
async def test_replace_with_duplicate_keys_is_rejected(client, deal_payload):
    match_id = await _match_id(client, deal_payload)
    items = [{"key": "a", "label": "A"}, {"key": "a", "label": "Again"}]

    response = await client.patch(f"/api/matches/{match_id}/checklist", json={"items": items})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_match_checklist(client):
    assert (await client.get("/api/matches/nope/checklist")).status_code == 404
    assert (
        await client.post("/api/matches/nope/checklist/toggle/nda_sent")
    ).status_code == 404


# ── Deal Stage Checklists ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_deal_stage_checklist_flow(client, deal_payload):
    deal = (await client.post("/api/deals", json=deal_payload)).json()
    base = f"/api/deals/{deal['id']}/stage-checklist"

    default = (await client.get(base)).json()
    assert default["owner_kind"] == "deal"
    assert default["items"][0]["key"] == "fs1_received"

    toggled = await client.post(f"{base}/toggle/fs1_received")
    assert toggled.status_code == 200
    assert toggled.json()["items"][0]["done"] is True

    added = await client.post(f"{base}/items", json={"label": "Landlord consent"})
    assert added.status_code == 201
    assert added.json()["version"] == 2
    assert added.json()["items"][-1]["key"] == "landlord_consent"
    assert added.json()["items"][0]["done"] is True


@pytest.mark.asyncio
async def test_unknown_deal_stage_checklist(client):
    response = await client.get("/api/deals/nope/stage-checklist")
    assert response.status_code == 404
