"""Integration tests for buying parties and deal-buyer matches."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY


async def _deal(client, name: str = "Harbor Coffee Roasters") -> dict:
    response = await client.post(
        "/api/deals", json={"company_name": name, "revenue": 900000, "owner": "Dana"}
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _party(client, name: str, **fields) -> dict:
    response = await client.post("/api/buying-parties", json={"name": name, **fields})
    assert response.status_code == 201, response.text
    return response.json()


async def _match(client, deal_id: str, party_id: str, stage: str = "new") -> dict:
    response = await client.post(
        "/api/matches",
        json={"deal_id": deal_id, "buying_party_id": party_id, "stage": stage},
    )
    assert response.status_code == 201, response.text
    return response.json()


# ── Parties ──────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_party(client):
    party = await _party(
        client,
        "Ridgeline Capital",
        budget_min=500000,
        budget_max=3000000,
        target_industries=["food", "retail"],
    )

    assert party["status"] == "evaluating"
    assert party["target_industries"] == ["food", "retail"]

    fetched = await client.get(f"/api/buying-parties/{party['id']}")
    assert fetched.json()["name"] == "Ridgeline Capital"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "Inverted", "budget_min": 10, "budget_max": 5},
        {"name": "Inverted", "target_acquisition_min": 4, "target_acquisition_max": 1},
        {"name": "  "},
        {"name": "Negative", "budget_min": -1},
    ],
)
async def test_create_party_validation(client, payload):
    response = await client.post("/api/buying-parties", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_parties_sorted_by_name(client):
    await _party(client, "Zephyr Partners")
    await _party(client, "Acorn Holdings")

    names = [p["name"] for p in (await client.get("/api/buying-parties")).json()]
    assert names == ["Acorn Holdings", "Zephyr Partners"]


@pytest.mark.asyncio
async def test_update_party(client):
    party = await _party(client, "Ridgeline Capital")

    response = await client.patch(
        f"/api/buying-parties/{party['id']}", json={"timeline": "Q2", "status": "active"}
    )

    assert response.status_code == 200
    assert response.json()["timeline"] == "Q2"
    assert response.json()["status"] == "active"
    assert response.json()["name"] == "Ridgeline Capital"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [{"name": None}, {"name": " "}, {"status": None}, {"target_industries": None}],
)
async def test_update_party_cannot_clear_required_fields(client, payload):
    party = await _party(client, "Ridgeline Capital")

    response = await client.patch(f"/api/buying-parties/{party['id']}", json=payload)

    assert response.status_code == 422
    stored = (await client.get(f"/api/buying-parties/{party['id']}")).json()
    assert stored["name"] == "Ridgeline Capital"
    assert stored["status"] == "evaluating"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"budget_min": 30},
        {"budget_max": 5},
        {"target_acquisition_min": 9},
    ],
)
async def test_update_party_range_checked_against_stored_bounds(client, payload):
    party = await _party(
        client,
        "Ridgeline Capital",
        budget_min=10,
        budget_max=20,
        target_acquisition_min=1,
        target_acquisition_max=3,
    )

    response = await client.patch(f"/api/buying-parties/{party['id']}", json=payload)

    assert response.status_code == 422
    stored = (await client.get(f"/api/buying-parties/{party['id']}")).json()
    assert stored["budget_min"] == 10
    assert stored["budget_max"] == 20
    assert stored["target_acquisition_min"] == 1


@pytest.mark.asyncio
async def test_update_party_range_can_move_both_bounds(client):
    party = await _party(client, "Ridgeline Capital", budget_min=10, budget_max=20)

    response = await client.patch(
        f"/api/buying-parties/{party['id']}", json={"budget_min": 30, "budget_max": 40}
    )
    assert response.status_code == 200

    cleared = await client.patch(
        f"/api/buying-parties/{party['id']}", json={"budget_max": None}
    )
    assert cleared.status_code == 200
    assert cleared.json()["budget_min"] == 30
    assert cleared.json()["budget_max"] is None


@pytest.mark.asyncio
async def test_unknown_party_is_404(client):
    assert (await client.get("/api/buying-parties/nope")).status_code == 404
    assert (
        await client.patch("/api/buying-parties/nope", json={"timeline": "Q2"})
    ).status_code == 404
    assert (
        await client.patch("/api/buying-parties/nope/notes", json={"notes": "x"})
    ).status_code == 404
    assert (await client.get("/api/buying-parties/nope/matches")).status_code == 404


@pytest.mark.asyncio
async def test_party_notes_save(client):
    party = await _party(client, "Ridgeline Capital")
    before = REGISTRY.get_sample_value(
        "dealboard_notes_saves_total", {"entity_type": "buying_party"}
    ) or 0.0

    response = await client.patch(
        f"/api/buying-parties/{party['id']}/notes", json={"notes": "Prefers SBA financing"}
    )

    assert response.status_code == 200
    assert response.json()["notes"] == "Prefers SBA financing"
    after = REGISTRY.get_sample_value(
        "dealboard_notes_saves_total", {"entity_type": "buying_party"}
    )
    assert after == before + 1


# ── Matches ──────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_match_requires_existing_deal_and_party(client):
    deal = await _deal(client)
    party = await _party(client, "Ridgeline Capital")

    missing_deal = await client.post(
        "/api/matches", json={"deal_id": "nope", "buying_party_id": party["id"]}
    )
    missing_party = await client.post(
        "/api/matches", json={"deal_id": deal["id"], "buying_party_id": "nope"}
    )

    assert missing_deal.status_code == 404
    assert missing_party.status_code == 404
    assert (await client.get("/api/matches")).json() == []


@pytest.mark.asyncio
async def test_match_stage_update(client):
    deal = await _deal(client)
    party = await _party(client, "Ridgeline Capital")
    match = await _match(client, deal["id"], party["id"])
    assert match["stage"] == "new"
    assert match["status"] == "interested"

    response = await client.patch(f"/api/matches/{match['id']}", json={"stage": "cim_sent"})

    assert response.status_code == 200
    assert response.json()["stage"] == "cim_sent"


@pytest.mark.asyncio
async def test_match_stage_must_be_known(client):
    deal = await _deal(client)
    party = await _party(client, "Ridgeline Capital")
    match = await _match(client, deal["id"], party["id"])

    response = await client.patch(f"/api/matches/{match['id']}", json={"stage": "maybe"})
    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"stage": None}, {"status": None}])
async def test_match_required_fields_cannot_be_cleared(client, payload):
    deal = await _deal(client)
    party = await _party(client, "Ridgeline Capital")
    match = await _match(client, deal["id"], party["id"])

    response = await client.patch(f"/api/matches/{match['id']}", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_unknown_match(client):
    response = await client.patch("/api/matches/nope", json={"stage": "ioi"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_matches_filters(client):
    first = await _deal(client, "Alpha Plumbing")
    second = await _deal(client, "Beta Bakery")
    party = await _party(client, "Ridgeline Capital")
    other = await _party(client, "Acorn Holdings")
    await _match(client, first["id"], party["id"])
    await _match(client, second["id"], party["id"])
    await _match(client, first["id"], other["id"])

    by_party = (await client.get("/api/matches", params={"partyId": party["id"]})).json()
    by_deal = (await client.get("/api/matches", params={"dealId": first["id"]})).json()

    assert {m["deal_id"] for m in by_party} == {first["id"], second["id"]}
    assert {m["buying_party_id"] for m in by_deal} == {party["id"], other["id"]}


@pytest.mark.asyncio
async def test_party_matches_include_deal(client):
    deal = await _deal(client, "Alpha Plumbing")
    party = await _party(client, "Ridgeline Capital")
    await _match(client, deal["id"], party["id"], stage="intro_call")

    rows = (await client.get(f"/api/buying-parties/{party['id']}/matches")).json()

    assert len(rows) == 1
    assert rows[0]["deal"]["company_name"] == "Alpha Plumbing"
    assert rows[0]["match"]["stage"] == "intro_call"


# ── Deal Buyers ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_deal_buyers_sorted_by_party_name(client):
    deal = await _deal(client)
    zephyr = await _party(client, "Zephyr Partners")
    acorn = await _party(client, "Acorn Holdings")
    await _match(client, deal["id"], zephyr["id"], stage="nda_sent")
    await _match(client, deal["id"], acorn["id"], stage="loi")

    rows = (await client.get(f"/api/deals/{deal['id']}/buyers")).json()

    assert [r["party"]["name"] for r in rows] == ["Acorn Holdings", "Zephyr Partners"]
    assert [r["match"]["stage"] for r in rows] == ["loi", "nda_sent"]


@pytest.mark.asyncio
async def test_buyers_with_nda(client):
    deal = await _deal(client)
    signed = await _party(client, "Acorn Holdings")
    later = await _party(client, "Birch Equity")
    lost = await _party(client, "Cedar Group")
    pending = await _party(client, "Dune Capital")
    await _match(client, deal["id"], signed["id"], stage="nda_signed")
    await _match(client, deal["id"], later["id"], stage="diligence")
    await _match(client, deal["id"], lost["id"], stage="lost")
    await _match(client, deal["id"], pending["id"], stage="nda_sent")

    parties = (await client.get(f"/api/deals/{deal['id']}/buyers-with-nda")).json()

    assert [p["name"] for p in parties] == ["Acorn Holdings", "Birch Equity"]


@pytest.mark.asyncio
async def test_deal_buyer_views_for_unknown_deal(client):
    assert (await client.get("/api/deals/nope/buyers")).status_code == 404
    assert (await client.get("/api/deals/nope/buyers-with-nda")).status_code == 404
