"""REST API endpoints for buying parties and deal-buyer matches."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.dealboard.api.deps import get_deal_repository, get_party_repository
from src.dealboard.core.monitoring import notes_saves_total
from src.dealboard.deals.repository import DealRepository
from src.dealboard.deals.schemas import NotesUpdate
from src.dealboard.parties.repository import (
    BuyingPartyNotFoundError,
    BuyingPartyRepository,
    MatchNotFoundError,
    PartyRangeError,
)
from src.dealboard.parties.schemas import (
    BuyingPartyCreate,
    BuyingPartyRead,
    BuyingPartyUpdate,
    MatchCreate,
    MatchRead,
    MatchUpdate,
    PartyMatchRow,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["buying-parties"])


def _party_not_found(party_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Buying party not found: {party_id}",
    )


# ── Buying Parties ───────────────────────────────────────────────────────────


@router.get("/buying-parties", response_model=list[BuyingPartyRead])
async def list_parties(
    repo: BuyingPartyRepository = Depends(get_party_repository),
) -> list[BuyingPartyRead]:
    return await repo.list_parties()


@router.post("/buying-parties", response_model=BuyingPartyRead, status_code=201)
async def create_party(
    body: BuyingPartyCreate,
    repo: BuyingPartyRepository = Depends(get_party_repository),
) -> BuyingPartyRead:
    return await repo.create_party(body)


@router.get("/buying-parties/{party_id}", response_model=BuyingPartyRead)
async def get_party(
    party_id: str,
    repo: BuyingPartyRepository = Depends(get_party_repository),
) -> BuyingPartyRead:
    party = await repo.get_party(party_id)
    if party is None:
        raise _party_not_found(party_id)
    return party


@router.patch("/buying-parties/{party_id}", response_model=BuyingPartyRead)
async def update_party(
    party_id: str,
    body: BuyingPartyUpdate,
    repo: BuyingPartyRepository = Depends(get_party_repository),
) -> BuyingPartyRead:
    try:
        return await repo.update_party(party_id, body)
    except BuyingPartyNotFoundError:
        raise _party_not_found(party_id)
    except PartyRangeError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )


@router.patch("/buying-parties/{party_id}/notes", response_model=BuyingPartyRead)
async def save_party_notes(
    party_id: str,
    body: NotesUpdate,
    repo: BuyingPartyRepository = Depends(get_party_repository),
) -> BuyingPartyRead:
    """Autosave target for the buying party notes field."""
    try:
        party = await repo.set_notes(party_id, body.notes)
    except BuyingPartyNotFoundError:
        raise _party_not_found(party_id)
    notes_saves_total.labels(entity_type="buying_party").inc()
    logger.debug("party.notes_saved", party_id=party_id, length=len(body.notes))
    return party


@router.get("/buying-parties/{party_id}/matches", response_model=list[PartyMatchRow])
async def list_party_matches(
    party_id: str,
    repo: BuyingPartyRepository = Depends(get_party_repository),
) -> list[PartyMatchRow]:
    """The party's deals with the match stage of each (kanban view)."""
    if await repo.get_party(party_id) is None:
        raise _party_not_found(party_id)
    return await repo.list_party_matches(party_id)


# ── Matches ──────────────────────────────────────────────────────────────────


@router.get("/matches", response_model=list[MatchRead])
async def list_matches(
    party_id: str | None = Query(default=None, alias="partyId"),
    deal_id: str | None = Query(default=None, alias="dealId"),
    repo: BuyingPartyRepository = Depends(get_party_repository),
) -> list[MatchRead]:
    return await repo.list_matches(party_id=party_id, deal_id=deal_id)


@router.post("/matches", response_model=MatchRead, status_code=201)
async def create_match(
    body: MatchCreate,
    repo: BuyingPartyRepository = Depends(get_party_repository),
    deals: DealRepository = Depends(get_deal_repository),
) -> MatchRead:
    """Pair a buying party with a deal. Both must exist."""
    if await deals.get_deal(body.deal_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deal not found: {body.deal_id}",
        )
    if await repo.get_party(body.buying_party_id) is None:
        raise _party_not_found(body.buying_party_id)
    return await repo.create_match(body)


@router.patch("/matches/{match_id}", response_model=MatchRead)
async def update_match(
    match_id: str,
    body: MatchUpdate,
    repo: BuyingPartyRepository = Depends(get_party_repository),
) -> MatchRead:
    """Update a match; an unknown ``stage`` value is rejected with 422."""
    try:
        return await repo.update_match(match_id, body)
    except MatchNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Match not found: {match_id}",
        )
