"""REST API endpoints for match checklists and deal stage checklists.

Both owner kinds expose the same four operations. Reads fall back to the
default sequence when nothing has been saved; every write stores the full
sequence.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from src.dealboard.api.deps import (
    get_checklist_service,
    get_deal_repository,
    get_party_repository,
)
from src.dealboard.checklists.schemas import (
    ChecklistItemAdd,
    ChecklistOwnerKind,
    ChecklistRead,
    ChecklistReplace,
)
from src.dealboard.checklists.service import ChecklistService
from src.dealboard.checklists.store import (
    ChecklistItemNotFound,
    DuplicateChecklistKey,
    InvalidChecklistLabel,
)
from src.dealboard.deals.repository import DealRepository
from src.dealboard.parties.repository import BuyingPartyRepository

router = APIRouter(tags=["checklists"])


# ── Owner Resolution ─────────────────────────────────────────────────────────


async def _require_match(
    match_id: str,
    parties: BuyingPartyRepository = Depends(get_party_repository),
) -> str:
    if await parties.get_match(match_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Match not found: {match_id}",
        )
    return match_id


async def _require_deal(
    deal_id: str,
    deals: DealRepository = Depends(get_deal_repository),
) -> str:
    if await deals.get_deal(deal_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deal not found: {deal_id}",
        )
    return deal_id


# ── Shared Operations ────────────────────────────────────────────────────────


async def _toggle(
    service: ChecklistService, kind: ChecklistOwnerKind, owner_id: str, key: str
) -> ChecklistRead:
    try:
        return await service.toggle(kind, owner_id, key)
    except ChecklistItemNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


async def _add(
    service: ChecklistService, kind: ChecklistOwnerKind, owner_id: str, label: str
) -> ChecklistRead:
    try:
        return await service.add_item(kind, owner_id, label)
    except DuplicateChecklistKey as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except InvalidChecklistLabel as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )


async def _replace(
    service: ChecklistService,
    kind: ChecklistOwnerKind,
    owner_id: str,
    body: ChecklistReplace,
) -> ChecklistRead:
    try:
        return await service.replace(kind, owner_id, body.items)
    except DuplicateChecklistKey as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )


# ── Match Checklists ─────────────────────────────────────────────────────────


@router.get("/matches/{match_id}/checklist", response_model=ChecklistRead)
async def get_match_checklist(
    match_id: str = Depends(_require_match),
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistRead:
    return await service.get_checklist(ChecklistOwnerKind.MATCH, match_id)


@router.patch("/matches/{match_id}/checklist", response_model=ChecklistRead)
async def replace_match_checklist(
    body: ChecklistReplace,
    match_id: str = Depends(_require_match),
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistRead:
    """Overwrite the whole sequence (last write wins)."""
    return await _replace(service, ChecklistOwnerKind.MATCH, match_id, body)


@router.post("/matches/{match_id}/checklist/toggle/{key}", response_model=ChecklistRead)
async def toggle_match_item(
    key: str,
    match_id: str = Depends(_require_match),
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistRead:
    return await _toggle(service, ChecklistOwnerKind.MATCH, match_id, key)


@router.post(
    "/matches/{match_id}/checklist/items",
    response_model=ChecklistRead,
    status_code=201,
)
async def add_match_item(
    body: ChecklistItemAdd,
    match_id: str = Depends(_require_match),
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistRead:
    return await _add(service, ChecklistOwnerKind.MATCH, match_id, body.label)


# ── Deal Stage Checklists ────────────────────────────────────────────────────


@router.get("/deals/{deal_id}/stage-checklist", response_model=ChecklistRead)
async def get_deal_checklist(
    deal_id: str = Depends(_require_deal),
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistRead:
    return await service.get_checklist(ChecklistOwnerKind.DEAL, deal_id)


@router.patch("/deals/{deal_id}/stage-checklist", response_model=ChecklistRead)
async def replace_deal_checklist(
    body: ChecklistReplace,
    deal_id: str = Depends(_require_deal),
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistRead:
    """Overwrite the whole sequence (last write wins)."""
    return await _replace(service, ChecklistOwnerKind.DEAL, deal_id, body)


@router.post("/deals/{deal_id}/stage-checklist/toggle/{key}", response_model=ChecklistRead)
async def toggle_deal_item(
    key: str,
    deal_id: str = Depends(_require_deal),
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistRead:
    return await _toggle(service, ChecklistOwnerKind.DEAL, deal_id, key)


@router.post(
    "/deals/{deal_id}/stage-checklist/items",
    response_model=ChecklistRead,
    status_code=201,
)
async def add_deal_item(
    body: ChecklistItemAdd,
    deal_id: str = Depends(_require_deal),
    service: ChecklistService = Depends(get_checklist_service),
) -> ChecklistRead:
    return await _add(service, ChecklistOwnerKind.DEAL, deal_id, body.label)
