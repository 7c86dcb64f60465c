"""REST API endpoints for deals and the pipeline board.

Every stage change, whether from a board drop (PATCH /deals/{id}/stage) or
a generic PATCH carrying ``stage``, goes through DealPipeline so the
valuation guard applies. A refused move answers 409 with the guard's
reason as ``detail``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.dealboard.api.deps import (
    get_deal_pipeline,
    get_deal_repository,
    get_party_repository,
)
from src.dealboard.deals.activities import activity_from_template
from src.dealboard.deals.documents import pin_documents
from src.dealboard.deals.pipeline import DealPipeline
from src.dealboard.deals.repository import DealNotFoundError, DealRepository
from src.dealboard.deals.schemas import (
    ActivityRead,
    DealCreate,
    DealRead,
    DealUpdate,
    NotesUpdate,
    PinnedDocuments,
    PipelineBoard,
    StageChange,
)
from src.dealboard.deals.stages import DealStage, StageTransitionRejected
from src.dealboard.parties.repository import BuyingPartyRepository
from src.dealboard.parties.schemas import BuyingPartyRead, DealBuyerRow

router = APIRouter(prefix="/deals", tags=["deals"])


# ── Error Translation ────────────────────────────────────────────────────────


def _not_found(deal_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Deal not found: {deal_id}",
    )


def _rejected(exc: StageTransitionRejected) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


async def _require_deal(repo: DealRepository, deal_id: str) -> DealRead:
    deal = await repo.get_deal(deal_id)
    if deal is None:
        raise _not_found(deal_id)
    return deal


# ── Deals ────────────────────────────────────────────────────────────────────


@router.get("", response_model=list[DealRead])
async def list_deals(
    stage: DealStage | None = Query(default=None, description="Filter by pipeline stage"),
    repo: DealRepository = Depends(get_deal_repository),
) -> list[DealRead]:
    """List deals, optionally for a single stage."""
    return await repo.list_deals(stage=stage)


@router.post("", response_model=DealRead, status_code=201)
async def create_deal(
    body: DealCreate,
    repo: DealRepository = Depends(get_deal_repository),
) -> DealRead:
    """Add a deal to the pipeline."""
    return await repo.create_deal(body)


@router.get("/pipeline", response_model=PipelineBoard)
async def get_pipeline(
    pipeline: DealPipeline = Depends(get_deal_pipeline),
) -> PipelineBoard:
    """Board view: one column per stage, in stage order."""
    return await pipeline.build_board()


@router.get("/{deal_id}", response_model=DealRead)
async def get_deal(
    deal_id: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> DealRead:
    return await _require_deal(repo, deal_id)


@router.patch("/{deal_id}", response_model=DealRead)
async def update_deal(
    deal_id: str,
    body: DealUpdate,
    pipeline: DealPipeline = Depends(get_deal_pipeline),
) -> DealRead:
    """Partial update. A ``stage`` field is checked by the stage guard."""
    try:
        return await pipeline.update_deal(deal_id, body)
    except DealNotFoundError:
        raise _not_found(deal_id)
    except StageTransitionRejected as exc:
        raise _rejected(exc)


@router.patch("/{deal_id}/stage", response_model=DealRead)
async def move_deal(
    deal_id: str,
    body: StageChange,
    pipeline: DealPipeline = Depends(get_deal_pipeline),
) -> DealRead:
    """Move a deal to another board column.

    Returns 409 with detail "Needs Valuation" when the deal is leaving
    onboarding without a valuation document.
    """
    try:
        return await pipeline.move_deal(deal_id, body.stage)
    except DealNotFoundError:
        raise _not_found(deal_id)
    except StageTransitionRejected as exc:
        raise _rejected(exc)


@router.patch("/{deal_id}/notes", response_model=DealRead)
async def save_deal_notes(
    deal_id: str,
    body: NotesUpdate,
    pipeline: DealPipeline = Depends(get_deal_pipeline),
) -> DealRead:
    """Autosave target for the deal notes field."""
    try:
        return await pipeline.save_notes(deal_id, body.notes)
    except DealNotFoundError:
        raise _not_found(deal_id)


# ── Deal Views ───────────────────────────────────────────────────────────────


@router.get("/{deal_id}/documents/pinned", response_model=PinnedDocuments)
async def get_pinned_documents(
    deal_id: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> PinnedDocuments:
    """Well-known deal documents (valuation, CIM, NDA), matched by name."""
    await _require_deal(repo, deal_id)
    documents = await repo.list_documents(deal_id=deal_id)
    return pin_documents(documents)


@router.get("/{deal_id}/buyers", response_model=list[DealBuyerRow])
async def list_deal_buyers(
    deal_id: str,
    repo: DealRepository = Depends(get_deal_repository),
    parties: BuyingPartyRepository = Depends(get_party_repository),
) -> list[DealBuyerRow]:
    """Buying parties matched to the deal, with each match's stage."""
    await _require_deal(repo, deal_id)
    return await parties.list_deal_buyers(deal_id)


@router.get("/{deal_id}/buyers-with-nda", response_model=list[BuyingPartyRead])
async def list_buyers_with_nda(
    deal_id: str,
    repo: DealRepository = Depends(get_deal_repository),
    parties: BuyingPartyRepository = Depends(get_party_repository),
) -> list[BuyingPartyRead]:
    """Buying parties that have signed the deal's NDA."""
    await _require_deal(repo, deal_id)
    return await parties.list_buyers_with_nda(deal_id)


@router.post(
    "/{deal_id}/activities/templates/{template_key}",
    response_model=ActivityRead,
    status_code=201,
)
async def add_template_activity(
    deal_id: str,
    template_key: str,
    repo: DealRepository = Depends(get_deal_repository),
) -> ActivityRead:
    """Quick-add a timeline entry from a named template."""
    await _require_deal(repo, deal_id)
    return await repo.create_activity(activity_from_template(template_key, deal_id))
