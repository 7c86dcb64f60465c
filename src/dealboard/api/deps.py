"""FastAPI dependencies that hand endpoints the services built at startup.

Repositories and services live on ``app.state`` (set in the lifespan, or
directly by tests). A missing one means startup did not finish, so the
request gets a 503 instead of an AttributeError.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request, status

from src.dealboard.checklists.service import ChecklistService
from src.dealboard.deals.pipeline import DealPipeline
from src.dealboard.deals.repository import DealRepository
from src.dealboard.parties.repository import BuyingPartyRepository


def _from_state(request: Request, name: str, label: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} not initialized",
        )
    return value


def get_deal_repository(request: Request) -> DealRepository:
    """Retrieve DealRepository from app.state, 503 if not available."""
    return _from_state(request, "deal_repository", "Deal store")


def get_deal_pipeline(request: Request) -> DealPipeline:
    """Retrieve DealPipeline from app.state, 503 if not available."""
    return _from_state(request, "deal_pipeline", "Deal pipeline")


def get_party_repository(request: Request) -> BuyingPartyRepository:
    """Retrieve BuyingPartyRepository from app.state, 503 if not available."""
    return _from_state(request, "party_repository", "Buying party store")


def get_checklist_service(request: Request) -> ChecklistService:
    """Retrieve ChecklistService from app.state, 503 if not available."""
    return _from_state(request, "checklist_service", "Checklists")
