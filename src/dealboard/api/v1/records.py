"""REST API endpoints for documents, activities and contacts.

These records belong to either a deal or a buying party. List endpoints
take ``entityId`` to restrict to one owner.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from src.dealboard.api.deps import get_deal_repository
from src.dealboard.deals.repository import DealRepository
from src.dealboard.deals.schemas import (
    ActivityCreate,
    ActivityRead,
    ActivityType,
    ContactCreate,
    ContactRead,
    DocumentCreate,
    DocumentRead,
    EntityType,
)

router = APIRouter(tags=["records"])


# ── Documents ────────────────────────────────────────────────────────────────


@router.get("/documents", response_model=list[DocumentRead])
async def list_documents(
    entity_id: str | None = Query(default=None, alias="entityId"),
    repo: DealRepository = Depends(get_deal_repository),
) -> list[DocumentRead]:
    return await repo.list_documents(entity_id=entity_id)


@router.post("/documents", response_model=DocumentRead, status_code=201)
async def create_document(
    body: DocumentCreate,
    repo: DealRepository = Depends(get_deal_repository),
) -> DocumentRead:
    """Attach a document record. Only name and link are stored, not the file."""
    return await repo.create_document(body)


# ── Activities ───────────────────────────────────────────────────────────────


@router.get("/activities", response_model=list[ActivityRead])
async def list_activities(
    entity_id: str | None = Query(default=None, alias="entityId"),
    activity_type: ActivityType | None = Query(default=None, alias="type"),
    repo: DealRepository = Depends(get_deal_repository),
) -> list[ActivityRead]:
    """Timeline entries, newest first."""
    return await repo.list_activities(
        entity_id=entity_id,
        activity_type=activity_type.value if activity_type else None,
    )


@router.post("/activities", response_model=ActivityRead, status_code=201)
async def create_activity(
    body: ActivityCreate,
    repo: DealRepository = Depends(get_deal_repository),
) -> ActivityRead:
    return await repo.create_activity(body)


# ── Contacts ─────────────────────────────────────────────────────────────────


@router.get("/contacts", response_model=list[ContactRead])
async def list_contacts(
    entity_id: str | None = Query(default=None, alias="entityId"),
    entity_type: EntityType | None = Query(default=None, alias="entityType"),
    search: str | None = Query(default=None, description="Substring of name, email or role"),
    repo: DealRepository = Depends(get_deal_repository),
) -> list[ContactRead]:
    return await repo.list_contacts(
        entity_id=entity_id,
        entity_type=entity_type,
        search=search,
    )


@router.post("/contacts", response_model=ContactRead, status_code=201)
async def create_contact(
    body: ContactCreate,
    repo: DealRepository = Depends(get_deal_repository),
) -> ContactRead:
    """Create a contact owned by a deal or a buying party."""
    return await repo.create_contact(body)
