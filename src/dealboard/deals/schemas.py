"""Pydantic schemas for deals, documents, activities and contacts.

Defines all structured types for the deal side of the record store:
- Enums: DealPriority, DocumentStatus, ActivityType, EntityType, HealthBand
- Owner references: DealRef | BuyingPartyRef tagged union (OwnerRef)
- Deals: DealCreate/Update/Read, StageChange, NotesUpdate
- Documents, activities, contacts: Create/Read pairs
- Board and dashboard payloads: PipelineColumn, PipelineBoard, PinnedDocuments

DealStage lives in src/dealboard/deals/stages.py next to the guard.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, computed_field, field_validator

from src.dealboard.deals.stages import DealStage


# ── Enums ───────────────────────────────────────────────────────────────────


class DealPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"


class ActivityType(str, Enum):
    TASK = "task"
    EMAIL = "email"
    MEETING = "meeting"
    DOCUMENT = "document"
    SYSTEM = "system"


class EntityType(str, Enum):
    """Kind of record a contact, document or activity can belong to."""

    DEAL = "deal"
    BUYING_PARTY = "buying_party"


class HealthBand(str, Enum):
    """Coarse reading of a deal's health score, as shown on the board."""

    HEALTHY = "healthy"
    AT_RISK = "at_risk"
    CRITICAL = "critical"


def health_band(score: int) -> HealthBand:
    if score >= 70:
        return HealthBand.HEALTHY
    if score >= 40:
        return HealthBand.AT_RISK
    return HealthBand.CRITICAL


# ── Owner References ────────────────────────────────────────────────────────


class DealRef(BaseModel):
    """Reference to a deal as the owner of a contact."""

    kind: Literal["deal"] = "deal"
    id: str


class BuyingPartyRef(BaseModel):
    """Reference to a buying party as the owner of a contact."""

    kind: Literal["buying_party"] = "buying_party"
    id: str


OwnerRef = Annotated[Union[DealRef, BuyingPartyRef], Field(discriminator="kind")]


def owner_from_columns(entity_type: str, entity_id: str) -> DealRef | BuyingPartyRef:
    """Build the tagged owner reference from its persisted columns.

    Raises:
        ValueError: If entity_type is not a known owner kind.
    """
    kind = EntityType(entity_type)
    if kind is EntityType.DEAL:
        return DealRef(id=entity_id)
    return BuyingPartyRef(id=entity_id)


def owner_to_columns(owner: DealRef | BuyingPartyRef) -> tuple[str, str]:
    """Split an owner reference into (entity_type, entity_id) columns."""
    if isinstance(owner, DealRef):
        return EntityType.DEAL.value, owner.id
    if isinstance(owner, BuyingPartyRef):
        return EntityType.BUYING_PARTY.value, owner.id
    raise TypeError(f"Unsupported owner reference: {owner!r}")


# ── Deals ───────────────────────────────────────────────────────────────────


class DealCreate(BaseModel):
    """Payload for adding a deal to the pipeline.

    New deals start in ONBOARDING unless a stage is given. Company name and
    owner must be non-blank and revenue must be positive.
    """

    company_name: str
    revenue: float = Field(gt=0, description="Annual revenue, must be greater than 0")
    owner: str
    stage: DealStage = DealStage.ONBOARDING
    priority: DealPriority = DealPriority.MEDIUM
    sde: float | None = None
    valuation_min: float | None = None
    valuation_max: float | None = None
    sde_multiple: float | None = None
    revenue_multiple: float | None = None
    commission: float | None = None
    description: str | None = None
    notes: str | None = None
    next_step_days: int | None = None
    touches: int = Field(default=0, ge=0)
    age_in_stage: int = Field(default=0, ge=0)
    health_score: int = Field(default=85, ge=0, le=100)

    @field_validator("company_name", "owner")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        """Trim surrounding whitespace and reject blank values."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class DealUpdate(BaseModel):
    """Partial update for a deal (only fields that are set are written)."""

    company_name: str | None = None
    revenue: float | None = Field(default=None, gt=0)
    owner: str | None = None
    stage: DealStage | None = None
    priority: DealPriority | None = None
    sde: float | None = None
    valuation_min: float | None = None
    valuation_max: float | None = None
    sde_multiple: float | None = None
    revenue_multiple: float | None = None
    commission: float | None = None
    description: str | None = None
    notes: str | None = None
    next_step_days: int | None = None
    touches: int | None = Field(default=None, ge=0)
    age_in_stage: int | None = Field(default=None, ge=0)
    health_score: int | None = Field(default=None, ge=0, le=100)

    @field_validator("company_name", "owner")
    @classmethod
    def _strip_required(cls, v: str | None) -> str:
        """Required text fields may be omitted but not cleared or blanked."""
        if v is None:
            raise ValueError("must not be null")
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("revenue", "stage", "priority", "touches", "age_in_stage", "health_score")
    @classmethod
    def _not_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("must not be null")
        return v


class DealRead(BaseModel):
    """Deal as stored."""

    id: str
    company_name: str
    revenue: float
    stage: DealStage
    priority: DealPriority = DealPriority.MEDIUM
    owner: str
    sde: float | None = None
    valuation_min: float | None = None
    valuation_max: float | None = None
    sde_multiple: float | None = None
    revenue_multiple: float | None = None
    commission: float | None = None
    description: str | None = None
    notes: str | None = None
    next_step_days: int | None = None
    touches: int = 0
    age_in_stage: int = 0
    health_score: int = 85
    created_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def health_band(self) -> HealthBand:
        return health_band(self.health_score)


class StageChange(BaseModel):
    """Body of a stage move (board drag-and-drop)."""

    stage: DealStage


class NotesUpdate(BaseModel):
    """Body of a notes autosave."""

    notes: str


# ── Documents ───────────────────────────────────────────────────────────────


class DocumentCreate(BaseModel):
    deal_id: str | None = None
    buying_party_id: str | None = None
    name: str = Field(min_length=1)
    status: DocumentStatus = DocumentStatus.DRAFT
    url: str | None = None


class DocumentRead(BaseModel):
    id: str
    deal_id: str | None = None
    buying_party_id: str | None = None
    name: str
    status: DocumentStatus = DocumentStatus.DRAFT
    url: str | None = None
    created_at: datetime | None = None


class PinnedDocuments(BaseModel):
    """Best-effort shortcuts to well-known deal documents, matched by name."""

    valuation_excel: DocumentRead | None = None
    valuation_ppt: DocumentRead | None = None
    cim_ppt: DocumentRead | None = None
    nda_pdf: DocumentRead | None = None


# ── Activities ──────────────────────────────────────────────────────────────


class ActivityCreate(BaseModel):
    deal_id: str | None = None
    buying_party_id: str | None = None
    type: ActivityType
    title: str = Field(min_length=1)
    description: str | None = None
    status: str = "pending"
    assigned_to: str | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None


class ActivityRead(BaseModel):
    id: str
    deal_id: str | None = None
    buying_party_id: str | None = None
    type: ActivityType
    title: str
    description: str | None = None
    status: str = "pending"
    assigned_to: str | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


# ── Contacts ────────────────────────────────────────────────────────────────


class ContactCreate(BaseModel):
    name: str = Field(min_length=1)
    role: str
    email: str | None = None
    phone: str | None = None
    owner: OwnerRef


class ContactRead(BaseModel):
    id: str
    name: str
    role: str
    email: str | None = None
    phone: str | None = None
    owner: OwnerRef


# ── Board ───────────────────────────────────────────────────────────────────


class BoardCard(BaseModel):
    """Deal as shown on a board column, with the guard input precomputed."""

    deal: DealRead
    has_valuation_document: bool = False


class PipelineColumn(BaseModel):
    stage: DealStage
    label: str
    count: int = 0
    cards: list[BoardCard] = Field(default_factory=list)


class PipelineBoard(BaseModel):
    """All five stage columns in board order."""

    columns: list[PipelineColumn] = Field(default_factory=list)
    total_deals: int = 0
