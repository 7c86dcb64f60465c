"""Pydantic schemas for buying parties and deal-buyer matches."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from src.dealboard.deals.schemas import DealRead


class MatchStage(str, Enum):
    """Buyer-side progress on a single deal, in order."""

    NEW = "new"
    NDA_SENT = "nda_sent"
    NDA_SIGNED = "nda_signed"
    CIM_SENT = "cim_sent"
    CIM_VIEWED = "cim_viewed"
    INTRO_CALL = "intro_call"
    DILIGENCE = "diligence"
    IOI = "ioi"
    LOI = "loi"
    UNDER_CONTRACT = "under_contract"
    WON = "won"
    LOST = "lost"


MATCH_STAGE_ORDER: list[MatchStage] = list(MatchStage)

def has_signed_nda(stage: MatchStage) -> bool:
    """True once a match has reached NDA_SIGNED, unless the buyer was lost."""
    stage = MatchStage(stage)
    if stage == MatchStage.LOST:
        return False
    return MATCH_STAGE_ORDER.index(stage) >= MATCH_STAGE_ORDER.index(MatchStage.NDA_SIGNED)


# ── Buying Parties ──────────────────────────────────────────────────────────


class _PartyFields(BaseModel):
    target_acquisition_min: int | None = Field(default=None, ge=0)
    target_acquisition_max: int | None = Field(default=None, ge=0)
    budget_min: float | None = Field(default=None, ge=0)
    budget_max: float | None = Field(default=None, ge=0)
    timeline: str | None = None
    notes: str | None = None
    target_industries: list[str] | None = None
    is_operational: bool | None = None

    @model_validator(mode="after")
    def _check_ranges(self) -> _PartyFields:
        """Minimums must not exceed maximums when both are given."""
        pairs = (
            ("target_acquisition_min", "target_acquisition_max"),
            ("budget_min", "budget_max"),
        )
        for low_name, high_name in pairs:
            low, high = getattr(self, low_name), getattr(self, high_name)
            if low is not None and high is not None and low > high:
                raise ValueError(f"{low_name} must not exceed {high_name}")
        return self


class BuyingPartyCreate(_PartyFields):
    name: str
    status: str = "evaluating"

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class BuyingPartyUpdate(_PartyFields):
    name: str | None = None
    status: str | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("must not be null")
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("status", "target_industries")
    @classmethod
    def _not_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("must not be null")
        return v


class BuyingPartyRead(BaseModel):
    id: str
    name: str
    target_acquisition_min: int | None = None
    target_acquisition_max: int | None = None
    budget_min: float | None = None
    budget_max: float | None = None
    timeline: str | None = None
    status: str = "evaluating"
    notes: str | None = None
    target_industries: list[str] = Field(default_factory=list)
    is_operational: bool | None = None
    created_at: datetime | None = None


# ── Matches ─────────────────────────────────────────────────────────────────


class MatchCreate(BaseModel):
    deal_id: str
    buying_party_id: str
    target_acquisition: int | None = None
    budget: float | None = None
    status: str = "interested"
    stage: MatchStage = MatchStage.NEW


class MatchUpdate(BaseModel):
    """Partial update for a match; ``stage`` must be a MatchStage key."""

    stage: MatchStage | None = None
    status: str | None = None
    target_acquisition: int | None = None
    budget: float | None = None

    @field_validator("stage", "status")
    @classmethod
    def _not_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("must not be null")
        return v


class MatchRead(BaseModel):
    id: str
    deal_id: str
    buying_party_id: str
    target_acquisition: int | None = None
    budget: float | None = None
    status: str = "interested"
    stage: MatchStage = MatchStage.NEW
    created_at: datetime | None = None


class PartyMatchRow(BaseModel):
    """A buying party's match together with the deal it points at."""

    match: MatchRead
    deal: DealRead


class DealBuyerRow(BaseModel):
    """A deal's match together with the buying party it points at."""

    match: MatchRead
    party: BuyingPartyRead
