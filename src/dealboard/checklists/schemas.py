"""Pydantic schemas for checklists."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ChecklistOwnerKind(str, Enum):
    """What a checklist hangs off: a deal-buyer match or a deal's stage work."""

    MATCH = "match"
    DEAL = "deal"


class ChecklistItem(BaseModel):
    key: str = Field(min_length=1)
    label: str
    done: bool = False
    note: str | None = None
    ts: datetime | None = None


class ChecklistRead(BaseModel):
    """Checklist as served to clients.

    ``is_default`` is True when nothing has been persisted yet and the
    default sequence for the owner kind was substituted.
    """

    owner_kind: ChecklistOwnerKind
    owner_id: str
    items: list[ChecklistItem] = Field(default_factory=list)
    version: int = 0
    is_default: bool = False
    updated_at: datetime | None = None


class ChecklistReplace(BaseModel):
    """Body of a full-sequence replace."""

    items: list[ChecklistItem]


class ChecklistItemAdd(BaseModel):
    label: str
