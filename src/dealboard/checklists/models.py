"""Checklist table -- one JSON document per owning match or deal."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column

from src.dealboard.core.database import Base


class ChecklistModel(Base):
    """Full item sequence for a match or a deal, stored as a JSON list.

    One row per (owner_kind, owner_id). Every write replaces ``items``
    wholesale and increments ``version``.
    """

    __tablename__ = "checklists"
    __table_args__ = (
        UniqueConstraint("owner_kind", "owner_id", name="uq_checklist_owner"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    owner_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False)
    items: Mapped[list] = mapped_column(JSON, default=list)
    version: Mapped[int] = mapped_column(Integer, default=1, server_default=text("1"))
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
