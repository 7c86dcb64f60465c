"""Buying party tables -- prospective acquirers and their deal matches."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from src.dealboard.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class BuyingPartyModel(Base):
    """Prospective acquirer with its acquisition appetite and budget.

    ``target_industries`` and ``is_operational`` are first-class optional
    columns rather than free-form metadata.
    """

    __tablename__ = "buying_parties"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    target_acquisition_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_acquisition_max: Mapped[int | None] = mapped_column(Integer, nullable=True)
    budget_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    budget_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    timeline: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), default="evaluating", server_default=text("'evaluating'")
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_industries: Mapped[list] = mapped_column(JSON, default=list)
    is_operational: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class DealBuyerMatchModel(Base):
    """Pairing of a deal with a buying party.

    ``stage`` tracks the buyer's own progress (MATCH_STAGES) and is
    independent of the deal's pipeline stage.
    """

    __tablename__ = "deal_buyer_matches"
    __table_args__ = (
        Index("ix_matches_deal", "deal_id"),
        Index("ix_matches_buying_party", "buying_party_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    deal_id: Mapped[str] = mapped_column(String(36), nullable=False)
    buying_party_id: Mapped[str] = mapped_column(String(36), nullable=False)
    target_acquisition: Mapped[int | None] = mapped_column(Integer, nullable=True)
    budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), default="interested", server_default=text("'interested'")
    )
    stage: Mapped[str] = mapped_column(String(50), default="new", server_default=text("'new'"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
