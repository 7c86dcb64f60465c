"""Deal record store tables -- deals and the records that hang off them.

Four SQLAlchemy models on the shared declarative Base:
- DealModel: Companies being sold through the pipeline
- DocumentModel: Files attached to a deal or a buying party
- ActivityModel: Timeline entries (tasks, emails, meetings, documents, system events)
- ContactModel: People attached to a deal or a buying party (polymorphic owner)

Ids are UUID strings generated client-side so the same tables work on
PostgreSQL and SQLite. No foreign key constraints: referential integrity is
kept at the repository level, consistent with the rest of the record store.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from src.dealboard.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class DealModel(Base):
    """Company being taken through the sale pipeline.

    ``stage`` holds a DealStage value; the enum is enforced at the API
    boundary. ``age_in_stage`` and ``touches`` are maintained by users and
    are never reset by a stage move.
    """

    __tablename__ = "deals"
    __table_args__ = (Index("ix_deals_stage", "stage"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    company_name: Mapped[str] = mapped_column(String(300), nullable=False)
    revenue: Mapped[float] = mapped_column(Float, nullable=False)
    sde: Mapped[float | None] = mapped_column(Float, nullable=True)
    valuation_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    valuation_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    sde_multiple: Mapped[float | None] = mapped_column(Float, nullable=True)
    revenue_multiple: Mapped[float | None] = mapped_column(Float, nullable=True)
    commission: Mapped[float | None] = mapped_column(Float, nullable=True)
    stage: Mapped[str] = mapped_column(
        String(50), default="onboarding", server_default=text("'onboarding'")
    )
    priority: Mapped[str] = mapped_column(
        String(20), default="medium", server_default=text("'medium'")
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    next_step_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    touches: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    age_in_stage: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    health_score: Mapped[int] = mapped_column(Integer, default=85, server_default=text("85"))
    owner: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class DocumentModel(Base):
    """Document attached to a deal or a buying party (metadata only)."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_deal", "deal_id"),
        Index("ix_documents_buying_party", "buying_party_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    deal_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    buying_party_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default="draft", server_default=text("'draft'")
    )
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class ActivityModel(Base):
    """Timeline entry for a deal or a buying party."""

    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_deal", "deal_id"),
        Index("ix_activities_buying_party", "buying_party_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    deal_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    buying_party_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default="pending", server_default=text("'pending'")
    )
    assigned_to: Mapped[str | None] = mapped_column(String(200), nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class ContactModel(Base):
    """Person attached to a deal (seller side) or a buying party (buyer side).

    The owner is stored as an (entity_type, entity_id) pair; schemas expose
    it as a tagged OwnerRef.
    """

    __tablename__ = "contacts"
    __table_args__ = (Index("ix_contacts_entity", "entity_type", "entity_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
