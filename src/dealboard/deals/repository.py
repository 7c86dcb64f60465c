"""Deal record store repository -- async CRUD for deals and their records.

Provides DealRepository with a session_factory callable (an
``async_sessionmaker``). Handles serialization between Pydantic schemas and
SQLAlchemy models for deals, documents, activities and contacts.

Stage and notes writes go through dedicated methods that issue a targeted
UPDATE, so a stage move can never rewrite unrelated columns.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.dealboard.deals.models import (
    ActivityModel,
    ContactModel,
    DealModel,
    DocumentModel,
)
from src.dealboard.deals.schemas import (
    ActivityCreate,
    ActivityRead,
    ContactCreate,
    ContactRead,
    DealCreate,
    DealRead,
    DealUpdate,
    DocumentCreate,
    DocumentRead,
    EntityType,
    owner_from_columns,
    owner_to_columns,
)
from src.dealboard.deals.stages import DealStage

logger = structlog.get_logger(__name__)


class DealNotFoundError(LookupError):
    """Raised when a deal id does not resolve to a stored deal."""

    def __init__(self, deal_id: str) -> None:
        self.deal_id = deal_id
        super().__init__(f"Deal not found: {deal_id}")


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_deal(model: DealModel) -> DealRead:
    """Convert DealModel to DealRead schema."""
    return DealRead(
        id=model.id,
        company_name=model.company_name,
        revenue=model.revenue,
        stage=DealStage(model.stage),
        priority=model.priority or "medium",
        owner=model.owner,
        sde=model.sde,
        valuation_min=model.valuation_min,
        valuation_max=model.valuation_max,
        sde_multiple=model.sde_multiple,
        revenue_multiple=model.revenue_multiple,
        commission=model.commission,
        description=model.description,
        notes=model.notes,
        next_step_days=model.next_step_days,
        touches=model.touches or 0,
        age_in_stage=model.age_in_stage or 0,
        health_score=model.health_score if model.health_score is not None else 85,
        created_at=model.created_at,
    )


def _model_to_document(model: DocumentModel) -> DocumentRead:
    return DocumentRead(
        id=model.id,
        deal_id=model.deal_id,
        buying_party_id=model.buying_party_id,
        name=model.name,
        status=model.status,
        url=model.url,
        created_at=model.created_at,
    )


def _model_to_activity(model: ActivityModel) -> ActivityRead:
    return ActivityRead(
        id=model.id,
        deal_id=model.deal_id,
        buying_party_id=model.buying_party_id,
        type=model.type,
        title=model.title,
        description=model.description,
        status=model.status,
        assigned_to=model.assigned_to,
        due_date=model.due_date,
        completed_at=model.completed_at,
        created_at=model.created_at,
    )


def _model_to_contact(model: ContactModel) -> ContactRead:
    return ContactRead(
        id=model.id,
        name=model.name,
        role=model.role,
        email=model.email,
        phone=model.phone,
        owner=owner_from_columns(model.entity_type, model.entity_id),
    )


# ── Repository ──────────────────────────────────────────────────────────────


class DealRepository:
    """Async CRUD operations for deals, documents, activities and contacts.

    Args:
        session_factory: Callable returning an AsyncSession context manager
            (typically an ``async_sessionmaker``).
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    # ── Deals ───────────────────────────────────────────────────────────────

    async def create_deal(self, data: DealCreate) -> DealRead:
        """Create a new deal.

        Args:
            data: DealCreate schema with deal details.

        Returns:
            DealRead with all persisted fields.
        """
        async with self._session_factory() as session:
            model = DealModel(
                company_name=data.company_name,
                revenue=data.revenue,
                owner=data.owner,
                stage=data.stage.value,
                priority=data.priority.value,
                sde=data.sde,
                valuation_min=data.valuation_min,
                valuation_max=data.valuation_max,
                sde_multiple=data.sde_multiple,
                revenue_multiple=data.revenue_multiple,
                commission=data.commission,
                description=data.description,
                notes=data.notes,
                next_step_days=data.next_step_days,
                touches=data.touches,
                age_in_stage=data.age_in_stage,
                health_score=data.health_score,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info(
                "deal.created",
                deal_id=model.id,
                company_name=model.company_name,
                stage=model.stage,
            )
            return _model_to_deal(model)

    async def get_deal(self, deal_id: str) -> DealRead | None:
        """Get a deal by ID, or None if it does not exist."""
        async with self._session_factory() as session:
            model = await session.get(DealModel, deal_id)
            if model is None:
                return None
            return _model_to_deal(model)

    async def list_deals(self, stage: DealStage | None = None) -> list[DealRead]:
        """List deals, optionally restricted to one stage, oldest first."""
        async with self._session_factory() as session:
            stmt = select(DealModel).order_by(DealModel.created_at, DealModel.company_name)
            if stage is not None:
                stmt = stmt.where(DealModel.stage == DealStage(stage).value)
            result = await session.execute(stmt)
            return [_model_to_deal(m) for m in result.scalars().all()]

    async def update_deal(self, deal_id: str, data: DealUpdate) -> DealRead:
        """Write the fields that are set on ``data``.

        Raises:
            DealNotFoundError: If the deal does not exist.
        """
        values = data.model_dump(exclude_unset=True, mode="json")
        return await self._update_columns(deal_id, values)

    async def set_stage(self, deal_id: str, stage: DealStage) -> DealRead:
        """Update the stage column and nothing else.

        Raises:
            DealNotFoundError: If the deal does not exist.
        """
        return await self._update_columns(deal_id, {"stage": DealStage(stage).value})

    async def set_notes(self, deal_id: str, notes: str) -> DealRead:
        """Replace the deal's notes text.

        Raises:
            DealNotFoundError: If the deal does not exist.
        """
        return await self._update_columns(deal_id, {"notes": notes})

    async def _update_columns(self, deal_id: str, values: dict) -> DealRead:
        async with self._session_factory() as session:
            if values:
                result = await session.execute(
                    update(DealModel).where(DealModel.id == deal_id).values(**values)
                )
                if result.rowcount == 0:
                    raise DealNotFoundError(deal_id)
                await session.commit()
            model = await session.get(DealModel, deal_id, populate_existing=True)
            if model is None:
                raise DealNotFoundError(deal_id)
            return _model_to_deal(model)

    # ── Documents ───────────────────────────────────────────────────────────

    async def create_document(self, data: DocumentCreate) -> DocumentRead:
        """Attach a document record to a deal or buying party."""
        async with self._session_factory() as session:
            model = DocumentModel(
                deal_id=data.deal_id,
                buying_party_id=data.buying_party_id,
                name=data.name,
                status=data.status.value,
                url=data.url,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info(
                "document.created",
                document_id=model.id,
                deal_id=model.deal_id,
                buying_party_id=model.buying_party_id,
            )
            return _model_to_document(model)

    async def list_documents(
        self,
        entity_id: str | None = None,
        deal_id: str | None = None,
        buying_party_id: str | None = None,
    ) -> list[DocumentRead]:
        """List documents, newest first.

        Args:
            entity_id: Match documents of either a deal or a buying party with this id.
            deal_id: Restrict to one deal.
            buying_party_id: Restrict to one buying party.
        """
        async with self._session_factory() as session:
            stmt = select(DocumentModel).order_by(DocumentModel.created_at.desc())
            if entity_id:
                stmt = stmt.where(
                    or_(
                        DocumentModel.deal_id == entity_id,
                        DocumentModel.buying_party_id == entity_id,
                    )
                )
            if deal_id:
                stmt = stmt.where(DocumentModel.deal_id == deal_id)
            if buying_party_id:
                stmt = stmt.where(DocumentModel.buying_party_id == buying_party_id)
            result = await session.execute(stmt)
            return [_model_to_document(m) for m in result.scalars().all()]

    # ── Activities ──────────────────────────────────────────────────────────

    async def create_activity(self, data: ActivityCreate) -> ActivityRead:
        """Append an entry to a deal or buying party timeline."""
        async with self._session_factory() as session:
            model = ActivityModel(
                deal_id=data.deal_id,
                buying_party_id=data.buying_party_id,
                type=data.type.value,
                title=data.title,
                description=data.description,
                status=data.status,
                assigned_to=data.assigned_to,
                due_date=data.due_date,
                completed_at=data.completed_at,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return _model_to_activity(model)

    async def list_activities(
        self,
        entity_id: str | None = None,
        activity_type: str | None = None,
    ) -> list[ActivityRead]:
        """List timeline entries, newest first, optionally for one deal/party and type."""
        async with self._session_factory() as session:
            stmt = select(ActivityModel).order_by(ActivityModel.created_at.desc())
            if entity_id:
                stmt = stmt.where(
                    or_(
                        ActivityModel.deal_id == entity_id,
                        ActivityModel.buying_party_id == entity_id,
                    )
                )
            if activity_type:
                stmt = stmt.where(ActivityModel.type == activity_type)
            result = await session.execute(stmt)
            return [_model_to_activity(m) for m in result.scalars().all()]

    # ── Contacts ────────────────────────────────────────────────────────────

    async def create_contact(self, data: ContactCreate) -> ContactRead:
        """Create a contact owned by a deal or a buying party."""
        entity_type, entity_id = owner_to_columns(data.owner)
        async with self._session_factory() as session:
            model = ContactModel(
                name=data.name,
                role=data.role,
                email=data.email,
                phone=data.phone,
                entity_type=entity_type,
                entity_id=entity_id,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return _model_to_contact(model)

    async def list_contacts(
        self,
        entity_id: str | None = None,
        entity_type: EntityType | None = None,
        search: str | None = None,
    ) -> list[ContactRead]:
        """List contacts by owner and/or a case-insensitive name/email/role substring."""
        async with self._session_factory() as session:
            stmt = select(ContactModel).order_by(ContactModel.name)
            if entity_id:
                stmt = stmt.where(ContactModel.entity_id == entity_id)
            if entity_type is not None:
                stmt = stmt.where(ContactModel.entity_type == EntityType(entity_type).value)
            if search:
                pattern = f"%{search.strip()}%"
                stmt = stmt.where(
                    or_(
                        ContactModel.name.ilike(pattern),
                        ContactModel.email.ilike(pattern),
                        ContactModel.role.ilike(pattern),
                    )
                )
            result = await session.execute(stmt)
            return [_model_to_contact(m) for m in result.scalars().all()]
