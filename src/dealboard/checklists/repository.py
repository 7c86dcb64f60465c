"""Checklist persistence -- one row per owner, items replaced wholesale."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.dealboard.checklists.models import ChecklistModel
from src.dealboard.checklists.schemas import (
    ChecklistItem,
    ChecklistOwnerKind,
    ChecklistRead,
)

logger = structlog.get_logger(__name__)


def _model_to_checklist(model: ChecklistModel) -> ChecklistRead:
    return ChecklistRead(
        owner_kind=ChecklistOwnerKind(model.owner_kind),
        owner_id=model.owner_id,
        items=[ChecklistItem.model_validate(raw) for raw in (model.items or [])],
        version=model.version or 1,
        updated_at=model.updated_at,
    )


class ChecklistRepository:
    """Reads and replaces persisted checklists.

    Args:
        session_factory: Callable returning an AsyncSession context manager.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_checklist(
        self, owner_kind: ChecklistOwnerKind, owner_id: str
    ) -> ChecklistRead | None:
        """Persisted checklist for the owner, or None if never written."""
        async with self._session_factory() as session:
            model = await self._find(session, owner_kind, owner_id)
            if model is None:
                return None
            return _model_to_checklist(model)

    async def replace_items(
        self,
        owner_kind: ChecklistOwnerKind,
        owner_id: str,
        items: Sequence[ChecklistItem],
    ) -> ChecklistRead:
        """Store ``items`` as the owner's full sequence (insert or overwrite)."""
        payload = [item.model_dump(mode="json") for item in items]
        async with self._session_factory() as session:
            model = await self._find(session, owner_kind, owner_id)
            if model is None:
                model = ChecklistModel(
                    owner_kind=ChecklistOwnerKind(owner_kind).value,
                    owner_id=owner_id,
                    items=payload,
                    version=1,
                )
                session.add(model)
            else:
                model.items = payload
                model.version = (model.version or 0) + 1
            await session.commit()
            await session.refresh(model)
            logger.debug(
                "checklist.replaced",
                owner_kind=model.owner_kind,
                owner_id=owner_id,
                version=model.version,
                item_count=len(payload),
            )
            return _model_to_checklist(model)

    @staticmethod
    async def _find(
        session: AsyncSession, owner_kind: ChecklistOwnerKind, owner_id: str
    ) -> ChecklistModel | None:
        result = await session.execute(
            select(ChecklistModel).where(
                ChecklistModel.owner_kind == ChecklistOwnerKind(owner_kind).value,
                ChecklistModel.owner_id == owner_id,
            )
        )
        return result.scalar_one_or_none()
