"""Checklist service -- default substitution plus full-sequence writes.

Every operation reads the current sequence (persisted or default), applies
a pure change from ``store`` and writes the whole sequence back. Concurrent
writers race on the row; the last write wins.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from src.dealboard.checklists.repository import ChecklistRepository
from src.dealboard.checklists.schemas import (
    ChecklistItem,
    ChecklistOwnerKind,
    ChecklistRead,
)
from src.dealboard.checklists.store import (
    append_item,
    default_items,
    toggle_item,
    validate_unique_keys,
)
from src.dealboard.core.monitoring import checklist_writes_total

logger = structlog.get_logger(__name__)


class ChecklistService:
    def __init__(self, repository: ChecklistRepository) -> None:
        self._repository = repository

    async def get_checklist(
        self, owner_kind: ChecklistOwnerKind, owner_id: str
    ) -> ChecklistRead:
        """Persisted sequence, or the default for the owner kind."""
        stored = await self._repository.get_checklist(owner_kind, owner_id)
        if stored is not None:
            return stored
        return ChecklistRead(
            owner_kind=ChecklistOwnerKind(owner_kind),
            owner_id=owner_id,
            items=default_items(owner_kind),
            version=0,
            is_default=True,
        )

    async def toggle(
        self, owner_kind: ChecklistOwnerKind, owner_id: str, key: str
    ) -> ChecklistRead:
        """Flip one item and persist the whole sequence.

        Raises:
            ChecklistItemNotFound: If ``key`` is not in the sequence.
        """
        current = await self.get_checklist(owner_kind, owner_id)
        items = toggle_item(current.items, key)
        return await self._write(owner_kind, owner_id, items, "toggle")

    async def add_item(
        self, owner_kind: ChecklistOwnerKind, owner_id: str, label: str
    ) -> ChecklistRead:
        """Append a custom item and persist the whole sequence.

        Raises:
            InvalidChecklistLabel: If the label has no letters or digits.
            DuplicateChecklistKey: If the derived key already exists.
        """
        current = await self.get_checklist(owner_kind, owner_id)
        items = append_item(current.items, label)
        return await self._write(owner_kind, owner_id, items, "add")

    async def replace(
        self,
        owner_kind: ChecklistOwnerKind,
        owner_id: str,
        items: Sequence[ChecklistItem],
    ) -> ChecklistRead:
        """Overwrite the sequence with ``items`` as given.

        Raises:
            DuplicateChecklistKey: If two items share a key.
        """
        validate_unique_keys(items)
        return await self._write(owner_kind, owner_id, list(items), "replace")

    async def _write(
        self,
        owner_kind: ChecklistOwnerKind,
        owner_id: str,
        items: list[ChecklistItem],
        operation: str,
    ) -> ChecklistRead:
        saved = await self._repository.replace_items(owner_kind, owner_id, items)
        checklist_writes_total.labels(
            owner_kind=ChecklistOwnerKind(owner_kind).value,
            operation=operation,
        ).inc()
        logger.info(
            "checklist.saved",
            owner_kind=saved.owner_kind.value,
            owner_id=owner_id,
            operation=operation,
            version=saved.version,
        )
        return saved
