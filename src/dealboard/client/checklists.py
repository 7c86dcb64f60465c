"""Client-side checklist store.

Toggles and additions are applied to the local sequence and the whole
sequence is then PATCHed. When the server has no checklist (404) the
default sequence for the owner kind is used.
"""

from __future__ import annotations

import structlog

from src.dealboard.checklists.schemas import ChecklistItem, ChecklistOwnerKind
from src.dealboard.checklists.store import append_item, default_items, toggle_item
from src.dealboard.client.api import DealboardAPIError, DealboardClient

logger = structlog.get_logger(__name__)


class ChecklistStore:
    """Checklist of one match or deal.

    ``items`` always holds the latest local sequence. ``unsaved`` is True
    after a failed write; the next successful write carries the change.
    """

    def __init__(
        self,
        client: DealboardClient,
        owner_kind: ChecklistOwnerKind,
        owner_id: str,
    ) -> None:
        self._client = client
        self.owner_kind = ChecklistOwnerKind(owner_kind)
        self.owner_id = owner_id
        self.items: list[ChecklistItem] | None = None
        self.unsaved = False

    async def load(self) -> list[ChecklistItem]:
        items = await self._client.get_checklist_items(self.owner_kind, self.owner_id)
        if items is None:
            items = default_items(self.owner_kind)
        self.items = items
        return items

    async def _current(self) -> list[ChecklistItem]:
        if self.items is None:
            return await self.load()
        return self.items

    async def toggle(self, key: str) -> list[ChecklistItem]:
        """Flip one item and save the full sequence.

        Raises:
            ChecklistItemNotFound: If ``key`` is not in the sequence.
            DealboardAPIError: If the save fails; the local change is kept.
        """
        items = toggle_item(await self._current(), key)
        return await self._save(items)

    async def add_item(self, label: str) -> list[ChecklistItem]:
        """Append an item keyed from ``label`` and save the full sequence.

        Raises:
            InvalidChecklistLabel: If the label has no letters or digits.
            DuplicateChecklistKey: If the derived key already exists.
            DealboardAPIError: If the save fails; the local change is kept.
        """
        items = append_item(await self._current(), label)
        return await self._save(items)

    async def _save(self, items: list[ChecklistItem]) -> list[ChecklistItem]:
        self.items = items
        try:
            saved = await self._client.replace_checklist(self.owner_kind, self.owner_id, items)
        except DealboardAPIError:
            self.unsaved = True
            logger.warning(
                "checklist.save_failed",
                owner_kind=self.owner_kind.value,
                owner_id=self.owner_id,
            )
            raise
        self.unsaved = False
        self.items = saved.items
        return self.items
