"""Pipeline board client -- drag-and-drop moves with the guard applied locally.

A drop is checked against the deal's documents before anything is sent.
A refused drop never reaches the API; the caller gets a MoveOutcome with
the message to show (e.g. "Needs Valuation") and the deal as it was.
"""

from __future__ import annotations

import structlog
from pydantic import BaseModel

from src.dealboard.client.api import DealboardAPIError, DealboardClient
from src.dealboard.config import get_settings
from src.dealboard.deals.schemas import DealRead, PipelineBoard
from src.dealboard.deals.stages import (
    DealStage,
    check_stage_transition,
    has_valuation_document,
)

logger = structlog.get_logger(__name__)


class MoveOutcome(BaseModel):
    """Result of dropping a card on a column.

    Attributes:
        accepted: Whether the deal now sits in the target stage.
        deal: The deal after the drop (unchanged when refused).
        message: User-visible rejection text, None when accepted.
    """

    accepted: bool
    deal: DealRead
    message: str | None = None


class BoardClient:
    """Board state plus guarded stage moves.

    Args:
        client: DealboardClient used for all reads and writes.
        valuation_marker: Substring that tags a valuation document. Defaults
            to the configured VALUATION_DOCUMENT_MARKER, the same one the
            server checks against.
    """

    def __init__(self, client: DealboardClient, valuation_marker: str | None = None) -> None:
        self._client = client
        self._marker = valuation_marker or get_settings().VALUATION_DOCUMENT_MARKER
        self._board: PipelineBoard | None = None

    async def board(self) -> PipelineBoard:
        """Cached board, fetched on first use or after invalidate()."""
        if self._board is None:
            self._board = await self._client.get_board()
        return self._board

    def invalidate(self) -> None:
        self._board = None

    async def drop(self, deal_id: str, target: DealStage) -> MoveOutcome:
        """Move a deal card to ``target``.

        Raises:
            DealboardAPIError: On transport failures or errors other than a
                server-side 409 rejection.
        """
        target = DealStage(target)
        deal = await self._client.get_deal(deal_id)

        documents = await self._client.list_documents(entity_id=deal_id)
        names = [d.name for d in documents if d.deal_id == deal_id]
        decision = check_stage_transition(
            deal.stage, target, has_valuation_document(names, self._marker)
        )
        if not decision.allowed:
            logger.info(
                "board.move_rejected",
                deal_id=deal_id,
                from_stage=deal.stage.value,
                to_stage=target.value,
                reason=decision.reason,
            )
            return MoveOutcome(accepted=False, deal=deal, message=decision.reason)

        if target == deal.stage:
            return MoveOutcome(accepted=True, deal=deal)

        try:
            moved = await self._client.move_deal(deal_id, target)
        except DealboardAPIError as exc:
            if exc.status_code != 409:
                raise
            # Documents changed between our read and the server's check
            return MoveOutcome(accepted=False, deal=deal, message=str(exc.detail))

        self.invalidate()
        logger.info(
            "board.move_accepted",
            deal_id=deal_id,
            from_stage=deal.stage.value,
            to_stage=moved.stage.value,
        )
        return MoveOutcome(accepted=True, deal=moved)
