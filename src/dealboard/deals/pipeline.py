"""Deal pipeline service -- guarded stage moves, board assembly, notes saves.

DealPipeline sits between the API and DealRepository. It is the only path
that changes a deal's stage: the move is checked with
check_stage_transition() against the deal's attached documents before
anything is written. A plain move writes only the stage column. A partial
update that carries a stage writes the stage and its other fields in one
UPDATE.
"""

from __future__ import annotations

import structlog

from src.dealboard.config import get_settings
from src.dealboard.core.monitoring import notes_saves_total, stage_transitions_total
from src.dealboard.deals.repository import DealNotFoundError, DealRepository
from src.dealboard.deals.schemas import (
    ActivityCreate,
    ActivityType,
    BoardCard,
    DealRead,
    DealUpdate,
    PipelineBoard,
    PipelineColumn,
)
from src.dealboard.deals.stages import (
    STAGE_LABELS,
    STAGE_ORDER,
    DealStage,
    StageTransitionRejected,
    TransitionDecision,
    check_stage_transition,
    is_valuation_document,
)

logger = structlog.get_logger(__name__)


class DealPipeline:
    """Applies the stage-transition guard to stored deals.

    Args:
        repository: DealRepository (or a compatible test double).
        valuation_marker: Substring that tags a document as a valuation
            document. Defaults to the configured VALUATION_DOCUMENT_MARKER.
    """

    def __init__(self, repository: DealRepository, valuation_marker: str | None = None) -> None:
        self._repository = repository
        self._marker = valuation_marker or get_settings().VALUATION_DOCUMENT_MARKER

    async def has_valuation_document(self, deal_id: str) -> bool:
        """True when at least one document attached to the deal is a valuation document."""
        documents = await self._repository.list_documents(deal_id=deal_id)
        return any(is_valuation_document(d.name, self._marker) for d in documents)

    async def evaluate_move(self, deal: DealRead, target: DealStage) -> TransitionDecision:
        """Run the guard for a proposed move without persisting anything."""
        has_valuation = True
        if deal.stage == DealStage.ONBOARDING:
            has_valuation = await self.has_valuation_document(deal.id)
        return check_stage_transition(deal.stage, DealStage(target), has_valuation)

    async def _check_move(
        self, deal_id: str, target: DealStage
    ) -> tuple[DealRead, TransitionDecision]:
        deal = await self._repository.get_deal(deal_id)
        if deal is None:
            raise DealNotFoundError(deal_id)

        decision = await self.evaluate_move(deal, target)
        if not decision.allowed:
            stage_transitions_total.labels(
                from_stage=decision.current.value,
                to_stage=decision.target.value,
                outcome="rejected",
            ).inc()
            logger.info(
                "pipeline.stage_rejected",
                deal_id=deal_id,
                from_stage=decision.current.value,
                to_stage=decision.target.value,
                reason=decision.reason,
            )
            raise StageTransitionRejected(decision)
        return deal, decision

    def _record_move(self, deal_id: str, decision: TransitionDecision) -> None:
        stage_transitions_total.labels(
            from_stage=decision.current.value,
            to_stage=decision.target.value,
            outcome="accepted",
        ).inc()
        logger.info(
            "pipeline.stage_changed",
            deal_id=deal_id,
            from_stage=decision.current.value,
            to_stage=decision.target.value,
        )

    async def move_deal(self, deal_id: str, target: DealStage) -> DealRead:
        """Move a deal to ``target`` if the guard allows it.

        Returns:
            The deal after the move (unchanged when target equals the current stage).

        Raises:
            DealNotFoundError: If the deal does not exist.
            StageTransitionRejected: If the guard refuses the move. Nothing is written.
        """
        deal, decision = await self._check_move(deal_id, target)
        if decision.target == deal.stage:
            return deal

        updated = await self._repository.set_stage(deal_id, decision.target)
        self._record_move(deal_id, decision)
        return updated

    async def update_deal(self, deal_id: str, data: DealUpdate) -> DealRead:
        """Apply a partial update, checking any ``stage`` change with the guard.

        The guard runs before anything is written. When it allows the move,
        the stage and the other fields go out in a single UPDATE, so a
        rejected move or a failed write leaves the deal untouched.

        Raises:
            DealNotFoundError: If the deal does not exist.
            StageTransitionRejected: If the stage change is refused.
        """
        values = data.model_dump(exclude_unset=True)
        target = values.pop("stage", None)

        decision = None
        if target is not None:
            deal, decision = await self._check_move(deal_id, target)
            if decision.target == deal.stage:
                decision = None
            else:
                values["stage"] = decision.target

        deal = await self._repository.update_deal(deal_id, DealUpdate(**values))
        if decision is not None:
            self._record_move(deal_id, decision)
        return deal

    async def build_board(self) -> PipelineBoard:
        """Group every deal into its stage column, in board order.

        Each card carries ``has_valuation_document`` so a client can grey
        out invalid drop targets before the user lets go of the card.
        """
        deals = await self._repository.list_deals()
        documents = await self._repository.list_documents()
        with_valuation = {
            d.deal_id
            for d in documents
            if d.deal_id and is_valuation_document(d.name, self._marker)
        }

        columns = {
            stage: PipelineColumn(stage=stage, label=STAGE_LABELS[stage])
            for stage in STAGE_ORDER
        }
        for deal in deals:
            column = columns[deal.stage]
            column.cards.append(
                BoardCard(deal=deal, has_valuation_document=deal.id in with_valuation)
            )
        for column in columns.values():
            column.count = len(column.cards)

        return PipelineBoard(
            columns=[columns[stage] for stage in STAGE_ORDER],
            total_deals=len(deals),
        )

    async def save_notes(self, deal_id: str, notes: str) -> DealRead:
        """Persist the notes text and record the edit on the deal timeline.

        Raises:
            DealNotFoundError: If the deal does not exist.
        """
        deal = await self._repository.set_notes(deal_id, notes)
        await self._repository.create_activity(
            ActivityCreate(
                deal_id=deal_id,
                type=ActivityType.SYSTEM,
                title="Internal notes updated",
                status="completed",
            )
        )
        notes_saves_total.labels(entity_type="deal").inc()
        logger.debug("pipeline.notes_saved", deal_id=deal_id, length=len(notes))
        return deal
