"""Deal pipeline stages and the stage-transition guard.

The board allows a deal to move between any two stages, with one exception:
a deal cannot leave ONBOARDING until at least one valuation document is
attached to it. A document counts as a valuation document when its name
contains "valuation" (case-insensitive). The tag is a naming convention,
not an authoritative document type.

The guard is a pure function so the board client and the API apply exactly
the same rule. Persistence of the accepted move lives in
src/dealboard/deals/pipeline.py.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel

VALUATION_MARKER = "valuation"
NEEDS_VALUATION = "Needs Valuation"


class DealStage(str, Enum):
    """Pipeline phase of a deal, in board column order."""

    ONBOARDING = "onboarding"
    VALUATION = "valuation"
    BUYER_MATCHING = "buyer_matching"
    DUE_DILIGENCE = "due_diligence"
    SOLD = "sold"


STAGE_ORDER: list[DealStage] = list(DealStage)

STAGE_LABELS: dict[DealStage, str] = {
    DealStage.ONBOARDING: "Onboarding",
    DealStage.VALUATION: "Valuation",
    DealStage.BUYER_MATCHING: "Buyer Matching",
    DealStage.DUE_DILIGENCE: "Due Diligence",
    DealStage.SOLD: "Sold",
}


class TransitionDecision(BaseModel):
    """Outcome of evaluating a proposed stage move."""

    allowed: bool
    current: DealStage
    target: DealStage
    reason: str | None = None


class StageTransitionRejected(ValueError):
    """Raised when the guard refuses a stage move. The deal is left untouched."""

    def __init__(self, decision: TransitionDecision) -> None:
        self.decision = decision
        super().__init__(decision.reason or NEEDS_VALUATION)


def is_valuation_document(name: str | None, marker: str = VALUATION_MARKER) -> bool:
    """True when a document name carries the valuation marker."""
    if not name:
        return False
    return marker.lower() in name.lower()


def has_valuation_document(names: Iterable[str | None], marker: str = VALUATION_MARKER) -> bool:
    """True when any of the given document names is a valuation document."""
    return any(is_valuation_document(name, marker) for name in names)


def check_stage_transition(
    current: DealStage,
    target: DealStage,
    has_valuation_document: bool,
) -> TransitionDecision:
    """Decide whether a deal may move from ``current`` to ``target``.

    Only departures from ONBOARDING are gated; every other pair, including
    staying in place, is allowed.

    Args:
        current: Stage the deal is in now.
        target: Stage the deal is being dropped on.
        has_valuation_document: Whether the deal has a valuation document attached.

    Returns:
        TransitionDecision with ``allowed`` and, on rejection, a user-facing reason.
    """
    current = DealStage(current)
    target = DealStage(target)

    leaving_onboarding = current == DealStage.ONBOARDING and target != DealStage.ONBOARDING
    if leaving_onboarding and not has_valuation_document:
        return TransitionDecision(
            allowed=False,
            current=current,
            target=target,
            reason=NEEDS_VALUATION,
        )
    return TransitionDecision(allowed=True, current=current, target=target)
