"""Buying party repository -- async CRUD for parties and deal matches.

Uses the same session_factory pattern as DealRepository. Match listings
join against deals or parties so callers get display-ready rows.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.dealboard.deals.models import DealModel
from src.dealboard.deals.repository import _model_to_deal
from src.dealboard.parties.models import BuyingPartyModel, DealBuyerMatchModel
from src.dealboard.parties.schemas import (
    BuyingPartyCreate,
    BuyingPartyRead,
    BuyingPartyUpdate,
    DealBuyerRow,
    MatchCreate,
    MatchRead,
    MatchStage,
    MatchUpdate,
    PartyMatchRow,
    has_signed_nda,
)

logger = structlog.get_logger(__name__)


class BuyingPartyNotFoundError(LookupError):
    def __init__(self, party_id: str) -> None:
        self.party_id = party_id
        super().__init__(f"Buying party not found: {party_id}")


class MatchNotFoundError(LookupError):
    def __init__(self, match_id: str) -> None:
        self.match_id = match_id
        super().__init__(f"Match not found: {match_id}")


class PartyRangeError(ValueError):
    """A minimum would exceed its maximum once merged with the stored party."""

    def __init__(self, low_name: str, high_name: str) -> None:
        self.low_name = low_name
        self.high_name = high_name
        super().__init__(f"{low_name} must not exceed {high_name}")


_RANGE_PAIRS = (
    ("target_acquisition_min", "target_acquisition_max"),
    ("budget_min", "budget_max"),
)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_party(model: BuyingPartyModel) -> BuyingPartyRead:
    return BuyingPartyRead(
        id=model.id,
        name=model.name,
        target_acquisition_min=model.target_acquisition_min,
        target_acquisition_max=model.target_acquisition_max,
        budget_min=model.budget_min,
        budget_max=model.budget_max,
        timeline=model.timeline,
        status=model.status or "evaluating",
        notes=model.notes,
        target_industries=list(model.target_industries or []),
        is_operational=model.is_operational,
        created_at=model.created_at,
    )


def _model_to_match(model: DealBuyerMatchModel) -> MatchRead:
    # Rows written before stages existed fall back to NEW
    try:
        stage = MatchStage(model.stage or MatchStage.NEW.value)
    except ValueError:
        stage = MatchStage.NEW
    return MatchRead(
        id=model.id,
        deal_id=model.deal_id,
        buying_party_id=model.buying_party_id,
        target_acquisition=model.target_acquisition,
        budget=model.budget,
        status=model.status or "interested",
        stage=stage,
        created_at=model.created_at,
    )


# ── Repository ──────────────────────────────────────────────────────────────


class BuyingPartyRepository:
    """Async CRUD operations for buying parties and deal-buyer matches.

    Args:
        session_factory: Callable returning an AsyncSession context manager.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory

    # ── Parties ─────────────────────────────────────────────────────────────

    async def create_party(self, data: BuyingPartyCreate) -> BuyingPartyRead:
        async with self._session_factory() as session:
            model = BuyingPartyModel(
                name=data.name,
                target_acquisition_min=data.target_acquisition_min,
                target_acquisition_max=data.target_acquisition_max,
                budget_min=data.budget_min,
                budget_max=data.budget_max,
                timeline=data.timeline,
                status=data.status,
                notes=data.notes,
                target_industries=data.target_industries or [],
                is_operational=data.is_operational,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info("party.created", party_id=model.id, name=model.name)
            return _model_to_party(model)

    async def get_party(self, party_id: str) -> BuyingPartyRead | None:
        async with self._session_factory() as session:
            model = await session.get(BuyingPartyModel, party_id)
            if model is None:
                return None
            return _model_to_party(model)

    async def list_parties(self) -> list[BuyingPartyRead]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(BuyingPartyModel).order_by(BuyingPartyModel.name)
            )
            return [_model_to_party(m) for m in result.scalars().all()]

    async def update_party(self, party_id: str, data: BuyingPartyUpdate) -> BuyingPartyRead:
        """Write the fields that are set on ``data``.

        Range bounds are checked against the stored party, so raising a
        minimum alone cannot leave it above the stored maximum.

        Raises:
            BuyingPartyNotFoundError: If the party does not exist.
            PartyRangeError: If a minimum would exceed its maximum.
        """
        values = data.model_dump(exclude_unset=True)
        async with self._session_factory() as session:
            if values:
                model = await session.get(BuyingPartyModel, party_id)
                if model is None:
                    raise BuyingPartyNotFoundError(party_id)
                for low_name, high_name in _RANGE_PAIRS:
                    low = values.get(low_name, getattr(model, low_name))
                    high = values.get(high_name, getattr(model, high_name))
                    if low is not None and high is not None and low > high:
                        raise PartyRangeError(low_name, high_name)

                result = await session.execute(
                    update(BuyingPartyModel)
                    .where(BuyingPartyModel.id == party_id)
                    .values(**values)
                )
                if result.rowcount == 0:
                    raise BuyingPartyNotFoundError(party_id)
                await session.commit()
            model = await session.get(BuyingPartyModel, party_id, populate_existing=True)
            if model is None:
                raise BuyingPartyNotFoundError(party_id)
            return _model_to_party(model)

    async def set_notes(self, party_id: str, notes: str) -> BuyingPartyRead:
        """Replace the party's notes text.

        Raises:
            BuyingPartyNotFoundError: If the party does not exist.
        """
        return await self.update_party(party_id, BuyingPartyUpdate(notes=notes))

    # ── Matches ─────────────────────────────────────────────────────────────

    async def create_match(self, data: MatchCreate) -> MatchRead:
        async with self._session_factory() as session:
            model = DealBuyerMatchModel(
                deal_id=data.deal_id,
                buying_party_id=data.buying_party_id,
                target_acquisition=data.target_acquisition,
                budget=data.budget,
                status=data.status,
                stage=data.stage.value,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info(
                "match.created",
                match_id=model.id,
                deal_id=model.deal_id,
                party_id=model.buying_party_id,
            )
            return _model_to_match(model)

    async def get_match(self, match_id: str) -> MatchRead | None:
        async with self._session_factory() as session:
            model = await session.get(DealBuyerMatchModel, match_id)
            if model is None:
                return None
            return _model_to_match(model)

    async def update_match(self, match_id: str, data: MatchUpdate) -> MatchRead:
        """Write the fields that are set on ``data``.

        Raises:
            MatchNotFoundError: If the match does not exist.
        """
        values = data.model_dump(exclude_unset=True, mode="json")
        async with self._session_factory() as session:
            if values:
                result = await session.execute(
                    update(DealBuyerMatchModel)
                    .where(DealBuyerMatchModel.id == match_id)
                    .values(**values)
                )
                if result.rowcount == 0:
                    raise MatchNotFoundError(match_id)
                await session.commit()
            model = await session.get(DealBuyerMatchModel, match_id, populate_existing=True)
            if model is None:
                raise MatchNotFoundError(match_id)
            if "stage" in values:
                logger.info("match.stage_changed", match_id=match_id, stage=values["stage"])
            return _model_to_match(model)

    async def list_matches(
        self,
        party_id: str | None = None,
        deal_id: str | None = None,
    ) -> list[MatchRead]:
        async with self._session_factory() as session:
            stmt = select(DealBuyerMatchModel).order_by(DealBuyerMatchModel.created_at)
            if party_id:
                stmt = stmt.where(DealBuyerMatchModel.buying_party_id == party_id)
            if deal_id:
                stmt = stmt.where(DealBuyerMatchModel.deal_id == deal_id)
            result = await session.execute(stmt)
            return [_model_to_match(m) for m in result.scalars().all()]

    async def list_party_matches(self, party_id: str) -> list[PartyMatchRow]:
        """Matches of one party joined with their deals (kanban rows)."""
        async with self._session_factory() as session:
            stmt = (
                select(DealBuyerMatchModel, DealModel)
                .join(DealModel, DealModel.id == DealBuyerMatchModel.deal_id)
                .where(DealBuyerMatchModel.buying_party_id == party_id)
                .order_by(DealBuyerMatchModel.created_at)
            )
            result = await session.execute(stmt)
            return [
                PartyMatchRow(match=_model_to_match(m), deal=_model_to_deal(d))
                for m, d in result.all()
            ]

    async def list_deal_buyers(self, deal_id: str) -> list[DealBuyerRow]:
        """Matches of one deal joined with their buying parties."""
        async with self._session_factory() as session:
            stmt = (
                select(DealBuyerMatchModel, BuyingPartyModel)
                .join(BuyingPartyModel, BuyingPartyModel.id == DealBuyerMatchModel.buying_party_id)
                .where(DealBuyerMatchModel.deal_id == deal_id)
                .order_by(BuyingPartyModel.name)
            )
            result = await session.execute(stmt)
            return [
                DealBuyerRow(match=_model_to_match(m), party=_model_to_party(p))
                for m, p in result.all()
            ]

    async def list_buyers_with_nda(self, deal_id: str) -> list[BuyingPartyRead]:
        """Parties whose match on the deal is at NDA_SIGNED or later (not lost)."""
        rows = await self.list_deal_buyers(deal_id)
        seen: set[str] = set()
        parties: list[BuyingPartyRead] = []
        for row in rows:
            if has_signed_nda(row.match.stage) and row.party.id not in seen:
                seen.add(row.party.id)
                parties.append(row.party)
        return parties
