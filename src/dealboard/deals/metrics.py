"""Dashboard KPIs computed from the current set of deals."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, Field

from src.dealboard.deals.schemas import DealRead
from src.dealboard.deals.stages import STAGE_ORDER, DealStage


class PipelineMetrics(BaseModel):
    """Headline numbers for the dashboard.

    Attributes:
        total_pipeline_value: Sum of deal revenue.
        active_deals: Number of deals in the store.
        avg_deal_size: Mean revenue per deal (0 when there are no deals).
        conversion_rate: Percentage of deals in SOLD.
        avg_age_in_stage: Mean ``age_in_stage`` across deals.
        deals_by_stage: Count per stage; every stage is present.
    """

    total_pipeline_value: float = 0.0
    active_deals: int = 0
    avg_deal_size: float = 0.0
    conversion_rate: float = 0.0
    avg_age_in_stage: float = 0.0
    deals_by_stage: dict[str, int] = Field(default_factory=dict)


def compute_pipeline_metrics(deals: Sequence[DealRead]) -> PipelineMetrics:
    by_stage = {stage.value: 0 for stage in STAGE_ORDER}
    for deal in deals:
        by_stage[deal.stage.value] += 1

    total = len(deals)
    if total == 0:
        return PipelineMetrics(deals_by_stage=by_stage)

    total_value = sum(d.revenue for d in deals)
    sold = by_stage[DealStage.SOLD.value]
    return PipelineMetrics(
        total_pipeline_value=total_value,
        active_deals=total,
        avg_deal_size=total_value / total,
        conversion_rate=sold / total * 100,
        avg_age_in_stage=sum(d.age_in_stage for d in deals) / total,
        deals_by_stage=by_stage,
    )
