"""Dashboard KPI endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.dealboard.api.deps import get_deal_repository
from src.dealboard.deals.metrics import PipelineMetrics, compute_pipeline_metrics
from src.dealboard.deals.repository import DealRepository

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/metrics", response_model=PipelineMetrics)
async def get_dashboard_metrics(
    repo: DealRepository = Depends(get_deal_repository),
) -> PipelineMetrics:
    """Pipeline value, deal counts and conversion, computed on read."""
    deals = await repo.list_deals()
    return compute_pipeline_metrics(deals)
