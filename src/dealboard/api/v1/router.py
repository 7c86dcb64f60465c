"""V1 API router -- aggregates all v1 endpoint routers under /api."""

from __future__ import annotations

from fastapi import APIRouter

from src.dealboard.api.v1 import checklists, dashboard, deals, health, parties, records

router = APIRouter(prefix="/api")

router.include_router(health.router)
router.include_router(deals.router)
router.include_router(records.router)
router.include_router(parties.router)
router.include_router(checklists.router)
router.include_router(dashboard.router)
