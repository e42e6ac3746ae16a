"""
# Stats Routes

`GET /stats`: corpus-wide counters, recomputed on every request.
"""

from fastapi import APIRouter, Depends

from starter_pack_explorer.models.pack_models import StatsResponse
from starter_pack_explorer.routes.dependencies import get_stats_service
from starter_pack_explorer.services.stats_service import StatsService

router = APIRouter(tags=["Stats"])


@router.get("/stats", response_model=StatsResponse)
async def get_stats(service: StatsService = Depends(get_stats_service)):
    """Total active packs, total active users and the rounded average pack size."""
    return await service.compute_stats()
