"""
# Pack Routes

- `GET /pack/{rkey}`: one pack with `creator_details` and resolved `members`
- `GET /packs?ids=a,b,c`: `{rkey: {name, creator}}` labels for badge rendering

Tombstoned packs are served with their last known name and creator.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query

from starter_pack_explorer.models.pack_models import PackDetail, PackLabel
from starter_pack_explorer.routes.dependencies import get_pack_service
from starter_pack_explorer.services.pack_service import PackService

router = APIRouter(tags=["Packs"])


@router.get("/pack/{rkey}", response_model=PackDetail)
async def get_pack(rkey: str, service: PackService = Depends(get_pack_service)):
    """Fetch a single pack by its record key."""
    return await service.get_pack(rkey)


@router.get("/packs", response_model=Dict[str, PackLabel])
async def get_pack_labels(
    ids: Optional[str] = Query(None, description="Comma-separated pack rkeys"),
    service: PackService = Depends(get_pack_service),
):
    """Resolve several pack ids to display labels in one round trip."""
    return await service.get_pack_labels(ids)
