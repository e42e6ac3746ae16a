"""
# User Routes

`GET /user/{did}`: one user with `member_packs`, `created_packs` and handle history.
Soft-deleted users are not found, except those tombstoned only because they no longer
belong to any pack.
"""

from fastapi import APIRouter, Depends, Query

from starter_pack_explorer.models.pack_models import UserDetail
from starter_pack_explorer.routes.dependencies import get_user_service
from starter_pack_explorer.services.user_service import UserService

router = APIRouter(tags=["Users"])


@router.get("/user/{did}", response_model=UserDetail)
async def get_user(
    did: str,
    include_deleted: bool = Query(False, alias="includeDeleted", description="Also list tombstoned packs"),
    service: UserService = Depends(get_user_service),
):
    return await service.get_user(did, include_deleted_packs=include_deleted)
