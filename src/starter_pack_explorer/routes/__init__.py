"""
# Routes Package

FastAPI routers. `api_router` bundles the data endpoints and is mounted under
`API_PREFIX`; `health_router` is mounted at the root for probes.
"""

from fastapi import APIRouter

from starter_pack_explorer.routes.health import router as health_router
from starter_pack_explorer.routes.packs import router as packs_router
from starter_pack_explorer.routes.search import router as search_router
from starter_pack_explorer.routes.stats import router as stats_router
from starter_pack_explorer.routes.users import router as users_router

api_router = APIRouter()
api_router.include_router(search_router)
api_router.include_router(packs_router)
api_router.include_router(users_router)
api_router.include_router(stats_router)

__all__ = ["api_router", "health_router"]
