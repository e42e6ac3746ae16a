"""
# Route Dependencies

FastAPI dependencies that hand request handlers their store access. Handlers never touch
the global `db_manager` directly; they receive services built on the injected manager,
which tests replace through `app.dependency_overrides[get_database]`.
"""

from fastapi import Depends

from starter_pack_explorer.database import DatabaseManager, db_manager
from starter_pack_explorer.services.exceptions import StoreError
from starter_pack_explorer.services.pack_service import PackService
from starter_pack_explorer.services.search_service import SearchService
from starter_pack_explorer.services.stats_service import StatsService
from starter_pack_explorer.services.user_service import UserService


def get_database() -> DatabaseManager:
    """The process-wide database manager, connected during application startup."""
    if not db_manager.is_connected:
        raise StoreError("Database unavailable", details="Database not connected")
    return db_manager


def get_search_service(db: DatabaseManager = Depends(get_database)) -> SearchService:
    return SearchService(db.packs, db.users)


def get_pack_service(db: DatabaseManager = Depends(get_database)) -> PackService:
    return PackService(db.packs, db.users)


def get_user_service(db: DatabaseManager = Depends(get_database)) -> UserService:
    return UserService(db.packs, db.users)


def get_stats_service(db: DatabaseManager = Depends(get_database)) -> StatsService:
    return StatsService(db.packs, db.users)
