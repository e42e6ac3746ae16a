"""
# Stats Service

Corpus-wide counters shown on the landing page.

## Definitions

- **Active pack**: `deleted` is not true; additionally `status == "completed"` when
  `STATS_REQUIRE_COMPLETED_STATUS` is on.
- **Active user**: `deleted` is not true; additionally a non-empty `handle` when
  `STATS_REQUIRE_HANDLE` is on.
- **Average pack size**: mean length of `users` over active packs, where a missing or
  non-array `users` counts as 0. No active packs gives 0. Rounded half-up to an int.

The pack count and the average use the same filter object. The three store operations
are independent and run concurrently. The result is computed per request; nothing is
cached.
"""

import asyncio
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from starter_pack_explorer.config import settings
from starter_pack_explorer.managers.logging_manager import get_logger
from starter_pack_explorer.models.pack_models import StatsResponse
from starter_pack_explorer.services.store import run_store_operation
from starter_pack_explorer.utils.logging_utils import log_performance

logger = get_logger(prefix="[STATS]")


def active_pack_filter(require_completed: Optional[bool] = None) -> Dict[str, Any]:
    if require_completed is None:
        require_completed = settings.STATS_REQUIRE_COMPLETED_STATUS
    query: Dict[str, Any] = {"deleted": {"$ne": True}}
    if require_completed:
        query["status"] = "completed"
    return query


def active_user_filter(require_handle: Optional[bool] = None) -> Dict[str, Any]:
    if require_handle is None:
        require_handle = settings.STATS_REQUIRE_HANDLE
    query: Dict[str, Any] = {"deleted": {"$ne": True}}
    if require_handle:
        query["handle"] = {"$exists": True, "$nin": [None, ""]}
    return query


def average_pack_size_pipeline(pack_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        {"$match": pack_filter},
        {
            "$project": {
                "userCount": {"$cond": [{"$isArray": "$users"}, {"$size": "$users"}, 0]},
            }
        },
        {"$group": {"_id": None, "avgSize": {"$avg": "$userCount"}}},
    ]


def round_half_up(value: Optional[float]) -> int:
    """Round like the display layer expects (2.5 → 3), treating `None` as 0."""
    if not value:
        return 0
    return int(math.floor(value + 0.5))


class StatsService:
    """Computes `StatsResponse` from the packs and users collections."""

    def __init__(self, packs: AsyncIOMotorCollection, users: AsyncIOMotorCollection):
        self.packs = packs
        self.users = users

    @log_performance("compute_stats")
    async def compute_stats(self) -> StatsResponse:
        pack_filter = active_pack_filter()
        user_filter = active_user_filter()
        pipeline = average_pack_size_pipeline(pack_filter)

        total_packs, total_users, averages = await asyncio.gather(
            run_store_operation(
                self.packs.count_documents(pack_filter),
                "count_documents",
                settings.PACKS_COLLECTION,
                pack_filter,
            ),
            run_store_operation(
                self.users.count_documents(user_filter),
                "count_documents",
                settings.USERS_COLLECTION,
                user_filter,
            ),
            run_store_operation(
                self.packs.aggregate(pipeline).to_list(length=None),
                "aggregate",
                settings.PACKS_COLLECTION,
                pipeline,
            ),
        )

        avg_size = averages[0].get("avgSize") if averages else None
        stats = StatsResponse(
            total_packs=total_packs,
            total_users=total_users,
            avg_pack_size=round_half_up(avg_size),
            updated_at=datetime.now(timezone.utc),
        )
        logger.info(
            "Computed stats: %d packs, %d users, avg pack size %d",
            stats.total_packs,
            stats.total_users,
            stats.avg_pack_size,
        )
        return stats
