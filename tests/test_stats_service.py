from datetime import datetime

import pytest

from conftest import make_collection
from starter_pack_explorer.config import settings
from starter_pack_explorer.services.stats_service import (
    StatsService,
    active_pack_filter,
    active_user_filter,
    round_half_up,
)


@pytest.mark.parametrize("value,expected", [(None, 0), (0, 0), (2.4, 2), (2.5, 3), (2.6, 3), (11.0, 11)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_default_filters_only_exclude_deleted():
    assert active_pack_filter() == {"deleted": {"$ne": True}}
    assert active_user_filter() == {"deleted": {"$ne": True}}


def test_strict_filters(monkeypatch):
    monkeypatch.setattr(settings, "STATS_REQUIRE_COMPLETED_STATUS", True)
    monkeypatch.setattr(settings, "STATS_REQUIRE_HANDLE", True)

    assert active_pack_filter() == {"deleted": {"$ne": True}, "status": "completed"}
    assert active_user_filter()["handle"] == {"$exists": True, "$nin": [None, ""]}


@pytest.mark.asyncio
async def test_compute_stats():
    packs = make_collection(count=4, aggregate=[{"_id": None, "avgSize": 12.5}])
    users = make_collection(count=30)

    stats = await StatsService(packs, users).compute_stats()

    assert stats.total_packs == 4
    assert stats.total_users == 30
    assert stats.avg_pack_size == 13
    assert isinstance(stats.updated_at, datetime)
    assert stats.updated_at.tzinfo is not None


@pytest.mark.asyncio
async def test_count_and_average_share_the_pack_filter():
    packs = make_collection(count=1, aggregate=[{"_id": None, "avgSize": 1}])

    await StatsService(packs, make_collection()).compute_stats()

    count_filter = packs.count_documents.call_args[0][0]
    pipeline = packs.aggregate.call_args[0][0]
    assert pipeline[0] == {"$match": count_filter}


@pytest.mark.asyncio
async def test_empty_corpus_gives_zeroes():
    stats = await StatsService(make_collection(count=0, aggregate=[]), make_collection(count=0)).compute_stats()

    assert (stats.total_packs, stats.total_users, stats.avg_pack_size) == (0, 0, 0)
