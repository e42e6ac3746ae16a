import pytest
from pymongo import DESCENDING

from conftest import make_collection
from starter_pack_explorer.services.exceptions import InvalidQueryError
from starter_pack_explorer.services.search_service import SearchService


def alice_page(count):
    return [
        {
            "did": f"did:plc:alice{i}",
            "handle": f"alice{i}.bsky.social",
            "display_name": f"Alice {i}",
            "followers_count": 1000 - i,
            "pack_ids": [],
        }
        for i in range(count)
    ]


@pytest.mark.asyncio
async def test_user_search_first_page():
    users = make_collection(count=15, aggregate=alice_page(10))
    packs = make_collection(find=[])
    service = SearchService(packs, users)

    result = await service.search("users", "alice", sort_by="followers", sort_order="desc", page=1)

    assert result.total == 15
    assert result.totalPages == 2
    assert result.page == 1
    assert result.itemsPerPage == 10
    assert len(result.items) == 10
    assert result.items[0]["handle"] == "alice0.bsky.social"
    assert result.items[0]["member_packs"] == []

    pipeline = users.aggregate.call_args[0][0]
    assert pipeline[0]["$match"] is users.count_documents.call_args[0][0]
    assert next(stage["$sort"] for stage in pipeline if "$sort" in stage) == {
        "followers_count": DESCENDING,
        "did": 1,
    }


@pytest.mark.asyncio
async def test_page_beyond_last_is_empty_with_totals():
    users = make_collection(count=15, aggregate=[])
    service = SearchService(make_collection(), users)

    result = await service.search("users", "alice", page=3)

    assert result.items == []
    assert result.total == 15
    assert result.totalPages == 2
    assert result.page == 3


@pytest.mark.asyncio
async def test_pack_search_resolves_and_attaches_creators(pack_docs, user_docs):
    dogs = dict(pack_docs["dogs"])
    dogs["deleted"] = False
    dogs["name"] = "Dog People"
    page = [
        {**pack_docs["cats"], "member_count": 3},
        {**dogs, "member_count": None, "user_count": 4},
    ]
    page[0].pop("users")
    page[1].pop("users")
    packs = make_collection(count=2, aggregate=page)
    users = make_collection(find=[user_docs["did:plc:alice"]])
    service = SearchService(packs, users)

    result = await service.search("packs", "people", sort_by="members", sort_order="desc")

    cats, dog_pack = result.items
    assert cats["user_count"] == 3
    assert cats["creator_details"]["did"] == "did:plc:alice"
    assert "member_count" not in cats
    assert dog_pack["user_count"] == 4
    assert dog_pack["creator_details"] is None
    assert users.find.call_count == 1


@pytest.mark.asyncio
async def test_invalid_query_runs_no_store_operation():
    packs = make_collection()
    service = SearchService(packs, make_collection())

    with pytest.raises(InvalidQueryError):
        await service.search("packs", "a")

    packs.count_documents.assert_not_called()
    packs.aggregate.assert_not_called()
