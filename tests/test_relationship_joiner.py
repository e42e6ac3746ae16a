import pytest

from conftest import make_collection
from starter_pack_explorer.services.relationship_joiner import (
    RelationshipJoiner,
    effective_user_count,
    shape_pack,
    unique,
)


def test_unique_keeps_first_seen_order_and_drops_blanks():
    assert unique(["b", "a", None, "b", "", "c", "a"]) == ["b", "a", "c"]


def test_effective_user_count_prefers_real_membership():
    assert effective_user_count({"users": ["a", "b"], "user_count": 9}) == 2
    assert effective_user_count({"member_count": 4, "user_count": 9}) == 4
    assert effective_user_count({"user_count": 9}) == 9
    assert effective_user_count({}) == 0


def test_shape_pack_resolves_tombstone(pack_docs):
    shaped = shape_pack(pack_docs["dogs"])

    assert shaped["name"] == "Dog People"
    assert shaped["creator"] == "bob.bsky.social"
    assert shaped["user_count"] == 0
    assert "last_known_state" not in shaped


@pytest.mark.asyncio
async def test_creators_are_fetched_in_one_batch(user_docs):
    users = make_collection(find=[user_docs["did:plc:alice"]])
    joiner = RelationshipJoiner(make_collection(), users)
    packs = [
        {"rkey": "p1", "creator_did": "did:plc:alice"},
        {"rkey": "p2", "creator_did": "did:plc:alice"},
        {"rkey": "p3", "creator_did": "did:plc:alice"},
    ]

    result = await joiner.attach_creators(packs)

    assert users.find.call_count == 1
    query = users.find.call_args[0][0]
    assert query == {"did": {"$in": ["did:plc:alice"]}}
    assert all(pack["creator_details"]["handle"] == "alice.bsky.social" for pack in result)


@pytest.mark.asyncio
async def test_missing_creator_yields_none():
    users = make_collection(find=[])
    joiner = RelationshipJoiner(make_collection(), users)

    result = await joiner.attach_creators([{"rkey": "p1", "creator_did": "did:plc:gone"}])

    assert result[0]["creator_details"] is None


@pytest.mark.asyncio
async def test_empty_page_issues_no_lookup():
    users = make_collection()
    joiner = RelationshipJoiner(make_collection(), users)

    assert await joiner.attach_creators([]) == []
    users.find.assert_not_called()


@pytest.mark.asyncio
async def test_deleted_creator_shows_last_known_handle():
    creator = {
        "did": "did:plc:carol",
        "handle": "",
        "display_name": "Carol",
        "deleted": True,
        "last_known_state": {"handle": "carol.bsky.social"},
    }
    joiner = RelationshipJoiner(make_collection(), make_collection(find=[creator]))

    result = await joiner.attach_creators([{"rkey": "p1", "creator_did": "did:plc:carol"}])

    assert result[0]["creator_details"]["handle"] == "carol.bsky.social"


@pytest.mark.asyncio
async def test_members_keep_order_and_drop_dangling(pack_docs, user_docs):
    users = make_collection(find=[user_docs["did:plc:bob"], user_docs["did:plc:alice"]])
    joiner = RelationshipJoiner(make_collection(), users)

    members = await joiner.fetch_members(pack_docs["cats"])

    assert [member["did"] for member in members] == ["did:plc:alice", "did:plc:bob"]
    query = users.find.call_args[0][0]
    assert query == {"did": {"$in": ["did:plc:alice", "did:plc:bob", "did:plc:ghost"]}}


@pytest.mark.asyncio
async def test_deleted_member_is_listed_with_last_known_handle():
    gone = {
        "did": "did:plc:gone",
        "handle": "",
        "deleted": True,
        "deletion_reason": "account_deleted",
        "last_known_state": {"handle": "gone.bsky.social", "display_name": "Gone"},
    }
    users = make_collection(find=[gone])
    joiner = RelationshipJoiner(make_collection(), users)

    members = await joiner.fetch_members({"rkey": "p", "users": ["did:plc:gone"]})

    assert users.find.call_args[0][0] == {"did": {"$in": ["did:plc:gone"]}}
    assert [member["handle"] for member in members] == ["gone.bsky.social"]
    assert members[0]["display_name"] == "Gone"


@pytest.mark.asyncio
async def test_user_packs_use_one_query(pack_docs, user_docs):
    packs = make_collection(find=[pack_docs["cats"]])
    joiner = RelationshipJoiner(packs, make_collection())

    result = await joiner.attach_user_packs([user_docs["did:plc:alice"], user_docs["did:plc:bob"]])

    assert packs.find.call_count == 1
    query = packs.find.call_args[0][0]
    assert query["$and"][0] == {
        "$or": [
            {"rkey": {"$in": ["cats", "dogs"]}},
            {"creator_did": {"$in": ["did:plc:alice", "did:plc:bob"]}},
        ]
    }
    assert query["$and"][1] == {"deleted": {"$ne": True}}

    alice, bob = result
    assert [pack["rkey"] for pack in alice["member_packs"]] == ["cats"]
    assert [pack["rkey"] for pack in alice["created_packs"]] == ["cats"]
    assert [pack["rkey"] for pack in bob["member_packs"]] == ["cats"]
    assert bob["created_packs"] == []
    assert bob["pack_ids_count"] == 2


@pytest.mark.asyncio
async def test_user_packs_include_deleted_on_request(pack_docs, user_docs):
    packs = make_collection(find=[pack_docs["cats"], pack_docs["dogs"]])
    joiner = RelationshipJoiner(packs, make_collection())

    result = await joiner.attach_user_packs([user_docs["did:plc:bob"]], include_deleted=True)

    query = packs.find.call_args[0][0]
    assert "$and" not in query
    names = [pack["name"] for pack in result[0]["member_packs"]]
    assert names == ["Cat People", "Dog People"]
    assert [pack["rkey"] for pack in result[0]["created_packs"]] == ["dogs"]


@pytest.mark.asyncio
async def test_created_packs_sorted_by_name():
    packs = make_collection(
        find=[
            {"rkey": "z", "name": "zebra fans", "creator_did": "did:plc:a"},
            {"rkey": "b", "name": "Bird Fans", "creator_did": "did:plc:a"},
        ]
    )
    joiner = RelationshipJoiner(packs, make_collection())

    result = await joiner.attach_user_packs([{"did": "did:plc:a"}])

    assert [pack["rkey"] for pack in result[0]["created_packs"]] == ["b", "z"]
    assert result[0]["member_packs"] == []
    assert result[0]["pack_ids_count"] == 0
