import os

os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")

from unittest.mock import AsyncMock, MagicMock

import pytest


def make_cursor(documents):
    """A Motor-like cursor whose `to_list()` resolves to `documents`."""
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=list(documents))
    return cursor


def make_collection(find=None, find_one=None, count=0, aggregate=None):
    """
    A Motor-like collection.

    `find` may be a list of documents (every call returns them) or a list of lists
    (one per successive call).
    """
    collection = MagicMock()
    if find and all(isinstance(batch, list) for batch in find):
        collection.find.side_effect = [make_cursor(batch) for batch in find]
    else:
        collection.find.return_value = make_cursor(find or [])
    collection.find_one = AsyncMock(return_value=find_one)
    collection.count_documents = AsyncMock(return_value=count)
    collection.aggregate.return_value = make_cursor(aggregate or [])
    return collection


@pytest.fixture
def pack_docs():
    return {
        "cats": {
            "rkey": "cats",
            "name": "Cat People",
            "creator": "alice.bsky.social",
            "creator_did": "did:plc:alice",
            "description": "Everyone who posts cats",
            "users": ["did:plc:alice", "did:plc:bob", "did:plc:ghost"],
            "user_count": 7,
            "weekly_joins": 3,
            "total_joins": 40,
            "created_at": "2024-11-20T10:00:00Z",
        },
        "dogs": {
            "rkey": "dogs",
            "name": "",
            "creator": "",
            "creator_did": "did:plc:bob",
            "users": [],
            "user_count": 0,
            "deleted": True,
            "deleted_at": "2025-01-02T00:00:00Z",
            "deletion_reason": "record_deleted",
            "last_known_state": {"name": "Dog People", "creator": "bob.bsky.social"},
        },
    }


@pytest.fixture
def user_docs():
    return {
        "did:plc:alice": {
            "did": "did:plc:alice",
            "handle": "alice.bsky.social",
            "display_name": "Alice",
            "followers_count": 120,
            "follows_count": 80,
            "pack_ids": ["cats"],
        },
        "did:plc:bob": {
            "did": "did:plc:bob",
            "handle": "bob.bsky.social",
            "display_name": "Bob",
            "followers_count": 5,
            "pack_ids": ["cats", "dogs"],
        },
    }
