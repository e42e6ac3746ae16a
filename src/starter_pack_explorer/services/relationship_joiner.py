"""
# Relationship Joiner

Attaches related documents to a page of primary entities. MongoDB holds no foreign keys
here: a pack references its creator by `creator_did` and its members by the `users`
list, a user references its packs by `pack_ids`. The joiner resolves those references
in application code.

## Rules

- **Batched**: one store query per relation per page, keyed by the deduplicated set of
  foreign ids (`$in`), then attached through an in-memory map. Never one query per item.
- **Dangling-tolerant**: ids that match nothing are dropped silently; a pack whose
  creator is missing gets `creator_details=None`.
- **Tombstone-resolved**: every attached pack or user passes through the resolver.
- **Counted honestly**: a pack's displayed `user_count` is the real length of its
  `users` list when available, else the cached counter.

## Usage

```python
joiner = RelationshipJoiner(db.packs, db.users)
packs = await joiner.attach_creators(packs)
users = await joiner.attach_user_packs(users)
```
"""

import asyncio
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from starter_pack_explorer.config import settings
from starter_pack_explorer.managers.logging_manager import get_logger
from starter_pack_explorer.services.query_builder import (
    PACK_SEARCH_PROJECTION,
    PACKS,
    active_pack_clause,
    normalize_entity_type,
)
from starter_pack_explorer.services.store import run_store_operation
from starter_pack_explorer.services.tombstone import resolve_pack, resolve_user

logger = get_logger(prefix="[JOINER]")

CREATOR_FIELDS = ("did", "handle", "display_name", "followers_count")
CREATOR_PROJECTION = {
    "_id": 0,
    "did": 1,
    "handle": 1,
    "display_name": 1,
    "followers_count": 1,
    "deleted": 1,
    "last_known_state": 1,
}
MEMBER_PROJECTION = {
    **CREATOR_PROJECTION,
    "description": 1,
    "follows_count": 1,
}


def unique(values: Iterable[Any]) -> List[Any]:
    """Distinct truthy values, first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def effective_user_count(pack: Dict[str, Any]) -> int:
    """Real membership size when known, else the cached `user_count`, else 0."""
    if isinstance(pack.get("users"), list):
        return len(pack["users"])
    if pack.get("member_count") is not None:
        return pack["member_count"]
    return pack.get("user_count") or 0


def shape_pack(pack: Dict[str, Any]) -> Dict[str, Any]:
    """Tombstone-resolve a pack and settle its displayed member count."""
    shaped = resolve_pack(pack)
    shaped["user_count"] = effective_user_count(pack)
    shaped.pop("member_count", None)
    return shaped


def creator_details(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    resolved = resolve_user(user)
    return {name: resolved.get(name) for name in CREATOR_FIELDS}


class RelationshipJoiner:
    """Batched, dangling-tolerant resolution of pack/user references."""

    def __init__(self, packs: AsyncIOMotorCollection, users: AsyncIOMotorCollection):
        self.packs = packs
        self.users = users

    async def _find(self, collection: AsyncIOMotorCollection, collection_name: str, query, projection):
        cursor = collection.find(query, projection)
        return await run_store_operation(cursor.to_list(length=None), "find", collection_name, query)

    async def attach_related(self, entity_type: str, page: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Attach the default relations for a page of `packs` or `users`."""
        if normalize_entity_type(entity_type) == PACKS:
            return await self.attach_creators(page)
        return await self.attach_user_packs(page)

    async def attach_creators(self, packs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Attach `creator_details` to each pack with one lookup for all distinct creators.

        Creators are looked up regardless of their own deletion state so that a pack by a
        deleted account still shows who made it.
        """
        result = [dict(pack) for pack in packs]
        dids = unique(pack.get("creator_did") for pack in result)

        by_did: Dict[str, Dict[str, Any]] = {}
        if dids:
            query = {"did": {"$in": dids}}
            users = await self._find(self.users, settings.USERS_COLLECTION, query, CREATOR_PROJECTION)
            by_did = {user["did"]: creator_details(user) for user in users if user.get("did")}

        missing = [did for did in dids if did not in by_did]
        if missing:
            logger.debug("No user document for %d creator did(s): %s", len(missing), missing[:5])

        for pack in result:
            pack["creator_details"] = by_did.get(pack.get("creator_did"))
        return result

    async def fetch_members(self, pack: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Resolve a pack's `users` list into user documents, in membership order.

        Tombstoned members are kept with their last known handle; dangling dids are left out.
        """
        dids = unique(as_list(pack.get("users")))
        if not dids:
            return []

        query = {"did": {"$in": dids}}
        users = await self._find(self.users, settings.USERS_COLLECTION, query, MEMBER_PROJECTION)
        by_did = {user["did"]: user for user in users if user.get("did")}

        members = []
        for did in dids:
            user = by_did.get(did)
            if user is None:
                continue
            member = resolve_user(user)
            member.pop("deleted", None)
            members.append(member)
        return members

    async def attach_user_packs(
        self, users: List[Dict[str, Any]], include_deleted: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Attach `member_packs` and `created_packs` to each user with a single packs query.

        The query covers every `pack_ids` entry on the page plus every pack created by a
        user on the page. `member_packs` follows the user's `pack_ids` order; `created_packs`
        is ordered by name.

        Args:
            users: A page of user documents.
            include_deleted: Keep tombstoned packs (resolved) instead of hiding them.
        """
        result = [dict(user) for user in users]
        rkeys = unique(rkey for user in result for rkey in as_list(user.get("pack_ids")))
        dids = unique(user.get("did") for user in result)

        clauses = []
        if rkeys:
            clauses.append({"rkey": {"$in": rkeys}})
        if dids:
            clauses.append({"creator_did": {"$in": dids}})

        packs: List[Dict[str, Any]] = []
        if clauses:
            query: Dict[str, Any] = {"$or": clauses}
            if not include_deleted:
                query = {"$and": [query, active_pack_clause()]}
            packs = await self._find(self.packs, settings.PACKS_COLLECTION, query, PACK_SEARCH_PROJECTION)

        shaped = [shape_pack(pack) for pack in packs if pack.get("rkey")]
        by_rkey = {pack["rkey"]: pack for pack in shaped}
        created_by: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for pack in shaped:
            if pack.get("creator_did"):
                created_by[pack["creator_did"]].append(pack)

        for user in result:
            pack_ids = unique(as_list(user.get("pack_ids")))
            user["member_packs"] = [by_rkey[rkey] for rkey in pack_ids if rkey in by_rkey]
            user["created_packs"] = sorted(
                created_by.get(user.get("did"), []), key=lambda pack: (pack.get("name") or "").lower()
            )
            if user.get("pack_ids_count") is None:
                user["pack_ids_count"] = len(as_list(user.get("pack_ids")))
        return result

    async def attach_pack_relations(self, pack: Dict[str, Any]) -> Dict[str, Any]:
        """Creator details and members for a single pack, fetched concurrently."""
        with_creator, members = await asyncio.gather(self.attach_creators([pack]), self.fetch_members(pack))
        enriched = with_creator[0]
        enriched["members"] = members
        return enriched
