"""
# Pack Service

Single-pack lookups and batch pack labels.

- `get_pack(rkey)`: full pack with creator details and resolved members. Tombstoned
  packs are still returned (with their last known name/creator) so that links from old
  references keep resolving.
- `get_pack_labels(ids)`: `{rkey: {name, creator}}` for badge rendering. Unknown ids are
  absent from the mapping.
"""

from typing import Dict, Iterable, List, Optional, Union

from motor.motor_asyncio import AsyncIOMotorCollection

from starter_pack_explorer.config import settings
from starter_pack_explorer.managers.logging_manager import get_logger
from starter_pack_explorer.models.pack_models import PackDetail, PackLabel
from starter_pack_explorer.services.exceptions import InvalidQueryError, PackNotFoundError
from starter_pack_explorer.services.relationship_joiner import RelationshipJoiner, shape_pack, unique
from starter_pack_explorer.services.store import run_store_operation
from starter_pack_explorer.services.tombstone import resolve_pack_display
from starter_pack_explorer.utils.logging_utils import log_performance

logger = get_logger(prefix="[PACKS]")

LABEL_PROJECTION = {"_id": 0, "rkey": 1, "name": 1, "creator": 1, "deleted": 1, "last_known_state": 1}


def parse_pack_ids(ids: Optional[Union[str, Iterable[str]]], max_ids: Optional[int] = None) -> List[str]:
    """
    Split a comma-separated id list, dropping blanks and duplicates.

    Raises:
        InvalidQueryError: No usable id was supplied.
    """
    if ids is None:
        raise InvalidQueryError("Pack IDs are required")
    parts = ids.split(",") if isinstance(ids, str) else list(ids)
    rkeys = unique(part.strip() for part in parts if isinstance(part, str))
    if not rkeys:
        raise InvalidQueryError("Pack IDs are required")

    limit = max_ids or settings.PACK_LABELS_MAX_IDS
    if len(rkeys) > limit:
        raise InvalidQueryError("Too many pack IDs", details=f"At most {limit} ids may be requested at once")
    return rkeys


class PackService:
    def __init__(self, packs: AsyncIOMotorCollection, users: AsyncIOMotorCollection):
        self.packs = packs
        self.users = users
        self.joiner = RelationshipJoiner(packs, users)

    @log_performance("get_pack")
    async def get_pack(self, rkey: str) -> PackDetail:
        """
        Fetch one pack by `rkey` with `creator_details` and `members` attached.

        Raises:
            PackNotFoundError: No pack has this `rkey`.
        """
        query = {"rkey": rkey}
        pack = await run_store_operation(
            self.packs.find_one(query, {"_id": 0}), "find_one", settings.PACKS_COLLECTION, query
        )
        if pack is None:
            logger.info("Pack not found: %s", rkey)
            raise PackNotFoundError(rkey)

        enriched = await self.joiner.attach_pack_relations(shape_pack(pack))
        return PackDetail.model_validate(enriched)

    async def get_pack_labels(self, ids: Optional[Union[str, Iterable[str]]]) -> Dict[str, PackLabel]:
        """Resolve pack ids to `{name, creator}` labels with a single `$in` query."""
        rkeys = parse_pack_ids(ids)
        query = {"rkey": {"$in": rkeys}}
        packs = await run_store_operation(
            self.packs.find(query, LABEL_PROJECTION).to_list(length=None),
            "find",
            settings.PACKS_COLLECTION,
            query,
        )
        return {
            pack["rkey"]: PackLabel(**resolve_pack_display(pack))
            for pack in packs
            if pack.get("rkey")
        }
