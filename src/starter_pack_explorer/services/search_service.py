"""
# Search Service

Request-level orchestration for `GET /search`.

## Flow

```
build_query ──► count_documents(filter) ─┐
            └─► aggregate(pipeline)   ───┴─► resolve tombstones ─► join relations ─► envelope
```

The count and the page fetch run concurrently and share the same filter object. Packs
get `creator_details`; users get `member_packs` and `created_packs`.
"""

import asyncio
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from starter_pack_explorer.config import settings
from starter_pack_explorer.managers.logging_manager import get_logger
from starter_pack_explorer.models.pack_models import PackSummary, PaginatedResponse, UserSummary
from starter_pack_explorer.services.pagination import assemble
from starter_pack_explorer.services.query_builder import PACKS, SearchQuery, build_query
from starter_pack_explorer.services.relationship_joiner import RelationshipJoiner, shape_pack
from starter_pack_explorer.services.store import run_store_operation
from starter_pack_explorer.services.tombstone import resolve_user
from starter_pack_explorer.utils.logging_utils import log_performance

logger = get_logger(prefix="[SEARCH]")


class SearchService:
    """Runs a paginated search over packs or users."""

    def __init__(self, packs: AsyncIOMotorCollection, users: AsyncIOMotorCollection):
        self.packs = packs
        self.users = users
        self.joiner = RelationshipJoiner(packs, users)

    def _collection_for(self, query: SearchQuery):
        if query.entity_type == PACKS:
            return self.packs, settings.PACKS_COLLECTION
        return self.users, settings.USERS_COLLECTION

    async def fetch_page(self, query: SearchQuery):
        """Return `(total, documents)` for a built query, counting and fetching concurrently."""
        collection, name = self._collection_for(query)
        pipeline = query.pipeline()
        return await asyncio.gather(
            run_store_operation(collection.count_documents(query.filter), "count_documents", name, query.filter),
            run_store_operation(collection.aggregate(pipeline).to_list(length=None), "aggregate", name, pipeline),
        )

    @log_performance("search")
    async def search(
        self,
        entity_type: Optional[str],
        q: Optional[str],
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        page: Any = 1,
    ) -> PaginatedResponse:
        """
        Search packs or users and return one page in the standard envelope.

        Raises:
            InvalidQueryError: Bad query text or type.
            StoreError: The store failed or timed out.
        """
        query = build_query(entity_type, q, sort_by, sort_order, page)
        total, documents = await self.fetch_page(query)

        if query.entity_type == PACKS:
            model, primary = PackSummary, [shape_pack(doc) for doc in documents]
        else:
            model, primary = UserSummary, [resolve_user(doc) for doc in documents]
        related = await self.joiner.attach_related(query.entity_type, primary)
        items = [model.model_validate(doc).model_dump(mode="json") for doc in related]

        logger.info(
            "Search type=%s sort=%s page=%d returned %d of %d",
            query.entity_type,
            query.sort_field,
            query.page,
            len(items),
            total,
        )
        return assemble(items, total, query.page, query.limit)
