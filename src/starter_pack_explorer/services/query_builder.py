"""
# Search Query Builder

Translates a free-text search request into a store-ready query: one filter, one sort
order and one page window. The **same filter object** feeds the count and the
page fetch, so the `total` of an envelope always describes the documents that the pages
walk through.

## Filter Shape

```
{"$and": [
    {"$or": [{<field>: {"$regex": <pattern>, "$options": "i"}}, ...]},   # text clause
    <soft-delete clause>,
]}
```

- Packs match on `name` or `creator`; users on `handle` or `display_name`.
- Packs exclude `deleted: true`. Users exclude `deleted: true` except those whose
  `deletion_reason` is `"no_remaining_packs"` (kept while
  `SEARCH_INCLUDE_NO_REMAINING_PACKS` is on).
- The search text is escaped, so `.*` finds a literal `.*`. With `SEARCH_ALLOW_REGEX`
  the text is used as a pattern after checking that it compiles.

## Sort Keys

| type | `sortBy` | field |
|------|----------|-------|
| packs | `name` (default) | `name` |
| packs | `members` | `user_count` |
| packs | `activity` | `weekly_joins` |
| packs | `created` | `created_at` |
| users | `name` (default) | `display_name` |
| users | `handle` | `handle` |
| users | `followers` | `followers_count` |
| users | `packs` | `pack_ids_count` (computed) |

Unknown keys fall back to the default; `sortOrder="desc"` sorts descending, anything
else ascending. The join key (`rkey`/`did`) is appended as a tie-breaker so that pages
do not overlap.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

from starter_pack_explorer.config import settings
from starter_pack_explorer.services.exceptions import InvalidQueryError

PACKS = "packs"
USERS = "users"

ENTITY_TYPE_ALIASES = {
    "pack": PACKS,
    "packs": PACKS,
    "user": USERS,
    "users": USERS,
}

PACK_SORT_FIELDS = {
    "name": "name",
    "members": "user_count",
    "activity": "weekly_joins",
    "created": "created_at",
}
USER_SORT_FIELDS = {
    "name": "display_name",
    "handle": "handle",
    "followers": "followers_count",
    "packs": "pack_ids_count",
}
DEFAULT_SORT_FIELDS = {PACKS: "name", USERS: "display_name"}
SORT_FIELDS = {PACKS: PACK_SORT_FIELDS, USERS: USER_SORT_FIELDS}
SEARCH_FIELDS = {PACKS: ("name", "creator"), USERS: ("handle", "display_name")}
JOIN_KEYS = {PACKS: "rkey", USERS: "did"}

COMPUTED_PACK_IDS_COUNT = "pack_ids_count"
NO_REMAINING_PACKS = "no_remaining_packs"
MAX_PAGE = 10**9

PACK_SEARCH_PROJECTION = {
    "_id": 0,
    "rkey": 1,
    "name": 1,
    "creator": 1,
    "creator_did": 1,
    "description": 1,
    "user_count": 1,
    "weekly_joins": 1,
    "total_joins": 1,
    "created_at": 1,
    "updated_at": 1,
    "deleted": 1,
    "status": 1,
    "last_known_state": 1,
    # Real membership size; the cached user_count may drift.
    "member_count": {"$cond": [{"$isArray": "$users"}, {"$size": "$users"}, None]},
}
USER_SEARCH_PROJECTION = {
    "_id": 0,
    "did": 1,
    "handle": 1,
    "display_name": 1,
    "description": 1,
    "followers_count": 1,
    "follows_count": 1,
    "pack_ids": 1,
    "deleted": 1,
    "last_known_state": 1,
}


def normalize_entity_type(entity_type: Optional[str]) -> str:
    """Map `pack`/`packs`/`user`/`users` to the canonical collection key."""
    normalized = ENTITY_TYPE_ALIASES.get((entity_type or PACKS).strip().lower())
    if normalized is None:
        raise InvalidQueryError("Invalid search type", details=f"type must be 'packs' or 'users', got {entity_type!r}")
    return normalized


def normalize_page(page: Any) -> int:
    """Coerce a page parameter to an int in `[1, MAX_PAGE]`; the skip must fit a BSON int64."""
    try:
        value = int(page)
    except (TypeError, ValueError):
        return 1
    if value < 1:
        return 1
    return min(value, MAX_PAGE)


def sort_direction(sort_order: Optional[str]) -> int:
    return DESCENDING if (sort_order or "").strip().lower() == "desc" else ASCENDING


def resolve_sort_field(entity_type: str, sort_by: Optional[str]) -> str:
    return SORT_FIELDS[entity_type].get((sort_by or "").strip().lower(), DEFAULT_SORT_FIELDS[entity_type])


def build_search_pattern(raw_query: str, allow_regex: bool) -> str:
    if not allow_regex:
        return re.escape(raw_query)
    try:
        re.compile(raw_query)
    except re.error as e:
        raise InvalidQueryError("Invalid search pattern", details=str(e))
    return raw_query


def active_pack_clause() -> Dict[str, Any]:
    """Soft-delete clause for packs: anything not flagged deleted."""
    return {"deleted": {"$ne": True}}


def active_user_clause(include_no_remaining_packs: Optional[bool] = None) -> Dict[str, Any]:
    """
    Soft-delete clause for users.

    Users flagged deleted only because they no longer belong to any pack stay visible
    while `include_no_remaining_packs` (default: `SEARCH_INCLUDE_NO_REMAINING_PACKS`) is on.
    """
    if include_no_remaining_packs is None:
        include_no_remaining_packs = settings.SEARCH_INCLUDE_NO_REMAINING_PACKS
    if not include_no_remaining_packs:
        return {"deleted": {"$ne": True}}
    return {"$or": [{"deleted": {"$ne": True}}, {"deletion_reason": NO_REMAINING_PACKS}]}


@dataclass(frozen=True)
class SearchQuery:
    """A fully built search: one filter shared by count and fetch, plus sort and window."""

    entity_type: str
    filter: Dict[str, Any]
    sort: List[Tuple[str, int]]
    skip: int
    limit: int
    page: int
    projection: Dict[str, Any] = field(default_factory=dict)

    @property
    def sort_field(self) -> str:
        return self.sort[0][0]

    @property
    def needs_pack_count(self) -> bool:
        return self.entity_type == USERS and self.sort_field == COMPUTED_PACK_IDS_COUNT

    def pipeline(self) -> List[Dict[str, Any]]:
        """Aggregation pipeline fetching the page described by this query."""
        stages: List[Dict[str, Any]] = [{"$match": self.filter}]
        if self.needs_pack_count:
            stages.append(
                {"$addFields": {COMPUTED_PACK_IDS_COUNT: {"$size": {"$ifNull": ["$pack_ids", []]}}}}
            )
        stages.append({"$sort": dict(self.sort)})
        stages.append({"$skip": self.skip})
        stages.append({"$limit": self.limit})
        if self.projection:
            projection = dict(self.projection)
            if self.needs_pack_count:
                projection[COMPUTED_PACK_IDS_COUNT] = 1
            stages.append({"$project": projection})
        return stages


def build_query(
    entity_type: Optional[str],
    raw_query: Optional[str],
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page: Any = 1,
    page_size: Optional[int] = None,
) -> SearchQuery:
    """
    Build the filter, sort and page window for a search request.

    Args:
        entity_type: `"packs"`/`"pack"` or `"users"`/`"user"`.
        raw_query: The search text as typed by the user.
        sort_by: Public sort key (see module docs); unknown keys use the default.
        sort_order: `"desc"` for descending, anything else ascending.
        page: 1-based page number; invalid or non-positive values become 1.
        page_size: Items per page, defaults to `SEARCH_PAGE_SIZE`.

    Returns:
        SearchQuery: The query to run against the entity's collection.

    Raises:
        InvalidQueryError: Missing/short query text, bad type or uncompilable pattern.
    """
    entity = normalize_entity_type(entity_type)

    text = (raw_query or "").strip()
    if not text:
        raise InvalidQueryError("Search query is required")
    if len(text) < settings.SEARCH_MIN_QUERY_LENGTH:
        raise InvalidQueryError(
            "Search query is too short",
            details=f"Queries must be at least {settings.SEARCH_MIN_QUERY_LENGTH} characters long",
        )

    pattern = build_search_pattern(text, settings.SEARCH_ALLOW_REGEX)
    text_clause = {
        "$or": [{name: {"$regex": pattern, "$options": "i"}} for name in SEARCH_FIELDS[entity]]
    }
    delete_clause = active_pack_clause() if entity == PACKS else active_user_clause()
    query_filter = {"$and": [text_clause, delete_clause]}

    sort_field = resolve_sort_field(entity, sort_by)
    sort = [(sort_field, sort_direction(sort_order)), (JOIN_KEYS[entity], ASCENDING)]

    size = page_size or settings.SEARCH_PAGE_SIZE
    current_page = normalize_page(page)

    return SearchQuery(
        entity_type=entity,
        filter=query_filter,
        sort=sort,
        skip=(current_page - 1) * size,
        limit=size,
        page=current_page,
        projection=PACK_SEARCH_PROJECTION if entity == PACKS else USER_SEARCH_PROJECTION,
    )
