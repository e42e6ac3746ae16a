"""
# Search Routes

`GET /search`: paginated search over starter packs or users.

## Query Parameters

- `q`: search text, at least `SEARCH_MIN_QUERY_LENGTH` characters after trimming
- `type`: `packs` (default) or `users`
- `page`: 1-based page number; anything unparseable or below 1 is treated as 1
- `sortBy`: packs `name|members|activity|created`, users `name|handle|followers|packs`
- `sortOrder`: `desc` for descending; anything else (including omitted) sorts ascending

## Usage Example

```python
response = await client.get("/api/search", params={"q": "alice", "type": "users", "sortBy": "followers"})
page = response.json()
# {"items": [...], "total": 15, "page": 1, "totalPages": 2, "itemsPerPage": 10}
```
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from starter_pack_explorer.models.pack_models import PaginatedResponse
from starter_pack_explorer.routes.dependencies import get_search_service
from starter_pack_explorer.services.search_service import SearchService

router = APIRouter(tags=["Search"])


@router.get("/search", response_model=PaginatedResponse)
async def search(
    q: Optional[str] = Query(None, description="Search text"),
    entity_type: Optional[str] = Query("packs", alias="type", description="packs or users"),
    page: Optional[str] = Query("1", description="1-based page number"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    service: SearchService = Depends(get_search_service),
):
    """Search packs or users, returning one page in the standard envelope."""
    return await service.search(entity_type, q, sort_by=sort_by, sort_order=sort_order, page=page)
