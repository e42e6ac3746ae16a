"""Pagination envelope assembly."""

import math
from typing import Any, Dict, List

from starter_pack_explorer.models.pack_models import PaginatedResponse


def total_pages(total: int, page_size: int) -> int:
    """`ceil(total / page_size)`; zero results give zero pages."""
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


def assemble(items: List[Dict[str, Any]], total: int, page: int, page_size: int) -> PaginatedResponse:
    """Wrap one page of items with the counts the client needs to render paging controls."""
    return PaginatedResponse(
        items=items,
        total=total,
        page=page,
        totalPages=total_pages(total, page_size),
        itemsPerPage=page_size,
    )
