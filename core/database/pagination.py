"""Pagination plugin - adds collection.paginate(...)"""

import math
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import ValidationFailedError


async def paginate(
    collection,
    query: Optional[Dict[str, Any]] = None,
    page: int = 1,
    limit: int = 10,
    sort: Optional[List[Tuple[str, int]]] = None,
    offset: Optional[int] = None,
) -> Dict[str, Any]:
    """
    One page of ``query`` results plus the paging metadata

    ``offset`` wins over ``page`` when both are given; the reported page is the
    one the offset falls into.
    """
    if limit < 1:
        raise ValidationFailedError("limit must be at least 1")
    if offset is not None:
        if offset < 0:
            raise ValidationFailedError("offset must not be negative")
        skip = offset
        page = offset // limit + 1
    else:
        if page < 1:
            raise ValidationFailedError("page must be at least 1")
        skip = (page - 1) * limit

    total_docs = await collection.count_documents(query)
    docs = await collection.find(query, sort=sort, skip=skip, limit=limit)
    total_pages = max(1, math.ceil(total_docs / limit))

    has_prev_page = page > 1
    has_next_page = page < total_pages

    return {
        "docs": docs,
        "totalDocs": total_docs,
        "limit": limit,
        "page": page,
        "totalPages": total_pages,
        "pagingCounter": skip + 1,
        "hasPrevPage": has_prev_page,
        "hasNextPage": has_next_page,
        "prevPage": page - 1 if has_prev_page else None,
        "nextPage": page + 1 if has_next_page else None,
    }


def pagination_plugin(collection) -> None:
    collection.static("paginate", paginate)
