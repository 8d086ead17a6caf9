from __future__ import annotations

import math

from shared.constants import DEFAULT_PAGE_LIMIT


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def paginate(total: int, page: int = 1, limit: int = DEFAULT_PAGE_LIMIT) -> dict:
    """Pagination block returned next to every paged listing."""
    if limit < 1:
        raise ValueError("limit must be at least 1")
    if page < 1:
        raise ValueError("page must be at least 1")
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit),
    }
