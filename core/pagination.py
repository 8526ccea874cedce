"""
Page arithmetic shared by list endpoints.
"""

from __future__ import annotations

import math


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


def page_envelope(docs: list, *, total: int, page: int, limit: int) -> dict:
    """Paginated payload in the docs/totalDocs shape used by list endpoints."""
    pages = total_pages(total, limit)
    return {
        "docs": docs,
        "totalDocs": total,
        "page": page,
        "limit": limit,
        "totalPages": pages,
        "hasNextPage": offset_for(page, limit) + len(docs) < total,
        "hasPrevPage": page > 1,
    }


def page_summary(*, total: int, page: int, limit: int, total_key: str = "totalItems") -> dict:
    """Pagination block for endpoints that return items beside a pagination object."""
    pages = total_pages(total, limit)
    return {
        "currentPage": page,
        "totalPages": pages,
        total_key: total,
        "hasNext": page < pages,
        "hasPrev": page > 1,
    }
