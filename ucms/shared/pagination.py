"""
Page envelope used by every paginated listing.

Pages are zero based and the envelope keeps the keys the frontend tables
read (content, totalElements, totalPages, ...).
"""
from typing import Any, Callable, Dict, List, Mapping, Optional

from fastapi import HTTPException, status
from sqlalchemy import asc, desc


def apply_sort(query, columns: Mapping[str, Any], sort_by: str, sort_dir: str):
    """Order a query by one of the whitelisted columns"""
    column = columns.get(sort_by)
    if column is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot sort by '{sort_by}'. Allowed: {', '.join(sorted(columns))}"
        )
    direction = desc if sort_dir.lower() == "desc" else asc
    return query.order_by(direction(column))


def page_envelope(items: List[Any], total: int, page: int, size: int) -> Dict[str, Any]:
    total_pages = (total + size - 1) // size if size > 0 else 0
    return {
        "content": items,
        "totalElements": total,
        "totalPages": total_pages,
        "size": size,
        "number": page,
        "numberOfElements": len(items),
        "first": page == 0,
        "last": page >= total_pages - 1,
        "empty": len(items) == 0,
    }


def paginate(query, page: int, size: int, serializer: Optional[Callable[[Any], Any]] = None) -> Dict[str, Any]:
    """Count, slice and serialize a SQLAlchemy query"""
    total = query.count()
    rows = query.offset(page * size).limit(size).all()
    items = [serializer(row) for row in rows] if serializer else rows
    return page_envelope(items, total, page, size)
