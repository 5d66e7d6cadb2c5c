import math
from dataclasses import dataclass
from typing import Optional

from fastapi import Query
from sqlalchemy.orm import Query as OrmQuery

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _to_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def get_pagination(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
) -> Pagination:
    """Lenient page/limit parsing; junk values fall back to the defaults."""
    page_number = max(1, _to_int(page) or DEFAULT_PAGE)
    page_size = min(MAX_LIMIT, max(1, _to_int(limit) or DEFAULT_LIMIT))
    return Pagination(page=page_number, limit=page_size)


def build_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit),
    }


def paginate(query: OrmQuery, pagination: Pagination) -> tuple[list, dict]:
    total = query.order_by(None).count()
    items = query.offset(pagination.offset).limit(pagination.limit).all()
    return items, build_meta(pagination.page, pagination.limit, total)
