# prep_core/common/api/pagination.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, Iterable, Sequence, TypeVar

from django.conf import settings
from django.db.models import QuerySet
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One zero-based page of results.
    `count` is the total number of items across all pages.
    """
    results: list[T]
    page: int
    size: int
    count: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.count / self.size)


@dataclass(frozen=True)
class PageRequest:
    page: int = 0
    size: int = 10
    sort_field: str = "start_time"
    descending: bool = True

    @property
    def order_by(self) -> str:
        return f"-{self.sort_field}" if self.descending else self.sort_field

    @classmethod
    def from_request(
        cls,
        request,
        *,
        sort_fields: Iterable[str] = ("start_time",),
        default_sort: str = "start_time,desc",
    ) -> "PageRequest":
        """
        Parse ?page=&size=&sort=<field>[,asc|desc].
        page is zero-based. size is clamped to CRISIS_MAX_PAGE_SIZE.
        """
        qp = request.query_params
        default_size = getattr(settings, "CRISIS_DEFAULT_PAGE_SIZE", 10)
        max_size = getattr(settings, "CRISIS_MAX_PAGE_SIZE", 200)

        page = _parse_int(qp.get("page"), name="page", default=0)
        size = _parse_int(qp.get("size"), name="size", default=default_size)
        if page < 0:
            raise ValidationError({"page": "Must be zero or greater."})
        if size < 1:
            raise ValidationError({"size": "Must be at least 1."})
        size = min(size, max_size)

        raw_sort = (qp.get("sort") or default_sort).strip()
        field, _, direction = raw_sort.partition(",")
        field = field.strip()
        direction = (direction.strip() or "asc").lower()

        allowed = set(sort_fields)
        if field not in allowed:
            raise ValidationError({"sort": f"Unsupported sort field. Use one of: {', '.join(sorted(allowed))}."})
        if direction not in ("asc", "desc"):
            raise ValidationError({"sort": "Direction must be 'asc' or 'desc'."})

        return cls(page=page, size=size, sort_field=field, descending=direction == "desc")


def _parse_int(raw: str | None, *, name: str, default: int) -> int:
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError({name: "Must be an integer."})


def paginate(items: Sequence[T], page: int, size: int) -> Page[T]:
    """
    Slice an in-memory or lazy sequence (QuerySets included).
    A page past the end is empty, never an error.
    """
    count = items.count() if isinstance(items, QuerySet) else len(items)
    start = page * size
    results = list(items[start:start + size]) if start < count else []
    return Page(results=results, page=page, size=size, count=count)


def page_response(page: Page[Any], serializer_class=None) -> Response:
    """
    Shared paged contract:
      { count, page, size, total_pages, results }
    """
    results = page.results
    if serializer_class is not None:
        results = serializer_class(results, many=True).data
    return Response(
        {
            "count": page.count,
            "page": page.page,
            "size": page.size,
            "total_pages": page.total_pages,
            "results": results,
        }
    )
