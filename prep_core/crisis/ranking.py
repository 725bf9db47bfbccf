# prep_core/crisis/ranking.py
"""
Preview ranking and name search over crisis events.

Pure functions over iterables of events (model instances or QuerySets);
selectors narrow the QuerySet first and hand it over.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from prep_core.common.api.pagination import Page, paginate
from prep_core.crisis.models import SEVERITY_RANK

__all__ = ["CrisisEventPreview", "Page", "paginate", "previews", "rank_previews", "search_by_name", "severity_rank"]


@dataclass(frozen=True)
class CrisisEventPreview:
    id: int
    name: str
    severity: str
    start_time: datetime

    @classmethod
    def of(cls, event) -> "CrisisEventPreview":
        return cls(id=event.pk, name=event.name, severity=str(event.severity), start_time=event.start_time)


def severity_rank(severity: str) -> int:
    return SEVERITY_RANK.get(str(severity), 0)


def rank_previews(items: Iterable[CrisisEventPreview]) -> list[CrisisEventPreview]:
    """Severity rank desc, then start_time desc. Both passes are stable."""
    by_time = sorted(items, key=lambda p: p.start_time, reverse=True)
    return sorted(by_time, key=lambda p: severity_rank(p.severity), reverse=True)


def previews(events: Iterable, active: bool = True) -> list[CrisisEventPreview]:
    return rank_previews(CrisisEventPreview.of(e) for e in events if e.active == active)


def search_by_name(
    events: Iterable,
    term: Optional[str],
    is_active: bool,
    *,
    descending: bool = True,
    page: int = 0,
    size: int = 10,
) -> Page[CrisisEventPreview]:
    """
    Case-insensitive substring search on name among events with the given
    active flag, ordered by start_time, returned as previews. A blank term
    matches nothing. Matching uses casefold(), so "ørsta" finds "Ørsta flom".
    """
    if term is None or not term.strip():
        return Page(results=[], page=page, size=size, count=0)

    needle = term.strip().casefold()
    hits = [e for e in events if e.active == is_active and needle in e.name.casefold()]
    hits.sort(key=lambda e: e.start_time, reverse=descending)
    found = paginate(hits, page, size)
    return Page(
        results=[CrisisEventPreview.of(e) for e in found.results],
        page=found.page,
        size=found.size,
        count=found.count,
    )
