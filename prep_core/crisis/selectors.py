# prep_core/crisis/selectors.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from prep_core.common.api.pagination import Page, PageRequest, paginate
from prep_core.crisis import ranking
from prep_core.crisis.changelog import ChangeLog
from prep_core.crisis.impact import get_impact_evaluator
from prep_core.crisis.models import CrisisEvent, CrisisEventChange
from prep_core.iam.models import UserProfile


class CrisisEventSelectors:
    """
    Read side for crisis events. Plain selects, no locks, no writes.
    """

    @staticmethod
    def events_qs() -> QuerySet[CrisisEvent]:
        return CrisisEvent.objects.select_related("scenario_theme")

    @staticmethod
    def get_event(*, event_id: int) -> CrisisEvent:
        event = CrisisEventSelectors.events_qs().filter(pk=event_id).first()
        if event is None:
            raise NotFound(f"Crisis event not found with ID: {event_id}")
        return event

    @staticmethod
    def list_events(*, page_request: PageRequest, queryset: Optional[QuerySet[CrisisEvent]] = None) -> Page[CrisisEvent]:
        qs = queryset if queryset is not None else CrisisEventSelectors.events_qs()
        return paginate(qs.order_by(page_request.order_by, "-id"), page_request.page, page_request.size)

    @staticmethod
    def all_previews(*, page_request: PageRequest) -> Page[ranking.CrisisEventPreview]:
        events = CrisisEvent.objects.filter(active=True).only("id", "name", "severity", "start_time", "active")
        return ranking.paginate(ranking.previews(events, active=True), page_request.page, page_request.size)

    @staticmethod
    def inactive_previews(*, page_request: PageRequest) -> Page[ranking.CrisisEventPreview]:
        events = CrisisEvent.objects.filter(active=False).only("id", "name", "severity", "start_time", "active")
        return ranking.paginate(ranking.previews(events, active=False), page_request.page, page_request.size)

    @staticmethod
    def list_changes(*, event_id: int, page_request: PageRequest) -> Page[CrisisEventChange]:
        if not CrisisEvent.objects.filter(pk=event_id).exists():
            raise NotFound(f"Crisis event not found with ID: {event_id}")
        return ChangeLog.query(event_id=event_id, page=page_request.page, size=page_request.size)

    @staticmethod
    def _affecting(user) -> list[CrisisEvent]:
        profile = UserProfile.objects.select_related("household").filter(user=user).first()
        if profile is None:
            return []
        evaluator = get_impact_evaluator()
        events = CrisisEventSelectors.events_qs().filter(active=True, radius__isnull=False)
        return [e for e in events if evaluator.is_affected(e, profile)]

    @staticmethod
    def affecting_user(*, user, page_request: PageRequest) -> Page[CrisisEvent]:
        events = CrisisEventSelectors._affecting(user)
        key = page_request.sort_field
        events.sort(key=lambda e: (getattr(e, key), e.pk), reverse=page_request.descending)
        return paginate(events, page_request.page, page_request.size)

    @staticmethod
    def affecting_user_previews(*, user, page_request: PageRequest) -> Page[ranking.CrisisEventPreview]:
        events = CrisisEventSelectors._affecting(user)
        return ranking.paginate(ranking.previews(events, active=True), page_request.page, page_request.size)

    @staticmethod
    def search_by_name(
        *, term: Optional[str], is_active: bool, page_request: PageRequest
    ) -> Page[ranking.CrisisEventPreview]:
        # Name matching stays in Python: SQLite LIKE folds ASCII case only.
        candidates = CrisisEvent.objects.filter(active=is_active).only(
            "id", "name", "severity", "start_time", "active"
        )
        return ranking.search_by_name(
            candidates,
            term,
            is_active,
            descending=page_request.descending,
            page=page_request.page,
            size=page_request.size,
        )

    @staticmethod
    def nearest_active_event(
        *,
        latitude: Decimal,
        longitude: Decimal,
        severity: Optional[str] = None,
    ) -> Optional[CrisisEvent]:
        qs = CrisisEventSelectors.events_qs().filter(active=True).order_by("start_time", "id")
        if severity:
            qs = qs.filter(severity=severity)
        return get_impact_evaluator().nearest_of_type((latitude, longitude), qs)
