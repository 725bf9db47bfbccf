# prep_core/crisis/services.py

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from prep_core.crisis.changelog import (
    ChangeEntry,
    ChangeLog,
    EventSnapshot,
    creation_entry,
    deactivation_entry,
)
from prep_core.crisis.impact import get_impact_evaluator
from prep_core.crisis.models import CrisisEvent, ScenarioTheme, Severity
from prep_core.iam.models import UserProfile
from prep_core.notifications.dispatch import ChangeSummary, get_dispatcher
from prep_core.notifications.messages import CREATED, DEACTIVATED, UPDATED

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

LAT_PLACES = Decimal("0.0000001")
RADIUS_PLACES = Decimal("0.01")
MAX_RADIUS = Decimal("99999999.99")


@dataclass(frozen=True)
class CrisisEventInput:
    name: Optional[str] = None
    latitude: Any = None
    longitude: Any = None
    start_time: Optional[datetime] = None
    severity: Optional[str] = None
    radius: Any = None
    description: Optional[str] = None
    scenario_theme_id: Optional[int] = None


@dataclass(frozen=True)
class CrisisEventPatch:
    """
    Partial update. A field left UNSET was not supplied; a field supplied as
    None also leaves the stored value unchanged. start_time is accepted and
    ignored.
    """
    name: Any = UNSET
    description: Any = UNSET
    severity: Any = UNSET
    latitude: Any = UNSET
    longitude: Any = UNSET
    radius: Any = UNSET
    scenario_theme_id: Any = UNSET
    start_time: Any = UNSET

    def supplied(self) -> dict[str, Any]:
        """Fields carrying a real value (neither UNSET nor None)."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is UNSET or value is None:
                continue
            out[f.name] = value
        return out


def _to_decimal(value: Any, places: Decimal) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    number = Decimal(value)
    if not number.is_finite():
        raise InvalidOperation(value)
    return number.quantize(places)


def _validate_values(values: dict[str, Any], *, required: Iterable[str] = ()) -> dict[str, Any]:
    """
    Validate and normalize the event fields present in `values`.
    Raises ValidationError with a per-field dict; returns the cleaned values.
    """
    errors: dict[str, str] = {}
    cleaned: dict[str, Any] = {}

    for name in required:
        if values.get(name) is None:
            errors[name] = "This field is required."

    if values.get("name") is not None:
        name = str(values["name"]).strip()
        if not name:
            errors["name"] = "This field may not be blank."
        elif len(name) > 255:
            errors["name"] = "Ensure this field has no more than 255 characters."
        else:
            cleaned["name"] = name

    if values.get("severity") is not None:
        if str(values["severity"]) not in Severity.values:
            errors["severity"] = f"Must be one of: {', '.join(Severity.values)}."
        else:
            cleaned["severity"] = str(values["severity"])

    for key, low, high in (("latitude", -90, 90), ("longitude", -180, 180)):
        if values.get(key) is None:
            continue
        try:
            number = _to_decimal(values[key], LAT_PLACES)
        except (InvalidOperation, TypeError, ValueError):
            errors[key] = "A valid number is required."
            continue
        if not (low <= number <= high):
            errors[key] = f"Must be between {low} and {high}."
        else:
            cleaned[key] = number

    if values.get("radius") is not None:
        try:
            radius = _to_decimal(values["radius"], RADIUS_PLACES)
        except (InvalidOperation, TypeError, ValueError):
            errors["radius"] = "A valid number is required."
        else:
            if radius < 0:
                errors["radius"] = "Must be zero or greater."
            elif radius > MAX_RADIUS:
                errors["radius"] = f"Must be at most {MAX_RADIUS}."
            else:
                cleaned["radius"] = radius

    if values.get("start_time") is not None:
        start_time = values["start_time"]
        if not isinstance(start_time, datetime):
            errors["start_time"] = "A valid datetime is required."
        else:
            if timezone.is_naive(start_time):
                start_time = timezone.make_aware(start_time)
            cleaned["start_time"] = start_time

    if "description" in values and values["description"] is not None:
        cleaned["description"] = str(values["description"])

    if errors:
        raise ValidationError(errors)
    return cleaned


def _strict_theme_references() -> bool:
    return bool(getattr(settings, "CRISIS_STRICT_THEME_REFERENCES", True))


class CrisisEventService:
    """
    Crisis event write-model operations.

    Notes:
    - Lifecycle: Active -> Inactive (deactivate). Events are never deleted.
    - Every accepted write appends CrisisEventChange rows in the same transaction.
    - Affected users are notified after commit; dispatch failures never reach the caller.
    - update/deactivate lock the row, so the logged before/after pair is coherent.
    """

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _get_locked(event_id: int) -> CrisisEvent:
        event = (
            CrisisEvent.objects
            .select_for_update(of=("self",))
            .select_related("scenario_theme", "created_by_user")
            .filter(pk=event_id)
            .first()
        )
        if event is None:
            raise NotFound(f"Crisis event not found with ID: {event_id}")
        return event

    @staticmethod
    def _resolve_theme(theme_id: Optional[int]) -> tuple[bool, Optional[ScenarioTheme]]:
        """
        Returns (resolved, theme). Unknown ids raise in strict mode and come
        back as (False, None) otherwise.
        """
        if theme_id is None:
            return True, None
        theme = ScenarioTheme.objects.filter(pk=theme_id).first()
        if theme is not None:
            return True, theme
        if _strict_theme_references():
            raise ValidationError({"scenario_theme_id": f"Scenario theme {theme_id} does not exist."})
        logger.warning("scenario theme %s not found", theme_id)
        return False, None

    @staticmethod
    def _append(event: CrisisEvent, entry: ChangeEntry, actor_user) -> None:
        ChangeLog.append(
            event_id=event.pk,
            change_type=entry.change_type,
            old_value=entry.old_value,
            new_value=entry.new_value,
            acting_user=actor_user or event.created_by_user,
            field=entry.field,
        )

    @staticmethod
    def _schedule_notifications(
        *,
        event: CrisisEvent,
        kind: str,
        entries: Iterable[ChangeEntry] = (),
        before: Optional[EventSnapshot] = None,
        after: Optional[EventSnapshot] = None,
    ) -> int:
        """
        Resolve affected users now, deliver after commit. Returns the number
        of users scheduled.
        """
        evaluator = get_impact_evaluator()
        profiles = UserProfile.objects.select_related("user", "household").order_by("id")
        targets = [(p.user, evaluator.reason_for(event, p)) for p in evaluator.affected_users(event, profiles)]

        entries = list(entries)
        text = "; ".join(e.describe() for e in entries)
        entry_dicts = [
            {"field": str(e.field), "change_type": str(e.change_type), "old": e.old_value, "new": e.new_value}
            for e in entries
        ]
        before_dict = before.as_dict() if before is not None else None
        after_dict = after.as_dict() if after is not None else None

        def _dispatch() -> None:
            dispatcher = get_dispatcher()
            for user, reason in targets:
                summary = ChangeSummary(
                    kind=kind,
                    text=text,
                    reason=str(reason) if reason is not None else None,
                    before=before_dict,
                    after=after_dict,
                    entries=entry_dicts,
                )
                try:
                    dispatcher.notify(user=user, event=event, change_summary=summary)
                except Exception:
                    logger.exception("crisis notification failed (event=%s user=%s)", event.pk, user.pk)

        transaction.on_commit(_dispatch)
        logger.info("crisis event %s %s: %d affected user(s) scheduled", event.pk, kind, len(targets))
        return len(targets)

    # -------------------------
    # Create
    # -------------------------
    @staticmethod
    @transaction.atomic
    def create(*, data: CrisisEventInput, actor_user) -> CrisisEvent:
        cleaned = _validate_values(
            {f.name: getattr(data, f.name) for f in fields(data)},
            required=("name", "latitude", "longitude", "start_time", "severity"),
        )

        resolved, theme = CrisisEventService._resolve_theme(data.scenario_theme_id)
        if not resolved:
            logger.warning("dropping scenario theme %s from new crisis event", data.scenario_theme_id)

        event = CrisisEvent.objects.create(
            name=cleaned["name"],
            description=cleaned.get("description"),
            severity=cleaned["severity"],
            epicenter_latitude=cleaned["latitude"],
            epicenter_longitude=cleaned["longitude"],
            radius=cleaned.get("radius"),
            start_time=cleaned["start_time"],
            active=True,
            created_by_user=actor_user,
            scenario_theme=theme,
        )

        entry = creation_entry(event)
        CrisisEventService._append(event, entry, actor_user)

        logger.info("crisis event %s created by user %s", event.pk, getattr(actor_user, "pk", None))
        CrisisEventService._schedule_notifications(event=event, kind=CREATED, entries=[entry])
        return event

    # -------------------------
    # Update
    # -------------------------
    @staticmethod
    @transaction.atomic
    def update(*, event_id: int, patch: CrisisEventPatch, actor_user=None) -> Optional[CrisisEvent]:
        """
        Apply a partial update. Returns None (and writes nothing) when the patch
        references an unknown scenario theme in lenient mode.
        """
        event = CrisisEventService._get_locked(event_id)

        supplied = patch.supplied()
        supplied.pop("start_time", None)
        cleaned = _validate_values(supplied)

        # Resolve every reference before touching the row.
        theme = event.scenario_theme
        if "scenario_theme_id" in supplied:
            resolved, theme = CrisisEventService._resolve_theme(supplied["scenario_theme_id"])
            if not resolved:
                return None

        before = EventSnapshot.of(event)

        if "name" in cleaned:
            event.name = cleaned["name"]
        if "description" in cleaned:
            event.description = cleaned["description"]
        if "severity" in cleaned:
            event.severity = cleaned["severity"]
        if "latitude" in cleaned:
            event.epicenter_latitude = cleaned["latitude"]
        if "longitude" in cleaned:
            event.epicenter_longitude = cleaned["longitude"]
        if "radius" in cleaned:
            event.radius = cleaned["radius"]
        event.scenario_theme = theme

        after = EventSnapshot.of(event)
        entries = ChangeLog.diff(before, after)
        if not entries:
            return event

        event.save()
        for entry in entries:
            CrisisEventService._append(event, entry, actor_user)

        logger.info(
            "crisis event %s updated (%s)",
            event.pk,
            ", ".join(str(e.field) for e in entries),
        )
        # Inactive is terminal: corrections are logged, nobody is alerted.
        if event.active:
            CrisisEventService._schedule_notifications(
                event=event, kind=UPDATED, entries=entries, before=before, after=after
            )
        return event

    # -------------------------
    # Deactivate
    # -------------------------
    @staticmethod
    @transaction.atomic
    def deactivate(*, event_id: int, actor_user=None) -> CrisisEvent:
        event = CrisisEventService._get_locked(event_id)
        if not event.active:
            return event

        before = EventSnapshot.of(event)
        event.active = False
        event.save(update_fields=["active", "updated_at"])

        entry = deactivation_entry()
        CrisisEventService._append(event, entry, actor_user)

        logger.info("crisis event %s deactivated", event.pk)
        CrisisEventService._schedule_notifications(
            event=event, kind=DEACTIVATED, entries=[entry], before=before, after=EventSnapshot.of(event)
        )
        return event
