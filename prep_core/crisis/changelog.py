# prep_core/crisis/changelog.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Optional

from django.db import transaction

from prep_core.common.api.pagination import Page, paginate
from prep_core.crisis.models import ChangeField, ChangeType, CrisisEvent, CrisisEventChange


def format_decimal(value: Optional[Decimal]) -> Optional[str]:
    """Plain decimal text without trailing zeros: Decimal("59.9100000") -> "59.91"."""
    if value is None:
        return None
    value = Decimal(value)
    if value == 0:
        return "0"
    return format(value.normalize(), "f")


def format_point(latitude: Optional[Decimal], longitude: Optional[Decimal]) -> Optional[str]:
    if latitude is None or longitude is None:
        return None
    return f"{format_decimal(latitude)}, {format_decimal(longitude)}"


@dataclass(frozen=True)
class EventSnapshot:
    """The audited parts of a crisis event at one point in time."""
    name: str
    description: Optional[str]
    severity: str
    latitude: Optional[Decimal]
    longitude: Optional[Decimal]
    radius: Optional[Decimal]
    scenario_theme_id: Optional[int]
    scenario_theme_name: Optional[str]
    active: bool

    @classmethod
    def of(cls, event: CrisisEvent) -> "EventSnapshot":
        theme = event.scenario_theme
        return cls(
            name=event.name,
            description=event.description,
            severity=str(event.severity),
            latitude=event.epicenter_latitude,
            longitude=event.epicenter_longitude,
            radius=event.radius,
            scenario_theme_id=theme.pk if theme is not None else None,
            scenario_theme_name=theme.name if theme is not None else None,
            active=event.active,
        )

    def as_dict(self) -> dict[str, Any]:
        """JSON-safe form (decimals as text) for notification metadata."""
        data = asdict(self)
        for key in ("latitude", "longitude", "radius"):
            data[key] = format_decimal(data[key])
        return data


@dataclass(frozen=True)
class ChangeEntry:
    field: str
    change_type: str
    old_value: Optional[str]
    new_value: Optional[str]

    def describe(self) -> str:
        label = ChangeField(self.field).label.lower()
        return f"{label}: {self.old_value or '-'} -> {self.new_value or '-'}"


class ChangeLog:
    """
    Append-only change history for crisis events.
    Rows are only ever inserted; CrisisEventChange refuses updates and deletes.
    """

    @staticmethod
    @transaction.atomic
    def append(
        *,
        event_id: int,
        change_type: str,
        old_value: Optional[str],
        new_value: Optional[str],
        acting_user=None,
        field: str = ChangeField.EVENT,
    ) -> CrisisEventChange:
        return CrisisEventChange.objects.create(
            crisis_event_id=event_id,
            change_type=change_type,
            field=field,
            old_value=old_value,
            # column is NOT NULL; a cleared value is stored as empty text
            new_value=new_value if new_value is not None else "",
            created_by_user=acting_user,
        )

    @staticmethod
    def query(*, event_id: int, page: int, size: int) -> Page[CrisisEventChange]:
        qs = (
            CrisisEventChange.objects
            .filter(crisis_event_id=event_id)
            .select_related("created_by_user")
            .order_by("-created_at", "-id")
        )
        return paginate(qs, page, size)

    @staticmethod
    def diff(before: EventSnapshot, after: EventSnapshot) -> list[ChangeEntry]:
        """One entry per changed category, in a fixed order."""
        entries: list[ChangeEntry] = []

        if before.name != after.name:
            entries.append(ChangeEntry(ChangeField.NAME, ChangeType.DESCRIPTION_UPDATE, before.name, after.name))

        if before.description != after.description:
            entries.append(
                ChangeEntry(ChangeField.DESCRIPTION, ChangeType.DESCRIPTION_UPDATE, before.description, after.description)
            )

        if before.severity != after.severity:
            entries.append(ChangeEntry(ChangeField.SEVERITY, ChangeType.LEVEL_CHANGE, before.severity, after.severity))

        if before.latitude != after.latitude or before.longitude != after.longitude:
            entries.append(
                ChangeEntry(
                    ChangeField.EPICENTER,
                    ChangeType.EPICENTER_MOVED,
                    format_point(before.latitude, before.longitude),
                    format_point(after.latitude, after.longitude),
                )
            )

        if before.radius != after.radius:
            entries.append(
                ChangeEntry(
                    ChangeField.RADIUS,
                    ChangeType.EPICENTER_MOVED,
                    format_decimal(before.radius),
                    format_decimal(after.radius),
                )
            )

        if before.scenario_theme_id != after.scenario_theme_id:
            entries.append(
                ChangeEntry(
                    ChangeField.SCENARIO_THEME,
                    ChangeType.DESCRIPTION_UPDATE,
                    before.scenario_theme_name,
                    after.scenario_theme_name,
                )
            )

        return entries


def creation_entry(event: CrisisEvent) -> ChangeEntry:
    return ChangeEntry(ChangeField.EVENT, ChangeType.CREATION, None, f"Created crisis event: {event.name}")


def deactivation_entry() -> ChangeEntry:
    return ChangeEntry(ChangeField.ACTIVE, ChangeType.LEVEL_CHANGE, "active: true", "active: false")
