# prep_core/crisis/models.py
from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from prep_core.common.models import TimeStampedModel


class Severity(models.TextChoices):
    GREEN = "green", "Green"
    YELLOW = "yellow", "Yellow"
    RED = "red", "Red"


# Ranking used for previews. Never rely on choice order or string order.
SEVERITY_RANK = {
    Severity.RED.value: 3,
    Severity.YELLOW.value: 2,
    Severity.GREEN.value: 1,
}


class ChangeType(models.TextChoices):
    CREATION = "creation", "Creation"
    LEVEL_CHANGE = "level_change", "Level change"
    DESCRIPTION_UPDATE = "description_update", "Description update"
    EPICENTER_MOVED = "epicenter_moved", "Epicenter moved"


class ChangeField(models.TextChoices):
    EVENT = "event", "Event"
    NAME = "name", "Name"
    DESCRIPTION = "description", "Description"
    SEVERITY = "severity", "Severity"
    EPICENTER = "epicenter", "Epicenter"
    RADIUS = "radius", "Radius"
    SCENARIO_THEME = "scenario_theme", "Scenario theme"
    ACTIVE = "active", "Active"


class ScenarioThemeStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    ARCHIVED = "archived", "Archived"


class ScenarioTheme(TimeStampedModel):
    """
    Preparedness guidance for a kind of crisis (flood, power outage, ...).
    Crisis events may point at one.
    """
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(null=True, blank=True)
    before = models.TextField(null=True, blank=True)
    under = models.TextField(null=True, blank=True)
    after = models.TextField(null=True, blank=True)

    status = models.CharField(
        max_length=16,
        choices=ScenarioThemeStatus.choices,
        default=ScenarioThemeStatus.ACTIVE,
        db_index=True,
    )

    created_by_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_scenario_themes",
    )

    class Meta:
        db_table = "crisis_scenario_theme"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class CrisisEvent(TimeStampedModel):
    """
    A geospatially anchored crisis.

    Lifecycle is Active -> Inactive (via deactivation only). Rows are never
    deleted; history lives in CrisisEventChange. `radius` is in meters.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)

    severity = models.CharField(
        max_length=16,
        choices=Severity.choices,
        default=Severity.GREEN,
        db_index=True,
    )

    epicenter_latitude = models.DecimalField(max_digits=10, decimal_places=7)
    epicenter_longitude = models.DecimalField(max_digits=10, decimal_places=7)
    radius = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # Set once on create; updates never touch it.
    start_time = models.DateTimeField(db_index=True)

    active = models.BooleanField(default=True, db_index=True)

    created_by_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_crisis_events",
    )
    scenario_theme = models.ForeignKey(
        ScenarioTheme,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="crisis_events",
    )

    class Meta:
        db_table = "crisis_event"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(severity__in=[s.value for s in Severity]),
                name="ck_crisis_event_severity",
            ),
        ]
        indexes = [
            models.Index(fields=["active", "start_time"], name="ix_crisis_event_active_start"),
        ]

    @property
    def epicenter(self):
        return (self.epicenter_latitude, self.epicenter_longitude)

    def delete(self, *args, **kwargs):
        raise ValidationError("Crisis events cannot be deleted. Deactivate them instead.")

    def __str__(self) -> str:
        return f"{self.name} ({self.severity})"


class CrisisEventChange(models.Model):
    """
    Immutable change-log row for a crisis event.
    `field` says which part of the event the row describes.
    """
    crisis_event = models.ForeignKey(
        CrisisEvent,
        on_delete=models.PROTECT,
        related_name="changes",
    )

    change_type = models.CharField(max_length=32, choices=ChangeType.choices, db_index=True)
    field = models.CharField(max_length=32, choices=ChangeField.choices)

    old_value = models.TextField(null=True, blank=True)
    new_value = models.TextField()

    created_by_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="crisis_event_changes",
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True, editable=False)
    updated_at = models.DateTimeField(editable=False)

    class Meta:
        db_table = "crisis_event_change"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["crisis_event", "created_at"], name="ix_crisis_change_event_created"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("CrisisEventChange is immutable and cannot be modified once created.")
        self.updated_at = self.created_at
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("CrisisEventChange is immutable and cannot be deleted.")

    def __str__(self) -> str:
        return f"{self.crisis_event_id}:{self.change_type}:{self.field}"
