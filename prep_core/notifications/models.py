# prep_core/notifications/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from prep_core.common.models import TimeStampedModel


class PreferenceType(models.TextChoices):
    CRISIS_ALERT = "crisis_alert", "Crisis alert"
    EXPIRATION_REMINDER = "expiration_reminder", "Expiration reminder"
    LOCATION_REQUEST = "location_request", "Location request"
    SYSTEM = "system", "System"


class TargetType(models.TextChoices):
    EVENT = "event", "Event"
    INVENTORY = "inventory", "Inventory"
    LOCATION_REQUEST = "location_request", "Location request"


class Notification(TimeStampedModel):
    """
    In-app delivery record per user. Transports (push, websocket) hang off the
    `notification.sent` event rather than this table.
    """
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )

    preference_type = models.CharField(
        max_length=32,
        choices=PreferenceType.choices,
        default=PreferenceType.SYSTEM,
        db_index=True,
    )
    target_type = models.CharField(max_length=32, choices=TargetType.choices, null=True, blank=True)
    target_id = models.BigIntegerField(null=True, blank=True, db_index=True)

    description = models.TextField(blank=True, default="")

    notify_at = models.DateTimeField(default=timezone.now, db_index=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    read_at = models.DateTimeField(null=True, blank=True)

    meta = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "notifications_notification"
        indexes = [
            models.Index(fields=["recipient", "read_at"], name="ix_notification_recipient_read"),
            models.Index(fields=["target_type", "target_id"], name="ix_notification_target"),
        ]

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_read(self) -> None:
        if self.read_at is None:
            self.read_at = timezone.now()

    def __str__(self) -> str:
        return f"{self.preference_type} -> {self.recipient_id}"
