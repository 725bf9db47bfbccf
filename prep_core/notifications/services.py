# prep_core/notifications/services.py
from __future__ import annotations

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from prep_core.notifications.models import Notification, PreferenceType
from prep_core.notifications.selectors import notifications_qs


class NotificationService:
    @staticmethod
    @transaction.atomic
    def create_in_app(
        *,
        recipient,
        description: str,
        preference_type: str = PreferenceType.SYSTEM,
        target_type: str | None = None,
        target_id: int | None = None,
        meta: dict | None = None,
    ) -> Notification:
        now = timezone.now()
        return Notification.objects.create(
            recipient=recipient,
            preference_type=preference_type,
            target_type=target_type,
            target_id=target_id,
            description=description,
            notify_at=now,
            sent_at=now,
            meta=meta or {},
        )

    @staticmethod
    @transaction.atomic
    def mark_read(*, user_id: int, notification_id: int) -> Notification:
        notif = notifications_qs(user_id=user_id).select_for_update().filter(pk=notification_id).first()
        if notif is None:
            raise NotFound("Notification not found.")
        if not notif.is_read:
            notif.mark_read()
            notif.save(update_fields=["read_at", "updated_at"])
        return notif
