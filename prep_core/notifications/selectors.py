from __future__ import annotations

from django.db.models import QuerySet

from prep_core.notifications.models import Notification


def notifications_qs(*, user_id: int) -> QuerySet[Notification]:
    return Notification.objects.filter(recipient_id=user_id)
