# prep_core/notifications/dispatch.py
"""
Crisis notification dispatch.

Callers hand over (user, event, change_summary) and move on; nothing they do
depends on the outcome. The in-app dispatcher persists a Notification and
publishes `notification.sent` for transport adapters.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from prep_core.common.events import publish
from prep_core.notifications.messages import crisis_message
from prep_core.notifications.models import PreferenceType, TargetType
from prep_core.notifications.services import NotificationService

logger = logging.getLogger(__name__)

NOTIFICATION_SENT = "notification.sent"


@dataclass(frozen=True)
class ChangeSummary:
    kind: str
    text: str = ""
    reason: Optional[str] = None
    before: Optional[dict[str, Any]] = None
    after: Optional[dict[str, Any]] = None
    entries: list[dict[str, Any]] = field(default_factory=list)

    def as_meta(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "reason": self.reason,
            "before": self.before,
            "after": self.after,
            "changes": self.entries,
        }


class NotificationDispatcher:
    def notify(self, *, user, event, change_summary: ChangeSummary) -> None:
        raise NotImplementedError


class InAppNotificationDispatcher(NotificationDispatcher):
    def notify(self, *, user, event, change_summary: ChangeSummary) -> None:
        description = crisis_message(
            kind=change_summary.kind,
            event_name=event.name,
            severity=str(event.severity),
            change_text=change_summary.text,
            reason=change_summary.reason,
        )
        notif = NotificationService.create_in_app(
            recipient=user,
            preference_type=PreferenceType.CRISIS_ALERT,
            target_type=TargetType.EVENT,
            target_id=event.pk,
            description=description,
            meta=change_summary.as_meta(),
        )
        publish(
            NOTIFICATION_SENT,
            {
                "notification_id": notif.pk,
                "recipient_id": notif.recipient_id,
                "target_type": notif.target_type,
                "target_id": notif.target_id,
            },
        )


def get_dispatcher() -> NotificationDispatcher:
    path = getattr(
        settings,
        "CRISIS_NOTIFICATION_DISPATCHER",
        "prep_core.notifications.dispatch.InAppNotificationDispatcher",
    )
    return import_string(path)()
