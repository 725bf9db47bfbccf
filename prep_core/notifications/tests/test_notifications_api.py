import pytest

from prep_core.notifications.messages import CREATED, DEACTIVATED, UPDATED, crisis_message
from prep_core.notifications.models import Notification, PreferenceType, TargetType
from prep_core.notifications.services import NotificationService

pytestmark = pytest.mark.django_db

BASE = "/api/v1/notifications/"


def _alert(user, text="Flood nearby"):
    return NotificationService.create_in_app(
        recipient=user,
        description=text,
        preference_type=PreferenceType.CRISIS_ALERT,
        target_type=TargetType.EVENT,
        target_id=1,
    )


def test_messages_per_kind():
    assert crisis_message(kind=CREATED, event_name="Flood", severity="red", reason="household") == (
        "New crisis event 'Flood' (severity red) affects your household."
    )
    assert crisis_message(kind=UPDATED, event_name="Flood", severity="red", change_text="severity: yellow -> red") == (
        "Crisis event 'Flood' near your area was updated: severity: yellow -> red."
    )
    assert crisis_message(kind=DEACTIVATED, event_name="Flood", severity="red") == (
        "Crisis event 'Flood' is no longer active."
    )
    with pytest.raises(ValueError):
        crisis_message(kind="archived", event_name="Flood", severity="red")


def test_list_requires_authentication(anon_client):
    res = anon_client.get(BASE)
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "not_authenticated"


def test_list_only_own_notifications(user_client, user, admin_user):
    mine = _alert(user)
    _alert(admin_user)

    body = user_client.get(BASE).json()
    assert body["count"] == 1
    assert body["results"][0]["id"] == mine.pk
    assert body["results"][0]["is_read"] is False
    assert body["results"][0]["preference_type"] == "crisis_alert"


def test_list_is_read_filter(user_client, user):
    first = _alert(user, "one")
    _alert(user, "two")
    NotificationService.mark_read(user_id=user.pk, notification_id=first.pk)

    unread = user_client.get(BASE, {"is_read": "false"}).json()
    read = user_client.get(BASE, {"is_read": "true"}).json()
    assert [n["description"] for n in unread["results"]] == ["two"]
    assert [n["description"] for n in read["results"]] == ["one"]


def test_mark_read(user_client, user):
    notif = _alert(user)

    res = user_client.post(f"{BASE}{notif.pk}/mark-read/")
    assert res.status_code == 200
    assert res.json()["is_read"] is True

    notif.refresh_from_db()
    read_at = notif.read_at
    assert read_at is not None

    # marking again keeps the first timestamp
    user_client.post(f"{BASE}{notif.pk}/mark-read/")
    notif.refresh_from_db()
    assert notif.read_at == read_at


def test_other_users_notification_is_404(user_client, admin_user):
    theirs = _alert(admin_user)
    assert user_client.get(f"{BASE}{theirs.pk}/").status_code == 404

    res = user_client.post(f"{BASE}{theirs.pk}/mark-read/")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "not_found"
    assert Notification.objects.get(pk=theirs.pk).read_at is None


def test_crisis_event_creation_lands_in_inbox(
    admin_client, user_client, user_profile, django_capture_on_commit_callbacks, start_time
):
    with django_capture_on_commit_callbacks(execute=True):
        res = admin_client.post(
            "/api/v1/crisis-events/",
            {
                "name": "Flood",
                "latitude": "59.9139",
                "longitude": "10.7522",
                "radius": "2500",
                "severity": "red",
                "start_time": start_time.isoformat(),
            },
            format="json",
        )
    assert res.status_code == 201

    body = user_client.get(BASE).json()
    assert body["count"] == 1
    notif = body["results"][0]
    assert notif["target_type"] == "event"
    assert notif["target_id"] == res.json()["id"]
    assert notif["description"] == "New crisis event 'Flood' (severity red) affects your home."
    assert notif["meta"]["kind"] == "created"
    assert notif["meta"]["reason"] == "home"
