from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from rest_framework.exceptions import NotFound

from prep_core.common.events import subscribe, unsubscribe
from prep_core.conftest import OSLO
from prep_core.crisis.models import ChangeField, ChangeType, CrisisEvent, CrisisEventChange
from prep_core.crisis.services import UNSET, CrisisEventInput, CrisisEventPatch, CrisisEventService
from prep_core.notifications.dispatch import NotificationDispatcher
from prep_core.notifications.models import Notification, PreferenceType, TargetType

pytestmark = pytest.mark.django_db

BERGEN = (Decimal("60.3913000"), Decimal("5.3221000"))


class RecordingDispatcher(NotificationDispatcher):
    calls = []

    def notify(self, *, user, event, change_summary):
        RecordingDispatcher.calls.append((user.pk, event.pk, change_summary))


class ExplodingDispatcher(NotificationDispatcher):
    def notify(self, *, user, event, change_summary):
        raise RuntimeError("transport down")


@pytest.fixture
def recording_dispatcher(settings):
    RecordingDispatcher.calls = []
    settings.CRISIS_NOTIFICATION_DISPATCHER = "prep_core.crisis.tests.test_services.RecordingDispatcher"
    return RecordingDispatcher


def oslo_input(start_time, **overrides):
    data = {
        "name": "Flood",
        "latitude": OSLO[0],
        "longitude": OSLO[1],
        "radius": Decimal("5000"),
        "severity": "yellow",
        "start_time": start_time,
        "description": "River over its banks",
    }
    data.update(overrides)
    return CrisisEventInput(**data)


def changes(event):
    return list(CrisisEventChange.objects.filter(crisis_event=event).order_by("id"))


# ----------------------------
# Create
# ----------------------------
def test_create_persists_and_logs_creation(admin_user, start_time):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    event.refresh_from_db()
    assert event.active is True
    assert event.severity == "yellow"
    assert event.radius == Decimal("5000.00")
    assert event.start_time == start_time
    assert event.created_by_user == admin_user

    (row,) = changes(event)
    assert row.change_type == ChangeType.CREATION
    assert row.field == ChangeField.EVENT
    assert row.old_value is None
    assert row.new_value == "Created crisis event: Flood"
    assert row.created_by_user == admin_user


@pytest.mark.parametrize("missing", ["name", "latitude", "longitude", "start_time", "severity"])
def test_create_requires_core_fields(admin_user, start_time, missing):
    with pytest.raises(ValidationError) as exc:
        CrisisEventService.create(data=replace(oslo_input(start_time), **{missing: None}), actor_user=admin_user)
    assert missing in exc.value.message_dict
    assert CrisisEvent.objects.count() == 0


@pytest.mark.parametrize(
    "field, value",
    [
        ("latitude", Decimal("90.5")),
        ("longitude", Decimal("-180.1")),
        ("radius", Decimal("-1")),
        ("severity", "purple"),
        ("name", "   "),
    ],
)
def test_create_rejects_out_of_range_values(admin_user, start_time, field, value):
    with pytest.raises(ValidationError) as exc:
        CrisisEventService.create(data=oslo_input(start_time, **{field: value}), actor_user=admin_user)
    assert field in exc.value.message_dict
    assert CrisisEvent.objects.count() == 0
    assert CrisisEventChange.objects.count() == 0


def test_create_accepts_boundary_coordinates(admin_user, start_time):
    event = CrisisEventService.create(
        data=oslo_input(start_time, latitude=Decimal("-90"), longitude=Decimal("180"), radius=Decimal("0")),
        actor_user=admin_user,
    )
    assert event.epicenter_latitude == Decimal("-90")


def test_create_with_known_scenario_theme(admin_user, start_time, scenario_theme):
    event = CrisisEventService.create(
        data=oslo_input(start_time, scenario_theme_id=scenario_theme.pk),
        actor_user=admin_user,
    )
    assert event.scenario_theme == scenario_theme


def test_create_with_unknown_theme_is_rejected_in_strict_mode(admin_user, start_time, settings):
    settings.CRISIS_STRICT_THEME_REFERENCES = True
    with pytest.raises(ValidationError) as exc:
        CrisisEventService.create(data=oslo_input(start_time, scenario_theme_id=9999), actor_user=admin_user)
    assert "scenario_theme_id" in exc.value.message_dict
    assert CrisisEvent.objects.count() == 0


def test_create_with_unknown_theme_drops_reference_in_lenient_mode(admin_user, start_time, settings):
    settings.CRISIS_STRICT_THEME_REFERENCES = False
    event = CrisisEventService.create(data=oslo_input(start_time, scenario_theme_id=9999), actor_user=admin_user)
    assert event.scenario_theme is None
    assert len(changes(event)) == 1


# ----------------------------
# Update
# ----------------------------
def test_update_never_changes_start_time(admin_user, start_time):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    CrisisEventService.update(
        event_id=event.pk,
        patch=CrisisEventPatch(start_time=start_time + timedelta(days=3), name="Flood (updated)"),
        actor_user=admin_user,
    )

    event.refresh_from_db()
    assert event.start_time == start_time
    assert event.name == "Flood (updated)"


def test_update_name_and_severity_appends_exactly_two_rows(admin_user, start_time):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    CrisisEventService.update(
        event_id=event.pk,
        patch=CrisisEventPatch(name="Major flood", severity="red"),
        actor_user=admin_user,
    )

    rows = changes(event)[1:]
    assert len(rows) == 2
    by_field = {r.field: r for r in rows}
    assert by_field[ChangeField.NAME].change_type == ChangeType.DESCRIPTION_UPDATE
    assert (by_field[ChangeField.NAME].old_value, by_field[ChangeField.NAME].new_value) == ("Flood", "Major flood")
    assert by_field[ChangeField.SEVERITY].change_type == ChangeType.LEVEL_CHANGE
    assert (by_field[ChangeField.SEVERITY].old_value, by_field[ChangeField.SEVERITY].new_value) == ("yellow", "red")


def test_moving_epicenter_and_radius(admin_user, start_time):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    CrisisEventService.update(
        event_id=event.pk,
        patch=CrisisEventPatch(latitude=Decimal("59.95"), radius=Decimal("8000")),
        actor_user=admin_user,
    )

    rows = changes(event)[1:]
    assert [(r.field, r.change_type) for r in rows] == [
        (ChangeField.EPICENTER, ChangeType.EPICENTER_MOVED),
        (ChangeField.RADIUS, ChangeType.EPICENTER_MOVED),
    ]
    assert rows[0].old_value == "59.9139, 10.7522"
    assert rows[0].new_value == "59.95, 10.7522"
    assert (rows[1].old_value, rows[1].new_value) == ("5000", "8000")


@pytest.mark.parametrize(
    "patch",
    [
        CrisisEventPatch(),
        CrisisEventPatch(name="Flood", severity="yellow"),
        CrisisEventPatch(name=None, description=None, radius=None),
        CrisisEventPatch(latitude=Decimal("59.9139"), radius=Decimal("5000.00")),
    ],
)
def test_noop_update_writes_nothing(admin_user, start_time, recording_dispatcher, django_capture_on_commit_callbacks, patch):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    updated_at = CrisisEvent.objects.get(pk=event.pk).updated_at

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        result = CrisisEventService.update(event_id=event.pk, patch=patch, actor_user=admin_user)

    assert result.pk == event.pk
    assert len(changes(event)) == 1
    assert callbacks == []
    assert CrisisEvent.objects.get(pk=event.pk).updated_at == updated_at


def test_update_missing_event_is_not_found(admin_user):
    with pytest.raises(NotFound):
        CrisisEventService.update(event_id=424242, patch=CrisisEventPatch(name="x"), actor_user=admin_user)


def test_update_validates_values(admin_user, start_time):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    with pytest.raises(ValidationError):
        CrisisEventService.update(event_id=event.pk, patch=CrisisEventPatch(severity="black"), actor_user=admin_user)
    assert len(changes(event)) == 1


def test_update_with_unknown_theme_in_strict_mode_writes_nothing(admin_user, start_time, settings):
    settings.CRISIS_STRICT_THEME_REFERENCES = True
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    with pytest.raises(ValidationError):
        CrisisEventService.update(
            event_id=event.pk,
            patch=CrisisEventPatch(name="Renamed", scenario_theme_id=9999),
            actor_user=admin_user,
        )

    event.refresh_from_db()
    assert event.name == "Flood"
    assert len(changes(event)) == 1


def test_update_with_unknown_theme_in_lenient_mode_returns_none(admin_user, start_time, settings):
    settings.CRISIS_STRICT_THEME_REFERENCES = False
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    result = CrisisEventService.update(
        event_id=event.pk,
        patch=CrisisEventPatch(name="Renamed", scenario_theme_id=9999),
        actor_user=admin_user,
    )

    assert result is None
    event.refresh_from_db()
    assert event.name == "Flood"
    assert len(changes(event)) == 1


def test_update_sets_scenario_theme(admin_user, start_time, scenario_theme):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    CrisisEventService.update(
        event_id=event.pk,
        patch=CrisisEventPatch(scenario_theme_id=scenario_theme.pk),
        actor_user=admin_user,
    )
    (row,) = changes(event)[1:]
    assert (row.field, row.change_type, row.old_value, row.new_value) == (
        ChangeField.SCENARIO_THEME,
        ChangeType.DESCRIPTION_UPDATE,
        None,
        "Flood",
    )


def test_patch_distinguishes_unset_from_none():
    patch = CrisisEventPatch(name=None, severity="red")
    assert patch.description is UNSET
    assert patch.supplied() == {"severity": "red"}


def test_change_rows_fall_back_to_event_creator(admin_user, start_time):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    CrisisEventService.update(event_id=event.pk, patch=CrisisEventPatch(severity="red"))
    assert changes(event)[-1].created_by_user == admin_user


# ----------------------------
# Deactivate
# ----------------------------
def test_deactivate_marks_inactive_and_logs(admin_user, start_time):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    CrisisEventService.deactivate(event_id=event.pk, actor_user=admin_user)

    event.refresh_from_db()
    assert event.active is False
    row = changes(event)[-1]
    assert (row.field, row.change_type, row.old_value, row.new_value) == (
        ChangeField.ACTIVE,
        ChangeType.LEVEL_CHANGE,
        "active: true",
        "active: false",
    )


def test_deactivate_twice_is_idempotent(admin_user, start_time, user_profile, recording_dispatcher, django_capture_on_commit_callbacks):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    CrisisEventService.deactivate(event_id=event.pk, actor_user=admin_user)

    with django_capture_on_commit_callbacks(execute=True):
        CrisisEventService.deactivate(event_id=event.pk, actor_user=admin_user)

    assert len(changes(event)) == 2
    assert recording_dispatcher.calls == []


def test_deactivate_missing_event_is_not_found():
    with pytest.raises(NotFound):
        CrisisEventService.deactivate(event_id=424242)


# ----------------------------
# Notifications
# ----------------------------
def test_create_notifies_only_affected_users(
    admin_user, start_time, user, user_profile, make_user, household, far_household, django_capture_on_commit_callbacks
):
    in_household = make_user(household=household)
    make_user(home=BERGEN, household=far_household)

    with django_capture_on_commit_callbacks(execute=True):
        event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    notified = Notification.objects.filter(target_type=TargetType.EVENT, target_id=event.pk)
    assert set(notified.values_list("recipient_id", flat=True)) == {user.pk, in_household.pk}

    mine = notified.get(recipient=user)
    assert mine.preference_type == PreferenceType.CRISIS_ALERT
    assert "Flood" in mine.description
    assert "your home" in mine.description
    assert mine.meta["kind"] == "created"
    assert mine.meta["reason"] == "home"
    assert mine.sent_at is not None


def test_nothing_is_sent_before_commit(admin_user, start_time, user_profile):
    CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    assert Notification.objects.count() == 0


def test_update_notification_carries_snapshots_and_summary(
    admin_user, start_time, user, user_profile, recording_dispatcher, django_capture_on_commit_callbacks
):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    recording_dispatcher.calls = []

    with django_capture_on_commit_callbacks(execute=True):
        CrisisEventService.update(event_id=event.pk, patch=CrisisEventPatch(severity="red"), actor_user=admin_user)

    ((user_id, event_id, summary),) = recording_dispatcher.calls
    assert (user_id, event_id) == (user.pk, event.pk)
    assert summary.kind == "updated"
    assert summary.before["severity"] == "yellow"
    assert summary.after["severity"] == "red"
    assert "yellow -> red" in summary.text


def test_update_notifies_users_inside_the_new_area(
    admin_user, start_time, user, user_profile, make_user, recording_dispatcher, django_capture_on_commit_callbacks
):
    bergen_user = make_user(home=BERGEN)
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    recording_dispatcher.calls = []

    with django_capture_on_commit_callbacks(execute=True):
        CrisisEventService.update(
            event_id=event.pk,
            patch=CrisisEventPatch(latitude=BERGEN[0], longitude=BERGEN[1]),
            actor_user=admin_user,
        )

    assert [c[0] for c in recording_dispatcher.calls] == [bergen_user.pk]


def test_update_of_inactive_event_is_logged_but_not_announced(
    admin_user, start_time, user_profile, recording_dispatcher, django_capture_on_commit_callbacks
):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    CrisisEventService.deactivate(event_id=event.pk, actor_user=admin_user)
    recording_dispatcher.calls = []

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        CrisisEventService.update(event_id=event.pk, patch=CrisisEventPatch(severity="red"), actor_user=admin_user)

    assert callbacks == []
    assert recording_dispatcher.calls == []
    assert changes(event)[-1].field == ChangeField.SEVERITY
    event.refresh_from_db()
    assert event.active is False


def test_deactivate_notifies_affected_users(admin_user, start_time, user, user_profile, django_capture_on_commit_callbacks):
    event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    with django_capture_on_commit_callbacks(execute=True):
        CrisisEventService.deactivate(event_id=event.pk, actor_user=admin_user)

    notif = Notification.objects.get(recipient=user, target_id=event.pk)
    assert "no longer active" in notif.description


def test_event_without_radius_notifies_nobody(admin_user, start_time, user_profile, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        CrisisEventService.create(data=oslo_input(start_time, radius=None), actor_user=admin_user)
    assert Notification.objects.count() == 0


def test_dispatch_failures_do_not_reach_the_caller(
    admin_user, start_time, user_profile, settings, django_capture_on_commit_callbacks
):
    settings.CRISIS_NOTIFICATION_DISPATCHER = "prep_core.crisis.tests.test_services.ExplodingDispatcher"

    with django_capture_on_commit_callbacks(execute=True):
        event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)

    assert CrisisEvent.objects.filter(pk=event.pk, active=True).exists()
    assert len(changes(event)) == 1


def test_in_app_dispatch_publishes_notification_sent(
    admin_user, start_time, user, user_profile, django_capture_on_commit_callbacks
):
    received = []

    def handler(payload):
        received.append(payload)

    subscribe("notification.sent")(handler)
    try:
        with django_capture_on_commit_callbacks(execute=True):
            event = CrisisEventService.create(data=oslo_input(start_time), actor_user=admin_user)
    finally:
        unsubscribe("notification.sent", handler)

    assert len(received) == 1
    assert received[0]["recipient_id"] == user.pk
    assert received[0]["target_id"] == event.pk
    assert received[0]["target_type"] == "event"
