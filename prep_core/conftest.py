# prep_core/conftest.py
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from prep_core.crisis.models import ScenarioTheme
from prep_core.households.models import Household
from prep_core.iam.models import UserProfile

# Oslo city centre; ~1.11 km per 0.01 degree of latitude.
OSLO = (Decimal("59.9139000"), Decimal("10.7522000"))


@pytest.fixture
def admin_user(db):
    """A user in the ADMIN group (admin-tier for crisis writes)."""
    User = get_user_model()
    user = User.objects.create_user(username="crisis-admin", password="Pass@12345", is_active=True)
    group, _ = Group.objects.get_or_create(name="ADMIN")
    user.groups.add(group)
    return user


@pytest.fixture
def user(db):
    """A plain user without groups (role USER)."""
    User = get_user_model()
    return User.objects.create_user(username="resident", password="Pass@12345", is_active=True)


@pytest.fixture
def admin_client(admin_user):
    c = APIClient()
    c.force_authenticate(user=admin_user)
    return c


@pytest.fixture
def user_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def household(db):
    return Household.objects.create(name="Hansen", latitude=OSLO[0], longitude=OSLO[1])


@pytest.fixture
def far_household(db):
    # Bergen, ~300 km west of Oslo
    return Household.objects.create(name="Berg", latitude=Decimal("60.3913000"), longitude=Decimal("5.3221000"))


@pytest.fixture
def user_profile(user):
    """The plain user lives in central Oslo, no household."""
    return UserProfile.objects.create(user=user, home_latitude=OSLO[0], home_longitude=OSLO[1])


@pytest.fixture
def make_user():
    User = get_user_model()
    counter = {"n": 0}

    def _make(*, home=None, household=None, username=None):
        counter["n"] += 1
        u = User.objects.create_user(username=username or f"member-{counter['n']}", password="Pass@12345")
        UserProfile.objects.create(
            user=u,
            home_latitude=home[0] if home else None,
            home_longitude=home[1] if home else None,
            household=household,
        )
        return u

    return _make


@pytest.fixture
def scenario_theme(db):
    return ScenarioTheme.objects.create(name="Flood", description="Rising water", before="Move valuables up")


@pytest.fixture
def start_time():
    return datetime(2025, 5, 1, 12, 0, tzinfo=dt_timezone.utc)
