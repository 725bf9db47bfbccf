# prep_core/crisis/impact.py
"""
Who is affected by a crisis event.

Profiles are duck-typed: anything with `home_location` and
`household_location` attributes ((lat, lon) tuples or None) works, which
covers iam.UserProfile.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from django.conf import settings
from django.db import models
from django.utils.module_loading import import_string

from prep_core.common.geo import LatLon, distance, is_within_radius

logger = logging.getLogger(__name__)

C = TypeVar("C")


class ImpactReason(models.TextChoices):
    HOME = "home", "Home"
    HOUSEHOLD = "household", "Household"
    HOME_AND_HOUSEHOLD = "home_and_household", "Home and household"
    SHARED_LOCATION = "shared_location", "Shared home and household location"


def _coords(value) -> Optional[LatLon]:
    if value is None:
        return None
    lat, lon = value
    if lat is None or lon is None:
        return None
    return (lat, lon)


def default_location(candidate: Any) -> Optional[LatLon]:
    """
    Location of a candidate for nearest-of-type lookups.
    Understands crisis events (epicenter_*) and plain latitude/longitude objects.
    """
    if hasattr(candidate, "epicenter_latitude"):
        return _coords((candidate.epicenter_latitude, candidate.epicenter_longitude))
    return _coords((getattr(candidate, "latitude", None), getattr(candidate, "longitude", None)))


class ImpactEvaluator:
    """
    Linear-scan evaluator. Swap via settings.CRISIS_IMPACT_EVALUATOR for an
    index-backed one; call signatures stay the same.
    """

    @staticmethod
    def reason_for(event, profile) -> Optional[ImpactReason]:
        if event.radius is None:
            return None

        center = _coords((event.epicenter_latitude, event.epicenter_longitude))
        if center is None:
            return None

        home = _coords(getattr(profile, "home_location", None))
        household = _coords(getattr(profile, "household_location", None))

        home_hit = home is not None and is_within_radius(center, home, event.radius)
        household_hit = household is not None and is_within_radius(center, household, event.radius)

        if home_hit and household_hit:
            if home == household:
                return ImpactReason.SHARED_LOCATION
            return ImpactReason.HOME_AND_HOUSEHOLD
        if home_hit:
            return ImpactReason.HOME
        if household_hit:
            return ImpactReason.HOUSEHOLD
        return None

    @classmethod
    def is_affected(cls, event, profile) -> bool:
        return cls.reason_for(event, profile) is not None

    @classmethod
    def affected_users(cls, event, profiles: Iterable[C]) -> list[C]:
        """Profiles affected by `event`, in input order, without duplicates."""
        seen: set = set()
        out: list[C] = []
        for profile in profiles:
            key = getattr(profile, "pk", None) or id(profile)
            if key in seen:
                continue
            seen.add(key)
            if cls.is_affected(event, profile):
                out.append(profile)
            else:
                logger.debug("profile %s not affected by crisis event %s", key, getattr(event, "pk", None))
        return out

    @staticmethod
    def nearest_of_type(
        point: LatLon,
        candidates: Sequence[C] | Iterable[C],
        location: Callable[[C], Optional[LatLon]] = default_location,
    ) -> Optional[C]:
        """
        Closest candidate to `point`. Ties keep the first one seen.
        Candidates without coordinates are skipped.
        """
        best: Optional[C] = None
        best_distance = float("inf")
        for candidate in candidates:
            loc = location(candidate)
            if loc is None:
                continue
            d = distance(point[0], point[1], loc[0], loc[1])
            if d < best_distance:
                best, best_distance = candidate, d
        return best


def get_impact_evaluator():
    return import_string(getattr(settings, "CRISIS_IMPACT_EVALUATOR", "prep_core.crisis.impact.ImpactEvaluator"))
