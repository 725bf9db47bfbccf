# prep_core/iam/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models

from prep_core.common.models import TimeStampedModel


class UserProfile(TimeStampedModel):
    """
    Preparedness profile anchored to Django's AUTH_USER_MODEL.
    Holds the home location and household membership used for impact checks.
    """
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="prep_profile")

    home_latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    home_longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)

    household = models.ForeignKey(
        "households.Household",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="members",
    )

    class Meta:
        db_table = "iam_user_profile"

    @property
    def home_location(self):
        if self.home_latitude is None or self.home_longitude is None:
            return None
        return (self.home_latitude, self.home_longitude)

    @property
    def household_location(self):
        if self.household is None:
            return None
        return self.household.location

    def __str__(self) -> str:
        return f"{self.user.get_username()} profile"
