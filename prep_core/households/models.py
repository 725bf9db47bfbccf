# prep_core/households/models.py
from __future__ import annotations

from django.db import models

from prep_core.common.models import TimeStampedModel


class Household(TimeStampedModel):
    """
    A household and where it lives. Members point at it from their UserProfile.
    """
    name = models.CharField(max_length=255)
    latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)

    class Meta:
        db_table = "households_household"

    @property
    def location(self):
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    def __str__(self) -> str:
        return self.name
