# prep_core/crisis/filters.py
from __future__ import annotations

import django_filters

from prep_core.crisis.models import CrisisEvent, Severity


class CrisisEventFilter(django_filters.FilterSet):
    severity = django_filters.ChoiceFilter(choices=Severity.choices)
    active = django_filters.BooleanFilter()
    scenario_theme = django_filters.NumberFilter(field_name="scenario_theme_id")

    class Meta:
        model = CrisisEvent
        fields = ["severity", "active", "scenario_theme"]
