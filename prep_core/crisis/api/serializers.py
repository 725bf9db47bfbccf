# prep_core/crisis/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from prep_core.crisis.models import CrisisEvent, CrisisEventChange, ScenarioTheme, Severity
from prep_core.crisis.services import CrisisEventInput, CrisisEventPatch


class ScenarioThemeMiniSerializer(serializers.ModelSerializer):
    class Meta:
        model = ScenarioTheme
        fields = ["id", "name", "status"]
        read_only_fields = fields


class CrisisEventSerializer(serializers.ModelSerializer):
    latitude = serializers.DecimalField(source="epicenter_latitude", max_digits=10, decimal_places=7, read_only=True)
    longitude = serializers.DecimalField(source="epicenter_longitude", max_digits=10, decimal_places=7, read_only=True)
    created_by_user_id = serializers.IntegerField(read_only=True)
    scenario_theme = ScenarioThemeMiniSerializer(read_only=True, allow_null=True)

    class Meta:
        model = CrisisEvent
        fields = [
            "id",
            "name",
            "description",
            "severity",
            "latitude",
            "longitude",
            "radius",
            "start_time",
            "active",
            "created_by_user_id",
            "scenario_theme",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CrisisEventPreviewSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    severity = serializers.CharField()
    start_time = serializers.DateTimeField()


class CrisisEventChangeSerializer(serializers.ModelSerializer):
    crisis_event_id = serializers.IntegerField(read_only=True)
    created_by_user_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = CrisisEventChange
        fields = [
            "id",
            "crisis_event_id",
            "change_type",
            "field",
            "old_value",
            "new_value",
            "created_by_user_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CrisisEventCreateSerializer(serializers.Serializer):
    """Shape checks only; domain rules (ranges, theme lookup) live in the service."""
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    latitude = serializers.DecimalField(max_digits=None, decimal_places=None)
    longitude = serializers.DecimalField(max_digits=None, decimal_places=None)
    radius = serializers.DecimalField(max_digits=None, decimal_places=None, required=False, allow_null=True)
    severity = serializers.ChoiceField(choices=Severity.choices)
    start_time = serializers.DateTimeField()
    scenario_theme_id = serializers.IntegerField(required=False, allow_null=True)

    def to_input(self) -> CrisisEventInput:
        return CrisisEventInput(**self.validated_data)


class CrisisEventPatchSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    latitude = serializers.DecimalField(max_digits=None, decimal_places=None, required=False, allow_null=True)
    longitude = serializers.DecimalField(max_digits=None, decimal_places=None, required=False, allow_null=True)
    radius = serializers.DecimalField(max_digits=None, decimal_places=None, required=False, allow_null=True)
    severity = serializers.ChoiceField(choices=Severity.choices, required=False, allow_null=True)
    scenario_theme_id = serializers.IntegerField(required=False, allow_null=True)
    # Accepted for compatibility; start_time never changes after creation.
    start_time = serializers.DateTimeField(required=False, allow_null=True)

    def to_patch(self) -> CrisisEventPatch:
        return CrisisEventPatch(**self.validated_data)


class NearestQuerySerializer(serializers.Serializer):
    lat = serializers.DecimalField(max_digits=None, decimal_places=None, min_value=-90, max_value=90)
    lon = serializers.DecimalField(max_digits=None, decimal_places=None, min_value=-180, max_value=180)
    severity = serializers.ChoiceField(choices=Severity.choices, required=False)


class SearchQuerySerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, default="")
    is_active = serializers.BooleanField(required=False, default=True)
