# prep_core/iam/api/schema_serializers.py
from __future__ import annotations

from rest_framework import serializers


class LoginRequestSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()


class DetailResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()


class MeUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField(allow_null=True, required=False)
    email = serializers.EmailField(allow_null=True, required=False)
    roles = serializers.ListField(child=serializers.CharField())


class MeProfileSerializer(serializers.Serializer):
    home_latitude = serializers.DecimalField(max_digits=10, decimal_places=7, allow_null=True)
    home_longitude = serializers.DecimalField(max_digits=10, decimal_places=7, allow_null=True)
    household_id = serializers.IntegerField(allow_null=True)


class MeResponseSerializer(serializers.Serializer):
    user = MeUserSerializer()
    profile = MeProfileSerializer(allow_null=True)


class MeLocationUpdateSerializer(serializers.Serializer):
    home_latitude = serializers.DecimalField(
        max_digits=10, decimal_places=7, min_value=-90, max_value=90, allow_null=True, required=False
    )
    home_longitude = serializers.DecimalField(
        max_digits=10, decimal_places=7, min_value=-180, max_value=180, allow_null=True, required=False
    )
