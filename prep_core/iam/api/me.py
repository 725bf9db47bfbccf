# prep_core/iam/api/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from prep_core.common.permissions import user_roles
from prep_core.iam.api.schema_serializers import MeLocationUpdateSerializer, MeResponseSerializer
from prep_core.iam.models import UserProfile


def _me_payload(user, profile: UserProfile | None) -> dict:
    return {
        "user": {
            "id": user.id,
            "username": getattr(user, "username", None),
            "email": getattr(user, "email", None),
            "roles": sorted(user_roles(user)),
        },
        "profile": None if profile is None else {
            "home_latitude": profile.home_latitude,
            "home_longitude": profile.home_longitude,
            "household_id": profile.household_id,
        },
    }


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: MeResponseSerializer}, tags=["IAM"])
    def get(self, request):
        """Returns user info, roles and the preparedness profile (if any)."""
        profile = UserProfile.objects.filter(user=request.user).first()
        data = MeResponseSerializer(_me_payload(request.user, profile)).data
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(request=MeLocationUpdateSerializer, responses={200: MeResponseSerializer}, tags=["IAM"])
    def patch(self, request):
        """Set or clear the caller's home location."""
        ser = MeLocationUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        profile, _ = UserProfile.objects.get_or_create(user=request.user)
        for field in ("home_latitude", "home_longitude"):
            if field in ser.validated_data:
                setattr(profile, field, ser.validated_data[field])
        profile.save()

        data = MeResponseSerializer(_me_payload(request.user, profile)).data
        return Response(data, status=status.HTTP_200_OK)
