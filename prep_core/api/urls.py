# prep_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from prep_core.crisis.api.views import CrisisEventViewSet
from prep_core.iam.api.auth import LoginView, LogoutView, RefreshView
from prep_core.iam.api.me import MeView
from prep_core.notifications.api.views import NotificationViewSet

router = DefaultRouter()

router.register(r"crisis-events", CrisisEventViewSet, basename="crisis-events")
router.register(r"notifications", NotificationViewSet, basename="notifications")

urlpatterns = [
    # Auth + /me
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
