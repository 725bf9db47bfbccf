# prep_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from prep_core.iam.models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "home_latitude", "home_longitude", "household", "created_at", "updated_at")
    search_fields = ("user__username", "user__email")
    autocomplete_fields = ("user",)
    list_select_related = ("user", "household")
    ordering = ("-created_at",)
