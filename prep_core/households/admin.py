# prep_core/households/admin.py
from __future__ import annotations

from django.contrib import admin

from prep_core.households.models import Household


@admin.register(Household)
class HouseholdAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "latitude", "longitude", "created_at")
    search_fields = ("name",)
    ordering = ("name",)
