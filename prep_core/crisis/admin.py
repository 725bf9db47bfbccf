# prep_core/crisis/admin.py
from django.contrib import admin

from prep_core.crisis.models import CrisisEvent, CrisisEventChange, ScenarioTheme


@admin.register(ScenarioTheme)
class ScenarioThemeAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "status", "created_by_user", "created_at")
    list_filter = ("status",)
    search_fields = ("name",)
    ordering = ("name",)


class CrisisEventChangeInline(admin.TabularInline):
    model = CrisisEventChange
    extra = 0
    can_delete = False
    fields = ("created_at", "change_type", "field", "old_value", "new_value", "created_by_user")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(CrisisEvent)
class CrisisEventAdmin(admin.ModelAdmin):
    """
    View-only: writes go through the API so they land in the change log.
    """
    list_display = ("id", "name", "severity", "active", "start_time", "radius", "scenario_theme")
    list_filter = ("severity", "active", "scenario_theme")
    search_fields = ("name", "description")
    readonly_fields = ("start_time", "created_at", "updated_at", "created_by_user")
    ordering = ("-start_time",)
    inlines = [CrisisEventChangeInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(CrisisEventChange)
class CrisisEventChangeAdmin(admin.ModelAdmin):
    list_display = ("crisis_event", "change_type", "field", "old_value", "new_value", "created_by_user", "created_at")
    list_filter = ("change_type", "field")
    search_fields = ("crisis_event__name", "old_value", "new_value")
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
