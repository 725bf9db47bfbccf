# prep_core/notifications/admin.py
from django.contrib import admin

from prep_core.notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "recipient", "preference_type", "target_type", "target_id", "sent_at", "read_at")
    list_filter = ("preference_type", "target_type")
    search_fields = ("recipient__username", "description")
    readonly_fields = ("created_at", "updated_at", "sent_at")
    ordering = ("-created_at",)
