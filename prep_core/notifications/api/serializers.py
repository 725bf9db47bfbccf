from rest_framework import serializers

from prep_core.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    is_read = serializers.BooleanField(read_only=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "preference_type",
            "target_type",
            "target_id",
            "description",
            "notify_at",
            "sent_at",
            "read_at",
            "is_read",
            "created_at",
            "meta",
        ]
        read_only_fields = fields
