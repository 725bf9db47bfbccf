import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "preference_type",
                    models.CharField(
                        choices=[
                            ("crisis_alert", "Crisis alert"),
                            ("expiration_reminder", "Expiration reminder"),
                            ("location_request", "Location request"),
                            ("system", "System"),
                        ],
                        db_index=True,
                        default="system",
                        max_length=32,
                    ),
                ),
                (
                    "target_type",
                    models.CharField(
                        blank=True,
                        choices=[("event", "Event"), ("inventory", "Inventory"), ("location_request", "Location request")],
                        max_length=32,
                        null=True,
                    ),
                ),
                ("target_id", models.BigIntegerField(blank=True, db_index=True, null=True)),
                ("description", models.TextField(blank=True, default="")),
                ("notify_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("read_at", models.DateTimeField(blank=True, null=True)),
                ("meta", models.JSONField(blank=True, default=dict)),
                (
                    "recipient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "notifications_notification",
                "indexes": [
                    models.Index(fields=["recipient", "read_at"], name="ix_notification_recipient_read"),
                    models.Index(fields=["target_type", "target_id"], name="ix_notification_target"),
                ],
            },
        ),
    ]
