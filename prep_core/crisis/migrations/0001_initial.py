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
            name="ScenarioTheme",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True, null=True)),
                ("before", models.TextField(blank=True, null=True)),
                ("under", models.TextField(blank=True, null=True)),
                ("after", models.TextField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("archived", "Archived")],
                        db_index=True,
                        default="active",
                        max_length=16,
                    ),
                ),
                (
                    "created_by_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_scenario_themes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "crisis_scenario_theme",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="CrisisEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, null=True)),
                (
                    "severity",
                    models.CharField(
                        choices=[("green", "Green"), ("yellow", "Yellow"), ("red", "Red")],
                        db_index=True,
                        default="green",
                        max_length=16,
                    ),
                ),
                ("epicenter_latitude", models.DecimalField(decimal_places=7, max_digits=10)),
                ("epicenter_longitude", models.DecimalField(decimal_places=7, max_digits=10)),
                ("radius", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("start_time", models.DateTimeField(db_index=True)),
                ("active", models.BooleanField(db_index=True, default=True)),
                (
                    "created_by_user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="created_crisis_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "scenario_theme",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="crisis_events",
                        to="crisis.scenariotheme",
                    ),
                ),
            ],
            options={
                "db_table": "crisis_event",
                "indexes": [models.Index(fields=["active", "start_time"], name="ix_crisis_event_active_start")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("severity__in", ["green", "yellow", "red"])),
                        name="ck_crisis_event_severity",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="CrisisEventChange",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "change_type",
                    models.CharField(
                        choices=[
                            ("creation", "Creation"),
                            ("level_change", "Level change"),
                            ("description_update", "Description update"),
                            ("epicenter_moved", "Epicenter moved"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                (
                    "field",
                    models.CharField(
                        choices=[
                            ("event", "Event"),
                            ("name", "Name"),
                            ("description", "Description"),
                            ("severity", "Severity"),
                            ("epicenter", "Epicenter"),
                            ("radius", "Radius"),
                            ("scenario_theme", "Scenario theme"),
                            ("active", "Active"),
                        ],
                        max_length=32,
                    ),
                ),
                ("old_value", models.TextField(blank=True, null=True)),
                ("new_value", models.TextField()),
                (
                    "created_at",
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False),
                ),
                ("updated_at", models.DateTimeField(editable=False)),
                (
                    "created_by_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="crisis_event_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "crisis_event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="changes",
                        to="crisis.crisisevent",
                    ),
                ),
            ],
            options={
                "db_table": "crisis_event_change",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["crisis_event", "created_at"], name="ix_crisis_change_event_created")
                ],
            },
        ),
    ]
