from django.apps import AppConfig


class CrisisConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "prep_core.crisis"
