from django.apps import AppConfig


class ModulesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'lifecycle_core.modules'
    label = 'lifecycle_modules'
    verbose_name = 'Installable Modules'

    def ready(self):
        # Import signal definitions
        from . import signals  # noqa: F401
