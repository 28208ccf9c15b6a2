from django.apps import AppConfig


class RegistrationsConfig(AppConfig):
    name = 'apps.registrations'
    verbose_name = 'Registrations'

    def ready(self):
        # Connect the change feed signal handlers
        from . import feed  # noqa: F401
