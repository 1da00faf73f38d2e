# szamlazzhu/apps.py
from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


class SzamlazzHuConfig(AppConfig):
    name = "szamlazzhu"
    verbose_name = "Számlázz.hu"

    def ready(self):
        # Solo se valida si el proyecto define la configuración
        from szamlazzhu.conf import SETTINGS_NAME, load_config
        from szamlazzhu.errors import InvalidClientConfigurationError

        if getattr(settings, SETTINGS_NAME, None) is None:
            return

        try:
            load_config()
        except InvalidClientConfigurationError as exc:
            raise ImproperlyConfigured(
                f"settings.{SETTINGS_NAME} inválido: {exc.errors}"
            ) from exc
