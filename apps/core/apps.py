from django.apps import AppConfig
from django.conf import settings


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core'

    store_config = None

    def ready(self):
        from .config import StoreConfig
        self.store_config = StoreConfig.from_settings(settings)
