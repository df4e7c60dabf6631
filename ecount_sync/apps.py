from django.apps import AppConfig


class EcountSyncConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'ecount_sync'
    verbose_name = 'ECOUNT sync'
