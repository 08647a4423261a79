from django.apps import AppConfig


class PerfisConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'perfis'
    verbose_name = 'Perfis'
