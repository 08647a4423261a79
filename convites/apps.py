from django.apps import AppConfig


class ConvitesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'convites'
    verbose_name = 'Convites'
