from django.apps import AppConfig


class IntegracaoSupabaseConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'integracao_supabase'
    verbose_name = 'Integração Supabase'
