from django.urls import path
from . import views

app_name = 'integracao_supabase'

urlpatterns = [
    path('webhook/', views.SupabaseWebhookView.as_view(), name='webhook'),
]
