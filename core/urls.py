from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    path('', views.DashboardView.as_view(), name='dashboard'),
    path('painel/atualizacoes/', views.dashboard_atualizacoes, name='dashboard_atualizacoes'),

    # Autenticação
    path('entrar/', views.login_view, name='login'),
    path('cadastro/', views.cadastro_view, name='cadastro'),
    path('sair/', views.logout_view, name='logout'),
]
