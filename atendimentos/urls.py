from django.urls import path
from . import views

app_name = 'atendimentos'

urlpatterns = [
    path('', views.kanban, name='kanban'),
    path('colunas/', views.kanban_colunas, name='kanban_colunas'),
    path('<int:pk>/assumir/', views.assumir_automatizado, name='assumir_automatizado'),
    path('<int:pk>/assumir-espera/', views.assumir_espera, name='assumir_espera'),
    path('<int:pk>/finalizar/', views.finalizar, name='finalizar'),
    path('<int:pk>/relatorio/', views.relatorio, name='relatorio'),
    path('<int:pk>/historico/', views.historico, name='historico'),
]
