from django.urls import path
from . import views

app_name = 'convites'

urlpatterns = [
    path('usuarios/', views.gerenciar_usuarios, name='gerenciar_usuarios'),
    path('api/convites/', views.api_convidar, name='api_convidar'),
]
