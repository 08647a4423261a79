from django.urls import path
from . import views

app_name = 'perfis'

urlpatterns = [
    path('', views.perfil, name='perfil'),
    path('foto/', views.upload_foto, name='upload_foto'),
]
