"""
URL configuration for enleve project.
"""

from django.urls import path, include

urlpatterns = [
    path('', include('core.urls')),
    path('kanban/', include('atendimentos.urls')),
    path('perfil/', include('perfis.urls')),
    path('', include('convites.urls')),
    path('integracao/supabase/', include('integracao_supabase.urls')),
]
