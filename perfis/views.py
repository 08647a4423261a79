import logging

from django.contrib import messages
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from core.decorators import supabase_login_required
from core.exceptions import CRMError, RemoteOperationError
from core.session import ROLE_CHOICES
from perfis.forms import AvatarForm, PerfilForm
from perfis.services.avatar_service import AvatarService
from perfis.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


def _render_perfil(request, perfil_form=None, avatar_form=None):
    service = ProfileService(request.sessao)
    try:
        perfil = service.get_profile()
    except RemoteOperationError as e:
        logger.error(f"Erro ao carregar perfil de {request.sessao.email}: {e}")
        messages.error(request, "Erro ao carregar perfil.")
        return redirect('core:dashboard')

    # URL assinada gerada a cada exibição
    perfil.foto_assinada = AvatarService(request.sessao.access_token).signed_url(perfil.foto_url)

    return render(request, 'perfis/perfil.html', {
        'perfil': perfil,
        'role_display': dict(ROLE_CHOICES).get(request.sessao.role, request.sessao.role or '-'),
        'perfil_form': perfil_form or PerfilForm(initial={'nome_completo': perfil.nome_completo}),
        'avatar_form': avatar_form or AvatarForm(),
    })


@supabase_login_required
def perfil(request):
    if request.method == 'POST':
        form = PerfilForm(request.POST)
        if form.is_valid():
            try:
                ProfileService(request.sessao).update_nome(form.cleaned_data['nome_completo'])
            except CRMError as e:
                logger.error(f"Erro ao atualizar perfil de {request.sessao.email}: {e}")
                messages.error(request, "Erro ao atualizar perfil")
            else:
                messages.success(request, "Perfil atualizado!")
                return redirect('perfis:perfil')
        return _render_perfil(request, perfil_form=form)

    return _render_perfil(request)


@require_POST
@supabase_login_required
def upload_foto(request):
    form = AvatarForm(request.POST, request.FILES)
    if not form.is_valid():
        for error in form.errors.get('foto', []):
            messages.error(request, error)
        return _render_perfil(request, avatar_form=form)

    try:
        AvatarService(request.sessao.access_token).upload(request.sessao.user_id, form.cleaned_data['foto'])
    except CRMError as e:
        logger.error(f"Erro ao enviar foto de {request.sessao.email}: {e}")
        messages.error(request, "Erro ao fazer upload da foto")
    else:
        messages.success(request, "Foto atualizada!")
    return redirect('perfis:perfil')
