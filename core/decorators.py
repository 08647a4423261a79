import logging
from functools import wraps
from urllib.parse import urlencode

from django.conf import settings
from django.contrib import messages
from django.shortcuts import redirect, resolve_url
from django_htmx.http import HttpResponseClientRedirect

from core.exceptions import RemoteOperationError
from core.session import get_current_session

logger = logging.getLogger(__name__)


def _redirect_to_login(request):
    login_url = f"{resolve_url(settings.LOGIN_URL)}?{urlencode({'next': request.get_full_path()})}"
    if getattr(request, 'htmx', False):
        return HttpResponseClientRedirect(login_url)
    return redirect(login_url)


def supabase_login_required(view_func):
    """
    Exige uma sessão do Supabase. A sessão resolvida fica em `request.sessao`.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        try:
            sessao = get_current_session(request)
        except RemoteOperationError as e:
            logger.error(f"Erro ao carregar a sessão atual: {e}")
            messages.error(request, "Não foi possível validar sua sessão. Faça login novamente.")
            return _redirect_to_login(request)

        if sessao is None:
            return _redirect_to_login(request)

        request.sessao = sessao
        return view_func(request, *args, **kwargs)
    return _wrapped


def role_required(role, message=None):
    """
    Libera a view apenas para quem tem o papel informado (ex.: 'admin').
    """
    def decorator(view_func):
        @wraps(view_func)
        @supabase_login_required
        def _wrapped(request, *args, **kwargs):
            if not request.sessao.has_role(role):
                logger.warning(f"Acesso negado a {request.path} para {request.sessao.email} (papel exigido: {role})")
                messages.error(
                    request,
                    message or "Acesso negado. Apenas administradores podem acessar esta página."
                )
                if getattr(request, 'htmx', False):
                    return HttpResponseClientRedirect(resolve_url('core:dashboard'))
                return redirect('core:dashboard')
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator
