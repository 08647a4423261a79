"""
Sessão atual do usuário.

A identidade vem do Supabase Auth (tokens guardados na sessão do Django).
O papel do usuário é consultado em `user_roles` e mantido num cache curto,
compartilhado por todas as páginas; o logout invalida esse cache.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

from django.conf import settings
from django.core.cache import cache

from core.exceptions import RemoteOperationError
from integracao_supabase.services.auth import SupabaseAuth
from integracao_supabase.services.base import SupabaseClient

logger = logging.getLogger(__name__)

SESSION_KEY = 'supabase_auth'
CACHE_PREFIX = 'sessao_atual'

ROLE_ADMIN = 'admin'
ROLE_CORRETOR = 'corretor'
ROLE_CHOICES = (
    (ROLE_CORRETOR, 'Corretor'),
    (ROLE_ADMIN, 'Administrador'),
)


@dataclass
class CurrentSession:
    user_id: str
    email: str
    access_token: str
    roles: list = field(default_factory=list)
    nome: str = ''

    @property
    def is_admin(self):
        return ROLE_ADMIN in self.roles

    @property
    def is_corretor(self):
        return ROLE_CORRETOR in self.roles

    @property
    def role(self):
        if self.is_admin:
            return ROLE_ADMIN
        return self.roles[0] if self.roles else ''

    def has_role(self, role):
        return role in self.roles


def _cache_key(user_id):
    return f"{CACHE_PREFIX}:{user_id}"


def invalidate_session_cache(user_id):
    cache.delete(_cache_key(user_id))


class SessionProvider:
    def __init__(self, auth=None, client_class=SupabaseClient):
        self.auth = auth or SupabaseAuth()
        self.client_class = client_class

    def sign_in(self, request, email, password):
        token_data = self.auth.sign_in_with_password(email, password)
        request.session.cycle_key()
        request.session[SESSION_KEY] = token_data
        invalidate_session_cache(token_data['user_id'])
        logger.info(f"Login realizado: {email}")
        return token_data

    def get_access_token(self, request) -> Optional[str]:
        """
        Devolve um access_token válido, renovando-o se estiver a menos de
        5 minutos de expirar. Sem token ou com refresh recusado, a sessão é descartada.
        """
        token_data = request.session.get(SESSION_KEY)
        if not token_data:
            return None

        if not self.auth.is_expiring(token_data.get('expires_at')):
            return token_data['access_token']

        refresh_token = token_data.get('refresh_token')
        if not refresh_token:
            self._discard(request, token_data)
            return None

        try:
            renewed = self.auth.refresh(refresh_token)
        except RemoteOperationError as e:
            logger.warning(f"Não foi possível renovar a sessão de {token_data.get('email')}: {e}")
            self._discard(request, token_data)
            return None

        renewed['user_id'] = renewed['user_id'] or token_data['user_id']
        renewed['email'] = renewed['email'] or token_data.get('email')
        request.session[SESSION_KEY] = renewed
        return renewed['access_token']

    def get_current_session(self, request) -> Optional[CurrentSession]:
        cached_on_request = getattr(request, '_sessao_atual', None)
        if cached_on_request is not None:
            return cached_on_request

        access_token = self.get_access_token(request)
        if not access_token:
            return None

        token_data = request.session[SESSION_KEY]
        user_id = token_data['user_id']

        payload = cache.get(_cache_key(user_id))
        if payload is None:
            payload = self._load_identity(access_token, user_id, token_data.get('email') or '')
            cache.set(_cache_key(user_id), payload, settings.SESSION_CACHE_TTL)

        sessao = CurrentSession(access_token=access_token, **payload)
        request._sessao_atual = sessao
        return sessao

    def sign_out(self, request):
        token_data = request.session.get(SESSION_KEY)
        if token_data:
            try:
                self.auth.sign_out(token_data['access_token'])
            except RemoteOperationError as e:
                # O token local é descartado de qualquer forma
                logger.warning(f"Erro ao encerrar sessão no Supabase: {e}")
            invalidate_session_cache(token_data['user_id'])
        request.session.flush()
        if hasattr(request, '_sessao_atual'):
            del request._sessao_atual

    def _load_identity(self, access_token, user_id, email):
        client = self.client_class(access_token=access_token)
        roles = client.select('user_roles', columns='role', filters={'user_id': user_id})
        profile = client.select_one('profiles', columns='nome_completo', filters={'id': user_id})
        sessao = CurrentSession(
            user_id=user_id,
            email=email,
            access_token=access_token,
            roles=sorted({row['role'] for row in roles if row.get('role')}),
            nome=(profile or {}).get('nome_completo') or '',
        )
        payload = asdict(sessao)
        del payload['access_token']
        return payload

    def _discard(self, request, token_data):
        invalidate_session_cache(token_data.get('user_id'))
        request.session.pop(SESSION_KEY, None)


def get_session_provider():
    return SessionProvider()


def get_current_session(request):
    return get_session_provider().get_current_session(request)
