import logging
import time

from django.conf import settings

from core.exceptions import RemoteOperationError
from integracao_supabase.services.base import SupabaseService

logger = logging.getLogger(__name__)


class SupabaseAuth(SupabaseService):
    """
    Cliente do GoTrue (Supabase Auth).
    Os tokens devolvidos ficam na sessão do Django; o access_token é
    renovado pelo refresh_token quando estiver perto de expirar.
    """

    AUTH_PATH = '/auth/v1'
    EXPIRY_MARGIN_SECONDS = 5 * 60

    def sign_in_with_password(self, email, password):
        response = self._request(
            'POST',
            f"{self.AUTH_PATH}/token",
            params={'grant_type': 'password'},
            json={'email': email, 'password': password},
        )
        return self._normalize_token(response.json())

    def refresh(self, refresh_token):
        response = self._request(
            'POST',
            f"{self.AUTH_PATH}/token",
            params={'grant_type': 'refresh_token'},
            json={'refresh_token': refresh_token},
        )
        return self._normalize_token(response.json())

    def get_user(self, access_token):
        response = self._request(
            'GET',
            f"{self.AUTH_PATH}/user",
            headers={'Authorization': f"Bearer {access_token}"},
        )
        return response.json()

    def sign_out(self, access_token):
        self._request(
            'POST',
            f"{self.AUTH_PATH}/logout",
            headers={'Authorization': f"Bearer {access_token}"},
        )

    def sign_up(self, email, password, data=None, redirect_to=None):
        """
        Cadastro público. Com confirmação de email ativa o GoTrue devolve o
        usuário sem tokens; a conta só entra depois do link enviado.
        """
        params = {'redirect_to': redirect_to} if redirect_to else None
        response = self._request(
            'POST',
            f"{self.AUTH_PATH}/signup",
            params=params,
            json={'email': email, 'password': password, 'data': data or {}},
        )
        return response.json()

    def invite_user_by_email(self, email, data=None, redirect_to=None):
        """
        Cria o convite pendente. Exige a service role key.
        """
        service_key = settings.SUPABASE_SERVICE_ROLE_KEY
        if not service_key:
            raise RemoteOperationError("SUPABASE_SERVICE_ROLE_KEY não configurada.")

        params = {'redirect_to': redirect_to} if redirect_to else None
        response = self._request(
            'POST',
            f"{self.AUTH_PATH}/invite",
            params=params,
            json={'email': email, 'data': data or {}},
            headers={'apikey': service_key, 'Authorization': f"Bearer {service_key}"},
        )
        return response.json()

    @classmethod
    def is_expiring(cls, expires_at):
        if not expires_at:
            return True
        return expires_at <= time.time() + cls.EXPIRY_MARGIN_SECONDS

    @staticmethod
    def _normalize_token(data):
        if 'access_token' not in data:
            raise RemoteOperationError("Resposta de autenticação sem access_token.")

        expires_at = data.get('expires_at')
        if not expires_at:
            expires_at = int(time.time()) + int(data.get('expires_in', 3600))  # Default 1 hora

        user = data.get('user') or {}
        return {
            'access_token': data['access_token'],
            'refresh_token': data.get('refresh_token'),
            'expires_at': int(expires_at),
            'user_id': user.get('id'),
            'email': user.get('email'),
        }
