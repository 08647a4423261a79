import logging
import re
from dataclasses import dataclass

from django.conf import settings

from convites.services.email_service import InviteEmailService
from core.exceptions import (
    AccessDeniedError,
    InvalidInputError,
    RemoteOperationError,
    SessionInvalidError,
)
from core.session import ROLE_ADMIN, ROLE_CORRETOR
from integracao_supabase.services.auth import SupabaseAuth
from integracao_supabase.services.base import SupabaseClient

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
EMAIL_MAX_LENGTH = 255
VALID_ROLES = (ROLE_ADMIN, ROLE_CORRETOR)


@dataclass
class InviteResult:
    email: str
    role: str
    email_enviado: bool
    message: str = "Convite enviado com sucesso"


def validate_invite_input(email, role):
    email = (email or '').strip()
    role = (role or '').strip()

    if not email or not role:
        raise InvalidInputError("Email e role são obrigatórios")
    if len(email) > EMAIL_MAX_LENGTH or not EMAIL_RE.match(email):
        raise InvalidInputError("Email inválido")
    if role not in VALID_ROLES:
        raise InvalidInputError("Role inválida. Use 'admin' ou 'corretor'")
    return email, role


class InviteService:
    """
    Emissão de convites (somente administradores).

    O papel do requisitante é conferido no banco a cada convite, sem cache.
    O email de aviso é secundário: se falhar, o convite continua valendo.
    """

    def __init__(self, auth=None, email_service=None, client_class=SupabaseClient):
        self.auth = auth or SupabaseAuth()
        self.email_service = email_service or InviteEmailService()
        self.client_class = client_class

    def invite(self, access_token, email, role):
        if not access_token:
            raise SessionInvalidError("Não autorizado")

        requester = self._get_requester(access_token)
        self._ensure_admin(access_token, requester['id'])

        email, role = validate_invite_input(email, role)
        logger.info(f"Admin {requester.get('email')} convidando {email} como {role}")

        try:
            self.auth.invite_user_by_email(
                email,
                data={'role': role},
                redirect_to=settings.INVITE_REDIRECT_URL,
            )
        except RemoteOperationError as e:
            logger.error(f"Erro ao convidar usuário {email}: {e}")
            raise RemoteOperationError(f"Erro ao convidar usuário: {e.message}", status_code=e.status_code)

        logger.info(f"Convite criado com sucesso para {email}")

        email_enviado = self.email_service.send_invite(email, role)
        if not email_enviado:
            logger.warning(f"Convite de {email} criado, mas o email de aviso não foi enviado")

        return InviteResult(email=email, role=role, email_enviado=email_enviado)

    def _get_requester(self, access_token):
        try:
            user = self.auth.get_user(access_token)
        except RemoteOperationError as e:
            if e.status_code in (401, 403):
                raise SessionInvalidError("Usuário não autenticado")
            raise

        if not user or not user.get('id'):
            raise SessionInvalidError("Usuário não autenticado")
        return user

    def _ensure_admin(self, access_token, user_id):
        client = self.client_class(access_token=access_token)
        rows = client.select(
            'user_roles',
            columns='role',
            filters={'user_id': user_id, 'role': ROLE_ADMIN},
            limit=1,
        )
        if not rows:
            logger.warning(f"Convite recusado: usuário {user_id} não é administrador")
            raise AccessDeniedError("Apenas administradores podem enviar convites")
