import logging

from atendimentos.entities import Corretor
from core.exceptions import InvalidInputError, RemoteOperationError
from core.session import invalidate_session_cache
from integracao_supabase.services.base import SupabaseClient

logger = logging.getLogger(__name__)


class ProfileService:
    NOME_MIN_LENGTH = 2
    NOME_MAX_LENGTH = 100

    def __init__(self, sessao, client=None):
        self.sessao = sessao
        self.client = client or SupabaseClient(access_token=sessao.access_token)

    def get_profile(self):
        row = self.client.select_one('profiles', filters={'id': self.sessao.user_id})
        if row is None:
            raise RemoteOperationError("Perfil não encontrado.")
        return Corretor.from_row(row)

    @classmethod
    def clean_nome(cls, nome):
        nome = (nome or '').strip()
        if len(nome) < cls.NOME_MIN_LENGTH:
            raise InvalidInputError("Nome deve ter no mínimo 2 caracteres")
        if len(nome) > cls.NOME_MAX_LENGTH:
            raise InvalidInputError("Nome muito longo")
        return nome

    def update_nome(self, nome):
        nome = self.clean_nome(nome)
        rows = self.client.update(
            'profiles', {'nome_completo': nome}, filters={'id': self.sessao.user_id}
        )
        if not rows:
            raise RemoteOperationError("Não foi possível atualizar o perfil.")

        # O nome aparece no menu, que lê a sessão em cache
        invalidate_session_cache(self.sessao.user_id)
        logger.info(f"Nome do perfil atualizado: {self.sessao.email}")
        return Corretor.from_row(rows[0])
