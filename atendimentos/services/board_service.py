import logging
from dataclasses import dataclass

from django.conf import settings

from atendimentos.entities import (
    STATUS_AUTOMATIZADO,
    STATUS_COM_CORRETOR,
    STATUS_EM_ESPERA,
    STATUS_FINALIZADO,
    Atendimento,
    MensagemHistorico,
    can_transition,
)
from core.exceptions import (
    InvalidTransitionError,
    LeadUnavailableError,
    NotYourTurnError,
    RemoteOperationError,
)
from integracao_supabase.services.base import SupabaseClient

logger = logging.getLogger(__name__)


@dataclass
class Quadro:
    automatizados: list
    em_espera: list
    com_corretor: list

    @property
    def total(self):
        return len(self.automatizados) + len(self.em_espera) + len(self.com_corretor)


@dataclass
class ClaimResult:
    atendimento: Atendimento
    fila_rotacionada: bool = False

    @property
    def mensagem(self):
        if self.fila_rotacionada:
            return "Atendimento assumido! Você foi movido para o final da fila."
        return "Atendimento assumido!"


class LeadBoardService:
    """
    Quadro de atendimentos do corretor logado.

    Todas as escritas de status são condicionadas ao status atual no banco
    (status=eq.<esperado>): se outro corretor mexeu no lead antes, nenhuma
    linha é alterada e o lead é reportado como indisponível.
    """

    TABLE = 'atendimento'
    HISTORY_TABLE = 'n8n_chat_histories'
    ROTATION_PROCEDURE = 'rotacionar_fila'

    def __init__(self, sessao, client=None):
        self.sessao = sessao
        self.client = client or SupabaseClient(access_token=sessao.access_token)

    # ------------------------------------------------------------------
    # Leitura
    # ------------------------------------------------------------------

    def load_automated(self):
        rows = self.client.select(
            self.TABLE,
            filters={'status': STATUS_AUTOMATIZADO},
            order=[('created_at', False)],
        )
        return [Atendimento.from_row(row) for row in rows]

    def load_waiting(self):
        rows = self.client.select(
            self.TABLE,
            filters={'status': STATUS_EM_ESPERA},
            order=[('timestamp_fila', True)],
        )
        return [Atendimento.from_row(row) for row in rows]

    def load_assigned(self):
        rows = self.client.select(
            self.TABLE,
            columns='*, profiles(*)',
            filters={'status': STATUS_COM_CORRETOR},
            order=[('updated_at', False)],
        )
        return [Atendimento.from_row(row) for row in rows]

    def load_board(self):
        return Quadro(
            automatizados=self.load_automated(),
            em_espera=self.load_waiting(),
            com_corretor=self.load_assigned(),
        )

    def get_atendimento(self, atendimento_id):
        row = self.client.select_one(self.TABLE, filters={'id': atendimento_id})
        if row is None:
            raise LeadUnavailableError("Atendimento não encontrado.")
        return Atendimento.from_row(row)

    def load_history(self, atendimento):
        if not atendimento.session_id:
            return []
        rows = self.client.select(
            self.HISTORY_TABLE,
            filters={'session_id': atendimento.session_id},
            order=[('id', True)],
        )
        return [MensagemHistorico.from_row(row) for row in rows]

    def get_queue_position(self):
        """Posição atual do corretor logado, lida na hora (nunca do cache)."""
        profile = self.client.select_one(
            'profiles', columns='posicao_fila', filters={'id': self.sessao.user_id}
        )
        return (profile or {}).get('posicao_fila')

    # ------------------------------------------------------------------
    # Ações
    # ------------------------------------------------------------------

    def claim_automated(self, atendimento_id):
        atendimento = self._transition(
            atendimento_id,
            STATUS_AUTOMATIZADO,
            STATUS_COM_CORRETOR,
            corretor_responsavel_id=self.sessao.user_id,
        )
        return ClaimResult(atendimento=atendimento)

    def claim_waiting(self, atendimento_id):
        if settings.ENFORCE_QUEUE_TURN:
            posicao = self.get_queue_position()
            if posicao != 1:
                logger.warning(
                    f"{self.sessao.email} tentou assumir o atendimento {atendimento_id} "
                    f"fora da vez (posição {posicao})"
                )
                raise NotYourTurnError()

        atendimento = self._transition(
            atendimento_id,
            STATUS_EM_ESPERA,
            STATUS_COM_CORRETOR,
            corretor_responsavel_id=self.sessao.user_id,
        )

        rotated = self._rotate_queue()
        return ClaimResult(atendimento=atendimento, fila_rotacionada=rotated)

    def finalize(self, atendimento_id):
        current = self.get_atendimento(atendimento_id)
        return self._transition(atendimento_id, current.status, STATUS_FINALIZADO)

    # ------------------------------------------------------------------

    def _transition(self, atendimento_id, expected_status, target_status, **values):
        if not can_transition(expected_status, target_status):
            raise InvalidTransitionError(
                f"Não é possível mover o atendimento de '{expected_status}' para '{target_status}'."
            )

        rows = self.client.update(
            self.TABLE,
            {'status': target_status, **values},
            filters={'id': atendimento_id, 'status': expected_status},
        )
        if not rows:
            logger.warning(
                f"Atendimento {atendimento_id} não estava mais em '{expected_status}' "
                f"(ação de {self.sessao.email})"
            )
            raise LeadUnavailableError()

        logger.info(f"Atendimento {atendimento_id}: {expected_status} -> {target_status} por {self.sessao.email}")
        return Atendimento.from_row(rows[0])

    def _rotate_queue(self):
        """Move o corretor para o final da fila. Falha aqui não desfaz o atendimento."""
        try:
            self.client.rpc(self.ROTATION_PROCEDURE, {'corretor_id': self.sessao.user_id})
        except RemoteOperationError as e:
            logger.error(f"Erro ao rotacionar fila para {self.sessao.email}: {e}")
            return False
        return True
