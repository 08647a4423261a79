"""
Invalidação do quadro e do painel.

O Supabase avisa as mudanças pelo webhook do banco; a estratégia registra o
evento e as telas, que consultam a versão por polling, recarregam quando ela
muda. A estratégia em uso vem de settings.BOARD_INVALIDATION_STRATEGY.
"""

import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone
from django.utils.module_loading import import_string

from atendimentos.entities import STATUS_EM_ESPERA
from core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

TOPIC_QUADRO = 'quadro'
TOPIC_PAINEL = 'painel'

# Tabelas observadas e as telas afetadas por cada uma
TABLE_TOPICS = {
    'atendimento': (TOPIC_QUADRO, TOPIC_PAINEL),
    'profiles': (TOPIC_QUADRO, TOPIC_PAINEL),
    'preferenciacliente': (TOPIC_PAINEL,),
}

EVENT_TYPES = ('INSERT', 'UPDATE', 'DELETE')


@dataclass
class ChangeEvent:
    type: str
    table: str
    record: dict = field(default_factory=dict)
    old_record: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload):
        """Monta o evento a partir do corpo do webhook do banco."""
        if not isinstance(payload, dict):
            raise InvalidInputError("Payload do webhook inválido.")

        event_type = str(payload.get('type') or '').upper()
        table = payload.get('table') or ''
        if event_type not in EVENT_TYPES or not table or not isinstance(table, str):
            raise InvalidInputError("Evento sem tipo ou tabela.")

        record = payload.get('record') or {}
        old_record = payload.get('old_record') or {}
        if not isinstance(record, dict) or not isinstance(old_record, dict):
            raise InvalidInputError("Registro do evento inválido.")

        return cls(type=event_type, table=table, record=record, old_record=old_record)

    @property
    def topics(self):
        return TABLE_TOPICS.get(self.table, ())

    @property
    def is_new_waiting_lead(self):
        return (
            self.type == 'INSERT'
            and self.table == 'atendimento'
            and self.record.get('status') == STATUS_EM_ESPERA
        )


class InvalidationStrategy:
    """
    Interface das estratégias de invalidação.

    notify() recebe cada evento do banco; current_version() devolve um
    marcador que muda sempre que a tela do tópico precisa recarregar.
    """

    def notify(self, event):
        raise NotImplementedError

    def current_version(self, topic):
        raise NotImplementedError

    def has_changed(self, topic, seen_version):
        if seen_version in (None, ''):
            return True
        return str(seen_version) != str(self.current_version(topic))

    def last_notice_seq(self):
        return 0

    def pending_notices(self, after=0):
        return []


class FullRefetchStrategy(InvalidationStrategy):
    """
    Qualquer mudança numa tabela observada incrementa a versão do tópico e a
    tela recarrega todas as colunas. Recargas duplicadas são aceitáveis.

    Cada aviso fica na sua própria chave (invalidacao:aviso:<seq>), de modo
    que webhooks simultâneos não sobrescrevem a lista uns dos outros.
    """

    VERSION_KEY = 'invalidacao:versao:{topic}'
    NOTICE_KEY = 'invalidacao:aviso:{seq}'
    NOTICE_SEQ_KEY = 'invalidacao:avisos:seq'
    MAX_NOTICES = 20
    NOTICE_TIMEOUT = 60 * 60 * 24

    def notify(self, event):
        for topic in event.topics:
            self._bump(self.VERSION_KEY.format(topic=topic), initial=1)

        if event.is_new_waiting_lead:
            self._record_notice(event.record)

        logger.info(f"Evento {event.type} em {event.table} invalidou: {', '.join(event.topics) or 'nada'}")

    def current_version(self, topic):
        key = self.VERSION_KEY.format(topic=topic)
        version = cache.get(key)
        if version is None:
            cache.add(key, 1, timeout=None)
            version = cache.get(key, 1)
        return version

    def last_notice_seq(self):
        return cache.get(self.NOTICE_SEQ_KEY) or 0

    def pending_notices(self, after=0):
        last = self.last_notice_seq()
        if after > last:
            # A sequência recomeçou (cache limpo ou reiniciado)
            logger.info(f"Sequência de avisos reiniciada ({after} > {last})")
            after = 0

        first = max(after + 1, last - self.MAX_NOTICES + 1)
        keys = [self.NOTICE_KEY.format(seq=seq) for seq in range(first, last + 1)]
        found = cache.get_many(keys)
        return [found[key] for key in keys if key in found]

    def _bump(self, key, initial):
        # add() só grava se a chave não existir; incr() é atômico no Redis
        cache.add(key, initial, timeout=None)
        return cache.incr(key)

    def _record_notice(self, record):
        seq = self._bump(self.NOTICE_SEQ_KEY, initial=0)
        cache.set(self.NOTICE_KEY.format(seq=seq), {
            'seq': seq,
            'atendimento_id': record.get('id'),
            'cliente_nome': record.get('cliente_nome') or '',
            'canal': record.get('canal') or '',
            'recebido_em': timezone.now().isoformat(),
        }, timeout=self.NOTICE_TIMEOUT)


def get_invalidation_strategy():
    strategy_class = import_string(settings.BOARD_INVALIDATION_STRATEGY)
    return strategy_class()
