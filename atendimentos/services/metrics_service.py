import logging
from collections import Counter
from dataclasses import dataclass

from atendimentos.entities import (
    STATUS_AUTOMATIZADO,
    STATUS_COM_CORRETOR,
    Corretor,
    PreferenciaCliente,
)
from integracao_supabase.services.base import SupabaseClient
from perfis.services.avatar_service import AvatarService

logger = logging.getLogger(__name__)


@dataclass
class PreferenciaResumo:
    valor: str
    tipo: str
    total: int


@dataclass
class CorretorAtivo:
    corretor: Corretor
    atendimentos: int


class DashboardMetricsService:
    """Métricas do painel inicial (Métricas Enleve)."""

    CANAIS = ('whatsapp', 'instagram')
    PREFERENCIAS_AMOSTRA = 20
    PREFERENCIAS_TOPO = 8

    def __init__(self, sessao, client=None, avatar_service=None):
        self.sessao = sessao
        self.client = client or SupabaseClient(access_token=sessao.access_token)
        self.avatar_service = avatar_service or AvatarService(sessao.access_token, client=self.client)

    def count_automated_by_channel(self):
        return {
            canal: self.client.count(
                'atendimento', filters={'canal': canal, 'status': STATUS_AUTOMATIZADO}
            )
            for canal in self.CANAIS
        }

    def top_preferences(self):
        rows = self.client.select(
            'preferenciacliente',
            columns='tipo, valor_texto, valor_numero',
            limit=self.PREFERENCIAS_AMOSTRA,
        )
        preferencias = [PreferenciaCliente.from_row(row) for row in rows]

        contagem = Counter()
        tipos = {}
        for pref in preferencias:
            # O tipo exibido é o da primeira ocorrência do valor
            tipos.setdefault(pref.valor, pref.tipo)
            contagem[pref.valor] += 1

        return [
            PreferenciaResumo(valor=valor, tipo=tipos[valor], total=total)
            for valor, total in contagem.most_common(self.PREFERENCIAS_TOPO)
        ]

    def active_brokers(self):
        rows = self.client.select(
            'atendimento',
            columns='corretor_responsavel_id',
            filters={'status': STATUS_COM_CORRETOR},
        )
        contagem = Counter(
            row['corretor_responsavel_id'] for row in rows if row.get('corretor_responsavel_id')
        )
        if not contagem:
            return []

        profiles = self.client.select(
            'profiles',
            columns='id, nome_completo, foto_url',
            filters={'id': ('in', list(contagem))},
        )

        ativos = []
        for row in profiles:
            corretor = Corretor.from_row(row)
            corretor.foto_assinada = self.avatar_service.signed_url(corretor.foto_url)
            ativos.append(CorretorAtivo(corretor=corretor, atendimentos=contagem[corretor.id]))

        ativos.sort(key=lambda a: (-a.atendimentos, a.corretor.nome_completo))
        return ativos

    def load(self):
        contagem = self.count_automated_by_channel()
        return {
            'whatsapp_count': contagem['whatsapp'],
            'instagram_count': contagem['instagram'],
            'top_preferencias': self.top_preferences(),
            'corretores_ativos': self.active_brokers(),
        }
