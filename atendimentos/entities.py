"""
Registros lidos do Supabase.

Não há models do Django aqui: as tabelas vivem no banco do Supabase e este
app apenas lê e atualiza as linhas pela API.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.utils.dateparse import parse_datetime

STATUS_AUTOMATIZADO = 'Automatizado'
STATUS_EM_ESPERA = 'Em Espera'
STATUS_COM_CORRETOR = 'Com Corretor'
STATUS_FINALIZADO = 'Finalizado'

STATUS_CHOICES = (
    (STATUS_AUTOMATIZADO, 'Em Atendimento Automático'),
    (STATUS_EM_ESPERA, 'Clientes em Espera'),
    (STATUS_COM_CORRETOR, 'Atendimentos Assumidos'),
    (STATUS_FINALIZADO, 'Finalizado'),
)

# Ordem do ciclo de vida: o status só avança
STATUS_RANK = {
    STATUS_AUTOMATIZADO: 0,
    STATUS_EM_ESPERA: 0,
    STATUS_COM_CORRETOR: 1,
    STATUS_FINALIZADO: 2,
}

CANAL_CHOICES = (
    ('whatsapp', 'WhatsApp'),
    ('instagram', 'Instagram'),
)


def can_transition(current, target):
    """
    Automatizado/Em Espera -> Com Corretor -> Finalizado.
    Finalizado é terminal; status desconhecidos nunca transitam.
    """
    if current not in STATUS_RANK or target not in STATUS_RANK:
        return False
    return STATUS_RANK[target] > STATUS_RANK[current]


def parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return parse_datetime(value)


@dataclass
class Corretor:
    id: str
    nome_completo: str
    foto_url: Optional[str] = None
    posicao_fila: Optional[int] = None
    role: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Preenchido na hora da exibição; nunca persistido
    foto_assinada: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['id'],
            nome_completo=row.get('nome_completo') or '',
            foto_url=row.get('foto_url'),
            posicao_fila=row.get('posicao_fila'),
            role=row.get('role') or '',
            created_at=parse_timestamp(row.get('created_at')),
            updated_at=parse_timestamp(row.get('updated_at')),
        )

    @property
    def inicial(self):
        return self.nome_completo[:1].upper() if self.nome_completo else '?'


@dataclass
class Atendimento:
    id: int
    canal: str
    cliente_nome: str
    cliente_contato: str
    status: str
    corretor_responsavel_id: Optional[str] = None
    timestamp_fila: Optional[datetime] = None
    relatorio_ia: Optional[str] = None
    session_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    corretor: Optional[Corretor] = None

    @classmethod
    def from_row(cls, row):
        perfil = row.get('profiles')
        return cls(
            id=row['id'],
            canal=row.get('canal') or '',
            cliente_nome=row.get('cliente_nome') or '',
            cliente_contato=row.get('cliente_contato') or '',
            status=row.get('status') or '',
            corretor_responsavel_id=row.get('corretor_responsavel_id'),
            timestamp_fila=parse_timestamp(row.get('timestamp_fila')),
            relatorio_ia=row.get('relatorio_ia'),
            session_id=row.get('session_id'),
            created_at=parse_timestamp(row.get('created_at')),
            updated_at=parse_timestamp(row.get('updated_at')),
            corretor=Corretor.from_row(perfil) if perfil else None,
        )

    def get_canal_display(self):
        return dict(CANAL_CHOICES).get(self.canal, self.canal)

    def get_status_display(self):
        return dict(STATUS_CHOICES).get(self.status, self.status)

    @property
    def is_finalizado(self):
        return self.status == STATUS_FINALIZADO


@dataclass
class PreferenciaCliente:
    tipo: str
    valor_texto: Optional[str] = None
    valor_numero: Optional[float] = None
    atendimento_id: Optional[int] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            tipo=row.get('tipo') or '',
            valor_texto=row.get('valor_texto'),
            valor_numero=row.get('valor_numero'),
            atendimento_id=row.get('atendimento_id'),
        )

    @property
    def valor(self):
        if self.valor_texto:
            return self.valor_texto
        if self.valor_numero is not None:
            numero = self.valor_numero
            if isinstance(numero, float) and numero.is_integer():
                numero = int(numero)
            return str(numero)
        return ''


@dataclass
class MensagemHistorico:
    id: int
    session_id: str
    remetente: str
    conteudo: str
    created_at: Optional[datetime] = None

    REMETENTES = {'human': 'Cliente', 'ai': 'Assistente IA'}

    @classmethod
    def from_row(cls, row):
        message = row.get('message') or {}
        if isinstance(message, str):
            try:
                message = json.loads(message)
            except ValueError:
                message = {'type': '', 'content': message}
        return cls(
            id=row['id'],
            session_id=row.get('session_id') or '',
            remetente=message.get('type') or '',
            conteudo=message.get('content') or '',
            created_at=parse_timestamp(row.get('created_at')),
        )

    @property
    def is_cliente(self):
        return self.remetente == 'human'

    def get_remetente_display(self):
        return self.REMETENTES.get(self.remetente, self.remetente or 'Sistema')
