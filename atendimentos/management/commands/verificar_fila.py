from collections import Counter

from django.core.management.base import BaseCommand, CommandError

from atendimentos.entities import Corretor
from core.exceptions import RemoteOperationError
from core.session import ROLE_CORRETOR
from integracao_supabase.services.base import get_service_client


def find_queue_problems(corretores):
    """
    A fila deve ser 1..N sem buracos nem repetições.
    Retorna (posicoes_faltando, posicoes_repetidas, sem_posicao).
    """
    posicoes = [c.posicao_fila for c in corretores if c.posicao_fila is not None]
    sem_posicao = [c for c in corretores if c.posicao_fila is None]

    contagem = Counter(posicoes)
    repetidas = sorted(p for p, total in contagem.items() if total > 1)
    esperadas = set(range(1, len(corretores) + 1))
    faltando = sorted(esperadas - set(posicoes))
    return faltando, repetidas, sem_posicao


class Command(BaseCommand):
    help = 'Lista a fila de corretores e aponta posições faltando ou repetidas. Somente leitura.'

    def handle(self, *args, **options):
        try:
            client = get_service_client()
            rows = client.select(
                'profiles',
                columns='id, nome_completo, posicao_fila, role',
                filters={'role': ROLE_CORRETOR},
                order=[('posicao_fila', True)],
            )
        except RemoteOperationError as e:
            raise CommandError(f"Erro ao consultar a fila: {e}")

        corretores = [Corretor.from_row(row) for row in rows]
        if not corretores:
            self.stdout.write(self.style.WARNING("Nenhum corretor cadastrado."))
            return

        for corretor in corretores:
            posicao = corretor.posicao_fila if corretor.posicao_fila is not None else '-'
            self.stdout.write(f"{posicao:>3}  {corretor.nome_completo or corretor.id}")

        faltando, repetidas, sem_posicao = find_queue_problems(corretores)

        if faltando:
            self.stdout.write(self.style.WARNING(f"Posições faltando: {', '.join(map(str, faltando))}"))
        if repetidas:
            self.stdout.write(self.style.WARNING(f"Posições repetidas: {', '.join(map(str, repetidas))}"))
        for corretor in sem_posicao:
            self.stdout.write(self.style.WARNING(f"Corretor sem posição na fila: {corretor.nome_completo or corretor.id}"))

        if faltando or repetidas or sem_posicao:
            self.stdout.write(self.style.ERROR("Fila inconsistente."))
        else:
            self.stdout.write(self.style.SUCCESS(f"Fila consistente: {len(corretores)} corretores."))
