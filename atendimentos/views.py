import logging

from django.conf import settings
from django.contrib import messages
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from atendimentos.services.board_service import LeadBoardService, Quadro
from atendimentos.services.invalidation import TOPIC_QUADRO, get_invalidation_strategy
from core.decorators import supabase_login_required
from core.exceptions import CRMError, RemoteOperationError

logger = logging.getLogger(__name__)


def _mensagem_de_erro(e, padrao):
    # Falhas de rede mostram a mensagem genérica da ação
    if isinstance(e, RemoteOperationError):
        return padrao
    return e.message


def _quadro_context(request, service):
    strategy = get_invalidation_strategy()
    versao = strategy.current_version(TOPIC_QUADRO)
    try:
        quadro = service.load_board()
    except RemoteOperationError as e:
        logger.error(f"Erro ao carregar atendimentos: {e}")
        messages.error(request, "Erro ao carregar atendimentos.")
        quadro = Quadro(automatizados=[], em_espera=[], com_corretor=[])

    try:
        posicao_fila = service.get_queue_position()
    except RemoteOperationError as e:
        logger.warning(f"Não foi possível ler a posição na fila de {request.sessao.email}: {e}")
        posicao_fila = None

    return {
        'quadro': quadro,
        'posicao_fila': posicao_fila,
        'versao': versao,
        'poll_interval': settings.BOARD_POLL_INTERVAL,
    }


def _render_colunas(request, service):
    return render(request, 'atendimentos/partials/colunas.html', _quadro_context(request, service))


def _responder_acao(request, service):
    """Após uma ação: htmx recebe as colunas atualizadas, o resto volta ao quadro."""
    if request.htmx:
        return _render_colunas(request, service)
    return redirect('atendimentos:kanban')


@supabase_login_required
def kanban(request):
    service = LeadBoardService(request.sessao)
    return render(request, 'atendimentos/kanban.html', _quadro_context(request, service))


@supabase_login_required
def kanban_colunas(request):
    """Polling do quadro (htmx). 204 quando nada mudou desde a versão exibida."""
    strategy = get_invalidation_strategy()
    if not strategy.has_changed(TOPIC_QUADRO, request.GET.get('versao')):
        return HttpResponse(status=204)
    return _render_colunas(request, LeadBoardService(request.sessao))


@require_POST
@supabase_login_required
def assumir_automatizado(request, pk):
    service = LeadBoardService(request.sessao)
    try:
        resultado = service.claim_automated(pk)
    except CRMError as e:
        logger.error(f"Erro ao assumir atendimento {pk}: {e}")
        messages.error(request, _mensagem_de_erro(e, "Erro ao assumir atendimento"))
    else:
        messages.success(request, resultado.mensagem)
    return _responder_acao(request, service)


@require_POST
@supabase_login_required
def assumir_espera(request, pk):
    service = LeadBoardService(request.sessao)
    try:
        resultado = service.claim_waiting(pk)
    except CRMError as e:
        logger.error(f"Erro ao assumir atendimento em espera {pk}: {e}")
        messages.error(request, _mensagem_de_erro(e, "Erro ao assumir atendimento"))
    else:
        messages.success(request, resultado.mensagem)
    return _responder_acao(request, service)


@require_POST
@supabase_login_required
def finalizar(request, pk):
    service = LeadBoardService(request.sessao)
    try:
        service.finalize(pk)
    except CRMError as e:
        logger.error(f"Erro ao finalizar atendimento {pk}: {e}")
        messages.error(request, _mensagem_de_erro(e, "Erro ao finalizar atendimento"))
    else:
        messages.success(request, "Atendimento finalizado!")
    return _responder_acao(request, service)


@supabase_login_required
def relatorio(request, pk):
    service = LeadBoardService(request.sessao)
    try:
        atendimento = service.get_atendimento(pk)
    except CRMError as e:
        logger.error(f"Erro ao abrir relatório do atendimento {pk}: {e}")
        return render(request, 'atendimentos/partials/erro_modal.html', {'erro': e.message})

    return render(request, 'atendimentos/partials/relatorio.html', {'atendimento': atendimento})


@supabase_login_required
def historico(request, pk):
    service = LeadBoardService(request.sessao)
    try:
        atendimento = service.get_atendimento(pk)
        mensagens = service.load_history(atendimento)
    except CRMError as e:
        logger.error(f"Erro ao carregar histórico do atendimento {pk}: {e}")
        return render(request, 'atendimentos/partials/erro_modal.html', {'erro': e.message})

    return render(request, 'atendimentos/partials/historico.html', {
        'atendimento': atendimento,
        'mensagens': mensagens,
    })
