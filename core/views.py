import logging

from django.conf import settings
from django.contrib import messages
from django.http import HttpResponse
from django.shortcuts import redirect, render, resolve_url
from django.urls import reverse
from django.utils.decorators import method_decorator
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST
from django.views.generic import TemplateView

from atendimentos.services.invalidation import TOPIC_PAINEL, get_invalidation_strategy
from atendimentos.services.metrics_service import DashboardMetricsService
from core.decorators import supabase_login_required
from core.exceptions import RemoteOperationError
from core.forms import CadastroForm, LoginForm
from core.session import ROLE_CORRETOR, get_current_session, get_session_provider
from integracao_supabase.services.auth import SupabaseAuth

logger = logging.getLogger(__name__)

AVISO_VISTO_KEY = 'aviso_lead_visto'


def _safe_next(request):
    next_url = request.POST.get('next') or request.GET.get('next')
    if next_url and url_has_allowed_host_and_scheme(
        next_url, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return next_url
    return resolve_url(settings.LOGIN_REDIRECT_URL)


def login_view(request):
    try:
        if get_current_session(request):
            return redirect(settings.LOGIN_REDIRECT_URL)
    except RemoteOperationError as e:
        logger.warning(f"Sessão anterior descartada no login: {e}")

    if request.method == 'POST':
        form = LoginForm(request.POST)
        if form.is_valid():
            try:
                get_session_provider().sign_in(
                    request,
                    form.cleaned_data['email'],
                    form.cleaned_data['password'],
                )
            except RemoteOperationError as e:
                if e.status_code in (400, 401, 422):
                    logger.warning(f"Login recusado para {form.cleaned_data['email']}: {e}")
                    messages.error(request, "Email ou senha incorretos")
                else:
                    logger.error(f"Erro ao autenticar {form.cleaned_data['email']}: {e}")
                    messages.error(request, "Não foi possível conectar ao servidor. Tente novamente.")
            else:
                messages.success(request, "Bem-vindo de volta!")
                return redirect(_safe_next(request))
    else:
        form = LoginForm()

    return _render_acesso(request, form=form)


def _render_acesso(request, form=None, cadastro_form=None, aba='entrar'):
    return render(request, 'core/login.html', {
        'form': form or LoginForm(),
        'cadastro_form': cadastro_form or CadastroForm(),
        'aba': aba,
        'next': request.POST.get('next') or request.GET.get('next', ''),
    })


def cadastro_view(request):
    """Cadastro público de corretores; a conta vale depois da confirmação por email."""
    if request.method != 'POST':
        return _render_acesso(request, aba='cadastro')

    form = CadastroForm(request.POST)
    if not form.is_valid():
        return _render_acesso(request, cadastro_form=form, aba='cadastro')

    email = form.cleaned_data['email']
    try:
        SupabaseAuth().sign_up(
            email,
            form.cleaned_data['password'],
            data={
                'nome_completo': form.cleaned_data['nome_completo'],
                'role': ROLE_CORRETOR,
            },
            redirect_to=request.build_absolute_uri(reverse('core:dashboard')),
        )
    except RemoteOperationError as e:
        if 'already registered' in e.message.lower():
            logger.warning(f"Cadastro recusado, email já existe: {email}")
            messages.error(request, "Email já cadastrado")
        else:
            logger.error(f"Erro ao criar conta para {email}: {e}")
            messages.error(request, "Erro ao criar conta")
        return _render_acesso(request, cadastro_form=form, aba='cadastro')

    logger.info(f"Conta criada para {email}, aguardando confirmação")
    messages.success(request, "Conta criada! Verifique seu email.")
    return redirect('core:login')


@require_POST
def logout_view(request):
    get_session_provider().sign_out(request)
    messages.info(request, "Até logo!")
    return redirect(settings.LOGIN_URL)


def _consume_notices(request, strategy):
    """Avisos de novos leads ainda não exibidos para esta sessão (exibição única)."""
    visto = request.session.get(AVISO_VISTO_KEY)
    ultimo = strategy.last_notice_seq()
    pendentes = strategy.pending_notices(after=visto or 0)
    # Guarda a sequência atual mesmo sem avisos, para acompanhar um reinício do cache
    request.session[AVISO_VISTO_KEY] = max([ultimo] + [n['seq'] for n in pendentes])
    # Na primeira visita os avisos antigos são apenas marcados como vistos
    if visto is None:
        return []
    return pendentes


def _load_metrics(request):
    try:
        return DashboardMetricsService(request.sessao).load()
    except RemoteOperationError as e:
        logger.error(f"Erro ao carregar métricas do painel: {e}")
        messages.error(request, "Erro ao carregar métricas.")
        return {
            'whatsapp_count': 0,
            'instagram_count': 0,
            'top_preferencias': [],
            'corretores_ativos': [],
        }


@method_decorator(supabase_login_required, name='dispatch')
class DashboardView(TemplateView):
    template_name = 'core/dashboard.html'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        strategy = get_invalidation_strategy()
        _consume_notices(self.request, strategy)

        context.update(_load_metrics(self.request))
        context['versao'] = strategy.current_version(TOPIC_PAINEL)
        context['poll_interval'] = settings.BOARD_POLL_INTERVAL
        return context


@supabase_login_required
def dashboard_atualizacoes(request):
    """
    Polling do painel (htmx). Sem mudança desde a versão exibida responde
    204 e a tela não é trocada.
    """
    strategy = get_invalidation_strategy()
    avisos = _consume_notices(request, strategy)
    versao_vista = request.GET.get('versao')

    if not avisos and not strategy.has_changed(TOPIC_PAINEL, versao_vista):
        return HttpResponse(status=204)

    for aviso in avisos:
        messages.info(request, f"Novo lead aguardando! Cliente: {aviso['cliente_nome']}")

    context = _load_metrics(request)
    context['versao'] = strategy.current_version(TOPIC_PAINEL)
    context['poll_interval'] = settings.BOARD_POLL_INTERVAL
    return render(request, 'core/partials/metricas.html', context)
