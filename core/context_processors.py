import logging

from core.exceptions import RemoteOperationError
from core.session import get_current_session
from core.utils import build_menu

logger = logging.getLogger(__name__)


def navegacao(request):
    """Menu e sessão atual disponíveis em todos os templates."""
    sessao = getattr(request, 'sessao', None)
    if sessao is None and hasattr(request, 'session'):
        try:
            sessao = get_current_session(request)
        except RemoteOperationError as e:
            logger.warning(f"Menu renderizado sem sessão: {e}")
            sessao = None

    match = getattr(request, 'resolver_match', None)
    current_url_name = match.view_name if match else None

    return {
        'sessao': sessao,
        'menu_items': build_menu(sessao, current_url_name),
    }
