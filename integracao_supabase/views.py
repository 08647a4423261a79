import json
import logging

from django.conf import settings
from django.http import HttpResponse
from django.utils.crypto import constant_time_compare
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from atendimentos.services.invalidation import ChangeEvent, get_invalidation_strategy
from core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name='dispatch')
class SupabaseWebhookView(View):
    """
    Recebe os webhooks do banco do Supabase (INSERT/UPDATE/DELETE em
    atendimento e profiles) e repassa para a estratégia de invalidação.
    """

    SECRET_HEADER = 'X-Webhook-Secret'

    def post(self, request):
        secret = settings.SUPABASE_WEBHOOK_SECRET
        received = request.headers.get(self.SECRET_HEADER, '')
        if not secret or not constant_time_compare(received, secret):
            logger.warning("Webhook Supabase recusado: segredo ausente ou inválido")
            return HttpResponse(status=401)

        try:
            payload = json.loads(request.body)
            event = ChangeEvent.from_payload(payload)
        except (ValueError, InvalidInputError) as e:
            logger.error(f"Erro ao processar Webhook Supabase: {e}")
            return HttpResponse(status=400)

        logger.info(f"Recebido Webhook Supabase: {event.type} em {event.table}")
        get_invalidation_strategy().notify(event)
        return HttpResponse(status=200)
