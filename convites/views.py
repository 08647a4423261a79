import json
import logging

from django.contrib import messages
from django.http import JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from convites.forms import ConviteForm
from convites.services.invite_service import InviteService
from core.decorators import role_required
from core.exceptions import (
    AccessDeniedError,
    CRMError,
    SessionInvalidError,
)
from core.session import ROLE_ADMIN

logger = logging.getLogger(__name__)


@role_required(ROLE_ADMIN)
def gerenciar_usuarios(request):
    if request.method == 'POST':
        form = ConviteForm(request.POST)
        if form.is_valid():
            try:
                resultado = InviteService().invite(
                    request.sessao.access_token,
                    form.cleaned_data['email'],
                    form.cleaned_data['role'],
                )
            except SessionInvalidError as e:
                logger.warning(f"Convite com sessão inválida: {e}")
                messages.error(request, "Sessão inválida ou expirada. Faça login novamente.")
                return redirect('core:login')
            except CRMError as e:
                logger.error(f"Erro ao enviar convite para {form.cleaned_data['email']}: {e}")
                messages.error(request, f"Erro ao enviar convite: {e.message}")
            else:
                messages.success(request, "Convite enviado com sucesso!")
                if not resultado.email_enviado:
                    messages.warning(request, "O convite foi criado, mas o email de aviso não pôde ser enviado.")
                return redirect('convites:gerenciar_usuarios')
    else:
        form = ConviteForm()

    return render(request, 'convites/gerenciar_usuarios.html', {'form': form})


def _bearer_token(request):
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


@csrf_exempt
@require_POST
def api_convidar(request):
    """
    POST /api/convites/  Authorization: Bearer <access_token>
    Corpo: {"email": "...", "role": "admin" | "corretor"}
    """
    if 'application/json' not in request.headers.get('Content-Type', ''):
        return JsonResponse({'error': 'JSON required'}, status=400)

    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    if not isinstance(data, dict):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)

    try:
        resultado = InviteService().invite(_bearer_token(request), data.get('email'), data.get('role'))
    except SessionInvalidError as e:
        return JsonResponse({'error': e.message}, status=401)
    except AccessDeniedError as e:
        return JsonResponse({'error': e.message}, status=403)
    except CRMError as e:
        logger.error(f"Erro na API de convites: {e}")
        return JsonResponse({'error': e.message}, status=400)

    return JsonResponse({
        'success': True,
        'message': resultado.message,
    })
