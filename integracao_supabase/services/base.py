import logging

import requests
from django.conf import settings

from core.exceptions import RemoteOperationError

logger = logging.getLogger(__name__)


def extract_error_message(response):
    """
    Extrai a mensagem de erro de uma resposta do Supabase.
    PostgREST usa 'message', o GoTrue usa 'msg' ou 'error_description'
    e o Storage usa 'error'/'message'.
    """
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(data, dict):
        for key in ('message', 'msg', 'error_description', 'error'):
            if data.get(key):
                return str(data[key])
    return response.text or f"HTTP {response.status_code}"


class SupabaseService:
    """
    Base das integrações com o Supabase.
    Cada requisição leva a chave pública (apikey) e o token do usuário,
    para que as políticas de RLS do banco sejam aplicadas a quem está logado.
    """

    def __init__(self, access_token=None, api_key=None, base_url=None, timeout=None):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip('/')
        self.api_key = api_key or settings.SUPABASE_ANON_KEY
        self.access_token = access_token
        self.timeout = timeout or settings.SUPABASE_TIMEOUT

    def _headers(self, extra=None):
        headers = {
            'apikey': self.api_key,
            'Authorization': f"Bearer {self.access_token or self.api_key}",
            'Accept': 'application/json',
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method, path, headers=None, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(headers),
                timeout=self.timeout,
                **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"Falha de rede ao chamar o Supabase ({method} {path}): {e}")
            raise RemoteOperationError(f"Falha na requisição de rede para o Supabase: {e}") from e

        if response.status_code >= 400:
            error_msg = extract_error_message(response)
            logger.error(f"Supabase respondeu {response.status_code} em {method} {path}: {error_msg}")
            raise RemoteOperationError(error_msg, status_code=response.status_code)

        return response


def _format_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    return str(value)


def build_filters(filters):
    """
    Converte filtros em parâmetros do PostgREST.

    {'status': 'Em Espera'}          -> status=eq.Em Espera
    {'id': ('in', [1, 2])}           -> id=in.(1,2)
    {'foto_url': ('is', None)}       -> foto_url=is.null
    """
    params = []
    for column, condition in (filters or {}).items():
        if isinstance(condition, tuple):
            operator, value = condition
        else:
            operator, value = 'eq', condition

        if operator == 'in':
            value = '(' + ','.join(_format_value(v) for v in value) + ')'
        else:
            value = _format_value(value)
        params.append((column, f"{operator}.{value}"))
    return params


def build_order(order):
    """[('timestamp_fila', True), ('id', False)] -> 'timestamp_fila.asc,id.desc'"""
    return ','.join(
        f"{column}.{'asc' if ascending else 'desc'}" for column, ascending in order
    )


class SupabaseClient(SupabaseService):
    """
    Acesso às tabelas (PostgREST) e às funções do banco (RPC).
    """

    REST_PATH = '/rest/v1'

    def select(self, table, columns='*', filters=None, order=None, limit=None):
        params = [('select', columns)] + build_filters(filters)
        if order:
            params.append(('order', build_order(order)))
        if limit:
            params.append(('limit', str(limit)))

        response = self._request('GET', f"{self.REST_PATH}/{table}", params=params)
        return response.json()

    def select_one(self, table, columns='*', filters=None):
        rows = self.select(table, columns=columns, filters=filters, limit=1)
        return rows[0] if rows else None

    def count(self, table, filters=None):
        """Contagem exata sem trazer as linhas (equivalente ao head=true do supabase-js)."""
        params = [('select', '*')] + build_filters(filters)
        response = self._request(
            'HEAD',
            f"{self.REST_PATH}/{table}",
            params=params,
            headers={'Prefer': 'count=exact'},
        )
        content_range = response.headers.get('Content-Range', '')
        total = content_range.rsplit('/', 1)[-1]
        return int(total) if total.isdigit() else 0

    def update(self, table, values, filters):
        """
        Atualiza as linhas que casam com os filtros e devolve as linhas alteradas.
        Lista vazia significa que nenhuma linha casou (ou o RLS bloqueou).
        """
        if not filters:
            raise ValueError("update sem filtros alteraria a tabela inteira")

        response = self._request(
            'PATCH',
            f"{self.REST_PATH}/{table}",
            params=build_filters(filters),
            json=values,
            headers={'Prefer': 'return=representation', 'Content-Type': 'application/json'},
        )
        return response.json() if response.content else []

    def rpc(self, function_name, params=None):
        response = self._request(
            'POST',
            f"{self.REST_PATH}/rpc/{function_name}",
            json=params or {},
            headers={'Content-Type': 'application/json'},
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text


def get_service_client():
    """Cliente com a service role key - uso restrito a comandos administrativos."""
    key = settings.SUPABASE_SERVICE_ROLE_KEY
    if not key:
        raise RemoteOperationError("SUPABASE_SERVICE_ROLE_KEY não configurada.")
    return SupabaseClient(access_token=key, api_key=key)
