import time
from unittest.mock import MagicMock

from django.core.cache import cache

from core.session import CACHE_PREFIX, SESSION_KEY, CurrentSession


def make_sessao(user_id='corretor-1', email='corretor@enleve.com', roles=('corretor',), nome='Corretor Teste'):
    return CurrentSession(
        user_id=user_id,
        email=email,
        access_token=f"token-{user_id}",
        roles=list(roles),
        nome=nome,
    )


def login_as(client, user_id='corretor-1', email='corretor@enleve.com', roles=('corretor',), nome='Corretor Teste'):
    """
    Grava tokens válidos na sessão do Client e deixa a identidade no cache,
    sem nenhuma chamada ao Supabase.
    """
    session = client.session
    session[SESSION_KEY] = {
        'access_token': f"token-{user_id}",
        'refresh_token': f"refresh-{user_id}",
        'expires_at': int(time.time()) + 3600,
        'user_id': user_id,
        'email': email,
    }
    session.save()
    cache.set(f"{CACHE_PREFIX}:{user_id}", {
        'user_id': user_id,
        'email': email,
        'roles': list(roles),
        'nome': nome,
    }, 300)
    return make_sessao(user_id, email, roles, nome)


def mock_response(status_code=200, json_data=None, headers=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    if json_data is None:
        response.content = b''
        response.json.side_effect = ValueError("sem corpo")
    else:
        response.content = b'{}'
        response.json.return_value = json_data
    response.text = text if text is not None else str(json_data or '')
    return response
