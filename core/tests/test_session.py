import time
from unittest.mock import MagicMock

from django.contrib.sessions.backends.db import SessionStore
from django.core.cache import cache
from django.test import RequestFactory, TestCase

from core.exceptions import RemoteOperationError
from core.session import CACHE_PREFIX, SESSION_KEY, SessionProvider


def token_data(expires_in=3600, user_id='user-1'):
    return {
        'access_token': 'access-1',
        'refresh_token': 'refresh-1',
        'expires_at': int(time.time()) + expires_in,
        'user_id': user_id,
        'email': 'ana@enleve.com',
    }


class SessionProviderTest(TestCase):
    def setUp(self):
        cache.clear()
        self.auth = MagicMock()
        self.auth.is_expiring.side_effect = lambda expires_at: expires_at <= time.time() + 300
        self.client_instance = MagicMock()
        self.client_instance.select.return_value = [{'role': 'corretor'}]
        self.client_instance.select_one.return_value = {'nome_completo': 'Ana Souza'}
        self.client_class = MagicMock(return_value=self.client_instance)
        self.provider = SessionProvider(auth=self.auth, client_class=self.client_class)

        self.request = RequestFactory().get('/')
        self.request.session = SessionStore()

    def test_no_tokens_means_no_session(self):
        self.assertIsNone(self.provider.get_current_session(self.request))
        self.client_class.assert_not_called()

    def test_sign_in_stores_tokens(self):
        self.auth.sign_in_with_password.return_value = token_data()
        self.provider.sign_in(self.request, 'ana@enleve.com', 'segredo')
        self.assertEqual(self.request.session[SESSION_KEY]['user_id'], 'user-1')

    def test_loads_identity_and_caches_it(self):
        self.request.session[SESSION_KEY] = token_data()

        sessao = self.provider.get_current_session(self.request)
        self.assertEqual(sessao.user_id, 'user-1')
        self.assertEqual(sessao.roles, ['corretor'])
        self.assertEqual(sessao.nome, 'Ana Souza')
        self.assertTrue(sessao.is_corretor)
        self.assertFalse(sessao.is_admin)
        self.assertIsNotNone(cache.get(f"{CACHE_PREFIX}:user-1"))

        # Outra requisição reaproveita o cache
        other_request = RequestFactory().get('/')
        other_request.session = self.request.session
        self.provider.get_current_session(other_request)
        self.assertEqual(self.client_class.call_count, 1)

    def test_refreshes_token_close_to_expiry(self):
        self.request.session[SESSION_KEY] = token_data(expires_in=60)
        renewed = token_data()
        renewed['access_token'] = 'access-2'
        self.auth.refresh.return_value = renewed

        token = self.provider.get_access_token(self.request)

        self.auth.refresh.assert_called_once_with('refresh-1')
        self.assertEqual(token, 'access-2')
        self.assertEqual(self.request.session[SESSION_KEY]['access_token'], 'access-2')

    def test_failed_refresh_discards_session(self):
        self.request.session[SESSION_KEY] = token_data(expires_in=60)
        self.auth.refresh.side_effect = RemoteOperationError("Invalid Refresh Token", status_code=400)

        self.assertIsNone(self.provider.get_current_session(self.request))
        self.assertNotIn(SESSION_KEY, self.request.session)

    def test_sign_out_invalidates_cache_even_if_backend_fails(self):
        self.request.session[SESSION_KEY] = token_data()
        self.provider.get_current_session(self.request)
        self.auth.sign_out.side_effect = RemoteOperationError("offline")

        self.provider.sign_out(self.request)

        self.assertIsNone(cache.get(f"{CACHE_PREFIX}:user-1"))
        self.assertNotIn(SESSION_KEY, self.request.session)
