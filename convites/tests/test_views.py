import json
from unittest.mock import patch

from django.core.cache import cache
from django.test import Client, TestCase, override_settings
from django.urls import reverse

from convites.services.invite_service import InviteResult
from core.exceptions import AccessDeniedError, InvalidInputError, SessionInvalidError
from core.tests.helpers import login_as, mock_response


class GerenciarUsuariosViewTest(TestCase):
    def setUp(self):
        cache.clear()
        self.client = Client()
        self.url = reverse('convites:gerenciar_usuarios')

    def test_corretor_is_denied(self):
        login_as(self.client, user_id='c-1', roles=('corretor',))
        response = self.client.get(self.url, follow=False)
        self.assertRedirects(response, reverse('core:dashboard'), fetch_redirect_response=False)

    def test_anonymous_goes_to_login(self):
        response = self.client.get(self.url)
        self.assertTrue(response['Location'].startswith(reverse('core:login')))

    def test_admin_sees_form(self):
        login_as(self.client, user_id='admin-1', roles=('admin',))
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Gerenciar Usuários')

    @patch('convites.views.InviteService')
    def test_admin_sends_invite(self, mock_service):
        login_as(self.client, user_id='admin-1', roles=('admin',))
        mock_service.return_value.invite.return_value = InviteResult(
            email='novo@enleve.com', role='corretor', email_enviado=True
        )

        response = self.client.post(self.url, {'email': 'novo@enleve.com', 'role': 'corretor'}, follow=True)

        self.assertContains(response, 'Convite enviado com sucesso!')
        mock_service.return_value.invite.assert_called_once_with('token-admin-1', 'novo@enleve.com', 'corretor')

    @patch('convites.views.InviteService')
    def test_invite_error_is_shown(self, mock_service):
        login_as(self.client, user_id='admin-1', roles=('admin',))
        mock_service.return_value.invite.side_effect = InvalidInputError("Email inválido")

        response = self.client.post(self.url, {'email': 'novo@enleve.com', 'role': 'corretor'})

        self.assertContains(response, 'Erro ao enviar convite: Email inválido')


class ApiConvidarTest(TestCase):
    def setUp(self):
        self.client = Client(enforce_csrf_checks=True)
        self.url = reverse('convites:api_convidar')

    def post(self, body, token='token-admin'):
        headers = {'HTTP_AUTHORIZATION': f"Bearer {token}"} if token else {}
        return self.client.post(self.url, data=json.dumps(body), content_type='application/json', **headers)

    @patch('convites.views.InviteService')
    def test_success(self, mock_service):
        mock_service.return_value.invite.return_value = InviteResult(
            email='novo@enleve.com', role='corretor', email_enviado=True
        )
        response = self.post({'email': 'novo@enleve.com', 'role': 'corretor'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True, 'message': 'Convite enviado com sucesso'})
        mock_service.return_value.invite.assert_called_once_with('token-admin', 'novo@enleve.com', 'corretor')

    @patch('convites.views.InviteService')
    def test_missing_bearer(self, mock_service):
        mock_service.return_value.invite.side_effect = SessionInvalidError("Não autorizado")
        response = self.post({'email': 'novo@enleve.com', 'role': 'corretor'}, token=None)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {'error': 'Não autorizado'})
        self.assertIsNone(mock_service.return_value.invite.call_args[0][0])

    @patch('convites.views.InviteService')
    def test_non_admin(self, mock_service):
        mock_service.return_value.invite.side_effect = AccessDeniedError("Apenas administradores podem enviar convites")
        response = self.post({'email': 'novo@enleve.com', 'role': 'corretor'})
        self.assertEqual(response.status_code, 403)

    @patch('convites.views.InviteService')
    def test_invalid_input(self, mock_service):
        mock_service.return_value.invite.side_effect = InvalidInputError("Role inválida. Use 'admin' ou 'corretor'")
        response = self.post({'email': 'novo@enleve.com', 'role': 'gerente'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], "Role inválida. Use 'admin' ou 'corretor'")

    def test_invalid_json(self):
        response = self.client.post(self.url, data='{', content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(self.url).status_code, 405)


@override_settings(
    SUPABASE_URL='https://projeto.supabase.co',
    SUPABASE_SERVICE_ROLE_KEY='service-key',
    RESEND_API_KEY='re_teste',
)
class InviteEndToEndTest(TestCase):
    """Convite pela API, passando pelo cliente HTTP, com o email falhando."""

    def fake_backend(self, method, url, **kwargs):
        path = url.replace('https://projeto.supabase.co', '')
        self.calls.append((method, path))
        if path == '/auth/v1/user':
            return mock_response(json_data={'id': 'admin-1', 'email': 'admin@enleve.com'})
        if path == '/rest/v1/user_roles':
            return mock_response(json_data=[{'role': 'admin'}])
        if path == '/auth/v1/invite':
            return mock_response(json_data={'id': 'novo-1', 'email': 'novo@enleve.com'})
        return mock_response(status_code=404, json_data={'message': 'not found'})

    @patch('convites.services.email_service.requests.post')
    @patch('integracao_supabase.services.base.requests.request')
    def test_email_failure_still_succeeds(self, mock_request, mock_post):
        self.calls = []
        mock_request.side_effect = self.fake_backend
        mock_post.return_value = mock_response(status_code=500, json_data={'message': 'erro interno'})

        response = self.client.post(
            reverse('convites:api_convidar'),
            data=json.dumps({'email': 'novo@enleve.com', 'role': 'corretor'}),
            content_type='application/json',
            HTTP_AUTHORIZATION='Bearer token-admin',
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['success'], True)
        self.assertIn(('POST', '/auth/v1/invite'), self.calls)
        mock_post.assert_called_once()
