import json

from django.core.cache import cache
from django.test import Client, TestCase, override_settings
from django.urls import reverse

from atendimentos.services.invalidation import TOPIC_PAINEL, TOPIC_QUADRO, FullRefetchStrategy


@override_settings(SUPABASE_WEBHOOK_SECRET='segredo-webhook')
class SupabaseWebhookTest(TestCase):
    def setUp(self):
        cache.clear()
        self.client = Client()
        self.url = reverse('integracao_supabase:webhook')
        self.strategy = FullRefetchStrategy()

    def post(self, payload, secret='segredo-webhook'):
        headers = {'HTTP_X_WEBHOOK_SECRET': secret} if secret else {}
        return self.client.post(
            self.url, data=json.dumps(payload), content_type='application/json', **headers
        )

    def test_rejects_missing_secret(self):
        response = self.post({'type': 'INSERT', 'table': 'atendimento'}, secret=None)
        self.assertEqual(response.status_code, 401)

    def test_rejects_wrong_secret(self):
        response = self.post({'type': 'INSERT', 'table': 'atendimento'}, secret='outro')
        self.assertEqual(response.status_code, 401)

    @override_settings(SUPABASE_WEBHOOK_SECRET='')
    def test_rejects_everything_when_secret_not_configured(self):
        response = self.post({'type': 'INSERT', 'table': 'atendimento'}, secret='')
        self.assertEqual(response.status_code, 401)

    def test_invalid_payload(self):
        response = self.client.post(
            self.url, data='nao e json', content_type='application/json',
            HTTP_X_WEBHOOK_SECRET='segredo-webhook',
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.post({'table': 'atendimento'}).status_code, 400)

    def test_record_that_is_not_an_object(self):
        response = self.post({'type': 'INSERT', 'table': 'atendimento', 'record': ['x']})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.strategy.pending_notices(), [])

    def test_change_bumps_board_and_dashboard_versions(self):
        quadro = self.strategy.current_version(TOPIC_QUADRO)
        painel = self.strategy.current_version(TOPIC_PAINEL)

        response = self.post({
            'type': 'UPDATE',
            'table': 'atendimento',
            'record': {'id': 1, 'status': 'Com Corretor'},
            'old_record': {'id': 1, 'status': 'Em Espera'},
        })

        self.assertEqual(response.status_code, 200)
        self.assertTrue(self.strategy.has_changed(TOPIC_QUADRO, quadro))
        self.assertTrue(self.strategy.has_changed(TOPIC_PAINEL, painel))
        self.assertEqual(self.strategy.pending_notices(), [])

    def test_new_waiting_lead_records_notice(self):
        self.post({
            'type': 'INSERT',
            'table': 'atendimento',
            'record': {'id': 5, 'cliente_nome': 'João', 'canal': 'instagram', 'status': 'Em Espera'},
        })
        notices = self.strategy.pending_notices()
        self.assertEqual(len(notices), 1)
        self.assertEqual(notices[0]['cliente_nome'], 'João')
