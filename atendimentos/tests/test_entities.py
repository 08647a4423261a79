from django.test import SimpleTestCase

from atendimentos.entities import (
    STATUS_AUTOMATIZADO,
    STATUS_COM_CORRETOR,
    STATUS_EM_ESPERA,
    STATUS_FINALIZADO,
    Atendimento,
    MensagemHistorico,
    PreferenciaCliente,
    can_transition,
)


class StatusTransitionTest(SimpleTestCase):
    def test_forward_moves_are_allowed(self):
        self.assertTrue(can_transition(STATUS_AUTOMATIZADO, STATUS_COM_CORRETOR))
        self.assertTrue(can_transition(STATUS_EM_ESPERA, STATUS_COM_CORRETOR))
        self.assertTrue(can_transition(STATUS_COM_CORRETOR, STATUS_FINALIZADO))
        self.assertTrue(can_transition(STATUS_EM_ESPERA, STATUS_FINALIZADO))

    def test_backward_and_sideways_moves_are_rejected(self):
        self.assertFalse(can_transition(STATUS_COM_CORRETOR, STATUS_EM_ESPERA))
        self.assertFalse(can_transition(STATUS_COM_CORRETOR, STATUS_AUTOMATIZADO))
        self.assertFalse(can_transition(STATUS_AUTOMATIZADO, STATUS_EM_ESPERA))
        self.assertFalse(can_transition(STATUS_COM_CORRETOR, STATUS_COM_CORRETOR))

    def test_finalizado_is_terminal(self):
        for status in (STATUS_AUTOMATIZADO, STATUS_EM_ESPERA, STATUS_COM_CORRETOR, STATUS_FINALIZADO):
            self.assertFalse(can_transition(STATUS_FINALIZADO, status))

    def test_unknown_status_never_moves(self):
        self.assertFalse(can_transition('Arquivado', STATUS_FINALIZADO))


class EntityParsingTest(SimpleTestCase):
    def test_atendimento_with_embedded_profile(self):
        atendimento = Atendimento.from_row({
            'id': 1,
            'canal': 'whatsapp',
            'cliente_nome': 'Maria',
            'cliente_contato': '+55 11 99999-0000',
            'status': STATUS_COM_CORRETOR,
            'corretor_responsavel_id': 'c-1',
            'updated_at': '2024-05-10T12:00:00+00:00',
            'profiles': {'id': 'c-1', 'nome_completo': 'Ana Souza', 'posicao_fila': 3},
        })
        self.assertEqual(atendimento.corretor.nome_completo, 'Ana Souza')
        self.assertEqual(atendimento.get_canal_display(), 'WhatsApp')
        self.assertEqual(atendimento.updated_at.year, 2024)

    def test_numeric_preference_renders_as_text(self):
        self.assertEqual(PreferenciaCliente.from_row({'tipo': 'quartos', 'valor_numero': 3.0}).valor, '3')
        self.assertEqual(PreferenciaCliente.from_row({'tipo': 'bairro', 'valor_texto': 'Centro'}).valor, 'Centro')

    def test_chat_message_accepts_json_string(self):
        mensagem = MensagemHistorico.from_row({
            'id': 1,
            'session_id': 's-1',
            'message': '{"type": "human", "content": "Olá"}',
        })
        self.assertTrue(mensagem.is_cliente)
        self.assertEqual(mensagem.conteudo, 'Olá')
        self.assertEqual(mensagem.get_remetente_display(), 'Cliente')
