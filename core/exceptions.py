class CRMError(Exception):
    """Erro de negócio com mensagem pronta para exibir ao usuário."""

    default_message = "Erro inesperado."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class SessionInvalidError(CRMError):
    default_message = "Sessão inválida ou expirada. Faça login novamente."


class AccessDeniedError(CRMError):
    default_message = "Acesso negado."


class InvalidInputError(CRMError):
    default_message = "Dados inválidos."


class RemoteOperationError(CRMError):
    """Falha de rede ou erro retornado pelo Supabase."""

    default_message = "Erro de comunicação com o servidor."

    def __init__(self, message=None, status_code=None):
        self.status_code = status_code
        super().__init__(message)


class NotYourTurnError(CRMError):
    default_message = "Não é sua vez na fila!"


class InvalidTransitionError(CRMError):
    default_message = "Transição de status não permitida."


class LeadUnavailableError(CRMError):
    default_message = "Este atendimento não está mais disponível."
