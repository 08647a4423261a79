import logging

import requests
from django.conf import settings
from django.core.mail import EmailMessage
from django.template.loader import render_to_string

from core.session import ROLE_CHOICES

logger = logging.getLogger(__name__)


class InviteEmailService:
    """
    Email de aviso do convite. Usa a API HTTP do Resend quando RESEND_API_KEY
    estiver definida; sem a chave, cai no SMTP do Django.
    Nunca levanta exceção: retorna True/False.
    """

    RESEND_URL = "https://api.resend.com/emails"
    SUBJECT = "Convite para ENLEVE CRM"

    @staticmethod
    def render_body(role):
        return render_to_string('convites/email_convite.html', {
            'role_display': dict(ROLE_CHOICES).get(role, role),
        })

    def send_invite(self, email, role):
        body = self.render_body(role)

        if settings.RESEND_API_KEY:
            return self.send_via_resend(email, self.SUBJECT, body)

        message = EmailMessage(
            subject=self.SUBJECT,
            body=body,
            from_email=settings.INVITE_FROM_EMAIL or settings.DEFAULT_FROM_EMAIL,
            to=[email],
        )
        message.content_subtype = "html"

        try:
            message.send()
            logger.info(f"Email de convite enviado via SMTP para {email}")
            return True
        except Exception as e:
            logger.error(f"Erro ao enviar email de convite via SMTP para {email}: {e}")
            return False

    @staticmethod
    def send_via_resend(recipient_email, subject, body):
        headers = {
            "Authorization": f"Bearer {settings.RESEND_API_KEY}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        data = {
            "from": settings.INVITE_FROM_EMAIL,
            "to": [recipient_email],
            "subject": subject,
            "html": body,
        }

        try:
            response = requests.post(InviteEmailService.RESEND_URL, json=data, headers=headers, timeout=20)
        except requests.RequestException as e:
            logger.error(f"Erro ao conectar com Resend: {e}")
            return False

        if response.status_code in [200, 201]:
            logger.info(f"Email de convite enviado via Resend para {recipient_email}")
            return True

        logger.error(f"Erro Resend ({response.status_code}): {response.text}")
        return False
