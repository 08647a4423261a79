import logging
import os
import re
import secrets
import time

from django.conf import settings

from core.exceptions import InvalidInputError, RemoteOperationError
from integracao_supabase.services.base import SupabaseClient
from integracao_supabase.services.storage import SupabaseStorage

logger = logging.getLogger(__name__)


class AvatarService:
    """
    Foto de perfil no Supabase Storage.
    O bucket é privado: o perfil guarda apenas o caminho do arquivo e a
    URL assinada é gerada a cada exibição.
    """

    ALLOWED_CONTENT_TYPES = {
        'image/jpeg': 'jpg',
        'image/png': 'png',
        'image/webp': 'webp',
        'image/gif': 'gif',
    }
    MAX_UPLOAD_SIZE = 5 * 1024 * 1024  # 5MB
    SIGNED_URL_EXPIRES_IN = 3600  # 1 hora

    def __init__(self, access_token, storage=None, client=None):
        self.storage = storage or SupabaseStorage(access_token=access_token)
        self.client = client or SupabaseClient(access_token=access_token)
        self.bucket = settings.SUPABASE_AVATAR_BUCKET

    @classmethod
    def validate_file(cls, uploaded_file):
        """Valida tipo e tamanho antes de qualquer chamada de rede."""
        if not uploaded_file:
            raise InvalidInputError("Nenhum arquivo enviado.")

        if uploaded_file.content_type not in cls.ALLOWED_CONTENT_TYPES:
            raise InvalidInputError("Formato inválido. Use JPEG, PNG, WebP ou GIF")

        if uploaded_file.size > cls.MAX_UPLOAD_SIZE:
            raise InvalidInputError("Arquivo muito grande. Máximo: 5MB")

    @classmethod
    def sanitize_extension(cls, filename, content_type):
        ext = os.path.splitext(filename or '')[1].lower().lstrip('.')
        ext = re.sub(r'[^a-z0-9]', '', ext)
        if ext in ('jpg', 'jpeg', 'png', 'webp', 'gif'):
            return 'jpg' if ext == 'jpeg' else ext
        return cls.ALLOWED_CONTENT_TYPES[content_type]

    @classmethod
    def build_path(cls, owner_id, filename, content_type):
        timestamp = int(time.time() * 1000)
        ext = cls.sanitize_extension(filename, content_type)
        return f"{owner_id}/{timestamp}-{secrets.token_hex(4)}.{ext}"

    def upload(self, owner_id, uploaded_file):
        """
        Envia a foto e grava o caminho em profiles.foto_url.
        Retorna o caminho salvo.
        """
        self.validate_file(uploaded_file)

        path = self.build_path(owner_id, uploaded_file.name, uploaded_file.content_type)
        self.storage.upload(
            self.bucket,
            path,
            uploaded_file.read(),
            uploaded_file.content_type,
            upsert=True,
        )

        rows = self.client.update('profiles', {'foto_url': path}, filters={'id': owner_id})
        if not rows:
            raise RemoteOperationError("Não foi possível salvar a foto no perfil.")

        logger.info(f"Foto de perfil atualizada para {owner_id}: {path}")
        return path

    def signed_url(self, path):
        """URL temporária da foto; None quando não há foto ou a assinatura falha."""
        if not path:
            return None
        try:
            return self.storage.create_signed_url(self.bucket, path, self.SIGNED_URL_EXPIRES_IN)
        except RemoteOperationError as e:
            logger.warning(f"Não foi possível assinar a foto {path}: {e}")
            return None
