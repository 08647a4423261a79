from urllib.parse import quote

from integracao_supabase.services.base import SupabaseService


class SupabaseStorage(SupabaseService):
    """
    Supabase Storage. Os buckets são privados: a leitura é sempre por URL
    assinada, gerada na hora e nunca guardada.
    """

    STORAGE_PATH = '/storage/v1'

    def upload(self, bucket, path, content, content_type, upsert=True):
        response = self._request(
            'POST',
            f"{self.STORAGE_PATH}/object/{bucket}/{quote(path)}",
            data=content,
            headers={
                'Content-Type': content_type,
                'x-upsert': 'true' if upsert else 'false',
            },
        )
        return response.json()

    def create_signed_url(self, bucket, path, expires_in):
        response = self._request(
            'POST',
            f"{self.STORAGE_PATH}/object/sign/{bucket}/{quote(path)}",
            json={'expiresIn': expires_in},
            headers={'Content-Type': 'application/json'},
        )
        data = response.json()
        signed_path = data.get('signedURL') or data.get('signedUrl')
        if not signed_path:
            return None
        if signed_path.startswith('http'):
            return signed_path
        return f"{self.base_url}{self.STORAGE_PATH}{signed_path}"
