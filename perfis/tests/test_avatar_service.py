import re
from unittest.mock import MagicMock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase

from core.exceptions import InvalidInputError, RemoteOperationError
from perfis.services.avatar_service import AvatarService


def uploaded(name='foto.png', content_type='image/png', size=1024):
    return SimpleUploadedFile(name, b'x' * size, content_type=content_type)


class AvatarServiceTest(SimpleTestCase):
    def setUp(self):
        self.storage = MagicMock()
        self.client = MagicMock()
        self.service = AvatarService('token', storage=self.storage, client=self.client)

    def test_oversize_file_rejected_before_network(self):
        arquivo = uploaded(size=AvatarService.MAX_UPLOAD_SIZE + 1)
        with self.assertRaisesMessage(InvalidInputError, 'Arquivo muito grande. Máximo: 5MB'):
            self.service.upload('u-1', arquivo)
        self.storage.upload.assert_not_called()
        self.client.update.assert_not_called()

    def test_wrong_type_rejected_before_network(self):
        arquivo = uploaded(name='foto.bmp', content_type='image/bmp')
        with self.assertRaisesMessage(InvalidInputError, 'Formato inválido. Use JPEG, PNG, WebP ou GIF'):
            self.service.upload('u-1', arquivo)
        self.storage.upload.assert_not_called()

    def test_file_at_limit_is_accepted(self):
        AvatarService.validate_file(uploaded(size=AvatarService.MAX_UPLOAD_SIZE))

    def test_upload_stores_path_not_url(self):
        self.client.update.return_value = [{'id': 'u-1'}]

        path = self.service.upload('u-1', uploaded(name='Minha Foto.JPEG', content_type='image/jpeg'))

        self.assertRegex(path, r'^u-1/\d{13}-[0-9a-f]{8}\.jpg$')
        bucket, stored_path, _, content_type = self.storage.upload.call_args[0]
        self.assertEqual((bucket, stored_path, content_type), ('avatars', path, 'image/jpeg'))
        self.assertTrue(self.storage.upload.call_args[1]['upsert'])
        self.client.update.assert_called_once_with('profiles', {'foto_url': path}, filters={'id': 'u-1'})

    def test_unsafe_extension_falls_back_to_content_type(self):
        path = AvatarService.build_path('u-1', 'foto.p/h\\p', 'image/webp')
        self.assertTrue(path.endswith('.webp'))
        self.assertEqual(path.count('/'), 1)

    def test_each_read_signs_a_new_url(self):
        self.storage.create_signed_url.side_effect = [
            'https://assinada/u-1/a.png?token=1',
            'https://assinada/u-1/a.png?token=2',
        ]
        primeira = self.service.signed_url('u-1/a.png')
        segunda = self.service.signed_url('u-1/a.png')

        self.assertNotEqual(primeira, segunda)
        self.assertEqual(self.storage.create_signed_url.call_count, 2)
        self.storage.create_signed_url.assert_called_with('avatars', 'u-1/a.png', 3600)

    def test_signing_failure_shows_no_photo(self):
        self.storage.create_signed_url.side_effect = RemoteOperationError("Object not found", status_code=400)
        self.assertIsNone(self.service.signed_url('u-1/a.png'))
        self.assertIsNone(self.service.signed_url(None))
