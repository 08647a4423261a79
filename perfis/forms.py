from django import forms

from core.exceptions import InvalidInputError
from perfis.services.avatar_service import AvatarService
from perfis.services.profile_service import ProfileService


class PerfilForm(forms.Form):
    nome_completo = forms.CharField(
        label="Nome completo",
        widget=forms.TextInput(attrs={'class': 'form-control'}),
        error_messages={'required': "Nome deve ter no mínimo 2 caracteres"},
    )

    def clean_nome_completo(self):
        try:
            return ProfileService.clean_nome(self.cleaned_data['nome_completo'])
        except InvalidInputError as e:
            raise forms.ValidationError(e.message)


class AvatarForm(forms.Form):
    foto = forms.FileField(
        label="Foto de perfil",
        widget=forms.ClearableFileInput(attrs={
            'class': 'form-control',
            'accept': ','.join(AvatarService.ALLOWED_CONTENT_TYPES),
        }),
    )

    def clean_foto(self):
        foto = self.cleaned_data['foto']
        try:
            AvatarService.validate_file(foto)
        except InvalidInputError as e:
            raise forms.ValidationError(e.message)
        return foto
