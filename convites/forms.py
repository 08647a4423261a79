from django import forms

from core.session import ROLE_CHOICES


class ConviteForm(forms.Form):
    email = forms.EmailField(
        label="Email",
        max_length=255,
        widget=forms.EmailInput(attrs={'class': 'form-control', 'placeholder': 'corretor@email.com'}),
        error_messages={'invalid': "Email inválido", 'required': "Email e role são obrigatórios"},
    )
    role = forms.ChoiceField(
        label="Papel",
        choices=ROLE_CHOICES,
        widget=forms.Select(attrs={'class': 'form-select'}),
    )
