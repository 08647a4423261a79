from django import forms


class LoginForm(forms.Form):
    email = forms.EmailField(
        label="Email",
        max_length=255,
        widget=forms.EmailInput(attrs={'class': 'form-control', 'placeholder': 'seu@email.com', 'autofocus': True}),
        error_messages={
            'required': "Email é obrigatório",
            'invalid': "Email inválido",
            'max_length': "Email muito longo",
        },
    )
    password = forms.CharField(
        label="Senha",
        strip=False,
        widget=forms.PasswordInput(attrs={'class': 'form-control', 'placeholder': '••••••••'}),
        error_messages={'required': "Senha é obrigatória"},
    )

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()


class CadastroForm(forms.Form):
    nome_completo = forms.CharField(
        label="Nome completo",
        min_length=2,
        max_length=100,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Seu nome'}),
        error_messages={
            'required': "Nome é obrigatório",
            'min_length': "Nome deve ter no mínimo 2 caracteres",
            'max_length': "Nome muito longo",
        },
    )
    email = forms.EmailField(
        label="Email",
        max_length=255,
        widget=forms.EmailInput(attrs={'class': 'form-control', 'placeholder': 'seu@email.com'}),
        error_messages={
            'required': "Email é obrigatório",
            'invalid': "Email inválido",
            'max_length': "Email muito longo",
        },
    )
    password = forms.CharField(
        label="Senha",
        strip=False,
        min_length=8,
        max_length=72,
        widget=forms.PasswordInput(attrs={'class': 'form-control', 'placeholder': '••••••••'}),
        error_messages={
            'required': "Senha é obrigatória",
            'min_length': "Senha deve ter no mínimo 8 caracteres",
            'max_length': "Senha muito longa",
        },
    )

    def __init__(self, *args, **kwargs):
        # Divide a página com o LoginForm; ids próprios evitam colisão
        kwargs.setdefault('auto_id', 'cadastro_%s')
        super().__init__(*args, **kwargs)

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()
