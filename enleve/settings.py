"""
Django settings for enleve project.
"""

import os
import dj_database_url
from pathlib import Path
from decouple import config, Csv

# Em produção, o Railway define a variável PORT
PORT = os.environ.get('PORT', '8000')

# Railway/Proxy Header - Necessário para CSRF e HTTPS funcionar corretamente
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
USE_X_FORWARDED_HOST = True
USE_X_FORWARDED_PORT = True

IS_RAILWAY = bool(os.environ.get('RAILWAY_ENVIRONMENT'))

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = config('SECRET_KEY', default='django-insecure-enleve-desenvolvimento')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config(
    'ALLOWED_HOSTS',
    default='localhost,127.0.0.1,testserver,.railway.app,.up.railway.app',
    cast=Csv(),
)

CSRF_TRUSTED_ORIGINS = config(
    'CSRF_TRUSTED_ORIGINS',
    default='https://*.railway.app,https://*.up.railway.app,http://localhost:8000,http://127.0.0.1:8000',
    cast=Csv(),
)


# Application definition

INSTALLED_APPS = [
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'django.contrib.humanize',
    # Custom Apps
    'core',
    'integracao_supabase',
    'atendimentos',
    'perfis',
    'convites',
    # Third party
    'django_htmx',
    'crispy_forms',
    'crispy_bootstrap5',
]

CRISPY_ALLOWED_TEMPLATE_PACKS = "bootstrap5"
CRISPY_TEMPLATE_PACK = "bootstrap5"

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'django_htmx.middleware.HtmxMiddleware',
]

ROOT_URLCONF = 'enleve.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
                'core.context_processors.navegacao',
            ],
        },
    },
]

WSGI_APPLICATION = 'enleve.wsgi.application'


# Banco local - guarda apenas as sessões do Django.
# Atendimentos, perfis e arquivos ficam no Supabase.
DATABASE_URL = os.getenv('DATABASE_URL', '').strip()

if DATABASE_URL:
    DATABASES = {
        'default': dj_database_url.parse(
            DATABASE_URL,
            conn_max_age=0,
            conn_health_checks=True,
        )
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

SESSION_ENGINE = 'django.contrib.sessions.backends.db'
MESSAGE_STORAGE = 'django.contrib.messages.storage.fallback.FallbackStorage'


# Cache - guarda a sessão resolvida (papel do usuário), as versões do quadro
# e os avisos de novos leads. Precisa ser compartilhado entre os workers:
# Redis quando REDIS_URL estiver definido, senão a tabela de cache do banco
# (criada com `python manage.py createcachetable`).
REDIS_URL = config('REDIS_URL', default='')

if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_URL,
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.db.DatabaseCache',
            'LOCATION': 'enleve_cache',
            # incr() regrava com o timeout padrão; versões e sequência não expiram
            'TIMEOUT': None,
        }
    }


# =============================================================================
# SUPABASE
# =============================================================================

SUPABASE_URL = config('SUPABASE_URL', default='http://localhost:54321')
SUPABASE_ANON_KEY = config('SUPABASE_ANON_KEY', default='')
SUPABASE_SERVICE_ROLE_KEY = config('SUPABASE_SERVICE_ROLE_KEY', default='')
SUPABASE_WEBHOOK_SECRET = config('SUPABASE_WEBHOOK_SECRET', default='')
SUPABASE_TIMEOUT = config('SUPABASE_TIMEOUT', default=15, cast=int)
SUPABASE_AVATAR_BUCKET = config('SUPABASE_AVATAR_BUCKET', default='avatars')

# Regra da vez na fila: só o corretor na posição 1 assume leads em espera
ENFORCE_QUEUE_TURN = config('ENFORCE_QUEUE_TURN', default=True, cast=bool)

# Tempo (segundos) que a sessão resolvida (papel, nome) fica em cache
SESSION_CACHE_TTL = config('SESSION_CACHE_TTL', default=60, cast=int)

BOARD_INVALIDATION_STRATEGY = config(
    'BOARD_INVALIDATION_STRATEGY',
    default='atendimentos.services.invalidation.FullRefetchStrategy',
)

# Intervalo de polling (segundos) do quadro e do painel
BOARD_POLL_INTERVAL = config('BOARD_POLL_INTERVAL', default=5, cast=int)


# Email Configuration
EMAIL_BACKEND = config('EMAIL_BACKEND', default='django.core.mail.backends.smtp.EmailBackend')
EMAIL_HOST = config('EMAIL_HOST', default='smtp.gmail.com')
EMAIL_PORT = config('EMAIL_PORT', default=587, cast=int)
EMAIL_USE_TLS = config('EMAIL_USE_TLS', default=True, cast=bool)
EMAIL_USE_SSL = config('EMAIL_USE_SSL', default=False, cast=bool)
EMAIL_HOST_USER = config('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = config('EMAIL_HOST_PASSWORD', default='')
DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default=EMAIL_HOST_USER or 'onboarding@resend.dev')
EMAIL_TIMEOUT = config('EMAIL_TIMEOUT', default=15, cast=int)

# Convites
RESEND_API_KEY = config('RESEND_API_KEY', default='')
INVITE_FROM_EMAIL = config('INVITE_FROM_EMAIL', default='ENLEVE CRM <onboarding@resend.dev>')
INVITE_REDIRECT_URL = config('INVITE_REDIRECT_URL', default='http://localhost:8000/entrar/')

# Authentication
LOGIN_URL = 'core:login'
LOGIN_REDIRECT_URL = 'core:dashboard'


# Internationalization

LANGUAGE_CODE = 'pt-br'

TIME_ZONE = 'America/Sao_Paulo'

USE_I18N = True

USE_THOUSAND_SEPARATOR = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedStaticFilesStorage",
    },
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Uploads de avatar vão direto para o Supabase Storage; limite do Django acima dos 5MB aceitos
DATA_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024
FILE_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024


# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = config('LOG_LEVEL', default='INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'padrao': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'padrao',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
    },
}


# =============================================================================
# SEGURANÇA E COOKIES
# =============================================================================

CSRF_COOKIE_NAME = 'csrftoken'
SESSION_COOKIE_NAME = 'sessionid'
CSRF_COOKIE_HTTPONLY = False
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_SAMESITE = 'Lax'
SESSION_COOKIE_SAMESITE = 'Lax'

if IS_RAILWAY:
    CSRF_COOKIE_SECURE = True
    SESSION_COOKIE_SECURE = True
    SECURE_SSL_REDIRECT = True
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'
else:
    CSRF_COOKIE_SECURE = False
    SESSION_COOKIE_SECURE = False
    SECURE_SSL_REDIRECT = False
    X_FRAME_OPTIONS = 'SAMEORIGIN'
