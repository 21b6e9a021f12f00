"""
Django settings for the Video Hub AI chat backend.

Every value can be overridden from the environment or a local .env file.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')


def env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'insecure-dev-key-change-me')
DEBUG = env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h.strip()]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'rest_framework.authtoken',
    'drf_spectacular',
    'ai_chat',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('SQLITE_PATH', str(BASE_DIR / 'db.sqlite3')),
        # Writers take the lock at BEGIN and wait for it instead of failing
        # with "database is locked" when usage counters are bumped concurrently.
        'OPTIONS': {
            'timeout': int(os.getenv('SQLITE_TIMEOUT', '20')),
            'transaction_mode': 'IMMEDIATE',
        },
        # File-backed so threads in tests share one database.
        'TEST': {
            'NAME': os.getenv('SQLITE_TEST_PATH', str(BASE_DIR / 'test_db.sqlite3')),
        },
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
# Usage days roll over at midnight UTC.
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'ai_chat.authentication.BearerTokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'Video Hub AI Chat API',
    'DESCRIPTION': 'AI chat grounded in video transcripts, with daily usage quotas.',
    'VERSION': '1.0.0',
}

# AI providers (operator keys; callers may supply their own per request)
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY', '')
ANTHROPIC_MODEL = os.getenv('ANTHROPIC_MODEL', 'claude-3-5-haiku-20241022')
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY', '')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-1.5-flash')
AI_MAX_TOKENS = int(os.getenv('AI_MAX_TOKENS', '1000'))
AI_TEMPERATURE = float(os.getenv('AI_TEMPERATURE', '0.7'))
PROVIDER_TIMEOUT = float(os.getenv('PROVIDER_TIMEOUT', '60'))
HUB_NAME = os.getenv('HUB_NAME', 'Video Hub')

# Usage quota
DAILY_CREDIT_LIMIT = int(os.getenv('DAILY_CREDIT_LIMIT', '5'))
# 'user' meters authenticated users, 'ip' meters client addresses.
USAGE_PRINCIPAL = os.getenv('USAGE_PRINCIPAL', 'user')

# Transcript context
MAX_TRANSCRIPT_LENGTH = int(os.getenv('MAX_TRANSCRIPT_LENGTH', '12000'))
YOUTUBE_TRANSCRIPT_API_URL = os.getenv('YOUTUBE_TRANSCRIPT_API_URL', 'https://www.youtube-transcript.io/api/transcripts')
YOUTUBE_TRANSCRIPT_API_TOKEN = os.getenv('YOUTUBE_TRANSCRIPT_API_TOKEN', '')
TRANSCRIPT_REFRESH_ASYNC = env_bool('TRANSCRIPT_REFRESH_ASYNC', False)

# Celery
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = REDIS_URL
CELERY_TASK_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'ai_chat': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
