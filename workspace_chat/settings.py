# Django settings for workspace_chat project.
import os
from pathlib import Path

import dj_database_url

USE_X_FORWARDED_HOST      = True
SECURE_PROXY_SSL_HEADER   = ('HTTP_X_FORWARDED_PROTO', 'https')

CSRF_TRUSTED_ORIGINS = [o for o in os.getenv("CSRF_TRUSTED_ORIGINS", "http://localhost:8000").split(",") if o]
CSRF_COOKIE_NAME = "csrftoken"
CSRF_COOKIE_HTTPONLY = False          # <-- allow JS to read it
CSRF_COOKIE_SAMESITE = "Lax"
SESSION_COOKIE_SAMESITE = "Lax"


BASE_DIR = Path(__file__).resolve().parent.parent

DEBUG = os.getenv("DEBUG", "1") == "1"

EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


DATABASE_URL = os.getenv("DATABASE_URL")

if DATABASE_URL:                       # production / docker-compose run
    DATABASES = {"default": dj_database_url.parse(DATABASE_URL)}
else:                                  # image-build time and tests → SQLite
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "tmp_build.db",
        }
    }


TIME_ZONE = "UTC"
LANGUAGE_CODE = "en"
USE_I18N = True
USE_TZ = True

SITE_ID = 1

# Uploaded artifacts (the blob store) live here unless STORAGES says otherwise.
MEDIA_ROOT = os.getenv("MEDIA_ROOT", str(BASE_DIR / "media"))
MEDIA_URL = "/media/"

STATIC_ROOT = BASE_DIR / "staticfiles"
STATIC_URL = "/static/"

SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-insecure-key-change-me")

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

MIDDLEWARE = (
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "allauth.account.middleware.AccountMiddleware",
)


AUTHENTICATION_BACKENDS = [
    'django.contrib.auth.backends.ModelBackend',  # for Django admin
    'allauth.account.auth_backends.AuthenticationBackend',  # for allauth
]

SOCIALACCOUNT_PROVIDERS = {
    'google': {
        'APP': {
            'client_id': os.getenv('GOOGLE_CLIENT_ID'),
            'secret': os.getenv('GOOGLE_CLIENT_SECRET'),
            'key': ''
        },
        'SCOPE': ['profile', 'email'],
        'AUTH_PARAMS': {
            'access_type': 'online',
        }
    }
}


ROOT_URLCONF = "workspace_chat.urls"

INSTALLED_APPS = (
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.sites",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django.contrib.admin",
    "allauth",
    "allauth.account",
    "allauth.socialaccount",
    "allauth.socialaccount.providers.google",
    "pgvector.django",
    "rag",
)


AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
        "OPTIONS": {
            "min_length": 9,
        },
    }
]

ALLOWED_HOSTS = ["*"]
ACCOUNT_LOGIN_BY_CODE_ENABLED = False
ACCOUNT_EMAIL_VERIFICATION = "mandatory"
ACCOUNT_LOGIN_METHODS = {
    "email",
}
ACCOUNT_SIGNUP_FIELDS = ["email*", "password1*", "password2*"]
LOGIN_REDIRECT_URL = "/"
ACCOUNT_SIGNUP_REDIRECT_URL = "/"
ACCOUNT_LOGOUT_REDIRECT_URL = "/"


# ------------------------------------------------------------------- RAG ---
OPENAI_API_KEY        = os.getenv("OPENAI_API_KEY")
RAG_EMBED_MODEL       = os.getenv("RAG_EMBED_MODEL", "text-embedding-3-small")
RAG_EMBED_DIMENSIONS  = int(os.getenv("RAG_EMBED_DIMENSIONS", "1536"))
RAG_CHAT_MODEL        = os.getenv("RAG_CHAT_MODEL", "gpt-4o-mini")
RAG_VISION_MODEL      = os.getenv("RAG_VISION_MODEL", "gpt-4o-mini")
RAG_CHUNK_SIZE        = int(os.getenv("RAG_CHUNK_SIZE", "1000"))
RAG_MATCH_THRESHOLD   = float(os.getenv("RAG_MATCH_THRESHOLD", "0.7"))
RAG_MATCH_COUNT       = int(os.getenv("RAG_MATCH_COUNT", "5"))
RAG_MODEL_TIMEOUT     = float(os.getenv("RAG_MODEL_TIMEOUT", "30"))
RAG_MODEL_MAX_RETRIES = int(os.getenv("RAG_MODEL_MAX_RETRIES", "2"))
RAG_EMBED_WORKERS     = int(os.getenv("RAG_EMBED_WORKERS", "4"))
RAG_SEARCH_BACKEND    = os.getenv("RAG_SEARCH_BACKEND", "auto")  # auto | pgvector | memory


# --------------------------------------------------------------- logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "rich": {"format": "%(message)s", "datefmt": "[%H:%M:%S]"},
    },
    "handlers": {
        "console": {
            "class": "rich.logging.RichHandler",
            "formatter": "rich",
            "rich_tracebacks": True,
            "show_path": True,
        },
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        # Silence noisy libraries
        "httpx":    {"level": "WARNING"},
        "httpcore": {"level": "WARNING"},
        "openai":   {"level": "WARNING"},
        "urllib3":  {"level": "WARNING"},
        "pdfminer": {"level": "WARNING"},
    },
}

try:
    from .local_settings import *  # noqa
except ImportError:
    pass
