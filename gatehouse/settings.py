import os
import secrets
import sys
from pathlib import Path
from typing import Literal

import dj_database_url
import sentry_sdk
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sentry_sdk.integrations.django import DjangoIntegration

from gatehouse import __version__

BASE_DIR = Path(__file__).resolve().parent.parent

Environments = Literal["development", "production", "test"]

GATEHOUSE_ENV_FILE = os.environ.get(
    "GATEHOUSE_ENV_FILE", "test.env" if "pytest" in sys.modules else ".env"
)


class Settings(BaseSettings):
    """
    Pydantic-powered settings, to provide consistent error messages, strong
    typing, consistent prefixes, .env support, etc.
    """

    #: The currently running environment, used for things such as sentry
    #: error reporting.
    ENVIRONMENT: Environments = "development"

    #: Should django run in debug mode?
    DEBUG: bool = False

    #: Set a secret key used for signing values such as sessions. Randomized
    #: by default, so you'll logout everytime the process restarts.
    SECRET_KEY: str = Field(default_factory=lambda: "autokey-" + secrets.token_hex(128))

    #: If set, a list of allowed values for the HOST header. The default value
    #: of '*' means any host will be accepted.
    ALLOWED_HOSTS: list[str] = Field(default_factory=lambda: ["*"])

    #: If enabled, trust the HTTP_X_FORWARDED_PROTO header.
    USE_PROXY_HEADERS: bool = False

    #: An optional Sentry DSN for error reporting.
    SENTRY_DSN: str | None = None
    SENTRY_SAMPLE_RATE: float = 1.0
    SENTRY_TRACES_SAMPLE_RATE: float = 0.01

    #: Level for the provider's own loggers.
    LOG_LEVEL: str = "INFO"

    #: The default database, as a URL (postgres://..., sqlite://...).
    DATABASE_SERVER: str | None = None

    PGHOST: str | None = Field(default=None, validation_alias="PGHOST")
    PGPORT: int | None = Field(default=5432, validation_alias="PGPORT")
    PGNAME: str = Field(default="gatehouse", validation_alias="PGNAME")
    PGUSER: str = Field(default="postgres", validation_alias="PGUSER")
    PGPASSWORD: str | None = Field(default=None, validation_alias="PGPASSWORD")

    #: Where clients send users to authorize, and exchange grants for tokens.
    AUTHORIZE_PATH: str = "/oauth/authorize"
    ACCESS_TOKEN_PATH: str = "/oauth/access_token"

    #: Response types the authorization endpoint accepts.
    SUPPORTED_RESPONSE_TYPES: list[str] = Field(
        default_factory=lambda: ["code", "token"]
    )

    #: Accept access tokens in oauth_token/access_token parameters, not just
    #: the Authorization header.
    PARAM_AUTHENTICATION: bool = False

    #: Realm for WWW-Authenticate challenges. Defaults to the request host.
    REALM: str | None = None

    #: Lifetime of authorization codes, and of access tokens (None means
    #: tokens don't expire).
    GRANT_TTL: int = 300
    ACCESS_TOKEN_TTL: int | None = None

    #: Path prefixes that refuse requests without an access token.
    RESTRICTED_PATHS: list[str] = Field(default_factory=list)

    #: Require the client secret on authorization requests too.
    AUTHORIZE_REQUIRES_SECRET: bool = False

    #: If set, JWT assertions must carry this "aud" claim.
    ASSERTION_AUDIENCE: str | None = None

    #: Dotted paths to the password grant authenticator, the handlers for
    #: other assertion types, and the consent view.
    AUTHENTICATOR: str | None = None
    ASSERTION_HANDLERS: dict[str, str] = Field(default_factory=dict)
    CONSENT_VIEW: str = "practice.views.authorize"

    @model_validator(mode="after")
    def validate_db(self):
        if not self.DATABASE_SERVER and not self.PGHOST:
            raise ValueError("Either DATABASE_SERVER or PGHOST are required.")
        return self

    model_config = SettingsConfigDict(
        env_prefix="GATEHOUSE_",
        env_file=str(BASE_DIR / GATEHOUSE_ENV_FILE),
        env_file_encoding="utf-8",
        # Case sensitivity doesn't work on Windows, so might as well be
        # consistent from the get-go.
        case_sensitive=False,
        extra="ignore",
    )


SETUP = Settings()

# Don't allow automatic keys in production
if SETUP.ENVIRONMENT == "production" and SETUP.SECRET_KEY.startswith("autokey-"):
    print("You must set GATEHOUSE_SECRET_KEY in production")
    sys.exit(1)
SECRET_KEY = SETUP.SECRET_KEY
DEBUG = SETUP.DEBUG

# Application definition

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "provider",
    "practice",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "provider.middleware.ResourceProtectionMiddleware",
]

ROOT_URLCONF = "gatehouse.urls"

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

WSGI_APPLICATION = "gatehouse.wsgi.application"

if SETUP.DATABASE_SERVER:
    DATABASES = {
        "default": dj_database_url.parse(SETUP.DATABASE_SERVER, conn_max_age=600)
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "HOST": SETUP.PGHOST,
            "PORT": SETUP.PGPORT,
            "NAME": SETUP.PGNAME,
            "USER": SETUP.PGUSER,
            "PASSWORD": SETUP.PGPASSWORD,
        }
    }

if DATABASES["default"]["ENGINE"] == "django.db.backends.sqlite3":
    # Writers wait for the lock instead of failing with "database is locked"
    DATABASES["default"]["OPTIONS"] = {"transaction_mode": "IMMEDIATE", "timeout": 20}

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True

STATIC_URL = "static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

ALLOWED_HOSTS = SETUP.ALLOWED_HOSTS

if SETUP.USE_PROXY_HEADERS:
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

OAUTH = {
    "AUTHORIZE_PATH": SETUP.AUTHORIZE_PATH,
    "ACCESS_TOKEN_PATH": SETUP.ACCESS_TOKEN_PATH,
    "SUPPORTED_RESPONSE_TYPES": SETUP.SUPPORTED_RESPONSE_TYPES,
    "PARAM_AUTHENTICATION": SETUP.PARAM_AUTHENTICATION,
    "REALM": SETUP.REALM,
    "GRANT_TTL": SETUP.GRANT_TTL,
    "ACCESS_TOKEN_TTL": SETUP.ACCESS_TOKEN_TTL,
    "RESTRICTED_PATHS": SETUP.RESTRICTED_PATHS,
    "AUTHORIZE_REQUIRES_SECRET": SETUP.AUTHORIZE_REQUIRES_SECRET,
    "ASSERTION_AUDIENCE": SETUP.ASSERTION_AUDIENCE,
    "AUTHENTICATOR": SETUP.AUTHENTICATOR,
    "ASSERTION_HANDLERS": SETUP.ASSERTION_HANDLERS,
    "CONSENT_VIEW": SETUP.CONSENT_VIEW,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "{asctime} {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "provider": {
            "handlers": ["console"],
            "level": SETUP.LOG_LEVEL,
            "propagate": False,
        },
    },
}

if SETUP.SENTRY_DSN:
    sentry_sdk.init(
        dsn=SETUP.SENTRY_DSN,
        integrations=[
            DjangoIntegration(),
        ],
        traces_sample_rate=SETUP.SENTRY_TRACES_SAMPLE_RATE,
        sample_rate=SETUP.SENTRY_SAMPLE_RATE,
        send_default_pii=True,
        environment=SETUP.ENVIRONMENT,
    )
    sentry_sdk.set_tag("gatehouse.version", __version__)
