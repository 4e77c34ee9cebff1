import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv
from sqlalchemy.engine import make_url


class ConfigurationError(RuntimeError):
    """Raised at startup when the environment cannot produce valid settings."""


class EnvironmentProfile(str, Enum):
    DEVELOPMENT = "development"
    QA = "qa"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, name: Optional[str]) -> "EnvironmentProfile":
        if not name:
            return cls.DEVELOPMENT

        key = name.strip().lower()
        key = _PROFILE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ConfigurationError(
                f"Unknown environment '{name}'. Valid options: {valid}"
            ) from None


_PROFILE_ALIASES = {
    "dev": "development",
    "prod": "production",
}


@dataclass(frozen=True)
class ProfileDefaults:
    db_host: Optional[str]
    db_name: Optional[str]
    enable_swagger: bool
    https_redirect: bool
    port: int


# Production has no connection defaults: those values must come from outside.
PROFILE_DEFAULTS = {
    EnvironmentProfile.DEVELOPMENT: ProfileDefaults(
        db_host="localhost",
        db_name="orders_dev",
        enable_swagger=True,
        https_redirect=False,
        port=8081,
    ),
    EnvironmentProfile.QA: ProfileDefaults(
        db_host="postgres-qa",
        db_name="orders_qa",
        enable_swagger=True,
        https_redirect=False,
        port=8082,
    ),
    EnvironmentProfile.STAGING: ProfileDefaults(
        db_host="postgres-staging",
        db_name="orders_staging",
        enable_swagger=True,
        https_redirect=False,
        port=8083,
    ),
    EnvironmentProfile.PRODUCTION: ProfileDefaults(
        db_host=None,
        db_name=None,
        enable_swagger=False,
        https_redirect=True,
        port=8080,
    ),
}


@dataclass(frozen=True)
class CorsPolicy:
    allowed_origins: Tuple[str, ...] = ("*",)

    @property
    def allow_any_origin(self) -> bool:
        return "*" in self.allowed_origins

    @property
    def allow_credentials(self) -> bool:
        # Wildcard origins are never combined with credentials
        return not self.allow_any_origin

    @classmethod
    def from_value(cls, raw: Optional[str]) -> "CorsPolicy":
        origins = tuple(o.strip() for o in (raw or "").split(",") if o.strip())
        if not origins or "*" in origins:
            return cls()
        return cls(allowed_origins=origins)


@dataclass(frozen=True)
class Settings:
    environment: EnvironmentProfile
    database_url: str
    enable_swagger: bool
    https_redirect: bool
    cors: CorsPolicy = field(default_factory=CorsPolicy)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8081
    https_port: Optional[int] = None

    @property
    def is_production(self) -> bool:
        return self.environment is EnvironmentProfile.PRODUCTION

    @property
    def redirects_to_https(self) -> bool:
        # Only when something actually serves HTTPS
        return self.https_redirect and self.https_port is not None

    def masked_database_url(self) -> str:
        return make_url(self.database_url).render_as_string(hide_password=True)


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got '{raw}'")


def _parse_port(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from None


def _resolve_database_url(
    profile: EnvironmentProfile,
    defaults: ProfileDefaults,
    environ: Mapping[str, str],
) -> str:
    explicit = environ.get("DATABASE_URL")
    if explicit:
        return explicit

    if profile is EnvironmentProfile.PRODUCTION:
        required = ("DB_HOST", "DB_NAME", "DB_USER", "DB_PASSWORD")
        missing = [name for name in required if not environ.get(name)]
        if missing:
            raise ConfigurationError(
                "Production requires DATABASE_URL or "
                + ", ".join(required)
                + "; missing: "
                + ", ".join(missing)
            )

    host = environ.get("DB_HOST") or defaults.db_host
    name = environ.get("DB_NAME") or defaults.db_name
    user = environ.get("DB_USER") or "postgres"
    password = environ.get("DB_PASSWORD") or "postgres"
    port = _parse_port("DB_PORT", environ.get("DB_PORT") or "5432")

    url = make_url("postgresql+psycopg2://").set(
        username=user,
        password=password,
        host=host,
        port=port,
        database=name,
    )
    return url.render_as_string(hide_password=False)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Resolve process settings once, at startup.

    Reads the real environment (after loading a local ``.env``) unless an
    explicit mapping is given. Raises ConfigurationError when the selected
    profile cannot be satisfied.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    profile = EnvironmentProfile.parse(environ.get("ORDER_API_ENV"))
    defaults = PROFILE_DEFAULTS[profile]

    enable_swagger = defaults.enable_swagger
    if environ.get("API_ENABLE_SWAGGER"):
        enable_swagger = _parse_bool(
            "API_ENABLE_SWAGGER", environ["API_ENABLE_SWAGGER"]
        )

    https_port = None
    if environ.get("HTTPS_PORT"):
        https_port = _parse_port("HTTPS_PORT", environ["HTTPS_PORT"])

    port = defaults.port
    if environ.get("PORT"):
        port = _parse_port("PORT", environ["PORT"])

    return Settings(
        environment=profile,
        database_url=_resolve_database_url(profile, defaults, environ),
        enable_swagger=enable_swagger,
        https_redirect=defaults.https_redirect,
        cors=CorsPolicy.from_value(environ.get("CORS_ALLOWED_ORIGINS")),
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        host=environ.get("HOST") or "0.0.0.0",
        port=port,
        https_port=https_port,
    )
