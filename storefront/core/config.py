from functools import lru_cache
from typing import Any, List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return _DEFAULT_CORS.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()
    except ValueError:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")

    # Order store: "mongo" in deployments, "memory" for tests and local runs
    store_backend: Literal["mongo", "memory"] = Field(default="mongo", alias="STORE_BACKEND")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="storefront", alias="MONGODB_DB_NAME")

    # Redis (arq notification queue)
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # PayU
    payu_merchant_key: str = Field(default="", alias="PAYU_MERCHANT_KEY")
    payu_merchant_salt: str = Field(default="", alias="PAYU_MERCHANT_SALT")
    payu_env: Literal["test", "production"] = Field(default="test", alias="PAYU_ENV")

    # Base URL the gateway posts callbacks to (this API)
    public_base_url: str = Field(default="http://localhost:8000", alias="PUBLIC_BASE_URL")
    # Base URL of the client serving /payment-success and /payment-failure; empty = relative
    client_base_url: str = Field(default="", alias="CLIENT_BASE_URL")

    # Order confirmation mail
    smtp_host: str = Field(default="", alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_username: str = Field(default="", alias="SMTP_USERNAME")
    smtp_password: str = Field(default="", alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=True, alias="SMTP_USE_TLS")
    mail_from: str = Field(default="orders@localhost", alias="MAIL_FROM")
    store_name: str = Field(default="Storefront", alias="STORE_NAME")

    # Pending orders older than this are reported for manual reconciliation
    stale_pending_minutes: int = Field(default=60, alias="STALE_PENDING_MINUTES")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))


@lru_cache
def get_settings() -> Settings:
    return Settings()
