from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import Any, ClassVar
import json
from pathlib import Path
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", case_sensitive=True)

    API_V1_STR: str = "/api/v1"

    # JWT configuration (provide a fallback for local development)
    SECRET_KEY: str = "fallback_secret_for_dev_only"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    # Use an absolute path so running the app from different directories
    # (e.g., repo root or backend/) always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'talent_booking.db'}"

    # CORS origins
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    CORS_ALLOW_ALL: bool = False

    # Base frontend URL used in notification links
    FRONTEND_URL: str = "http://localhost:5173"

    # Optional cookie domain to scope auth cookies across subdomains.
    COOKIE_DOMAIN: str = ""

    # SMTP email settings
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "no-reply@localhost"
    # Extra inbox copied on admin-facing notifications (new acceptances, signatures)
    ADMIN_NOTIFICATION_EMAIL: str = ""

    # Agency details printed on generated contracts
    COMPANY_NAME: str = "5T Elite Talent, Inc."
    COMPANY_ADDRESS: str = "122 W 26th St, Suite 902, New York, NY 10001"
    COMPANY_CONTACT: str = "admin@5telite.com"
    CONTRACT_DUE_DAYS: int = 7

    # R2 / S3-compatible storage configuration (Cloudflare R2)
    R2_ACCOUNT_ID: str = ""
    R2_ACCESS_KEY_ID: str = ""
    R2_SECRET_ACCESS_KEY: str = ""
    R2_BUCKET: str = ""
    R2_S3_ENDPOINT: str = ""
    # Public custom domain for reads (e.g., https://media.example.com)
    R2_PUBLIC_BASE_URL: str = ""

    LOG_LEVEL: str = "INFO"
    ENABLE_CONSOLE_TRACING: bool = False

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("FRONTEND_URL", "COOKIE_DOMAIN", "SMTP_FROM", mode="before")
    def strip_whitespace(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @model_validator(mode="after")
    def allow_all_if_requested(cls, values: "Settings") -> "Settings":
        if values.CORS_ALLOW_ALL:
            values.CORS_ORIGINS = ["*"]
        return values


def load_settings() -> "Settings":
    return Settings(_env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")))


settings = load_settings()


def _cookie_domain() -> str | None:
    env_domain = os.getenv("COOKIE_DOMAIN", "").strip()
    if env_domain:
        return env_domain
    return (settings.COOKIE_DOMAIN or "").strip() or None


COOKIE_DOMAIN = _cookie_domain()
