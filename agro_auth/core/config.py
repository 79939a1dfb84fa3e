from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # === APP ===
    MODE: str = Field(default="production", description="production | debug | test")
    APP_NAME: str = Field(default="Pyramid Agro Export", description="Name shown in e-mails")
    LOG_LEVEL: str = Field(default="INFO")
    SLOW_REQUEST_THRESHOLD: float = Field(default=1.0, description="Seconds before a request is logged as slow")

    # === DATABASE ===
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://agro:agro@db:5432/agro",
        description="Async SQLAlchemy URL used inside the deployment network",
    )
    DATABASE_URL_EXTERNAL: str = Field(
        default="sqlite+aiosqlite:///./agro_auth.db",
        description="Async SQLAlchemy URL used in debug mode",
    )

    # === REDIS (rate limiting) ===
    REDIS_URL: str = Field(default="redis://redis:6379/0")
    REDIS_URL_EXTERNAL: str = Field(default="redis://localhost:6379/0")
    RATE_LIMIT_ENABLED: bool = Field(default=True)

    # === PASSWORD RESET ===
    RESET_CODE_TTL_MINUTES: int = Field(default=10, ge=1)
    RESET_MAX_ATTEMPTS: int = Field(default=0, ge=0, description="0 disables the wrong-code lockout")
    RESEND_COOLDOWN_SECONDS: int = Field(default=0, ge=0, description="0 leaves resend ungated")

    # === EMAIL ===
    EMAIL_BACKEND: str = Field(default="smtp", description="smtp | console")
    SMTP_SERVER: str = Field(default="smtp.gmail.com")
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: Optional[str] = None
    SMTP_FROM_NAME: str = Field(default="Pyramid Agro Export")
    SMTP_TIMEOUT: float = Field(default=10.0)

    # === SENTRY ===
    SENTRY_DSN: Optional[str] = None
    SENTRY_ENVIRONMENT: Optional[str] = None
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.1)


settings = Settings()
