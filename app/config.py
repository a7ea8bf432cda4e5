from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="CAREERPATH_", extra="ignore")

    app_name: str = Field(default="CareerPath")
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "CAREERPATH_ENVIRONMENT"),
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "CAREERPATH_LOG_LEVEL"),
    )
    database_url: str = Field(
        default="sqlite:///./data/careerpath.db",
        validation_alias=AliasChoices("DATABASE_URL", "CAREERPATH_DATABASE_URL"),
    )
    cors_allowed_origins: List[str] | str | None = Field(
        default_factory=lambda: ["http://localhost:5173"]
    )

    # Generative model
    gemini_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "CAREERPATH_GEMINI_API_KEY"),
    )
    gemini_model: str = Field(default="gemini-1.5-flash")
    gemini_temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    gemini_timeout_seconds: float = Field(default=60.0, gt=0)
    follow_up_question_count: int = Field(default=5, ge=1, le=20)
    career_option_count: int = Field(default=5, ge=1, le=20)
    generation_max_attempts: int = Field(default=1, ge=1, le=5)
    fallback_roadmap_path: str | None = Field(default=None)

    # Identity provider (bearer JWT verification)
    identity_secret: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("IDENTITY_SECRET", "CAREERPATH_IDENTITY_SECRET"),
    )
    identity_algorithms: List[str] | str = Field(default_factory=lambda: ["HS256"])
    identity_audience: str | None = Field(default=None)
    identity_issuer: str | None = Field(default=None)

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_default: str = Field(default="100/minute")
    rate_limit_storage_uri: str = Field(default="memory://")

    # Monitoring & Observability
    sentry_dsn: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SENTRY_DSN", "CAREERPATH_SENTRY_DSN"),
    )
    sentry_environment: str = Field(default="production")
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)

    # Security Settings
    force_https: bool = Field(default=False)

    @field_validator("cors_allowed_origins", "identity_algorithms", mode="before")
    @classmethod
    def _split_csv(cls, value: List[str] | str | None) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return []
            return [item.strip() for item in stripped.split(",") if item.strip()]
        return value

    @field_validator("fallback_roadmap_path", mode="before")
    @classmethod
    def _resolve_roadmap_path(cls, value: str | None) -> str | None:
        if not value:
            return None
        candidate = Path(value)
        if not candidate.is_absolute():
            candidate = (APP_ROOT / candidate).resolve()
        return str(candidate)

    @staticmethod
    def _secret_value(secret: SecretStr | None) -> str:
        return secret.get_secret_value() if secret else ""

    @property
    def gemini_api_key_value(self) -> str:
        return self._secret_value(self.gemini_api_key)

    @property
    def identity_secret_value(self) -> str:
        return self._secret_value(self.identity_secret)


@lru_cache
def get_settings() -> Settings:
    return Settings()
