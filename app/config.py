from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from functools import lru_cache


# Secrets that must never reach production
WEAK_SECRET_KEYS = {
    "development-secret-key-change-in-production",
    "changeme",
    "secret",
    "password",
    "test",
    "dev",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/inspection_scheduler"

    @field_validator('DATABASE_URL', mode='before')
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert postgresql:// to postgresql+asyncpg:// for async support."""
        if v and v.startswith('postgresql://'):
            return v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    # Auth
    SECRET_KEY: str = "development-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120

    # Public site (login links in outgoing emails)
    FRONTEND_URL: str = "http://localhost:5173"

    # Email (Brevo)
    BREVO_API_KEY: str | None = None
    EMAIL_FROM_ADDRESS: str = "scheduling@example.com"
    EMAIL_FROM_NAME: str = "Inspection Scheduling"

    # Booking validation limits
    ADDRESS_MAX_LENGTH: int = 100
    CITY_MAX_LENGTH: int = 50
    NAME_MAX_LENGTH: int = 50
    SQFT_MAX: int = 100000
    YEAR_BUILT_MIN: int = 1800
    AVAILABILITY_MAX_DAYS: int = 62

    # Generated credentials and document tokens
    GENERATED_PASSWORD_LENGTH: int = 12
    DOC_TOKEN_BYTES: int = 24

    # Notification outbox
    OUTBOX_MAX_ATTEMPTS: int = 5
    OUTBOX_POLL_SECONDS: int = 60
    OUTBOX_BATCH_SIZE: int = 50

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    DOCS_ENABLED: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

    @model_validator(mode="after")
    def enforce_production_safety(self) -> "Settings":
        """Production and staging get DEBUG off and a strong secret."""
        if self.is_production:
            if self.SECRET_KEY in WEAK_SECRET_KEYS or len(self.SECRET_KEY) < 32:
                raise ValueError("SECRET_KEY is too weak for a production environment")
            self.DEBUG = False
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in ("production", "staging")

    @property
    def sqlalchemy_echo(self) -> bool:
        """SQL echo only in local debug sessions (never leaks queries in production)."""
        return self.DEBUG and not self.is_production


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
