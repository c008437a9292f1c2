from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Rentals Booking API"
    # Comma-separated origins for CORS. If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_TIMEZONE: str = "Asia/Manila"

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "bookings@rentals.local"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""

    CLIENT_BASE_URL: str = ""  # used to build links in emails, e.g. https://rentals.example.com

    # Booking lifecycle
    BOOKING_REF_PREFIX: str = "RNT"
    PENDING_HOLD_MINUTES: int = 15         # car/tour: initial payment window
    ADMIN_CONFIRMATION_HOURS: int = 24     # transport: staff must confirm within this window
    DEFAULT_BALANCE_DUE_HOURS: int = 72    # downpayment balance window when staff gives none

    # Reconciliation sweep (seconds between beat ticks)
    RECONCILE_INTERVAL_SECONDS: float = 60.0
    EMAIL_QUEUE_INTERVAL_SECONDS: float = 120.0


settings = Settings()
