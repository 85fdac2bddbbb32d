from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(env_file=".env", case_sensitive=True)

    DATABASE_URL: str
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis holds user sessions
    REDIS_URL: str = "redis://localhost:6379/0"
    SESSION_TTL_SECONDS: int = 43200  # 12 hours

    # Tokens issued by the external identity provider
    AUTH_JWT_SECRET: str = ""
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str = "authenticated"

    # CORS configuration: comma-separated origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    # Reminder scheduling
    REMINDER_TIMEZONE: str = "UTC"
    UPCOMING_REMINDER_DAYS: int = 4
    REMINDER_INTERVAL_SECONDS: int = 0  # 0 disables the in-process loop
    REMINDER_CRON_TOKEN: str = ""
    ASSIGNEE_EMAIL_DOMAIN: str = ""

    # Outbound email (Resend-compatible HTTP API)
    EMAIL_API_URL: str = "https://api.resend.com/emails"
    EMAIL_API_KEY: str = ""
    EMAIL_FROM: str = "LeadFlow CRM <reminders@leadflow.local>"
    EMAIL_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
