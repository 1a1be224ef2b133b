"""
Centralized configuration using Pydantic Settings.

All environment variables are loaded and validated here.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FROM_EMAIL = "noreply@automeet.app"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Document store (PostgreSQL JSONB)
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "automeet"
    database_user: str = "automeet"
    database_password: str = ""

    # Attendance predictor
    predictor_url: str = "https://mukthish-automeet.hf.space/predict"
    predictor_timeout_seconds: float = 10.0

    # Mail transport A (SendGrid). Takes precedence when the key is set.
    sendgrid_api_key: str = ""

    # Mail transport B (SMTP)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_secure: bool = False  # True for implicit TLS (port 465)
    smtp_user: str = ""
    smtp_pass: str = ""
    mail_from: str = ""
    mail_from_name: str = "AutoMeet"
    mail_timeout_seconds: float = 30.0

    # Hour buckets for time_of_day and date formatting in emails
    timezone: str = "UTC"

    # Bearer token verification
    auth_jwks_url: str = (
        "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
    )
    auth_jwt_secret: str = ""  # HS256 shared secret, overrides JWKS when set
    auth_audience: str | None = None
    auth_issuer: str | None = None

    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True  # False for colored dev output

    @property
    def database_url(self) -> str:
        """PostgreSQL connection URL for the document store."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def from_email(self) -> str:
        """Sender address for notification emails."""
        return self.mail_from or self.smtp_user or DEFAULT_FROM_EMAIL

    @property
    def use_sendgrid(self) -> bool:
        """Whether the SendGrid transport is configured."""
        return bool(self.sendgrid_api_key)


# Global settings instance
settings = Settings()
