"""Application configuration via Pydantic settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration object loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Spa Booking API"
    debug: bool = False
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    auto_create_tables: bool = Field(True, alias="AUTO_CREATE_TABLES")
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = "HS256"
    jwt_expires_in_minutes: int = Field(60 * 24, alias="JWT_EXPIRES_IN")

    default_timezone: str = Field("Europe/Istanbul", alias="DEFAULT_TIMEZONE")
    business_name: str = Field("L'OR Massage Center", alias="BUSINESS_NAME")
    frontend_base_url: str = Field("http://localhost:3000", alias="FRONTEND_BASE_URL")

    smtp_host: str | None = Field(None, alias="SMTP_HOST")
    smtp_port: int = Field(587, alias="SMTP_PORT")
    smtp_username: str | None = Field(None, alias="SMTP_USERNAME")
    smtp_password: str | None = Field(None, alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(True, alias="SMTP_USE_TLS")
    email_from_address: str = Field("no-reply@lor-massage.com", alias="EMAIL_FROM_ADDRESS")

    twilio_account_sid: str | None = Field(None, alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: str | None = Field(None, alias="TWILIO_AUTH_TOKEN")
    twilio_from_number: str | None = Field(None, alias="TWILIO_FROM_NUMBER")
    twilio_api_base: str = Field("https://api.twilio.com", alias="TWILIO_API_BASE")
    twilio_timeout_seconds: float = Field(10.0, alias="TWILIO_TIMEOUT_SECONDS")
    sms_default_country_code: str = Field("+90", alias="SMS_DEFAULT_COUNTRY_CODE")

    upload_dir: str = Field("uploads", alias="UPLOAD_DIR")
    upload_url_prefix: str = Field("/uploads", alias="UPLOAD_URL_PREFIX")
    max_upload_bytes: int = Field(5 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")

    reminder_lead_hours: int = Field(24, alias="REMINDER_LEAD_HOURS")
    reminder_sweep_seconds: float = Field(60.0, alias="REMINDER_SWEEP_SECONDS")
    payment_simulation_delay_seconds: float = Field(1.2, alias="PAYMENT_SIMULATION_DELAY_SECONDS")


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings = get_settings()
