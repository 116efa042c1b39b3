from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BOOKING_API_BASE_URL: str | None = None
    NOTIFICATIONS_BASE_URL: str | None = None
    HTTP_TIMEOUT_SECONDS: float = 10.0

    BUSINESS_TIMEZONE: str = "America/New_York"
    BUSINESS_PHONE: str = "(555) 123-4567"
    BUSINESS_HOURS: str = "Mon-Sat 8:00 AM - 6:00 PM"
    EMERGENCY_CONTACT: str | None = None
    CANCELLATION_POLICY: str = (
        "Free cancellation up to 24 hours before your appointment. "
        "Cancellations within 24 hours may incur a fee."
    )
    FEEDBACK_BASE_URL: str = "https://example.com"

    SEND_CONFIRMATIONS: bool = True
    RESET_AFTER_SUBMISSION: bool = False


settings = Settings()
