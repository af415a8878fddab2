"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Banking backend
    bank_api_base: str = "http://localhost:8080"

    # Service
    service_name: str = "pleasy-client"
    log_level: str = "INFO"
    display_locale: str = "ko"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Settlement
    settlement_description: str = "account-closure settlement"
    loan_settlement_description: str = "loan payoff settlement"
    close_update_reason: str = "closed at customer request"


settings = Settings()
