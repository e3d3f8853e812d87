"""
Runtime configuration, read from the environment (and an optional .env file).
"""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Zealous Health"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite+aiosqlite:///./zealous.db"
    SEED_SAMPLE_DATA: bool = True
    CORS_ORIGINS: List[str] = ["*"]

    # Tokens
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_PRIVATE_KEY: str = "change-me-access"
    REFRESH_TOKEN_PRIVATE_KEY: str = "change-me-refresh"
    RESET_TOKEN_PRIVATE_KEY: str = "change-me-reset"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 1 day
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    RESET_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_COOKIE_NAME: str = "jwt"
    COOKIE_SECURE: bool = True

    # Payment gateway
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    PAYMENT_CURRENCY: str = "INR"

    # Carrier
    SHIPROCKET_API_URL: str = "https://apiv2.shiprocket.in"
    SHIPROCKET_EMAIL: str = ""
    SHIPROCKET_PASSWORD: str = ""
    SHIPROCKET_PICKUP_LOCATION: str = "Primary"
    SHIPROCKET_TOKEN_TTL_DAYS: int = 10

    # Outbound email
    MAILGUN_API_KEY: str = ""
    MAILGUN_DOMAIN: str = ""
    MAILGUN_REGION: str = "us"
    DOMAIN_URL: str = ""

    HTTP_TIMEOUT: float = 15.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


settings = Settings()
