from pydantic_settings import BaseSettings
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    """Configuration settings for the application."""
    PROJECT_NAME: str = "Restaurant Onboarding API"
    LOG_LEVEL: str = "INFO"

    # "memory" keeps everything in process, "mongo" persists through motor
    STORE_BACKEND: str = "memory"
    MONGO_URI: str = "mongodb://localhost:27017"
    DB_NAME: str = "restaurant_onboarding"

    # "console", "smtp" or "http"
    NOTIFIER_BACKEND: str = "console"
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    FROM_EMAIL: str = "no-reply@frontdash.com"
    NOTIFICATION_API_URL: Optional[str] = None
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0
    LOGIN_URL: str = "http://localhost:3000/restaurant-signin"

    SECRET_KEY: str = "MySecretKey@123"  # Production: override through env
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    TEMP_PASSWORD_LENGTH: int = 12
    TIMEZONE: str = "UTC"

    class Config:
        env_file = ".env"

settings = Settings()
