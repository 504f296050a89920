from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    # Database Configuration
    database_url: str = "sqlite:///./wardrobe.db"

    # JWT Configuration
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    verification_token_expire_hours: int = 24
    reset_token_expire_minutes: int = 60

    # Weather Configuration
    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    weather_country_code: str = "ke"
    weather_timeout: float = 10.0
    # Stand-in snapshot used when no live lookup is possible
    default_temperature: float = 20.0
    default_condition: str = "sunny"

    # Email Configuration
    email_sender: str = ""
    email_password: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    frontend_url: str = "http://localhost:5173"

    # Uploads
    backend_url: str = "http://localhost:8000"
    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # Rate limits, in slowapi "count/period" notation
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"
    api_rate_limit: str = "100/minute"
    auth_rate_limit: str = "5/15 minutes"

    class Config:
        env_file = ".env"

    @property
    def email_configured(self) -> bool:
        return bool(self.email_sender and self.email_password)

    @property
    def weather_configured(self) -> bool:
        return bool(self.openweather_api_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
