"""
Application configuration from environment variables.
"""
from functools import lru_cache
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings

# .env is in the project root (parent of backend/)
ENV_FILE = Path(__file__).parent.parent / ".env"


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""  # anon key, used for auth lookups
    supabase_service_key: str = ""  # service key for owner-scoped table access

    # Transactional email (Resend)
    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com"
    email_from: str = "noreply@honestinvoice.app"

    # Billing
    premium_checkout_url: str = "https://buy.stripe.com/aFaeVd2ub23leHdf3p7kc03"

    # App settings
    app_url: str = "http://localhost:8000"
    cors_origins: List[str] = ["*"]
    debug: bool = True

    class Config:
        env_file = str(ENV_FILE)
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
