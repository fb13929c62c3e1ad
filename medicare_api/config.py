from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, loaded from the environment and an optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "Medicare API"

    DATABASE_URL: str = Field("sqlite:///./medicare.db", description="SQLAlchemy database URL")

    # Bearer tokens
    ACCESS_TOKEN: str = Field("dev-access-token-secret", description="Secret used to sign access tokens")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Payment gateway
    STRIPE_SECRET_KEY: str = Field("", description="Stripe secret API key")
    PAYMENT_CURRENCY: str = "usd"

    LOG_LEVEL: str = "INFO"
    PORT: int = 5000


@lru_cache
def get_settings() -> Settings:
    return Settings()
