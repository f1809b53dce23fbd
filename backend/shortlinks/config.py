import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./shortlinks.db"

    # Security
    SECRET_KEY: str = "shortlinks-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_HOUR: int = 100

    # Short codes
    SHORT_CODE_LENGTH: int = 6

    # Domain used to build the public short URL
    BASE_URL: str = "http://localhost:8000"

    # Geolocation
    GEO_LOOKUP_ENABLED: bool = True
    GEO_TIMEOUT: float = 2.0

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
