"""
Merkle Infos Service - Configuration
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    # Application
    APP_NAME: str = "Merkle Infos"
    VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    WORKERS: int = 1
    LOG_LEVEL: str = "INFO"

    # Database
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "merkle"
    DB_USER: str = "merkle"
    DB_PASSWORD: str = ""
    DB_POOL_SIZE: int = 5
    DB_POOL_MAX_OVERFLOW: int = 10

    @property
    def DATABASE_URL(self) -> str:
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Merkle tree storage
    MERKLE_TABLE_NAME: str = Field(
        default="merkle_nodes",
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
    )
    SCAN_PAGE_SIZE: int = Field(default=1000, ge=1)

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    VALIDATION_INTERVAL_MINUTES: int = Field(default=15, ge=1)

    # Metrics
    METRICS_ENABLED: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
