"""
Core configuration and settings for the Movie Ratings Service
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Service information
    service_name: str = Field(default="movie-ratings-service")
    service_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Server configuration
    port: int = Field(default=8080)
    host: str = Field(default="0.0.0.0")  # nosec B104

    # Database configuration
    mongodb_uri: str = Field(default="mongodb://localhost:27017/?replicaSet=rs0")
    mongodb_database: str = Field(default="moviedb")
    movies_collection: str = Field(default="movies")
    ratings_collection: str = Field(default="ratings")
    mongodb_timeout_ms: int = Field(default=10000)

    # Rating submission runs inside a transaction when enabled
    rating_transactions: bool = Field(default=True)

    # Retry policy
    merge_max_attempts: int = Field(default=3)
    store_retry_attempts: int = Field(default=3)
    store_retry_base_delay: float = Field(default=0.2)
    store_retry_max_delay: float = Field(default=2.0)

    # Repair pass
    repair_batch_size: int = Field(default=500)
    # aggregates written this recently (by a submission that may still be
    # committing when the pass starts) are left alone by the repair pass
    repair_recent_write_ms: int = Field(default=60000)

    # Logging configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    log_to_file: bool = Field(default=False)
    log_to_console: bool = Field(default=True)
    log_file_path: Optional[str] = Field(default=None)

    correlation_id_header: str = Field(default="X-Correlation-ID")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


# Global config instance
config = Config()
