from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mongolayer.exceptions import ConfigurationError


class MongoSettings(BaseSettings):
    """MongoDB connection and pool settings."""

    model_config = SettingsConfigDict(
        env_prefix="MONGODB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: str = "mongodb://localhost:27017"
    database: str = "test"

    # Connection timeouts (milliseconds)
    connect_timeout_ms: int = 10000
    server_selection_timeout_ms: int = 5000
    socket_timeout_ms: int = 30000
    ping_timeout_ms: int = 5000

    # Connection pool bounds
    max_pool_size: int = 100
    min_pool_size: int = 5

    @model_validator(mode="after")
    def _check_values(self) -> "MongoSettings":
        if not self.uri:
            raise ConfigurationError("MONGODB_URI must not be empty")
        if not self.database:
            raise ConfigurationError("MONGODB_DATABASE must not be empty")
        if self.min_pool_size > self.max_pool_size:
            raise ConfigurationError(
                f"min_pool_size ({self.min_pool_size}) exceeds "
                f"max_pool_size ({self.max_pool_size})"
            )
        return self
