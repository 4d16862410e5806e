"""
Application configuration
- Environment variables (and .env) are read once into an immutable snapshot
- Typed fields for the values the gateway itself consumes
- Any other variable stays reachable through Settings.get()
"""

import os
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationException

# Load environment variables
load_dotenv()

# accepted only in development mode
DEV_JWT_SECRET = "change-me"


def database_name_from_uri(uri: Optional[str]) -> Optional[str]:
    """Final '/'-delimited segment of a connection URI, without its query string."""
    if not uri:
        return None
    return uri.split("/")[-1].split("?")[0]


class Settings(BaseSettings):
    """Process-wide configuration snapshot"""

    # MongoDB
    mongodb_uri: str = Field(..., description="MongoDB connection string")
    mongodb_server_selection_timeout_ms: int = Field(default=5000, ge=100)

    # Server
    host: str = Field(default="0.0.0.0", description="Server host address")
    port: int = Field(default=3000, ge=1, le=65535, description="Server port number")
    environment: str = Field(default="production")
    graphql_path: str = Field(default="/graphql")

    # Logging
    log_level: str = Field(default="INFO")
    log_to_file: bool = Field(default=False)

    # Auth
    jwt_secret: str = Field(default=DEV_JWT_SECRET, description="JWT signing secret")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_in_seconds: int = Field(default=3600, ge=60)

    # Throttling
    throttle_ttl_ms: int = Field(default=60000, ge=1)
    throttle_limit: int = Field(default=30, ge=1)
    # honor X-Forwarded-For only behind a trusted reverse proxy
    trust_proxy: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    _environment: Mapping[str, str] = PrivateAttr(
        default_factory=lambda: MappingProxyType(dict(os.environ))
    )

    @field_validator("mongodb_uri")
    @classmethod
    def validate_mongodb_uri(cls, value: str) -> str:
        if not value.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("MongoDB URI must start with mongodb:// or mongodb+srv://")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {value}")
        return level

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        if not self.jwt_secret.strip():
            raise ValueError("JWT_SECRET must not be empty")
        if self.jwt_secret == DEV_JWT_SECRET and not self.is_development_mode():
            raise ValueError("JWT_SECRET must be set outside development")
        return self

    @property
    def database_name(self) -> Optional[str]:
        return database_name_from_uri(self.mongodb_uri)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Raw string lookup of any variable captured at load time"""
        return self._environment.get(name, default)

    def is_development_mode(self) -> bool:
        return self.environment.lower() in ["development", "dev", "local"]


def load_settings(**overrides) -> Settings:
    """
    Build a Settings snapshot, turning validation failures into a
    ConfigurationException so startup aborts with one readable error.
    """
    try:
        return Settings(**overrides)
    except ValidationError as validation_error:
        # model-level errors have no field location; their message names the variable
        missing = [
            ".".join(str(part) for part in error["loc"]).upper() or error["msg"]
            for error in validation_error.errors()
        ]
        raise ConfigurationException(
            f"Invalid configuration: {', '.join(missing)}",
            details={"errors": validation_error.errors()},
            original_exception=validation_error,
        ) from validation_error


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Global settings instance, loaded on first use"""
    return load_settings()
