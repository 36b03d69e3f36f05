"""Configuration management for mrblame."""

import json
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

GITLAB_PROVIDER_ID = "gitlab"
GITHUB_PROVIDER_ID = "github"

DEFAULT_GITLAB_URL = "https://gitlab.com"
DEFAULT_GITHUB_URL = "https://github.com"
DEFAULT_CACHE_TTL_SECONDS = 3600


class ConfigurationError(ValueError):
    """Raised when a configuration file cannot be loaded."""

    pass


class CacheConfig(BaseModel):
    """Configuration for the commit -> change request cache."""

    ttl_seconds: int = Field(
        default=DEFAULT_CACHE_TTL_SECONDS,
        description="Cache entry lifetime in seconds (0 or negative disables caching)",
    )


class ProviderConfig(BaseModel):
    """Configuration for one hosting provider."""

    base_url: str = Field(..., description="Web URL of the provider instance")
    token_env_var: str = Field(
        ..., description="Environment variable holding the access token"
    )
    enabled: bool = Field(default=True, description="Register this provider")

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_http(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Provider base URL must be an http(s) URL: {v!r}")
        return v


class HttpConfig(BaseModel):
    """HTTP client settings shared by all providers."""

    connect_timeout: float = Field(default=10.0, description="Connect timeout in seconds")
    read_timeout: float = Field(default=30.0, description="Read timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")


class Config(BaseModel):
    """Main configuration model."""

    cache: CacheConfig = Field(default_factory=CacheConfig)
    gitlab: ProviderConfig = Field(
        default_factory=lambda: ProviderConfig(
            base_url=DEFAULT_GITLAB_URL, token_env_var="GITLAB_TOKEN"
        )
    )
    github: ProviderConfig = Field(
        default_factory=lambda: ProviderConfig(
            base_url=DEFAULT_GITHUB_URL, token_env_var="GITHUB_TOKEN"
        )
    )
    http: HttpConfig = Field(default_factory=HttpConfig)
    remote_name: str = Field(
        default="origin", description="Git remote used to locate the hosted project"
    )


class ConfigManager:
    """Manages configuration loading and saving."""

    DEFAULT_CONFIG_PATH = Path(".mrblame/config.json")

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from file, or defaults when the file is absent.

        Raises:
            ConfigurationError: If the file exists but is not valid configuration
        """
        if not self.config_path.exists():
            logger.debug(f"No config at {self.config_path}, using defaults")
            self._config = Config()
            return self._config

        try:
            with open(self.config_path, "r") as f:
                data = json.load(f)
            self._config = Config(**data)
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise ConfigurationError(
                f"Failed to load config from {self.config_path}: {e}"
            )
        return self._config

    def save(self, config: Optional[Config] = None) -> None:
        """Save configuration to file."""
        if config is None:
            config = self._config

        if config is None:
            raise ValueError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(config.model_dump(), f, indent=2)

    def get_config(self) -> Config:
        """Get the loaded configuration, loading it on first use."""
        if self._config is None:
            return self.load()
        return self._config
