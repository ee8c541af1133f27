"""
Runtime settings for the API server and the bulk update tools.

All values come from the environment (optionally via a .env file loaded
with load_config) and are validated once at startup.
"""

from dataclasses import dataclass
from typing import Optional

from .config_module import ConfigError, get_config, get_float_config, get_int_config


IMAGE_SOURCES = ("cryptopunks.app", "larvalabs", "opensea", "opensea-cdn", "alchemy")
RATE_LIMIT_MODES = ("serialized", "burst")


@dataclass
class Settings:
    """Resolved configuration for one process."""

    # Which image URL strategy the API serves
    image_source: str = "cryptopunks.app"

    # Alchemy credential, only required by resolver-backed sources and tools
    alchemy_api_key: Optional[str] = None

    # Outbound provider discipline
    rate_limit_interval_ms: int = 100
    rate_limit_mode: str = "serialized"
    max_retries: int = 3
    request_timeout_seconds: float = 10.0

    # Bulk update batching
    batch_size: int = 50
    batch_delay_ms: int = 2000
    batch_concurrency: int = 1

    # File locations
    data_path: str = "cryptoPunkData.json"
    mapping_path: str = "openseaCdnMapping.json"
    snapshot_path: str = "cryptoPunkData-Alchemy.json"

    # Server
    port: int = 1337
    ssl_key: Optional[str] = None
    ssl_cert: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/punks_api.log"

    def __post_init__(self):
        """Validate configuration values."""
        if self.image_source not in IMAGE_SOURCES:
            raise ConfigError(
                f"Invalid IMAGE_SOURCE: {self.image_source}. "
                f"Must be one of {', '.join(IMAGE_SOURCES)}"
            )

        if self.rate_limit_mode not in RATE_LIMIT_MODES:
            raise ConfigError(
                f"Invalid RATE_LIMIT_MODE: {self.rate_limit_mode}. "
                f"Must be 'serialized' or 'burst'"
            )

        if self.rate_limit_interval_ms < 0:
            raise ConfigError("RATE_LIMIT_INTERVAL_MS cannot be negative")

        if self.max_retries < 1:
            raise ConfigError("MAX_RETRIES must be at least 1")

        if self.request_timeout_seconds <= 0:
            raise ConfigError("REQUEST_TIMEOUT_SECONDS must be positive")

        if self.batch_size < 1:
            raise ConfigError("BATCH_SIZE must be at least 1")

        if self.batch_delay_ms < 0:
            raise ConfigError("BATCH_DELAY_MS cannot be negative")

        if self.batch_concurrency < 1:
            raise ConfigError("BATCH_CONCURRENCY must be at least 1")

    @property
    def uses_resolver(self) -> bool:
        """True when the configured image source needs the Alchemy pipeline."""
        return self.image_source in ("opensea-cdn", "alchemy")

    @property
    def rate_limit_interval(self) -> float:
        return self.rate_limit_interval_ms / 1000.0

    @property
    def batch_delay(self) -> float:
        return self.batch_delay_ms / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Raises:
            ConfigError: On malformed or out-of-range values
        """
        return cls(
            image_source=get_config("IMAGE_SOURCE", "cryptopunks.app"),
            alchemy_api_key=get_config("ALCHEMY_API_KEY"),
            rate_limit_interval_ms=get_int_config("RATE_LIMIT_INTERVAL_MS", 100),
            rate_limit_mode=get_config("RATE_LIMIT_MODE", "serialized"),
            max_retries=get_int_config("MAX_RETRIES", 3),
            request_timeout_seconds=get_float_config("REQUEST_TIMEOUT_SECONDS", 10.0),
            batch_size=get_int_config("BATCH_SIZE", 50),
            batch_delay_ms=get_int_config("BATCH_DELAY_MS", 2000),
            batch_concurrency=get_int_config("BATCH_CONCURRENCY", 1),
            data_path=get_config("DATA_PATH", "cryptoPunkData.json"),
            mapping_path=get_config("MAPPING_PATH", "openseaCdnMapping.json"),
            snapshot_path=get_config("SNAPSHOT_PATH", "cryptoPunkData-Alchemy.json"),
            port=get_int_config("PORT", 1337),
            ssl_key=get_config("SSL_KEY"),
            ssl_cert=get_config("SSL_CERT"),
            log_level=get_config("LOG_LEVEL", "INFO"),
            log_file=get_config("LOG_FILE", "logs/punks_api.log"),
        )
