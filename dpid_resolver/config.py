import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource
from typing_extensions import Self

Env = Literal["local", "dev", "staging", "production"]

# Nodes web app per deployment environment
NODES_URLS: dict[str, str] = {
    "local": "http://localhost:3000",
    "dev": "https://nodes-dev.desci.com",
    "staging": "https://nodes.desci.com",
    "production": "https://nodes.desci.com",
}

DEV_ENVS = frozenset({"local", "dev"})


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by RESOLVER_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("RESOLVER_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class Server(BaseModel):
    """Server configuration (nested in Config, uses env_nested_delimiter)."""

    name: str = "dPID Resolver"
    version: str = "2.0.0"
    description: str = "Resolves dPIDs to research object manifests and data on IPFS"
    host: str = "0.0.0.0"
    port: int = 5460


class NodesConfig(BaseModel):
    """Nodes web app, the redirect target for non-raw resolution.

    Empty url is a sentinel meaning "derive from env".
    """

    url: str = ""


class CeramicConfig(BaseModel):
    url: str = "http://localhost:7007"
    sync_timeout_seconds: int = 3
    timeout: float = 10.0


class FlightConfig(BaseModel):
    """Batch query engine. Disabled when url is unset."""

    url: str | None = None
    # Per-statement timeout for the ADBC driver
    timeout: float = 5.0
    # Aggregated views the engine exposes over stream events
    latest_view: str = "stream_latest"
    versions_view: str = "stream_versions"


class RegistryConfig(BaseModel):
    rpc_url: str = "http://localhost:8545"
    address: str = ""  # DpidAliasRegistry proxy; required
    timeout: float = 10.0
    # None = enabled in local/dev only
    dedup_legacy_versions: bool | None = None


class IpfsConfig(BaseModel):
    gateway: str = "https://ipfs.desci.com/ipfs"
    # Empty = derived from gateway by swapping the trailing /ipfs for /api/v0
    dag_api_url: str = ""
    fallback_dag_api_urls: list[str] = []
    public_gateways: list[str] = [
        "https://ipfs.io/ipfs",
        "https://dweb.link/ipfs",
    ]
    timeout: float = 30.0

    @property
    def dag_api(self) -> str:
        if self.dag_api_url:
            return self.dag_api_url.rstrip("/")
        return re.sub(r"/ipfs/?$", "", self.gateway.rstrip("/")) + "/api/v0"


class CacheConfig(BaseModel):
    enabled: bool = True
    url: str = "redis://localhost:6379/0"
    ttl_anchored: int = 60 * 60 * 24 * 7  # 1 week
    ttl_pending: int = 60 * 10  # 10 minutes


class ListingConfig(BaseModel):
    lookup_timeout: float = 3.0  # Per-dPID budget on a listing page
    metadata_timeout: float = 5.0
    reverse_batch_size: int = 50


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from RESOLVER_LOG_FILE env var."""
        return os.environ.get("RESOLVER_LOG_FILE")


class Config(BaseSettings):
    # Required: selects the Nodes URL, cache namespace and dev-only registry rules
    env: Env
    # These are BaseModel, so env_nested_delimiter handles their env vars
    server: Server = Server()
    nodes: NodesConfig = NodesConfig()
    ceramic: CeramicConfig = CeramicConfig()
    flight: FlightConfig = FlightConfig()
    registry: RegistryConfig = RegistryConfig()
    ipfs: IpfsConfig = IpfsConfig()
    cache: CacheConfig = CacheConfig()
    listing: ListingConfig = ListingConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = {
        "env_prefix": "RESOLVER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows RESOLVER_CERAMIC__URL override
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def derive_nodes_url(self) -> Self:
        """Derive the Nodes URL from env unless RESOLVER_NODES__URL is set."""
        if not self.nodes.url:
            self.nodes = NodesConfig(url=NODES_URLS[self.env])
        return self

    @property
    def dedup_legacy_versions(self) -> bool:
        if self.registry.dedup_legacy_versions is not None:
            return self.registry.dedup_legacy_versions
        return self.env in DEV_ENVS

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - RESOLVER_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in application startup so all loggers pick up
    the configuration.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
