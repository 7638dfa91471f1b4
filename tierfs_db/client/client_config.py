import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Optional

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tierfs_data_model.storage_options import ClientOptions
from tierfs_data_model.tierfs_uri import EndpointLocator
from tierfs_exception_model.exception import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MASTER_PORT = 19998


class ClientSettings(BaseSettings):
    """Client defaults, overridable through ``TIERFS_*`` environment variables."""
    model_config = SettingsConfigDict(env_prefix="TIERFS_")

    master_hostname: str = "localhost"
    master_port: int = DEFAULT_MASTER_PORT
    connect_timeout: float = 5.0
    request_timeout: float = 30.0
    storage_type: str = "STORE"
    under_storage_type: str = "PERSIST"
    user_agent: str = "tierfs-client"


class MasterSettings(BaseSettings):
    """Master server settings, overridable through ``TIERFS_MASTER_*`` environment variables."""
    model_config = SettingsConfigDict(env_prefix="TIERFS_MASTER_")

    host: str = "0.0.0.0"  # NOSONAR
    port: int = DEFAULT_MASTER_PORT
    under_storage_root: str = "./tierfs-underfs"
    memory_capacity_bytes: int = 64 * 1024 * 1024
    max_files: int = 100_000
    max_read_chunk: int = 0


@dataclass(frozen=True)
class ClientConfig:
    """
    Explicit, immutable client configuration.

    Every client component receives one of these in its constructor; there is
    no process-wide configuration to mutate.
    """
    endpoint: EndpointLocator
    connect_timeout: float = 5.0
    request_timeout: float = 30.0
    default_options: ClientOptions = ClientOptions()
    user_agent: str = "tierfs-client"

    def __post_init__(self):
        if not isinstance(self.endpoint, EndpointLocator):
            raise ConfigurationError(f"Endpoint must be an EndpointLocator, got {self.endpoint!r}",
                                     setting="endpoint")
        if self.connect_timeout <= 0 or self.request_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive", setting="timeout")

    @classmethod
    def from_settings(cls, settings: Optional[ClientSettings] = None, **overrides) -> 'ClientConfig':
        try:
            settings = settings or ClientSettings(**overrides)
        except ValidationError as e:
            raise ConfigurationError("Invalid client settings", cause=e)
        return cls(
            endpoint=EndpointLocator(settings.master_hostname, settings.master_port),
            connect_timeout=settings.connect_timeout,
            request_timeout=settings.request_timeout,
            default_options=ClientOptions.from_tokens(settings.storage_type, settings.under_storage_type),
            user_agent=settings.user_agent,
        )

    @classmethod
    def from_yaml(cls, config_file: str) -> 'ClientConfig':
        """
        Load a config from the ``client`` mapping of a YAML file, falling back
        to environment/defaults for keys that are absent.
        """
        try:
            with open(config_file) as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot load config file {config_file}", setting="config_file", cause=e)
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {config_file} must contain a mapping", setting="config_file")
        client_cfg = config.get('client', {}) or {}
        logger.debug(f"Loaded client settings {sorted(client_cfg)} from {config_file}")
        return cls.from_settings(**client_cfg)

    @classmethod
    def load(cls) -> 'ClientConfig':
        # Support get config from config files
        config_file = os.getenv("CONFIG_FILE")
        if config_file and os.path.exists(config_file):
            return cls.from_yaml(config_file)
        return cls.from_settings()

    def with_endpoint(self, endpoint: EndpointLocator) -> 'ClientConfig':
        return dataclasses.replace(self, endpoint=endpoint)

    def with_timeout(self, request_timeout: float) -> 'ClientConfig':
        return dataclasses.replace(self, request_timeout=request_timeout)
