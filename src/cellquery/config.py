"""Client configuration file parsing and validation."""
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

DEFAULT_HOSTS = ['https://ws.zettagenomics.com/cellbase']
DEFAULT_VERSION = 'v5'
DEFAULT_SPECIES = 'hsapiens'
DEFAULT_TIMEOUT = 60


class ConfigError(Exception):
    """Raised when config file is invalid."""
    pass


class Config:
    """Parsed and validated client configuration."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        data = data or {}
        self.raw = data
        rest = data.get('rest') or {}
        if not isinstance(rest, dict):
            raise ConfigError("Field 'rest' must be a dictionary")

        self.hosts = rest.get('hosts', DEFAULT_HOSTS)
        self.version = data.get('version', DEFAULT_VERSION)
        self.default_species = data.get('default_species', DEFAULT_SPECIES)
        self.options = data.get('options') or {}
        self.timeout = data.get('timeout', DEFAULT_TIMEOUT)

        self._validate()

    def _validate(self) -> None:
        """Validate configuration structure."""
        if not isinstance(self.hosts, list) or not self.hosts:
            raise ConfigError("rest.hosts must be a non-empty list")

        for host in self.hosts:
            if not isinstance(host, str) or not host.startswith(('http://', 'https://')):
                raise ConfigError(f"Invalid host URL in rest.hosts: {host!r}")

        if not self.version or not isinstance(self.version, str):
            raise ConfigError("Missing required field: version")

        if not self.default_species or not isinstance(self.default_species, str):
            raise ConfigError("Missing required field: default_species")

        if not isinstance(self.options, dict):
            raise ConfigError("Field 'options' must be a dictionary")

        for key in ('limit', 'numThreads'):
            value = self.options.get(key)
            if value is not None and (not isinstance(value, int) or value < 1):
                raise ConfigError(f"options.{key} must be a positive integer")

        if not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigError("timeout must be a positive number")

    @property
    def host(self) -> str:
        """Host used for calls (the first configured one)."""
        return self.hosts[0]

    @classmethod
    def default(cls) -> 'Config':
        """Configuration using the built-in defaults."""
        return cls({})

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load and parse config from YAML file."""
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}")
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {path}")

        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a YAML dictionary")

        return cls(data)
