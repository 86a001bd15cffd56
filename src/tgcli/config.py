"""Configuration management for tgcli."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml  # type: ignore

from .constants import (
    CONFIG_DIR_ENV,
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    CREDS_FILE_NAME,
    DEFAULT_GS_PORT,
    DEFAULT_REST_PORT,
)
from .models import AppConfig, MachineConfig

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or written."""

    pass


class AliasNotFoundError(ConfigError):
    """Raised when a server alias is not present in the configuration."""

    def __init__(self, alias: str):
        super().__init__(f"Alias {alias} not found. Try: tg conf list")
        self.alias = alias


def resolve_config_dir(config_dir: Optional[Path] = None) -> Path:
    """Return the tgcli configuration directory.

    Precedence: explicit argument, ``TGCLI_CONFIG_DIR``, ``~/.tgcli``.
    """
    if config_dir is not None:
        return Path(config_dir)
    env_dir = os.environ.get(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path.home() / CONFIG_DIR_NAME


def mask_password(password: str) -> str:
    """Mask a password for display, keeping its first and last character."""
    if not password:
        return ""
    if len(password) <= 3:
        return "*" * len(password)
    return password[0] + "*" * (len(password) - 2) + password[-1]


class ConfigManager:
    """Manages loading, saving and editing of ``config.yml``."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = resolve_config_dir(config_dir)
        self.config_path = self.config_dir / CONFIG_FILE_NAME
        self._config: Optional[AppConfig] = None

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            return self.load()
        return self._config

    def load(self) -> AppConfig:
        """Load configuration from file, creating a default one if missing."""
        if not self.config_path.exists():
            logger.debug(f"No config at {self.config_path}, creating default")
            self._config = AppConfig()
            self.save()
            return self._config

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            self._config = AppConfig(**data)
        except Exception as e:
            raise ConfigError(f"Failed to load config from {self.config_path}: {e}")

        return self._config

    def save(self, config: Optional[AppConfig] = None) -> None:
        """Write configuration back to ``config.yml``."""
        if config is not None:
            self._config = config

        if self._config is None:
            raise ConfigError("No configuration to save")

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                yaml.safe_dump(
                    self._config.model_dump(by_alias=True),
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                )
        except OSError as e:
            raise ConfigError(f"Unable to write config file {self.config_path}: {e}")

    def get_machine(self, alias: str) -> MachineConfig:
        """Return the machine stored under ``alias``.

        Raises:
            AliasNotFoundError: If the alias is unknown
        """
        machine = self.config.machines.get(alias)
        if machine is None:
            raise AliasNotFoundError(alias)
        return machine

    def has_machine(self, alias: str) -> bool:
        return alias in self.config.machines

    def add_machine(
        self, alias: str, machine: MachineConfig, make_default: bool = False
    ) -> None:
        """Store a new alias.

        Raises:
            ConfigError: If the alias already exists
        """
        if self.has_machine(alias):
            raise ConfigError(f"Alias '{alias}' already exists")

        self.config.machines[alias] = machine
        if make_default:
            self.config.default = alias
        self.save()

    def delete_machine(self, alias: str) -> bool:
        """Remove an alias, clearing the default if it pointed at it.

        Returns:
            True if the deleted alias was the default one

        Raises:
            AliasNotFoundError: If the alias is unknown
        """
        if not self.has_machine(alias):
            raise AliasNotFoundError(alias)

        del self.config.machines[alias]
        was_default = self.config.default == alias
        if was_default:
            self.config.default = ""
        self.save()
        return was_default

    def set_default(self, alias: str) -> None:
        """Make an existing alias the default one.

        Raises:
            AliasNotFoundError: If the alias is unknown
        """
        if not self.has_machine(alias):
            raise AliasNotFoundError(alias)
        self.config.default = alias
        self.save()

    def set_tgcloud_credentials(self, user: str, password: str) -> None:
        self.config.tgcloud.user = user
        self.config.tgcloud.password = password
        self.save()

    def list_machines(self) -> Dict[str, MachineConfig]:
        return dict(self.config.machines)


class TokenStore:
    """Stores the tgcloud bearer token in ``creds.bank`` (mode 0600)."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.path = resolve_config_dir(config_dir) / CREDS_FILE_NAME

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        token = self.path.read_text().strip()
        return token or None

    def write(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token)
        os.chmod(self.path, 0o600)

    def delete(self) -> None:
        if self.path.exists():
            self.path.unlink()


@dataclass(frozen=True)
class ServerCredentials:
    """Resolved connection details for a TigerGraph server."""

    host: str
    user: str
    password: str
    gs_port: str = DEFAULT_GS_PORT
    rest_port: str = DEFAULT_REST_PORT

    @property
    def gsql_endpoint(self) -> str:
        """``host:gsPort`` base URL of the GSQL server."""
        return f"{self.host.rstrip('/')}:{self.gs_port}"

    @property
    def rest_endpoint(self) -> str:
        return f"{self.host.rstrip('/')}:{self.rest_port}"


class CredentialResolver:
    """Resolves server credentials from an alias or from explicit values."""

    def __init__(self, config_manager: ConfigManager):
        self.config_manager = config_manager

    def resolve(
        self,
        alias: Optional[str],
        host: str,
        user: str,
        password: str,
        gs_port: str = DEFAULT_GS_PORT,
        rest_port: str = DEFAULT_REST_PORT,
    ) -> ServerCredentials:
        """Return credentials for ``alias`` if given, otherwise the direct values.

        Raises:
            AliasNotFoundError: If ``alias`` is set but unknown
        """
        if alias:
            machine = self.config_manager.get_machine(alias)
            logger.debug(f"Using alias {alias} -> {machine.host}:{machine.gs_port}")
            return ServerCredentials(
                host=machine.host,
                user=machine.user,
                password=machine.password,
                gs_port=machine.gs_port,
                rest_port=machine.rest_port,
            )

        return ServerCredentials(
            host=host,
            user=user,
            password=password,
            gs_port=gs_port,
            rest_port=rest_port,
        )
