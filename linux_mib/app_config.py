"""Provider configuration management using Dynaconf."""

import os
from pathlib import Path
from threading import Lock
from typing import Any, Dict

from dynaconf import Dynaconf

DEFAULT_CONFIG = "agent_config.yaml"

# Environment variables such as LINUX_MIB_KERNEL__PROCFS_ROOT override the file
ENVVAR_PREFIX = "LINUX_MIB"


class AppConfig:
    """Singleton configuration for the Linux MIB provider."""

    _instance = None
    _lock = Lock()
    _initialized = False

    def __new__(cls, config_path: str = DEFAULT_CONFIG) -> "AppConfig":
        """Create or return the singleton instance of AppConfig."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._initialized = False
            return cls._instance

    def __init__(self, config_path: str = DEFAULT_CONFIG) -> None:
        """Load settings once from the specified config path."""
        if self.__class__._initialized and hasattr(self, "settings"):
            return
        self._init_config(config_path)

    def _init_config(self, config_path: str) -> None:
        if self.__class__._initialized:
            return

        # The default name resolves to data/agent_config.yaml when present
        if config_path == DEFAULT_CONFIG:
            data_path = Path("data") / DEFAULT_CONFIG
            if data_path.exists():
                config_path = str(data_path)

        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Config file {config_path} not found")

        self.config_path = config_path
        self.settings = Dynaconf(
            settings_files=[config_path],
            environments=False,
            envvar_prefix=ENVVAR_PREFIX,
        )
        self.__class__._initialized = True

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by (dotted) key."""
        return self.settings.get(key, default)

    def section(self, key: str) -> Dict[str, Any]:
        """Get a nested section as a plain dict; empty if absent."""
        value = self.get(key, {})
        if not isinstance(value, dict):
            return {}
        return {k.lower(): v for k, v in dict(value).items()}

    def reload(self) -> None:
        """Reload the configuration from disk."""
        self.settings.reload()
