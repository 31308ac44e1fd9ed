"""
RetroFS Configuration Loader

Configuration management for the kernel file system:
- JSON configuration file loading
- Configuration validation
- Default value handling
- Runtime configuration updates
- Type-safe access to configuration values

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, List
import threading

from retrofs.exceptions import ConfigValidationError


@dataclass
class KernelConfig:
    """Kernel identification settings."""
    name: str = "RetroOS"
    version: str = "18.0.0"
    build: int = 1800


@dataclass
class FilesystemConfig:
    """Filesystem facade settings."""
    log_capacity: int = 1000
    default_log_limit: int = 100
    default_user: str = "admin"
    seed_directories: List[str] = field(default_factory=lambda: [
        "system", "users", "applications", "temp"
    ])


@dataclass
class StorageConfig:
    """Durable key/value store settings."""
    state_key: str = "retroos_filesystem_state"
    state_dir: str = "~/.retroos"


@dataclass
class UplinkConfig:
    """Hardware Uplink (real directory) settings."""
    root_path: Optional[str] = None
    create: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    log_file: Optional[str] = None
    console_output: bool = True


@dataclass
class Config:
    """
    Main configuration container.

    Holds all configuration settings for the kernel file system.
    """
    kernel: KernelConfig = field(default_factory=KernelConfig)
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    uplink: UplinkConfig = field(default_factory=UplinkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigLoader:
    """
    Configuration loader and manager.

    Handles loading configuration from JSON files, validating
    settings, and providing runtime configuration access.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load('retrofs.json')
        >>> print(config.storage.state_key)
        retroos_filesystem_state
    """

    _instance: Optional['ConfigLoader'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'ConfigLoader':
        """Singleton pattern for configuration access."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._config = Config()
                cls._instance._loaded = False
            return cls._instance

    def load(self, config_path: str) -> Config:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Config object with loaded settings

        Raises:
            ConfigValidationError: If the file cannot be loaded or parsed
        """
        path = Path(config_path).expanduser()

        if not path.exists():
            raise ConfigValidationError(
                f"Configuration file not found: {config_path}",
                source=str(path)
            )

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(
                f"Invalid JSON in configuration file: {e}",
                source=str(path)
            )
        except OSError as e:
            raise ConfigValidationError(
                f"Cannot read configuration file: {e}",
                source=str(path)
            )

        return self.load_dict(data, source=str(path))

    def load_dict(self, data: dict[str, Any], source: Optional[str] = None) -> Config:
        """Load configuration from an already-decoded mapping."""
        if not isinstance(data, dict):
            raise ConfigValidationError(
                "Configuration root must be a JSON object",
                source=source
            )

        config = self._parse_config(data)
        self._validate(config, source)
        self._config = config
        self._loaded = True
        return self._config

    def _parse_config(self, data: dict[str, Any]) -> Config:
        """Parse configuration data into Config object."""
        config = Config()

        if 'kernel' in data:
            kernel_data = data['kernel']
            config.kernel = KernelConfig(
                name=kernel_data.get('name', config.kernel.name),
                version=kernel_data.get('version', config.kernel.version),
                build=kernel_data.get('build', config.kernel.build),
            )

        if 'filesystem' in data:
            fs_data = data['filesystem']
            config.filesystem = FilesystemConfig(
                log_capacity=fs_data.get('log_capacity', config.filesystem.log_capacity),
                default_log_limit=fs_data.get('default_log_limit', config.filesystem.default_log_limit),
                default_user=fs_data.get('default_user', config.filesystem.default_user),
                seed_directories=list(fs_data.get('seed_directories', config.filesystem.seed_directories)),
            )

        if 'storage' in data:
            storage_data = data['storage']
            config.storage = StorageConfig(
                state_key=storage_data.get('state_key', config.storage.state_key),
                state_dir=storage_data.get('state_dir', config.storage.state_dir),
            )

        if 'uplink' in data:
            uplink_data = data['uplink']
            config.uplink = UplinkConfig(
                root_path=uplink_data.get('root_path', config.uplink.root_path),
                create=uplink_data.get('create', config.uplink.create),
            )

        if 'logging' in data:
            log_data = data['logging']
            config.logging = LoggingConfig(
                level=log_data.get('level', config.logging.level),
                log_file=log_data.get('log_file', config.logging.log_file),
                console_output=log_data.get('console_output', config.logging.console_output),
            )

        return config

    @staticmethod
    def _validate(config: Config, source: Optional[str]) -> None:
        fs = config.filesystem
        if not isinstance(fs.log_capacity, int) or fs.log_capacity <= 0:
            raise ConfigValidationError(
                f"filesystem.log_capacity must be a positive integer, got {fs.log_capacity!r}",
                source=source
            )
        if not isinstance(fs.default_log_limit, int) or fs.default_log_limit <= 0:
            raise ConfigValidationError(
                f"filesystem.default_log_limit must be a positive integer, got {fs.default_log_limit!r}",
                source=source
            )
        for name in fs.seed_directories:
            if (not isinstance(name, str) or name in ('', '.', '..')
                    or any(c in name for c in ('/', '\\', '\x00'))):
                raise ConfigValidationError(
                    f"filesystem.seed_directories entries must be plain names, got {name!r}",
                    source=source
                )
        if config.logging.level.upper() not in ('DEBUG', 'INFO', 'NOTICE', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ConfigValidationError(
                f"Unknown logging.level: {config.logging.level}",
                source=source
            )

    @property
    def config(self) -> Config:
        """Get the current configuration."""
        if not self._loaded:
            return Config()
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., 'storage.state_key')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        obj: Any = self.config

        for part in key.split('.'):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default

        return obj

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value at runtime.

        Args:
            key: Dot-notation key (e.g., 'filesystem.log_capacity')
            value: Value to set

        Note:
            This modifies configuration at runtime but does not
            persist changes to disk.
        """
        parts = key.split('.')
        if not self._loaded:
            self._config = Config()
            self._loaded = True
        obj: Any = self._config

        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise ConfigValidationError(f"Invalid configuration key: {key}")

        final_key = parts[-1]
        if hasattr(obj, final_key):
            setattr(obj, final_key, value)
        else:
            raise ConfigValidationError(f"Invalid configuration key: {key}")

    def reset(self) -> None:
        """Drop any loaded configuration and return to the defaults."""
        self._config = Config()
        self._loaded = False

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        def dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, '__dataclass_fields__'):
                return {
                    k: dataclass_to_dict(v)
                    for k, v in obj.__dict__.items()
                }
            elif isinstance(obj, list):
                return [dataclass_to_dict(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: dataclass_to_dict(v) for k, v in obj.items()}
            else:
                return obj

        return dataclass_to_dict(self.config)


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config object with current settings
    """
    loader = ConfigLoader()
    return loader.config
