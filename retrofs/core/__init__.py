"""
RetroFS Core Module

Core kernel components:
- Subsystem lifecycle base
- Configuration Loader
"""

from .registry import Subsystem, SubsystemState
from .config_loader import (
    ConfigLoader,
    Config,
    KernelConfig,
    FilesystemConfig,
    StorageConfig,
    UplinkConfig,
    LoggingConfig,
    get_config,
)

__all__ = [
    # Registry
    'Subsystem',
    'SubsystemState',
    # Config
    'ConfigLoader',
    'Config',
    'KernelConfig',
    'FilesystemConfig',
    'StorageConfig',
    'UplinkConfig',
    'LoggingConfig',
    'get_config',
]
