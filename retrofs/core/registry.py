"""
RetroFS Subsystem Base

Lifecycle contract shared by long-lived kernel components. The host
environment drives the lifecycle explicitly:

    1. __init__() - Subsystem is created
    2. initialize() - Subsystem is initialized
    3. start() - Subsystem starts operation
    4. stop() - Subsystem stops operation
    5. cleanup() - Subsystem cleans up resources

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, auto

from retrofs.logger import Logger, get_logger


class SubsystemState(Enum):
    """Lifecycle state of a subsystem."""
    CREATED = auto()
    INITIALIZING = auto()
    INITIALIZED = auto()
    RUNNING = auto()
    STOPPING = auto()
    STOPPED = auto()
    ERROR = auto()


class Subsystem(ABC):
    """
    Abstract base class for kernel subsystems.

    Subclasses implement :meth:`initialize`; the remaining lifecycle
    hooks default to doing nothing.
    """

    def __init__(self, name: str):
        self._name = name
        self._logger = get_logger(name)
        self._state = SubsystemState.CREATED

    @property
    def name(self) -> str:
        """Get the subsystem name."""
        return self._name

    @property
    def state(self) -> SubsystemState:
        """Get the current lifecycle state."""
        return self._state

    @property
    def logger(self) -> Logger:
        """Get the subsystem logger."""
        return self._logger

    def set_state(self, state: SubsystemState) -> None:
        """Set the subsystem state."""
        self._state = state
        self._logger.debug(f"State changed to {state.name}")

    @abstractmethod
    def initialize(self) -> None:
        """
        Initialize the subsystem.

        Called by the host before first use to prepare state.
        """

    def start(self) -> None:
        """Start the subsystem."""

    def stop(self) -> None:
        """Stop the subsystem."""

    def cleanup(self) -> None:
        """Clean up subsystem resources."""
