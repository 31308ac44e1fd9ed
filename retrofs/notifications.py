"""
RetroFS Notifications

User-facing messages emitted by the file system (mount results, state
recovery). The host supplies a sink; without one, messages go to the
``notify`` logger.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from enum import Enum
from typing import Callable

from retrofs.logger import get_logger


class Severity(Enum):
    """How a notification should be presented."""
    INFO = 'info'
    SUCCESS = 'success'
    WARNING = 'warning'
    ERROR = 'error'


NotificationSink = Callable[[str, Severity], None]


class LoggingSink:
    """Sink that writes notifications to the log."""

    def __init__(self, subsystem: str = 'notify'):
        self._logger = get_logger(subsystem)

    def __call__(self, message: str, severity: Severity) -> None:
        if severity is Severity.ERROR:
            self._logger.error(message)
        elif severity is Severity.WARNING:
            self._logger.warning(message)
        elif severity is Severity.SUCCESS:
            self._logger.notice(message)
        else:
            self._logger.info(message)
