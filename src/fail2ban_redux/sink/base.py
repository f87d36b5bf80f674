"""
Log sink port and channel lifecycle.

A channel moves through ``CLOSED -> OPEN -> WRITTEN -> (TERMINATED | CLOSED)``
and is never reused across events. Open and write failures are swallowed here so
logging can never break authentication, commenting or XML-RPC handling.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, NoReturn, Protocol, runtime_checkable

from fail2ban_redux.errors import ConfigError, RequestTerminated
from fail2ban_redux.events.model import DEFAULT_SEVERITY, LogSeverity

logger = logging.getLogger(__name__)

DEFAULT_FACILITY = "user"
FORBIDDEN = 403


class ChannelState(str, Enum):
    """Channel lifecycle states."""

    CLOSED = "closed"
    OPEN = "open"
    WRITTEN = "written"
    TERMINATED = "terminated"


class LogChannel(ABC):
    """
    A single-use logging handle bound to one channel name and facility.

    Subclasses implement ``_acquire``, ``_emit`` and ``_release``; this base
    class owns the state machine and the error swallowing.
    """

    def __init__(self, name: str, facility: str = DEFAULT_FACILITY) -> None:
        self.name = name
        self.facility = facility
        self.state = ChannelState.CLOSED
        self.available = False

    @abstractmethod
    def _acquire(self) -> None:
        """Open the underlying handle. May raise OSError."""
        ...

    @abstractmethod
    def _emit(self, text: str, severity: LogSeverity) -> None:
        """Write one line. May raise OSError."""
        ...

    def _release(self) -> None:
        """Close the underlying handle."""

    def open(self) -> "LogChannel":
        """
        Acquire the handle.

        An unavailable log daemon or an unusable facility leaves a no-op
        channel.
        """
        if self.state is not ChannelState.CLOSED:
            return self
        try:
            self._acquire()
            self.available = True
        except (OSError, ConfigError) as e:
            logger.debug(f"Syslog channel '{self.name}' unavailable: {e}")
            self.available = False
        self.state = ChannelState.OPEN
        return self

    def write(self, text: str, severity: LogSeverity = DEFAULT_SEVERITY) -> bool:
        """
        Best-effort write.

        Returns:
            True if the line was handed to the log daemon.
        """
        if self.state not in (ChannelState.OPEN, ChannelState.WRITTEN):
            logger.debug(f"Write on {self.state.value} channel '{self.name}' ignored")
            return False
        if not self.available:
            return False
        try:
            self._emit(text, severity)
        except OSError as e:
            logger.debug(f"Syslog write on '{self.name}' failed: {e}")
            return False
        self.state = ChannelState.WRITTEN
        return True

    def terminate(self, reason: str | None = None) -> NoReturn:
        """End the current request with 403. Never returns."""
        self._close_handle()
        self.state = ChannelState.TERMINATED
        raise RequestTerminated(reason or self.name, status_code=FORBIDDEN)

    def close(self) -> None:
        """Release the handle. A terminated channel stays terminated."""
        self._close_handle()
        if self.state is not ChannelState.TERMINATED:
            self.state = ChannelState.CLOSED

    def _close_handle(self) -> None:
        if not self.available:
            return
        self.available = False
        try:
            self._release()
        except OSError as e:
            logger.debug(f"Closing syslog channel '{self.name}' failed: {e}")

    def __enter__(self) -> "LogChannel":
        return self.open()

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.close()
        return False


@runtime_checkable
class LogSink(Protocol):
    """Protocol for anything that can open log channels."""

    def open(self, channel_name: str, facility: str = DEFAULT_FACILITY) -> LogChannel:
        """Open a fresh channel for one event."""
        ...
