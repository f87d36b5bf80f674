"""
System log sink.

Writes wire lines through the standard library's SysLogHandler. Each event
gets its own handler bound to the requested facility; nothing is shared
across events or requests.
"""

import logging
import os
from logging.handlers import SYSLOG_UDP_PORT, SysLogHandler

from fail2ban_redux.errors import ConfigError
from fail2ban_redux.events.model import LogSeverity
from fail2ban_redux.sink.base import DEFAULT_FACILITY, LogChannel

logger = logging.getLogger(__name__)

NOTICE = 25

_LEVELS = {
    LogSeverity.INFO: logging.INFO,
    LogSeverity.NOTICE: NOTICE,
    LogSeverity.WARNING: logging.WARNING,
}

_SOCKET_PATHS = ("/dev/log", "/var/run/syslog")

SyslogAddress = str | tuple[str, int]


def validate_facility(name: str, key: str = "facility") -> str:
    """Return the lowercased facility name, or raise ConfigError."""
    normalized = str(name).strip().lower()
    if normalized not in SysLogHandler.facility_names:
        raise ConfigError(f"Unknown syslog facility: {name!r}", key=key)
    return normalized


def resolve_address(address: str | None = None) -> SyslogAddress:
    """
    Turn a configured address into something SysLogHandler accepts.

    ``None`` picks the local syslog socket, falling back to UDP on
    localhost. ``host:port`` is UDP; anything else is a socket path.
    """
    if not address:
        for path in _SOCKET_PATHS:
            if os.path.exists(path):
                return path
        return ("localhost", SYSLOG_UDP_PORT)

    if address.startswith("/"):
        return address

    host, sep, port = address.rpartition(":")
    if sep and port.isdigit():
        return (host or "localhost", int(port))
    return (address, SYSLOG_UDP_PORT)


class _ChannelHandler(SysLogHandler):
    """SysLogHandler that maps NOTICE and records failures instead of printing."""

    # Covers NOTICE whether or not its level name is registered
    priority_map = {
        **SysLogHandler.priority_map,
        "NOTICE": "notice",
        logging.getLevelName(NOTICE): "notice",
    }

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.failed = False

    def handleError(self, record: logging.LogRecord) -> None:  # noqa: N802
        self.failed = True
        logger.debug(f"Syslog emit failed for {record.name}", exc_info=True)


class SyslogChannel(LogChannel):
    """One syslog handle for one event."""

    def __init__(
        self,
        name: str,
        facility: str = DEFAULT_FACILITY,
        address: SyslogAddress | None = None,
    ) -> None:
        super().__init__(name, facility)
        self.address = address if address is not None else resolve_address()
        self._handler: _ChannelHandler | None = None
        self._logger: logging.Logger | None = None

    def _acquire(self) -> None:
        facility = validate_facility(self.facility)
        handler = _ChannelHandler(
            address=self.address,
            facility=SysLogHandler.facility_names[facility],
        )
        handler.setFormatter(logging.Formatter("%(message)s"))

        # Private logger outside the logging hierarchy
        channel_logger = logging.Logger(f"fail2ban_redux.channel.{self.name}")
        channel_logger.propagate = False
        channel_logger.addHandler(handler)

        self._handler = handler
        self._logger = channel_logger

    def _emit(self, text: str, severity: LogSeverity) -> None:
        if self._logger is None or self._handler is None:
            return
        self._logger.log(_LEVELS.get(severity, logging.WARNING), text)
        if self._handler.failed:
            raise OSError(f"syslog write failed on channel '{self.name}'")

    def _release(self) -> None:
        if self._handler is not None:
            if self._logger is not None:
                self._logger.removeHandler(self._handler)
            self._handler.close()
        self._handler = None
        self._logger = None


class SyslogSink:
    """
    Log sink writing to the system log.

    Example:
        sink = SyslogSink()
        with sink.open("wp_login", facility="auth") as channel:
            channel.write("wp_login(example.com)[42]: Accepted password for admin")
    """

    def __init__(self, address: str | None = None) -> None:
        self.address = resolve_address(address)

    def open(self, channel_name: str, facility: str = DEFAULT_FACILITY) -> SyslogChannel:
        """
        Open a channel for one event.

        An unknown facility gives an unavailable channel rather than an error.
        """
        channel = SyslogChannel(channel_name, facility=facility, address=self.address)
        return channel.open()
