"""
Fail2Ban Redux Sink - Formatting and writing security log lines.

Usage:
    from fail2ban_redux.sink import MessageFormatter, SyslogSink

    line = MessageFormatter().format(event, site="example.com")
    with SyslogSink().open(event.channel, facility="auth") as channel:
        channel.write(line, event.severity)
"""

from fail2ban_redux.sink.base import (
    DEFAULT_FACILITY,
    FORBIDDEN,
    ChannelState,
    LogChannel,
    LogSink,
)
from fail2ban_redux.sink.formatter import (
    MessageFormatter,
    clean,
    render_line,
    render_message,
)
from fail2ban_redux.sink.memory import MemoryChannel, MemorySink, SinkRecord
from fail2ban_redux.sink.syslog import (
    SyslogChannel,
    SyslogSink,
    resolve_address,
    validate_facility,
)

__all__ = [
    # Lifecycle
    "DEFAULT_FACILITY",
    "FORBIDDEN",
    "ChannelState",
    "LogChannel",
    "LogSink",
    # Formatting
    "MessageFormatter",
    "clean",
    "render_line",
    "render_message",
    # Sinks
    "MemoryChannel",
    "MemorySink",
    "SinkRecord",
    "SyslogChannel",
    "SyslogSink",
    "resolve_address",
    "validate_facility",
]
