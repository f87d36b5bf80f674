"""
Fail2Ban Redux Events - Security log event models.

Usage:
    from fail2ban_redux.events import LogEvent, LogCategory, LogSeverity
"""

from fail2ban_redux.events.model import (
    DEFAULT_SEVERITY,
    LogCategory,
    LogEvent,
    LogSeverity,
)

__all__ = [
    "DEFAULT_SEVERITY",
    "LogCategory",
    "LogEvent",
    "LogSeverity",
]
