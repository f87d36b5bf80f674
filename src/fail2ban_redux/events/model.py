"""
Security log event domain models.

Pure domain types produced by the classifier and consumed once by the
formatter. These models have NO side effects on import.

Architecture Rules:
- No framework imports (FastAPI, Starlette)
- No logging initialization
- No file I/O on import
- Only stdlib + typing allowed
- All models are immutable (frozen dataclasses)
"""

from dataclasses import dataclass, replace
from enum import Enum


class LogSeverity(Enum):
    """Severity of a security log line, mapped onto syslog priorities."""

    INFO = "info"  # Successful logins, pingback requests
    NOTICE = "notice"  # Spammed comments
    WARNING = "warning"  # Everything fail2ban should count against a host


DEFAULT_SEVERITY = LogSeverity.WARNING


class LogCategory(Enum):
    """What kind of security event a log line records."""

    AUTH_BLOCKED = "auth_blocked"
    AUTH_FAILED = "auth_failed"
    AUTH_ACCEPTED = "auth_accepted"
    XMLRPC_AUTH_FAILURE = "xmlrpc_auth_failure"
    XMLRPC_MULTICALL_FAILURE = "xmlrpc_multicall_failure"
    XMLRPC_PINGBACK_ERROR = "xmlrpc_pingback_error"
    XMLRPC_PINGBACK_REQUEST = "xmlrpc_pingback_request"
    COMMENT_SPAM = "comment_spam"
    USER_ENUMERATION = "user_enumeration"

    @property
    def is_hard_block(self) -> bool:
        """Whether this category ends the request with a 403."""
        return self in _HARD_BLOCK_CATEGORIES


_HARD_BLOCK_CATEGORIES = frozenset(
    {LogCategory.AUTH_BLOCKED, LogCategory.USER_ENUMERATION}
)


@dataclass(frozen=True, slots=True)
class LogEvent:
    """
    A single classified security event.

    Immutable once constructed. The classifier creates it, the formatter
    renders it, the sink writes it once.

    Example:
        event = LogEvent(
            category=LogCategory.AUTH_ACCEPTED,
            severity=LogSeverity.INFO,
            subject="admin",
            detail="Accepted password for admin",
            channel="wp_login",
        )
    """

    category: LogCategory
    severity: LogSeverity = DEFAULT_SEVERITY
    subject: str = ""  # Username, email, IP or URL
    detail: str = ""  # Human-readable message
    terminate_request: bool = False  # Honored for hard-block categories only
    channel: str = ""  # Syslog tag for this event
    remote_addr: str | None = None  # Appended as "from <addr>"

    def with_remote_addr(self, remote_addr: str | None) -> "LogEvent":
        """Return a copy with the client address filled in."""
        return replace(self, remote_addr=remote_addr)
