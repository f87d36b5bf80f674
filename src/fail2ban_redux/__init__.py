"""
Fail2Ban Redux - Security event logging for fail2ban.

Classifies authentication, XML-RPC, comment and request events from a web
host and forwards them to syslog in a format fail2ban filters can match.
"""

__version__ = "0.1.0"
__version_tuple__ = (0, 1, 0)
__author__ = "Fail2Ban Redux Team"

from fail2ban_redux.core.config import Fail2BanConfig, get_config
from fail2ban_redux.core.engine import SecurityLogger
from fail2ban_redux.errors import ConfigError, Fail2BanError, RequestTerminated
from fail2ban_redux.events.model import LogCategory, LogEvent, LogSeverity
from fail2ban_redux.ports.policy import PolicyDecision, PolicyProvider

__all__ = [
    "__version__",
    "__version_tuple__",
    "get_config",
    "Fail2BanConfig",
    "SecurityLogger",
    "PolicyDecision",
    "PolicyProvider",
    "LogCategory",
    "LogEvent",
    "LogSeverity",
    "ConfigError",
    "Fail2BanError",
    "RequestTerminated",
]
