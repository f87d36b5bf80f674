"""
Fail2Ban Redux core: configuration, classification and the engine.
"""

from fail2ban_redux.core.classifier import Channels, EventClassifier, EventNames
from fail2ban_redux.core.config import (
    Fail2BanConfig,
    PolicyConfig,
    SiteConfig,
    SyslogConfig,
    get_config,
    reset_config,
)
from fail2ban_redux.core.engine import SecurityLogger
from fail2ban_redux.core.listeners import ListenerTable
from fail2ban_redux.errors import ConfigError, Fail2BanError, RequestTerminated

__all__ = [
    "Channels",
    "ConfigError",
    "EventClassifier",
    "EventNames",
    "Fail2BanConfig",
    "Fail2BanError",
    "ListenerTable",
    "PolicyConfig",
    "RequestTerminated",
    "SecurityLogger",
    "SiteConfig",
    "SyslogConfig",
    "get_config",
    "reset_config",
]
