"""
Fail2Ban Redux configuration management.
"""

import os
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from fail2ban_redux.ports.policy import PolicyDecision
from fail2ban_redux.sink.syslog import validate_facility

CONFIG_DIR = ".fail2ban-redux"
CONFIG_FILE = "config.yaml"
ROOT_KEY = "fail2ban_redux"

ENV_HTTP_HOST = "FAIL2BAN_REDUX_HTTP_HOST"
ENV_SYSLOG_ADDRESS = "FAIL2BAN_REDUX_SYSLOG_ADDRESS"
ENV_SYSLOG_FACILITY = "FAIL2BAN_REDUX_SYSLOG_FACILITY"


@dataclass
class PolicyConfig:
    """
    Default policy values.

    Hosts may adjust any of these per call through policy filters.
    """

    blocked_users: list[str] = field(default_factory=list)
    blocked_users_not_in: bool = False
    log_spam_comments: bool = False
    block_user_enumeration: bool = False
    log_pingbacks: bool = False

    def to_decision(self) -> PolicyDecision:
        """Freeze into a policy snapshot."""
        return PolicyDecision(
            blocked_users=tuple(self.blocked_users),
            blocked_users_not_in=self.blocked_users_not_in,
            log_spam_comments=self.log_spam_comments,
            block_user_enumeration=self.block_user_enumeration,
            log_pingbacks=self.log_pingbacks,
        )


@dataclass
class SyslogConfig:
    """Syslog channel configuration."""

    facility: str = "auth"  # Security events
    pingback_facility: str = "user"  # Pingback request logging
    tag: str | None = None  # None = per-channel tag (wp_login, ...)
    include_site: bool = True  # Render "tag(site)[pid]" vs "tag[pid]"
    site: str | None = None  # None = request host, then hostname
    address: str | None = None  # None = /dev/log, then localhost:514

    def __post_init__(self) -> None:
        self.facility = validate_facility(self.facility)
        self.pingback_facility = validate_facility(
            self.pingback_facility, key="pingback_facility"
        )


@dataclass
class SiteConfig:
    """Host site settings the classifier depends on."""

    # User enumeration blocking is only safe with pretty permalinks
    pretty_permalinks: bool = True
    admin_path_prefixes: list[str] = field(default_factory=lambda: ["/wp-admin"])


@dataclass
class Fail2BanConfig:
    """
    Complete fail2ban-redux configuration.

    Loaded from .fail2ban-redux/config.yaml and environment variables.
    """

    policy: PolicyConfig = field(default_factory=PolicyConfig)
    syslog: SyslogConfig = field(default_factory=SyslogConfig)
    site: SiteConfig = field(default_factory=SiteConfig)

    @classmethod
    def from_file(cls, path: Path) -> "Fail2BanConfig":
        """Load configuration from YAML file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get(ROOT_KEY, data))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Fail2BanConfig":
        """Create config from dictionary."""
        config = cls()

        if "policy" in data:
            p = data["policy"] or {}
            blocked = p.get("blocked_users") or []
            if isinstance(blocked, str):
                blocked = [blocked]
            config.policy = PolicyConfig(
                blocked_users=[str(user) for user in blocked],
                blocked_users_not_in=bool(p.get("blocked_users_not_in", False)),
                log_spam_comments=bool(p.get("log_spam_comments", False)),
                block_user_enumeration=bool(p.get("block_user_enumeration", False)),
                log_pingbacks=bool(p.get("log_pingbacks", False)),
            )

        if "syslog" in data:
            s = data["syslog"] or {}
            config.syslog = SyslogConfig(
                facility=s.get("facility", "auth"),
                pingback_facility=s.get("pingback_facility", "user"),
                tag=s.get("tag"),
                include_site=bool(s.get("include_site", True)),
                site=s.get("site"),
                address=s.get("address"),
            )

        if "site" in data:
            st = data["site"] or {}
            config.site = SiteConfig(
                pretty_permalinks=bool(st.get("pretty_permalinks", True)),
                admin_path_prefixes=list(st.get("admin_path_prefixes", ["/wp-admin"])),
            )

        return config

    def apply_env(self, environ: dict[str, str] | None = None) -> "Fail2BanConfig":
        """Apply environment variable overrides in place."""
        env = os.environ if environ is None else environ

        if env.get(ENV_HTTP_HOST):
            self.syslog.site = env[ENV_HTTP_HOST]
        if env.get(ENV_SYSLOG_ADDRESS):
            self.syslog.address = env[ENV_SYSLOG_ADDRESS]
        if env.get(ENV_SYSLOG_FACILITY):
            self.syslog.facility = validate_facility(env[ENV_SYSLOG_FACILITY])

        return self

    def site_identity(self, request_host: str | None = None) -> str:
        """Resolve the site identifier used in the syslog tag."""
        return self.syslog.site or request_host or socket.gethostname()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            ROOT_KEY: {
                "policy": {
                    "blocked_users": list(self.policy.blocked_users),
                    "blocked_users_not_in": self.policy.blocked_users_not_in,
                    "log_spam_comments": self.policy.log_spam_comments,
                    "block_user_enumeration": self.policy.block_user_enumeration,
                    "log_pingbacks": self.policy.log_pingbacks,
                },
                "syslog": {
                    "facility": self.syslog.facility,
                    "pingback_facility": self.syslog.pingback_facility,
                    "tag": self.syslog.tag,
                    "include_site": self.syslog.include_site,
                    "site": self.syslog.site,
                    "address": self.syslog.address,
                },
                "site": {
                    "pretty_permalinks": self.site.pretty_permalinks,
                    "admin_path_prefixes": list(self.site.admin_path_prefixes),
                },
            }
        }

    def save(self, path: Path) -> None:
        """Save configuration to YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


def config_path(project_path: Path | None = None) -> Path:
    """Location of the config file for a project directory."""
    return (project_path or Path.cwd()) / CONFIG_DIR / CONFIG_FILE


# Global config instance
_config: Fail2BanConfig | None = None


def get_config(project_path: Path | None = None) -> Fail2BanConfig:
    """
    Get fail2ban-redux configuration.

    Loads from .fail2ban-redux/config.yaml in the project directory and
    applies environment overrides. Falls back to defaults if not found.
    """
    global _config

    if _config is not None:
        return _config

    _config = Fail2BanConfig.from_file(config_path(project_path)).apply_env()

    return _config


def reset_config() -> None:
    """Drop the cached configuration."""
    global _config
    _config = None
