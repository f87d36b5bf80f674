"""
Wire-format rendering.

Every line fail2ban reads looks like:

    wp_login(example.com)[2003]: Accepted password for admin from 192.0.2.1

The formatter is pure and total: it never changes classification outcomes
and never raises, whatever the subject or detail contain.
"""

import os
import re
from typing import Any

from fail2ban_redux.events.model import LogEvent

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]+")

DEFAULT_TAG = "fail2ban-redux"


def clean(value: Any) -> str:
    """Flatten ``value`` to a single printable line; empty on failure."""
    if value is None:
        return ""
    try:
        text = value if isinstance(value, str) else str(value)
    except Exception:
        return ""
    return _CONTROL_CHARS.sub(" ", text)


def render_message(event: LogEvent) -> str:
    """Render the message part of the wire line."""
    message = clean(event.detail)
    remote_addr = clean(event.remote_addr)
    if remote_addr:
        message = f"{message} from {remote_addr}"
    return message


def render_line(tag: str, site: str | None, pid: int, message: str) -> str:
    """Assemble ``tag(site)[pid]: message``; ``(site)`` is dropped when empty."""
    tag = clean(tag) or DEFAULT_TAG
    site = clean(site)
    prefix = f"{tag}({site})" if site else tag
    return f"{prefix}[{pid}]: {message}"


class MessageFormatter:
    """
    Renders LogEvents into syslog lines.

    Args:
        tag: Fixed tag for every line. When None, each event's channel name
            is used as its tag.
        include_site: Whether to add the ``(site)`` segment.
        pid: Process id to embed. Defaults to the current process.
    """

    def __init__(
        self,
        tag: str | None = None,
        include_site: bool = True,
        pid: int | None = None,
    ) -> None:
        self.tag = tag
        self.include_site = include_site
        self._pid = pid

    @property
    def pid(self) -> int:
        return self._pid if self._pid is not None else os.getpid()

    def tag_for(self, event: LogEvent) -> str:
        """Tag for one event."""
        return self.tag or event.channel or DEFAULT_TAG

    def format(self, event: LogEvent, site: str | None = None) -> str:
        """Render one event as a complete wire line."""
        return render_line(
            self.tag_for(event),
            site if self.include_site else None,
            self.pid,
            render_message(event),
        )
