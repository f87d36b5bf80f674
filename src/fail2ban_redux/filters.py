"""
fail2ban filter definitions.

Renders ``filter.d`` files matching the lines this library writes, and
matches lines against the same patterns (used by the CLI and tests).

Hard failures should ban quickly (blocked users, unknown users, enumeration,
spam); soft failures are wrong passwords for real accounts and deserve a
more forgiving jail.
"""

import re
from dataclasses import dataclass
from pathlib import Path

from fail2ban_redux.core.classifier import Channels

HOST = "<HOST>"
FILE_PREFIX = "fail2ban-redux"

# Matches the wire prefix "tag(site)[pid]: "
_LINE_PREFIX = r"^(?P<tag>[^\s(\[]+)(?:\((?P<site>[^)]*)\))?\[(?P<pid>\d+)\]: "


@dataclass(frozen=True, slots=True)
class FailPattern:
    """One failregex."""

    message: str  # Message regex, "<HOST>" marks the client address

    def failregex(self) -> str:
        return f"^%(__prefix_line)s{self.message}$"

    def compile(self) -> re.Pattern[str]:
        body = self.message.replace(HOST, r"(?P<host>\S+)")
        return re.compile(f"{_LINE_PREFIX}{body}$")


@dataclass(frozen=True, slots=True)
class FilterDefinition:
    """A fail2ban filter: a named set of failregexes."""

    name: str
    description: str
    patterns: tuple[FailPattern, ...]

    @property
    def filename(self) -> str:
        return f"{FILE_PREFIX}-{self.name}.conf"

    def render(self, tag: str | None = None) -> str:
        """Render the filter.d file contents."""
        failregex = "\n            ".join(p.failregex() for p in self.patterns)
        return (
            f"# Fail2Ban filter for fail2ban-redux {self.name} failures\n"
            f"# {self.description}\n"
            "\n"
            "[INCLUDES]\n"
            "\n"
            "before = common.conf\n"
            "\n"
            "[Definition]\n"
            "\n"
            f"_daemon = {daemon_pattern(tag)}\n"
            "\n"
            f"failregex = {failregex}\n"
            "\n"
            "ignoreregex =\n"
        )

    def match(self, line: str, tag: str | None = None) -> str | None:
        """
        Return the client address if ``line`` is caught by this filter.

        Lines from other daemons never match.
        """
        daemon = re.compile(f"^{daemon_pattern(tag)}$")
        for pattern in self.patterns:
            m = pattern.compile().match(line)
            if m and daemon.match(m.group("tag")):
                return m.group("host")
        return None


def daemon_pattern(tag: str | None = None) -> str:
    """The ``_daemon`` regex: the fixed tag, or any channel name."""
    if tag:
        return re.escape(tag)
    return "(?:" + "|".join(re.escape(name) for name in Channels.all()) + ")"


HARD = FilterDefinition(
    name="hard",
    description="Ban immediately: blocked users, unknown users, enumeration, spam.",
    patterns=(
        FailPattern(rf"Authentication attempt for unknown user .* from {HOST}"),
        FailPattern(rf"Blocked authentication attempt for .* from {HOST}"),
        FailPattern(rf"Blocked user enumeration attempt from {HOST}"),
        FailPattern(rf"Pingback error .* generated from {HOST}"),
        FailPattern(rf"Spammed comment from {HOST}"),
        FailPattern(rf"XML-RPC multicall authentication failure from {HOST}"),
    ),
)

SOFT = FilterDefinition(
    name="soft",
    description="Ban after repeated failures: wrong passwords for real accounts.",
    patterns=(
        FailPattern(rf"Authentication failure for .* from {HOST}"),
        FailPattern(rf"XML-RPC authentication failure from {HOST}"),
    ),
)

FILTERS: dict[str, FilterDefinition] = {HARD.name: HARD, SOFT.name: SOFT}


def get_filter(name: str) -> FilterDefinition:
    """
    Look up a filter by name.

    Raises:
        KeyError: If no filter has that name.
    """
    try:
        return FILTERS[name]
    except KeyError:
        raise KeyError(f"Unknown filter: {name} (expected one of {', '.join(FILTERS)})") from None


def classify_line(line: str, tag: str | None = None) -> tuple[str, str] | None:
    """Return ``(filter name, host)`` for the first filter catching ``line``."""
    for definition in FILTERS.values():
        host = definition.match(line, tag)
        if host is not None:
            return definition.name, host
    return None


def write_filters(directory: Path, tag: str | None = None) -> list[Path]:
    """Write every filter into ``directory``; returns the written paths."""
    directory.mkdir(parents=True, exist_ok=True)
    written = []
    for definition in FILTERS.values():
        path = directory / definition.filename
        path.write_text(definition.render(tag))
        written.append(path)
    return written
