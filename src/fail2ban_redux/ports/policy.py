"""
Policy port.

The policy store is owned by the host: a set of booleans and a list of
blocked identifiers that may change per call. The core only ever reads a
fresh snapshot per event.

These are pure interfaces and value types - no framework imports allowed.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fail2ban_redux.runtime.context import RequestContext


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    """
    Read-only policy snapshot for a single event.

    Resolved fresh for every event and never cached across events.
    """

    blocked_users: tuple[str, ...] = ()
    blocked_users_not_in: bool = False
    log_spam_comments: bool = False
    block_user_enumeration: bool = False
    log_pingbacks: bool = False

    @classmethod
    def keys(cls) -> tuple[str, ...]:
        """Names of all policy values."""
        return tuple(f.name for f in fields(cls))


# (current value, event name, request) -> new value
PolicyFilter = Callable[[Any, str, "RequestContext | None"], Any]


@runtime_checkable
class PolicySource(Protocol):
    """Anything that can resolve a policy snapshot for an event."""

    def resolve(
        self, event_name: str, request: "RequestContext | None" = None
    ) -> PolicyDecision:
        """Resolve the policy for one event."""
        ...


class PolicyProvider:
    """
    Policy source backed by static defaults plus per-key filters.

    Filters are the host's hook into policy: each receives the current value,
    the event name and the request, and returns the value to use. Filters run
    in registration order on every resolve.

    Example:
        provider = PolicyProvider(PolicyDecision(log_pingbacks=True))
        provider.add_filter(
            "blocked_users",
            lambda users, event, request: (*users, "admin"),
        )
        decision = provider.resolve("authenticate")
    """

    def __init__(self, defaults: PolicyDecision | None = None) -> None:
        self._defaults = defaults or PolicyDecision()
        self._filters: dict[str, list[PolicyFilter]] = {}

    def add_filter(self, key: str, func: PolicyFilter) -> None:
        """
        Register a filter for one policy value.

        Raises:
            KeyError: If ``key`` is not a policy value.
        """
        if key not in PolicyDecision.keys():
            raise KeyError(f"Unknown policy key: {key}")
        self._filters.setdefault(key, []).append(func)

    def remove_filters(self, key: str | None = None) -> None:
        """Drop filters for one key, or all filters."""
        if key is None:
            self._filters.clear()
        else:
            self._filters.pop(key, None)

    def resolve(
        self, event_name: str, request: "RequestContext | None" = None
    ) -> PolicyDecision:
        """Apply every registered filter to the defaults."""
        if not self._filters:
            return self._defaults

        overrides: dict[str, Any] = {}
        for key, funcs in self._filters.items():
            value = getattr(self._defaults, key)
            for func in funcs:
                value = func(value, event_name, request)
            overrides[key] = _coerce(key, value)

        return replace(self._defaults, **overrides)


def _coerce(key: str, value: Any) -> Any:
    """Normalize filtered values the same way the host casts them."""
    if key == "blocked_users":
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        if isinstance(value, Iterable):
            return tuple(str(item) for item in value)
        return (str(value),)
    return bool(value)
