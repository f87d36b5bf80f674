"""
Listener table.

Explicit event-name -> ordered listener mapping. Listeners are registered
at startup; nothing is discovered by reflection.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from itertools import count
from typing import Any

from fail2ban_redux.events.model import LogEvent
from fail2ban_redux.ports.policy import PolicyDecision
from fail2ban_redux.runtime.context import RequestContext

logger = logging.getLogger(__name__)

# (payload, policy, request) -> events to write
Listener = Callable[[Mapping[str, Any], PolicyDecision, RequestContext], list[LogEvent]]

DEFAULT_PRIORITY = 10


@dataclass(order=True, frozen=True)
class Registration:
    """A listener registered for one event name."""

    priority: int
    sequence: int
    listener: Listener = field(compare=False)

    @property
    def name(self) -> str:
        return getattr(self.listener, "__qualname__", repr(self.listener))


class ListenerTable:
    """
    Maps event names to ordered listeners.

    Lower priority runs first; equal priorities run in registration order.

    Example:
        table = ListenerTable()
        table.register("login", classifier.login, priority=10)
        events = table.dispatch("login", {"username": "admin"}, policy, request)
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Registration]] = {}
        self._sequence = count()

    def register(
        self,
        event_name: str,
        listener: Listener,
        priority: int = DEFAULT_PRIORITY,
    ) -> Registration:
        """Register ``listener`` for ``event_name``."""
        registration = Registration(priority, next(self._sequence), listener)
        registrations = self._listeners.setdefault(event_name, [])
        registrations.append(registration)
        registrations.sort()
        return registration

    def unregister(self, event_name: str, listener: Listener) -> bool:
        """Remove a listener. Returns True if it was registered."""
        registrations = self._listeners.get(event_name, [])
        kept = [r for r in registrations if r.listener != listener]
        if len(kept) == len(registrations):
            return False
        self._listeners[event_name] = kept
        return True

    def listeners(self, event_name: str) -> list[Listener]:
        """Listeners for ``event_name`` in dispatch order."""
        return [r.listener for r in self._listeners.get(event_name, [])]

    def __contains__(self, event_name: str) -> bool:
        return bool(self._listeners.get(event_name))

    def dispatch(
        self,
        event_name: str,
        payload: Mapping[str, Any],
        policy: PolicyDecision,
        request: RequestContext,
    ) -> list[LogEvent]:
        """
        Run every listener for ``event_name`` and collect their events.

        A failing listener is logged and skipped; it never breaks the
        host request.
        """
        events: list[LogEvent] = []
        for registration in self._listeners.get(event_name, []):
            try:
                events.extend(registration.listener(payload, policy, request))
            except Exception:
                logger.exception(
                    f"Listener {registration.name} failed for event '{event_name}'"
                )
        return events
