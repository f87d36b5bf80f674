"""
Fail2Ban Redux engine.

The explicitly constructed core object that wires policy, classification,
formatting and the log sink together. Hosts build one at startup and call
it from their lifecycle hooks.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from fail2ban_redux.core.classifier import EventClassifier, EventNames
from fail2ban_redux.core.config import Fail2BanConfig
from fail2ban_redux.core.listeners import ListenerTable
from fail2ban_redux.events.model import LogCategory, LogEvent
from fail2ban_redux.ports.host import CommentStore, IdentityCache
from fail2ban_redux.ports.policy import PolicyProvider, PolicySource
from fail2ban_redux.runtime.context import (
    RequestContext,
    RequestContextManager,
    RuntimeContext,
)
from fail2ban_redux.sink.base import LogSink
from fail2ban_redux.sink.formatter import MessageFormatter
from fail2ban_redux.sink.syslog import SyslogSink

logger = logging.getLogger(__name__)


class SecurityLogger:
    """
    Security event normalization and forwarding.

    Example:
        engine = SecurityLogger(
            config,
            identity_cache=my_user_cache,
            comment_store=my_comments,
        )

        with engine.request(remote_addr="203.0.113.7", host="example.com"):
            engine.login_failed("admin")
            engine.authenticate("admin")  # may raise RequestTerminated

    Hard-block events raise ``RequestTerminated`` after they are written;
    the host must answer with an empty 403.
    """

    def __init__(
        self,
        config: Fail2BanConfig | None = None,
        *,
        policy: PolicySource | None = None,
        identity_cache: IdentityCache | None = None,
        comment_store: CommentStore | None = None,
        sink: LogSink | None = None,
        runtime: RuntimeContext | None = None,
        formatter: MessageFormatter | None = None,
        listeners: ListenerTable | None = None,
    ) -> None:
        self.config = config or Fail2BanConfig()
        self.policy = policy or PolicyProvider(self.config.policy.to_decision())
        self.classifier = EventClassifier(identity_cache, comment_store)
        self.listeners = listeners or self.classifier.register(ListenerTable())
        self.sink = sink or SyslogSink(self.config.syslog.address)
        self.runtime = runtime or RuntimeContext()
        self.formatter = formatter or MessageFormatter(
            tag=self.config.syslog.tag,
            include_site=self.config.syslog.include_site,
        )

    # Request scope -----------------------------------------------------------

    def request(self, **attributes: Any) -> RequestContextManager:
        """
        Open a request scope.

        The XML-RPC failure counter lives and dies with this scope.
        """
        attributes.setdefault("pretty_permalinks", self.config.site.pretty_permalinks)
        return self.runtime.request(**attributes)

    @property
    def current_request(self) -> RequestContext | None:
        return self.runtime.current_request

    # Dispatch ----------------------------------------------------------------

    def dispatch(
        self, event_name: str, payload: Mapping[str, Any] | None = None
    ) -> list[LogEvent]:
        """
        Classify one host event and write the resulting log lines.

        Outside a request scope the event runs in a throwaway request.

        Returns:
            The events that were handed to the sink, in write order.

        Raises:
            RequestTerminated: After writing a hard-block event.
        """
        payload = payload or {}
        request = self.runtime.current_request
        if request is None:
            with self.request() as request:
                return self._dispatch(event_name, payload, request)
        return self._dispatch(event_name, payload, request)

    def _dispatch(
        self,
        event_name: str,
        payload: Mapping[str, Any],
        request: RequestContext,
    ) -> list[LogEvent]:
        if request.terminated:
            logger.debug(f"Ignoring '{event_name}' after request {request.request_id} was terminated")
            return []

        try:
            policy = self.policy.resolve(event_name, request)
        except Exception:
            logger.exception(f"Policy resolution failed for event '{event_name}'")
            return []

        events = self.listeners.dispatch(event_name, payload, policy, request)
        if not events:
            logger.debug(f"No log events for '{event_name}'")
            return []

        written: list[LogEvent] = []
        for event in events:
            if event.remote_addr is None and request.remote_addr:
                event = event.with_remote_addr(request.remote_addr)

            channel = self.sink.open(event.channel, self.facility_for(event))
            try:
                channel.write(self.format(event, request), event.severity)
                written.append(event)
                if event.terminate_request and event.category.is_hard_block:
                    request.terminated = True
                    channel.terminate(event.channel)
            finally:
                channel.close()

        return written

    def facility_for(self, event: LogEvent) -> str:
        """Pingback request logging has its own facility."""
        if event.category is LogCategory.XMLRPC_PINGBACK_REQUEST:
            return self.config.syslog.pingback_facility
        return self.config.syslog.facility

    def format(self, event: LogEvent, request: RequestContext | None = None) -> str:
        """Render ``event`` as it will appear in the system log."""
        host = request.host if request is not None else None
        return self.formatter.format(event, site=self.config.site_identity(host))

    # Host hooks --------------------------------------------------------------

    def authenticate(self, username: str) -> list[LogEvent]:
        """Check an authentication attempt against the blocked users."""
        return self.dispatch(EventNames.AUTHENTICATE, {"username": username})

    def xmlrpc_login_error(self) -> list[LogEvent]:
        """Record a failed XML-RPC authentication."""
        return self.dispatch(EventNames.XMLRPC_LOGIN_ERROR)

    def xmlrpc_pingback_error(self, code: int | str) -> list[LogEvent]:
        """Record an XML-RPC pingback error."""
        return self.dispatch(EventNames.XMLRPC_PINGBACK_ERROR, {"code": code})

    def comment_post(self, comment_id: int | str, status: Any) -> list[LogEvent]:
        """A comment was posted with ``status``."""
        return self.dispatch(
            EventNames.COMMENT_POST, {"comment_id": comment_id, "status": status}
        )

    def comment_status(self, comment_id: int | str, status: Any) -> list[LogEvent]:
        """A comment moved to ``status``."""
        return self.dispatch(
            EventNames.COMMENT_STATUS, {"comment_id": comment_id, "status": status}
        )

    def user_enumeration(self) -> list[LogEvent]:
        """Check the current request for user enumeration probes."""
        return self.dispatch(EventNames.PARSE_REQUEST)

    def login(self, username: str) -> list[LogEvent]:
        """Record a successful login."""
        return self.dispatch(EventNames.LOGIN, {"username": username})

    def login_failed(self, username: str) -> list[LogEvent]:
        """Record a failed login for a username or email address."""
        return self.dispatch(EventNames.LOGIN_FAILED, {"username": username})

    def xmlrpc_call(
        self, method: str, params: Sequence[Any] | None = None
    ) -> list[LogEvent]:
        """An XML-RPC method is about to run."""
        payload: dict[str, Any] = {"method": method}
        if params is not None:
            payload["params"] = params
        return self.dispatch(EventNames.XMLRPC_CALL, payload)
