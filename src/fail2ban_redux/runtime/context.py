"""
Request scoping.

Carries per-request state (client address, query parameters, the XML-RPC
failure counter) through event handling. The current request lives in a
context variable, so threads and async tasks never share a counter.

This module contains NO framework-specific imports.
"""

from collections.abc import Mapping, Sequence
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4


@dataclass
class RequestContext:
    """
    Context for a single inbound request.

    ``xmlrpc_failures`` is the only mutable state the core keeps; it starts
    at zero and is discarded with the context.
    """

    request_id: str = field(default_factory=lambda: str(uuid4()))
    remote_addr: str | None = None
    host: str | None = None
    query_params: Mapping[str, Any] = field(default_factory=dict)
    is_admin: bool = False
    pretty_permalinks: bool = True
    xmlrpc_params: Sequence[Any] = ()
    xmlrpc_failures: int = 0
    terminated: bool = False

    def record_xmlrpc_failure(self) -> int:
        """Bump the XML-RPC failure counter and return the new value."""
        self.xmlrpc_failures += 1
        return self.xmlrpc_failures

    def has_query_param(self, *names: str) -> bool:
        """True if any of ``names`` is present in the query string."""
        return any(name in self.query_params for name in names)


class RuntimeContext:
    """
    Holds the current request for one engine.

    Example:
        runtime = RuntimeContext()

        with runtime.request(remote_addr="203.0.113.7") as req:
            engine.xmlrpc_login_error()
            assert req.xmlrpc_failures == 1
    """

    def __init__(self) -> None:
        self._request_var: ContextVar[RequestContext | None] = ContextVar(
            f"fail2ban_redux_request_{id(self)}", default=None
        )

    @property
    def current_request(self) -> RequestContext | None:
        """Get current request context (if any)."""
        return self._request_var.get()

    def request(self, **attributes: Any) -> "RequestContextManager":
        """
        Open a new request scope.

        Usage:
            with runtime.request(remote_addr="198.51.100.4") as req:
                ...
        """
        return RequestContextManager(self, RequestContext(**attributes))

    def set_request(self, request: RequestContext) -> Token:
        """Set the current request context."""
        return self._request_var.set(request)

    def reset_request(self, token: Token) -> None:
        """Restore the request context active before ``set_request``."""
        self._request_var.reset(token)


class RequestContextManager:
    """Context manager for request scopes."""

    def __init__(self, runtime: RuntimeContext, request: RequestContext) -> None:
        self._runtime = runtime
        self._request = request
        self._token: Token | None = None

    def __enter__(self) -> RequestContext:
        self._token = self._runtime.set_request(self._request)
        return self._request

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        if self._token is not None:
            self._runtime.reset_request(self._token)
            self._token = None
        return False

    async def __aenter__(self) -> RequestContext:
        return self.__enter__()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        return self.__exit__(exc_type, exc_val, exc_tb)
