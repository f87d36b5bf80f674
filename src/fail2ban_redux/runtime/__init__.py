"""
Fail2Ban Redux Runtime - Request scoping.

Usage:
    from fail2ban_redux.runtime import RuntimeContext

    runtime = RuntimeContext()
    with runtime.request(remote_addr="203.0.113.7") as req:
        ...
"""

from fail2ban_redux.runtime.context import (
    RequestContext,
    RequestContextManager,
    RuntimeContext,
)

__all__ = [
    "RequestContext",
    "RequestContextManager",
    "RuntimeContext",
]
