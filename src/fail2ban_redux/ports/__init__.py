"""
Fail2Ban Redux Ports - Interfaces the host application implements.

Usage:
    from fail2ban_redux.ports import PolicyProvider, IdentityCache, CommentStore

Architecture:
    - Ports are Protocols or plain value types
    - The host provides concrete implementations
    - The core depends only on ports, never on the host
"""

from fail2ban_redux.ports.host import (
    Comment,
    CommentStore,
    IdentityCache,
    InMemoryCommentStore,
    InMemoryIdentityCache,
)
from fail2ban_redux.ports.policy import (
    PolicyDecision,
    PolicyFilter,
    PolicyProvider,
    PolicySource,
)

__all__ = [
    # Host
    "Comment",
    "CommentStore",
    "IdentityCache",
    "InMemoryCommentStore",
    "InMemoryIdentityCache",
    # Policy
    "PolicyDecision",
    "PolicyFilter",
    "PolicyProvider",
    "PolicySource",
]
