"""
Event classification.

Turns host lifecycle events into LogEvents. Every rule is a filter check
followed by at most a couple of LogEvents; the policy snapshot decides what
is suppressed.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote, urlsplit

from fail2ban_redux.core.listeners import ListenerTable
from fail2ban_redux.events.model import LogCategory, LogEvent, LogSeverity
from fail2ban_redux.ports.host import CommentStore, IdentityCache
from fail2ban_redux.ports.policy import PolicyDecision
from fail2ban_redux.runtime.context import RequestContext
from fail2ban_redux.sink.formatter import clean

logger = logging.getLogger(__name__)

# "Pingback already registered" is not an attack signal
PINGBACK_ALREADY_REGISTERED = 48

PINGBACK_METHOD = "pingback.ping"
SPAM_STATUS = "spam"
ENUMERATION_PARAMS = ("author", "author_name")
UNKNOWN_TARGET = "unknown"

_URL_SAFE = ":/?#[]@!$&()*+,;=%~"
_URL_SCHEMES = ("", "http", "https")


class EventNames:
    """Host events the classifier listens to."""

    AUTHENTICATE = "authenticate"
    XMLRPC_LOGIN_ERROR = "xmlrpc_login_error"
    XMLRPC_PINGBACK_ERROR = "xmlrpc_pingback_error"
    COMMENT_POST = "comment_post"
    COMMENT_STATUS = "comment_status"
    PARSE_REQUEST = "parse_request"
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    XMLRPC_CALL = "xmlrpc_call"

    @classmethod
    def all(cls) -> list[str]:
        return [
            cls.AUTHENTICATE,
            cls.XMLRPC_LOGIN_ERROR,
            cls.XMLRPC_PINGBACK_ERROR,
            cls.COMMENT_POST,
            cls.COMMENT_STATUS,
            cls.PARSE_REQUEST,
            cls.LOGIN,
            cls.LOGIN_FAILED,
            cls.XMLRPC_CALL,
        ]


class Channels:
    """Syslog channel (tag) names, one per kind of log line."""

    AUTHENTICATE = "authenticate"
    XMLRPC_LOGIN_ERROR = "xmlrpc_login_error"
    XMLRPC_PINGBACK_ERROR = "xmlrpc_pingback_error"
    COMMENT_SPAM = "comment_spam"
    USER_ENUMERATION = "user_enumeration"
    LOGIN = "wp_login"
    LOGIN_FAILED = "wp_login_failed"
    PINGBACK_CALL = "xmlrpc_call_pingback"

    @classmethod
    def all(cls) -> list[str]:
        return [
            cls.AUTHENTICATE,
            cls.XMLRPC_LOGIN_ERROR,
            cls.XMLRPC_PINGBACK_ERROR,
            cls.COMMENT_SPAM,
            cls.USER_ENUMERATION,
            cls.LOGIN,
            cls.LOGIN_FAILED,
            cls.PINGBACK_CALL,
        ]


def is_blocked(identifier: str, policy: PolicyDecision) -> bool:
    """
    Blocked-user membership test.

    An empty list never blocks. Otherwise membership is exact; the
    ``blocked_users_not_in`` flag inverts it.
    """
    if not policy.blocked_users:
        return False
    listed = identifier in policy.blocked_users
    return not listed if policy.blocked_users_not_in else listed


def sanitize_url(url: Any) -> str:
    """Percent-encode a URL into a query-safe form; empty if unusable."""
    text = clean(url).strip()
    if not text:
        return ""
    try:
        scheme = urlsplit(text).scheme.lower()
    except ValueError:
        return ""
    if scheme not in _URL_SCHEMES:
        return ""
    return quote(text, safe=_URL_SAFE, errors="replace")


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class EventClassifier:
    """
    Classification rules for every host event.

    Each rule has the listener signature ``(payload, policy, request)`` and
    returns the events to write, usually zero or one.

    Args:
        identity_cache: Host user cache used to resolve failed logins.
        comment_store: Host comment lookup used for spam comments.
    """

    def __init__(
        self,
        identity_cache: IdentityCache | None = None,
        comment_store: CommentStore | None = None,
    ) -> None:
        self.identity_cache = identity_cache
        self.comment_store = comment_store

    def register(self, table: ListenerTable) -> ListenerTable:
        """Register every rule on ``table``."""
        table.register(EventNames.AUTHENTICATE, self.authenticate, priority=1)
        table.register(EventNames.XMLRPC_LOGIN_ERROR, self.xmlrpc_login_error, priority=1)
        table.register(EventNames.XMLRPC_PINGBACK_ERROR, self.xmlrpc_pingback_error, priority=1)
        table.register(EventNames.COMMENT_POST, self.comment_spam)
        table.register(EventNames.COMMENT_STATUS, self.comment_spam)
        # Runs late so cheaper request checks happen first
        table.register(EventNames.PARSE_REQUEST, self.user_enumeration, priority=12)
        table.register(EventNames.LOGIN, self.login)
        table.register(EventNames.LOGIN_FAILED, self.login_failed)
        table.register(EventNames.XMLRPC_CALL, self.xmlrpc_call, priority=1)
        return table

    # Authentication ----------------------------------------------------------

    def authenticate(
        self,
        payload: Mapping[str, Any],
        policy: PolicyDecision,
        request: RequestContext,
    ) -> list[LogEvent]:
        """Block authentication attempts as a blocked user."""
        username = clean(payload.get("username"))
        if not is_blocked(username, policy):
            return []

        return [
            LogEvent(
                category=LogCategory.AUTH_BLOCKED,
                subject=username,
                detail=f"Blocked authentication attempt for {username}",
                terminate_request=True,
                channel=Channels.AUTHENTICATE,
            )
        ]

    def login(
        self,
        payload: Mapping[str, Any],
        policy: PolicyDecision,
        request: RequestContext,
    ) -> list[LogEvent]:
        """Successful logins are always logged."""
        username = clean(payload.get("username"))
        return [
            LogEvent(
                category=LogCategory.AUTH_ACCEPTED,
                severity=LogSeverity.INFO,
                subject=username,
                detail=f"Accepted password for {username}",
                channel=Channels.LOGIN,
            )
        ]

    def login_failed(
        self,
        payload: Mapping[str, Any],
        policy: PolicyDecision,
        request: RequestContext,
    ) -> list[LogEvent]:
        """
        Log a failed login, telling unknown users apart from real accounts.

        The identifier is matched as a login first, then as an email.
        """
        username = clean(payload.get("username"))
        existing = self._existing_login(username)

        if existing:
            detail = f"Authentication failure for {existing}"
        else:
            detail = f"Authentication attempt for unknown user {username}"

        return [
            LogEvent(
                category=LogCategory.AUTH_FAILED,
                subject=existing or username,
                detail=detail,
                channel=Channels.LOGIN_FAILED,
            )
        ]

    def _existing_login(self, identifier: str) -> str:
        if not identifier or self.identity_cache is None:
            return ""
        if self.identity_cache.lookup_by_login(identifier):
            return identifier
        return clean(self.identity_cache.lookup_by_email(identifier))

    # XML-RPC -----------------------------------------------------------------

    def xmlrpc_login_error(
        self,
        payload: Mapping[str, Any],
        policy: PolicyDecision,
        request: RequestContext,
    ) -> list[LogEvent]:
        """
        Log XML-RPC authentication failures.

        The counter is request-scoped, so a second failure in one request
        means the failures were batched in a multicall.
        """
        events = [
            LogEvent(
                category=LogCategory.XMLRPC_AUTH_FAILURE,
                detail="XML-RPC authentication failure",
                channel=Channels.XMLRPC_LOGIN_ERROR,
            )
        ]

        if request.record_xmlrpc_failure() > 1:
            events.append(
                LogEvent(
                    category=LogCategory.XMLRPC_MULTICALL_FAILURE,
                    detail="XML-RPC multicall authentication failure",
                    channel=Channels.XMLRPC_LOGIN_ERROR,
                )
            )

        return events

    def xmlrpc_pingback_error(
        self,
        payload: Mapping[str, Any],
        policy: PolicyDecision,
        request: RequestContext,
    ) -> list[LogEvent]:
        """Log pingback errors other than "already registered"."""
        code = payload.get("code")
        if code is None and "error" in payload:
            code = getattr(payload["error"], "code", None)

        if _as_int(code) == PINGBACK_ALREADY_REGISTERED:
            return []

        code_text = clean(code)
        return [
            LogEvent(
                category=LogCategory.XMLRPC_PINGBACK_ERROR,
                subject=code_text,
                detail=f"Pingback error {code_text} generated",
                channel=Channels.XMLRPC_PINGBACK_ERROR,
            )
        ]

    def xmlrpc_call(
        self,
        payload: Mapping[str, Any],
        policy: PolicyDecision,
        request: RequestContext,
    ) -> list[LogEvent]:
        """Maybe log pingback requests."""
        if payload.get("method") != PINGBACK_METHOD:
            return []
        if not policy.log_pingbacks:
            return []

        params = payload.get("params")
        if params is None:
            params = request.xmlrpc_params

        target = UNKNOWN_TARGET
        if isinstance(params, Sequence) and not isinstance(params, str) and len(params) > 1:
            target = sanitize_url(params[1]) or UNKNOWN_TARGET

        return [
            LogEvent(
                category=LogCategory.XMLRPC_PINGBACK_REQUEST,
                severity=LogSeverity.INFO,
                subject=target,
                detail=f"Pingback requested for '{target}'",
                channel=Channels.PINGBACK_CALL,
            )
        ]

    # Comments ----------------------------------------------------------------

    def comment_spam(
        self,
        payload: Mapping[str, Any],
        policy: PolicyDecision,
        request: RequestContext,
    ) -> list[LogEvent]:
        """Log comments marked as spam, attributed to the author's IP."""
        if not policy.log_spam_comments:
            return []
        if payload.get("status") != SPAM_STATUS:
            return []
        if self.comment_store is None:
            return []

        comment = self.comment_store.get_comment(payload.get("comment_id"))
        if comment is None:
            logger.debug(f"Spam comment {payload.get('comment_id')} no longer exists")
            return []

        author_ip = clean(comment.author_ip)
        return [
            LogEvent(
                category=LogCategory.COMMENT_SPAM,
                severity=LogSeverity.NOTICE,
                subject=author_ip,
                detail="Spammed comment",
                channel=Channels.COMMENT_SPAM,
                remote_addr=author_ip or None,
            )
        ]

    # Requests ----------------------------------------------------------------

    def user_enumeration(
        self,
        payload: Mapping[str, Any],
        policy: PolicyDecision,
        request: RequestContext,
    ) -> list[LogEvent]:
        """
        Block user enumeration probes.

        Only public requests under pretty permalinks are considered; in
        admin or with query-string permalinks the author parameters are
        legitimate. With blocking disabled a detected probe is still let
        through silently.
        """
        if not request.has_query_param(*ENUMERATION_PARAMS):
            return []
        if request.is_admin:
            return []
        if not request.pretty_permalinks:
            return []
        if not policy.block_user_enumeration:
            return []

        probed = next(
            (
                clean(request.query_params[name])
                for name in ENUMERATION_PARAMS
                if name in request.query_params
            ),
            "",
        )
        return [
            LogEvent(
                category=LogCategory.USER_ENUMERATION,
                subject=probed,
                detail="Blocked user enumeration attempt",
                terminate_request=True,
                channel=Channels.USER_ENUMERATION,
            )
        ]
