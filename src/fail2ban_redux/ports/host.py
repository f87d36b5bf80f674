"""
Host application ports.

Read-only lookups the classifier needs from the host: the user identity
cache (for failed logins) and the comment store (for spam comments).
Adapters provide concrete implementations.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class Comment:
    """A host comment record."""

    comment_id: int | str
    author_ip: str = ""
    status: str = ""


@runtime_checkable
class IdentityCache(Protocol):
    """
    Protocol for the host's user identity cache.

    Used to tell probes for nonexistent accounts apart from password
    guessing against real accounts.
    """

    def lookup_by_login(self, identifier: str) -> bool:
        """Return True if ``identifier`` is a known login."""
        ...

    def lookup_by_email(self, identifier: str) -> str | None:
        """Return the login owning email ``identifier``, or None."""
        ...


@runtime_checkable
class CommentStore(Protocol):
    """Protocol for the host's comment lookup."""

    def get_comment(self, comment_id: int | str) -> Comment | None:
        """Return the comment, or None if it no longer exists."""
        ...


class InMemoryIdentityCache:
    """
    Identity cache backed by a login -> email mapping.

    Example:
        cache = InMemoryIdentityCache({"admin": "admin@example.com"})
        cache.lookup_by_email("admin@example.com")  # "admin"
    """

    def __init__(self, users: Mapping[str, str | None] | None = None) -> None:
        self._logins: set[str] = set()
        self._emails: dict[str, str] = {}
        for login, email in (users or {}).items():
            self.add(login, email)

    def add(self, login: str, email: str | None = None) -> None:
        """Add a user to the cache."""
        self._logins.add(login)
        if email:
            self._emails[email] = login

    def lookup_by_login(self, identifier: str) -> bool:
        return identifier in self._logins

    def lookup_by_email(self, identifier: str) -> str | None:
        return self._emails.get(identifier)


class InMemoryCommentStore:
    """Comment store backed by a dict."""

    def __init__(self, comments: Iterable[Comment] = ()) -> None:
        self._comments: dict[str, Comment] = {}
        for comment in comments:
            self.add(comment)

    def add(self, comment: Comment) -> None:
        self._comments[str(comment.comment_id)] = comment

    def get_comment(self, comment_id: int | str) -> Comment | None:
        return self._comments.get(str(comment_id))
