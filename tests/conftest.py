"""
Shared fixtures for fail2ban-redux tests.
"""

import pytest

from fail2ban_redux.core.config import Fail2BanConfig, reset_config
from fail2ban_redux.core.engine import SecurityLogger
from fail2ban_redux.ports.host import Comment, InMemoryCommentStore, InMemoryIdentityCache
from fail2ban_redux.ports.policy import PolicyDecision, PolicyProvider
from fail2ban_redux.sink.formatter import MessageFormatter
from fail2ban_redux.sink.memory import MemorySink

TEST_PID = 2003
TEST_SITE = "example.com"


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch):
    """Keep the cached config and env overrides out of every test."""
    for name in (
        "FAIL2BAN_REDUX_HTTP_HOST",
        "FAIL2BAN_REDUX_SYSLOG_ADDRESS",
        "FAIL2BAN_REDUX_SYSLOG_FACILITY",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def identity_cache():
    return InMemoryIdentityCache({"admin": "admin@example.com", "editor": None})


@pytest.fixture
def comment_store():
    return InMemoryCommentStore([Comment(7, author_ip="198.51.100.9", status="spam")])


@pytest.fixture
def config():
    config = Fail2BanConfig()
    config.syslog.site = TEST_SITE
    return config


@pytest.fixture
def make_engine(sink, identity_cache, comment_store, config):
    """Build an engine writing to the in-memory sink with a fixed pid."""

    def _make(policy=None, **kwargs) -> SecurityLogger:
        kwargs.setdefault("sink", sink)
        kwargs.setdefault("identity_cache", identity_cache)
        kwargs.setdefault("comment_store", comment_store)
        kwargs.setdefault("formatter", MessageFormatter(pid=TEST_PID))
        if isinstance(policy, PolicyDecision):
            policy = PolicyProvider(policy)
        if policy is not None:
            kwargs.setdefault("policy", policy)
        return SecurityLogger(config, **kwargs)

    return _make
