"""
Tests for log channels and sinks.

The syslog sink is tested against a mocked SysLogHandler so no daemon is
needed.
"""

import logging
from logging.handlers import SysLogHandler
from unittest.mock import MagicMock, patch

import pytest

from fail2ban_redux.errors import ConfigError, RequestTerminated
from fail2ban_redux.events.model import LogSeverity
from fail2ban_redux.sink.base import ChannelState
from fail2ban_redux.sink.memory import MemorySink
from fail2ban_redux.sink.syslog import (
    NOTICE,
    SyslogChannel,
    SyslogSink,
    resolve_address,
    validate_facility,
)


class TestChannelLifecycle:
    """Tests for the channel state machine."""

    def test_open_write_close(self):
        sink = MemorySink()
        channel = sink.open("wp_login", "auth")
        assert channel.state is ChannelState.OPEN

        assert channel.write("line", LogSeverity.INFO) is True
        assert channel.state is ChannelState.WRITTEN

        channel.close()
        assert channel.state is ChannelState.CLOSED
        assert sink.records[0].facility == "auth"
        assert sink.records[0].severity is LogSeverity.INFO

    def test_default_facility_is_user(self):
        sink = MemorySink()
        sink.open("wp_login")
        assert sink.channels[0].facility == "user"

    def test_write_after_close_ignored(self):
        sink = MemorySink()
        channel = sink.open("wp_login")
        channel.close()
        assert channel.write("late") is False
        assert sink.records == []

    def test_terminate_raises_forbidden(self):
        channel = MemorySink().open("authenticate")
        with pytest.raises(RequestTerminated) as exc_info:
            channel.terminate()

        assert exc_info.value.status_code == 403
        assert exc_info.value.reason == "authenticate"
        assert channel.state is ChannelState.TERMINATED

    def test_close_keeps_terminated(self):
        channel = MemorySink().open("authenticate")
        with pytest.raises(RequestTerminated):
            channel.terminate("blocked")
        channel.close()
        assert channel.state is ChannelState.TERMINATED

    def test_unavailable_daemon(self):
        sink = MemorySink(available=False)
        channel = sink.open("wp_login")
        assert channel.available is False
        assert channel.state is ChannelState.OPEN
        assert channel.write("line") is False

    def test_context_manager(self):
        sink = MemorySink()
        with sink.open("wp_login") as channel:
            channel.write("line")
        assert channel.state is ChannelState.CLOSED
        assert sink.lines == ["line"]


class TestValidateFacility:
    """Tests for facility name validation."""

    @pytest.mark.parametrize("name", ["auth", "AUTH", " user ", "local7"])
    def test_known(self, name):
        assert validate_facility(name) == name.strip().lower()

    def test_unknown(self):
        with pytest.raises(ConfigError) as exc_info:
            validate_facility("nope", key="pingback_facility")
        assert exc_info.value.key == "pingback_facility"


class TestResolveAddress:
    """Tests for syslog address parsing."""

    def test_socket_path(self):
        assert resolve_address("/dev/log") == "/dev/log"

    def test_host_port(self):
        assert resolve_address("logs.example.com:5514") == ("logs.example.com", 5514)

    def test_host_only(self):
        assert resolve_address("logs.example.com") == ("logs.example.com", 514)

    def test_default_prefers_local_socket(self):
        with patch("fail2ban_redux.sink.syslog.os.path.exists", side_effect=lambda p: p == "/dev/log"):
            assert resolve_address(None) == "/dev/log"

    def test_default_falls_back_to_udp(self):
        with patch("fail2ban_redux.sink.syslog.os.path.exists", return_value=False):
            assert resolve_address(None) == ("localhost", 514)


class TestSyslogSink:
    """Tests for the syslog-backed sink."""

    def test_unknown_facility_gives_unavailable_channel(self):
        channel = SyslogSink("localhost:514").open("wp_login", "nope")

        assert channel.available is False
        assert channel.state is ChannelState.OPEN
        assert channel.write("line") is False
        channel.close()
        assert channel.state is ChannelState.CLOSED

    def test_writes_through_handler(self):
        sink = SyslogSink("localhost:514")
        with patch.object(SysLogHandler, "emit") as emit:
            channel = sink.open("wp_login", "auth")
            assert channel.write("wp_login[1]: Accepted password for admin", LogSeverity.INFO) is True
            channel.close()

        [record] = [call.args[0] for call in emit.call_args_list]
        assert record.getMessage() == "wp_login[1]: Accepted password for admin"
        assert record.levelno == logging.INFO

    def test_notice_level(self):
        sink = SyslogSink("localhost:514")
        with patch.object(SysLogHandler, "emit") as emit:
            with sink.open("comment_spam", "auth") as channel:
                channel.write("line", LogSeverity.NOTICE)

        assert emit.call_args.args[0].levelno == NOTICE

    def test_notice_name_not_registered_globally(self):
        assert logging.getLevelName(NOTICE) != "NOTICE"

    def test_facility_passed_to_handler(self):
        channel = SyslogChannel("wp_login", facility="auth", address=("localhost", 514))
        channel.open()
        try:
            assert channel._handler.facility == SysLogHandler.LOG_AUTH
            assert channel._handler.mapPriority("NOTICE") == "notice"
            assert channel._handler.mapPriority(logging.getLevelName(NOTICE)) == "notice"
        finally:
            channel.close()

    def test_open_failure_is_silent(self):
        with patch(
            "fail2ban_redux.sink.syslog._ChannelHandler.__init__",
            side_effect=OSError("no socket"),
        ):
            channel = SyslogSink("/nonexistent/log").open("wp_login", "auth")

        assert channel.available is False
        assert channel.write("line") is False

    def test_emit_failure_is_silent(self):
        sink = SyslogSink("localhost:514")
        channel = sink.open("wp_login", "auth")
        channel._handler.socket = MagicMock()
        channel._handler.socket.sendto.side_effect = OSError("down")

        assert channel.write("line") is False
        channel.close()
