"""
Tests for the fail2ban-redux CLI.
"""

import pytest
from click.testing import CliRunner as ClickRunner
from typer.testing import CliRunner

from fail2ban_redux import __version__
from fail2ban_redux.__main__ import cli
from fail2ban_redux.cli.emit import build_payload, emit_app
from fail2ban_redux.cli.filters import filters_app
from fail2ban_redux.core.config import Fail2BanConfig, config_path

runner = CliRunner()


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Run commands in an isolated project directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write_config(project, data):
    Fail2BanConfig.from_dict(data).save(config_path(project))


class TestMain:
    """Tests for the top-level group."""

    def test_version(self):
        result = ClickRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_status_defaults(self, project):
        result = ClickRunner().invoke(cli, ["status"])
        assert result.exit_code == 0
        assert "defaults" in result.output
        assert "syslog.facility" in result.output

    def test_status_bad_config(self, project):
        config_path(project).parent.mkdir(parents=True)
        config_path(project).write_text("fail2ban_redux:\n  syslog:\n    facility: bogus\n")

        result = ClickRunner().invoke(cli, ["status"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_subcommands_mounted(self):
        result = ClickRunner().invoke(cli, ["--help"])
        assert "emit" in result.output
        assert "filters" in result.output


class TestBuildPayload:
    """Tests for mapping options onto listener payloads."""

    def test_login(self):
        assert build_payload("login_failed", username="bob") == {"username": "bob"}

    def test_pingback_call(self):
        payload = build_payload("xmlrpc_call", method="pingback.ping", url="http://b.example/")
        assert payload == {"method": "pingback.ping", "params": ["", "http://b.example/"]}

    def test_comment(self):
        assert build_payload("comment_status", comment_id="3", status="spam") == {
            "comment_id": "3",
            "status": "spam",
        }

    def test_request_events_have_no_payload(self):
        assert build_payload("parse_request") == {}


class TestEmit:
    """Tests for the emit command."""

    def test_dry_run_prints_line(self, project):
        result = runner.invoke(
            emit_app,
            ["login_failed", "-u", "bob", "-r", "203.0.113.7", "--host", "example.com", "--dry-run"],
        )
        assert result.exit_code == 0
        output = result.output.replace("\n", "")
        assert "wp_login_failed(example.com)[" in output
        assert "Authentication attempt for unknown user bob from 203.0.113.7" in output

    def test_known_user(self, project):
        result = runner.invoke(
            emit_app,
            ["login_failed", "-u", "admin", "-k", "admin", "--host", "example.com", "-n"],
        )
        assert "Authentication failure for admin" in result.output.replace("\n", "")

    def test_blocked_user_prints_403(self, project):
        _write_config(project, {"policy": {"blocked_users": ["admin"]}})

        result = runner.invoke(emit_app, ["authenticate", "-u", "admin", "-n"])
        assert result.exit_code == 0
        assert "Blocked authentication attempt for admin" in result.output.replace("\n", "")
        assert result.output.strip().endswith("403")

    def test_enumeration_probe(self, project):
        _write_config(project, {"policy": {"block_user_enumeration": True}})

        result = runner.invoke(emit_app, ["parse_request", "-q", "author=1", "-n"])
        assert "Blocked user enumeration attempt" in result.output
        assert result.output.strip().endswith("403")

    def test_spam_comment(self, project):
        _write_config(project, {"policy": {"log_spam_comments": True}})

        result = runner.invoke(
            emit_app,
            ["comment_status", "--status", "spam", "-r", "198.51.100.9", "-n"],
        )
        assert "Spammed comment from 198.51.100.9" in result.output.replace("\n", "")

    def test_suppressed_event(self, project):
        result = runner.invoke(emit_app, ["xmlrpc_pingback_error", "--code", "48", "-n"])
        assert result.exit_code == 0
        assert result.output.strip() == ""

    def test_unknown_event(self, project):
        result = runner.invoke(emit_app, ["reboot", "-n"])
        assert result.exit_code == 1
        assert "Unknown event" in result.output


class TestFilters:
    """Tests for the filters commands."""

    def test_show(self, project):
        result = runner.invoke(filters_app, ["show", "soft", "--plain"])
        assert result.exit_code == 0
        assert "XML-RPC authentication failure" in result.output

    def test_show_unknown(self, project):
        result = runner.invoke(filters_app, ["show", "medium"])
        assert result.exit_code == 1

    def test_write(self, project):
        result = runner.invoke(filters_app, ["write", str(project / "filter.d")])
        assert result.exit_code == 0
        assert (project / "filter.d" / "fail2ban-redux-hard.conf").exists()
        assert (project / "filter.d" / "fail2ban-redux-soft.conf").exists()

    def test_classify_line(self, project):
        line = "wp_login_failed(example.com)[1]: Authentication failure for bob from 203.0.113.7"
        result = runner.invoke(filters_app, ["test", line])
        assert result.exit_code == 0
        assert "soft" in result.output
        assert "203.0.113.7" in result.output

    def test_classify_unmatched(self, project):
        result = runner.invoke(filters_app, ["test", "sshd[1]: hello"])
        assert result.exit_code == 1
