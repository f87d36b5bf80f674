"""
Fail2Ban Redux CLI - Event emission commands.

Feeds one host event through the engine, for testing a fail2ban setup or
wiring a non-Python host through a shell hook.
"""

from typing import Any

import typer
from rich.console import Console

from fail2ban_redux.core.classifier import EventNames
from fail2ban_redux.core.config import get_config
from fail2ban_redux.core.engine import SecurityLogger
from fail2ban_redux.errors import ConfigError, RequestTerminated
from fail2ban_redux.ports.host import Comment, InMemoryCommentStore, InMemoryIdentityCache
from fail2ban_redux.sink.memory import MemorySink

console = Console()

emit_app = typer.Typer(
    name="emit",
    help="Send a host event through the security logger",
    no_args_is_help=True,
)


def build_payload(
    event: str,
    username: str | None = None,
    code: str | None = None,
    method: str | None = None,
    url: str | None = None,
    comment_id: str | None = None,
    status: str | None = None,
) -> dict[str, Any]:
    """Build the listener payload for ``event`` from command-line values."""
    if event in (EventNames.AUTHENTICATE, EventNames.LOGIN, EventNames.LOGIN_FAILED):
        return {"username": username or ""}
    if event == EventNames.XMLRPC_PINGBACK_ERROR:
        return {"code": code}
    if event == EventNames.XMLRPC_CALL:
        payload: dict[str, Any] = {"method": method or ""}
        if url is not None:
            payload["params"] = ["", url]
        return payload
    if event in (EventNames.COMMENT_POST, EventNames.COMMENT_STATUS):
        return {"comment_id": comment_id, "status": status}
    return {}


@emit_app.command("event")
def emit_event(
    event: str = typer.Argument(..., help=f"Event name ({', '.join(EventNames.all())})"),
    username: str = typer.Option(None, "--username", "-u", help="Login name or email"),
    known_users: list[str] = typer.Option(
        [],
        "--known-user",
        "-k",
        help="Treat this login as an existing account (repeatable)",
    ),
    code: str = typer.Option(None, "--code", help="Pingback error code"),
    method: str = typer.Option(None, "--method", help="XML-RPC method name"),
    url: str = typer.Option(None, "--url", help="Pingback target URL"),
    comment_id: str = typer.Option("1", "--comment-id", help="Comment id"),
    status: str = typer.Option(None, "--status", help="Comment status"),
    query: list[str] = typer.Option(
        [],
        "--query",
        "-q",
        help="Query parameter as name=value (repeatable)",
    ),
    remote_addr: str = typer.Option(None, "--remote-addr", "-r", help="Client address"),
    host: str = typer.Option(None, "--host", help="Request host"),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Print log lines instead of sending them to syslog",
    ),
):
    """
    Emit one host event.

    Hard-block events print 403, the status the host would answer with.
    """
    if event not in EventNames.all():
        console.print(f"[red]Unknown event: {event}[/red]")
        console.print(f"Expected one of: {', '.join(EventNames.all())}")
        raise typer.Exit(1)

    try:
        config = get_config()
    except ConfigError as e:
        console.print(f"[red]Invalid configuration: {e.message}[/red]")
        raise typer.Exit(1)

    comments = InMemoryCommentStore()
    if comment_id:
        comments.add(Comment(comment_id, author_ip=remote_addr or "", status=status or ""))

    sink = MemorySink() if dry_run else None
    engine = SecurityLogger(
        config,
        identity_cache=InMemoryIdentityCache({login: None for login in known_users}),
        comment_store=comments,
        sink=sink,
    )

    query_params = {}
    for item in query:
        name, _, value = item.partition("=")
        query_params[name] = value

    payload = build_payload(event, username, code, method, url, comment_id, status)

    terminated = None
    with engine.request(remote_addr=remote_addr, host=host, query_params=query_params):
        try:
            events = engine.dispatch(event, payload)
        except RequestTerminated as e:
            events = []
            terminated = e

    if sink is not None:
        for line in sink.lines:
            console.print(line, markup=False, highlight=False, soft_wrap=True)
    elif not events and terminated is None:
        console.print("[dim]Nothing logged.[/dim]")

    if terminated is not None:
        console.print(str(terminated.status_code))
