"""acs-chat CLI - Main entry point."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, NoReturn, Optional, TypeVar

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .api import ChatClient, ChatMessageType, ChatUser
from .config import ChatSettings, configure_logging
from .errors import ChatError
from .identity import IdentityClient

app = typer.Typer(
    name="acs-chat",
    help="Chat threads, participants and messages from the command line",
    no_args_is_help=True,
)
console = Console()
log = logging.getLogger("acs_chat.cli")

# Sub-command groups
identity_app = typer.Typer(help="Identity and token issuance")
token_app = typer.Typer(help="Access token commands")
threads_app = typer.Typer(help="Chat thread management")
participants_app = typer.Typer(help="Thread participant management")
messages_app = typer.Typer(help="Chat message management")

app.add_typer(identity_app, name="identity")
app.add_typer(token_app, name="token")
app.add_typer(threads_app, name="threads")
app.add_typer(participants_app, name="participants")
app.add_typer(messages_app, name="messages")

T = TypeVar("T")


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="Log level (default: ACS_LOG_LEVEL or INFO)"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """Configure logging for every command."""
    try:
        settings = ChatSettings()
        configure_logging(log_level or settings.log_level, log_file or settings.log_file)
    except (ChatError, ValueError) as e:
        _fail(e)


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(1)


def _run(factory: Callable[[], Awaitable[T]]) -> T:
    """Run a coroutine, turning client errors into a clean exit."""
    try:
        return asyncio.run(factory())
    except (ChatError, ValueError) as e:
        _fail(e)


def _output_result(result: Any) -> None:
    """Output result as JSON."""
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json", by_alias=True, exclude_none=True)
    console.print_json(json.dumps(result, default=str))


def _parse_pairs(values: list[str] | None, option: str) -> dict[str, str]:
    """Parse repeated KEY=VALUE options."""
    pairs: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint=option)
        pairs[key] = value
    return pairs


def _parse_users(values: list[str] | None) -> list[ChatUser]:
    return [ChatUser(id=uid, display_name=name) for uid, name in _parse_pairs(values, "--participant").items()]


def _identity_client(settings: ChatSettings) -> IdentityClient:
    host = settings.resolved_host()
    access_key = settings.resolved_access_key()
    if not host or not access_key:
        raise ValueError("ACS_ENDPOINT and ACS_ACCESS_KEY (or ACS_CONNECTION_STRING) must be set")
    return IdentityClient(
        host,
        access_key,
        api_version=settings.identity_api_version,
        timeout=settings.timeout,
    )


# ============================================================================
# Identity & Token Commands
# ============================================================================


@identity_app.command("create")
def identity_create(
    scopes: str = typer.Option("chat,voip", "--scopes", "-s", help="Comma-separated token scopes"),
    ttl: int = typer.Option(1440, "--ttl", help="Token lifetime in minutes"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Create a new identity with an access token."""

    async def _create():
        async with _identity_client(ChatSettings()) as identity:
            return await identity.create_identity(
                scopes=[s.strip() for s in scopes.split(",") if s.strip()],
                expires_in_minutes=ttl,
            )

    user = _run(_create)
    result = {
        "id": user.id,
        "token": user.access_token.token if user.access_token else None,
        "expiresOn": user.access_token.expires_on.isoformat() if user.access_token else None,
    }

    if json_output:
        _output_result(result)
    else:
        console.print(Panel(
            f"[bold]ID:[/bold] {result['id']}\n"
            f"[bold]Expires:[/bold] {result['expiresOn'] or '-'}\n\n"
            f"[dim]{result['token'] or 'no token requested'}[/dim]",
            title="Identity Created",
        ))


@token_app.command("issue")
def token_issue(
    user_id: str = typer.Argument(..., help="Identity ID"),
    scopes: str = typer.Option("chat,voip", "--scopes", "-s", help="Comma-separated token scopes"),
    ttl: int = typer.Option(1440, "--ttl", help="Token lifetime in minutes"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Issue a fresh access token for an existing identity."""

    async def _issue():
        async with _identity_client(ChatSettings()) as identity:
            return await identity.issue_access_token(
                user_id,
                scopes=[s.strip() for s in scopes.split(",") if s.strip()],
                expires_in_minutes=ttl,
            )

    token = _run(_issue)
    if json_output:
        _output_result({"token": token.token, "expiresOn": token.expires_on.isoformat()})
    else:
        console.print(Panel(
            f"[bold]Expires:[/bold] {token.expires_on.isoformat()}\n\n[dim]{token.token}[/dim]",
            title="Access Token",
        ))


# ============================================================================
# Thread Commands
# ============================================================================


@threads_app.command("create")
def threads_create(
    topic: str = typer.Argument(..., help="Thread topic"),
    participant: list[str] = typer.Option(None, "--participant", "-p", help="Participant as ID=DisplayName (repeatable)"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Create a chat thread."""
    users = _parse_users(participant)

    async def _create():
        async with await ChatClient.from_settings() as chat:
            return await chat.threads.create(topic, *users)

    result = _run(_create)

    if json_output:
        _output_result(result)
        return

    console.print(f"[green]Thread created:[/green] {result.chat_thread.id}")
    for invalid in result.invalid_participants:
        console.print(f"[yellow]Rejected {invalid.target}: {invalid.message}[/yellow]")


@threads_app.command("list")
def threads_list(
    max_page_size: int = typer.Option(None, "--max-page-size", "-n", help="Max threads per page"),
    start_time: str = typer.Option(None, "--start-time", help="Only threads updated after (RFC 3339)"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List chat threads."""

    async def _list():
        async with await ChatClient.from_settings() as chat:
            return await chat.threads.list(max_page_size=max_page_size, start_time=start_time)

    page = _run(_list)

    if json_output:
        _output_result(page)
        return

    table = Table(title=f"Chat Threads ({len(page.value)})")
    table.add_column("ID", style="dim")
    table.add_column("Topic", style="cyan")
    table.add_column("Last Message", style="green")

    for thread in page.value:
        last = thread.last_message_received_on
        table.add_row(thread.id, thread.topic or "-", last.isoformat() if last else "-")

    console.print(table)
    if page.next_link:
        console.print("[dim]More threads available (nextLink set)[/dim]")


@threads_app.command("delete")
def threads_delete(
    thread_id: str = typer.Argument(..., help="Thread ID"),
):
    """Delete a chat thread."""

    async def _delete():
        async with await ChatClient.from_settings() as chat:
            await chat.threads.delete(thread_id)

    _run(_delete)
    console.print(f"[green]Thread {thread_id} deleted[/green]")


# ============================================================================
# Participant Commands
# ============================================================================


@participants_app.command("add")
def participants_add(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    participant: list[str] = typer.Option(..., "--participant", "-p", help="Participant as ID=DisplayName (repeatable)"),
):
    """Add participants to a thread."""
    users = _parse_users(participant)

    async def _add():
        async with await ChatClient.from_settings() as chat:
            await chat.participants.add(thread_id, *users)

    _run(_add)
    console.print(f"[green]Added {len(users)} participant(s)[/green]")


@participants_app.command("remove")
def participants_remove(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    user_id: str = typer.Argument(..., help="Identity ID to remove"),
):
    """Remove a participant from a thread."""

    async def _remove():
        async with await ChatClient.from_settings() as chat:
            await chat.participants.remove(thread_id, user_id)

    _run(_remove)
    console.print(f"[green]Removed {user_id}[/green]")


@participants_app.command("list")
def participants_list(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    max_page_size: int = typer.Option(None, "--max-page-size", "-n", help="Max participants per page"),
    skip: int = typer.Option(None, "--skip", help="Participants to skip"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List thread participants."""

    async def _list():
        async with await ChatClient.from_settings() as chat:
            return await chat.participants.list(thread_id, max_page_size=max_page_size, skip=skip)

    page = _run(_list)

    if json_output:
        _output_result(page)
        return

    table = Table(title=f"Participants ({len(page.value)})")
    table.add_column("ID", style="dim")
    table.add_column("Display Name", style="cyan")

    for p in page.value:
        table.add_row(p.communication_identifier.user_id, p.display_name or "-")

    console.print(table)


# ============================================================================
# Message Commands
# ============================================================================


@messages_app.command("send")
def messages_send(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    content: str = typer.Argument(..., help="Message content"),
    message_type: ChatMessageType = typer.Option(ChatMessageType.TEXT, "--type", "-t", help="Message type"),
    sender_name: str = typer.Option(None, "--sender-name", help="Sender display name"),
    meta: list[str] = typer.Option(None, "--meta", "-m", help="Metadata as KEY=VALUE (repeatable)"),
):
    """Send a message to a thread."""
    metadata = _parse_pairs(meta, "--meta") or None

    async def _send():
        async with await ChatClient.from_settings() as chat:
            return await chat.messages.send(
                thread_id,
                content,
                message_type=message_type,
                sender_display_name=sender_name,
                metadata=metadata,
            )

    result = _run(_send)
    console.print(f"[green]Message sent:[/green] {result.id}")


@messages_app.command("get")
def messages_get(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    message_id: str = typer.Argument(..., help="Message ID"),
):
    """Get a single message."""

    async def _get():
        async with await ChatClient.from_settings() as chat:
            return await chat.messages.get(thread_id, message_id)

    _output_result(_run(_get))


@messages_app.command("list")
def messages_list(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    max_page_size: int = typer.Option(None, "--max-page-size", "-n", help="Max messages per page"),
    start_time: str = typer.Option(None, "--start-time", help="Only messages after (RFC 3339)"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List messages in a thread."""

    async def _list():
        async with await ChatClient.from_settings() as chat:
            return await chat.messages.list(thread_id, max_page_size=max_page_size, start_time=start_time)

    page = _run(_list)

    if json_output:
        _output_result(page)
        return

    table = Table(title=f"Messages ({len(page.value)})")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="yellow")
    table.add_column("Sender", style="cyan")
    table.add_column("Content", style="white")

    for m in page.value:
        text = m.content.message if m.content and m.content.message else "-"
        table.add_row(m.id, m.type.value, m.sender_display_name or m.sender_id or "-", text[:60])

    console.print(table)


@messages_app.command("update")
def messages_update(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    message_id: str = typer.Argument(..., help="Message ID"),
    content: str = typer.Option(None, "--content", "-c", help="New content"),
    meta: list[str] = typer.Option(None, "--meta", "-m", help="Metadata as KEY=VALUE (repeatable)"),
):
    """Edit a message."""
    metadata = _parse_pairs(meta, "--meta") or None
    if content is None and metadata is None:
        raise typer.BadParameter("nothing to update; pass --content and/or --meta")

    async def _update():
        async with await ChatClient.from_settings() as chat:
            await chat.messages.update(thread_id, message_id, content=content, metadata=metadata)

    _run(_update)
    console.print(f"[green]Message {message_id} updated[/green]")


@messages_app.command("delete")
def messages_delete(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    message_id: str = typer.Argument(..., help="Message ID"),
):
    """Delete a message."""

    async def _delete():
        async with await ChatClient.from_settings() as chat:
            await chat.messages.delete(thread_id, message_id)

    _run(_delete)
    console.print(f"[green]Message {message_id} deleted[/green]")


# ============================================================================
# Demo
# ============================================================================


@app.command("demo")
def demo(
    topic: str = typer.Option("acs-chat demo", "--topic", help="Topic for the demo thread"),
    keep: bool = typer.Option(False, "--keep", help="Keep the thread instead of deleting it"),
):
    """Walk through thread, participant and message operations end to end."""

    async def _demo() -> dict[str, Any]:
        steps: dict[str, Any] = {}
        async with await ChatClient.from_settings() as chat:
            if not chat.user_id:
                raise ValueError("demo needs ACS_ACCESS_KEY so it can mint its own identity")
            me = ChatUser(id=chat.user_id, display_name="demo")

            created = await chat.threads.create(topic, me)
            thread_id = created.chat_thread.id
            steps["thread"] = thread_id
            log.info("Created thread %s", thread_id)

            threads = await chat.threads.list()
            steps["threads"] = len(threads.value)

            members = await chat.participants.list(thread_id)
            steps["participants"] = len(members.value)

            sent = await chat.messages.send(thread_id, "hello from acs-chat")
            log.info("Sent message %s", sent.id)

            await chat.messages.update(
                thread_id, sent.id, content="hello from acs-chat (edited)", metadata={"edited": "true"}
            )
            message = await chat.messages.get(thread_id, sent.id)
            steps["edited_content"] = message.content.message if message.content else None

            await chat.messages.delete(thread_id, sent.id)
            remaining = await chat.messages.list(thread_id)
            steps["messages_after_delete"] = len(remaining.value)

            if not keep:
                await chat.threads.delete(thread_id)
                log.info("Deleted thread %s", thread_id)
        return steps

    steps = _run(_demo)

    table = Table(title="Demo Results")
    table.add_column("Step", style="cyan")
    table.add_column("Result", style="green")
    for key, value in steps.items():
        table.add_row(key, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
