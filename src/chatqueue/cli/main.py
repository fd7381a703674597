"""chatqueue CLI — talk to the dispatcher from a terminal.

Usage:
    chatqueue init-db                      # Create the chat_messages table
    chatqueue send alice "hello"           # Submit one message, print replies
    chatqueue chat alice                   # Line-by-line REPL for one user
    chatqueue history alice                # Print the stored conversation
    chatqueue --memory chat alice          # Same, without a database
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click

from chatqueue import __version__
from chatqueue.config import Settings
from chatqueue.logs import configure_logging
from chatqueue.messages import ChatMessage, visible_replies
from chatqueue.runtime import Runtime, build_runtime

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _role_color(role: str) -> str:
    colors = {
        "system": "magenta",
        "user": "cyan",
        "assistant": "green",
        "tool": "yellow",
    }
    return colors.get(role, "white")


def _describe(message: ChatMessage) -> str:
    if message.tool_calls:
        calls = ", ".join(f"{c.name}({c.arguments})" for c in message.tool_calls)
        text = f"{message.content or ''} [calls: {calls}]".strip()
    else:
        text = message.content or ""
    if message.tool_call_id:
        text = f"[{message.tool_call_id}] {text}"
    return text


def _print_replies(messages: list[ChatMessage]) -> None:
    for text in visible_replies(messages):
        click.secho(text, fg="green")


def _fail(error: Exception) -> None:
    click.secho(f"Error: {type(error).__name__}: {error}", fg="red", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="chatqueue")
@click.option("--memory", is_flag=True, help="Use an in-memory store instead of the database")
@click.pass_context
def main(ctx: click.Context, memory: bool):
    """chatqueue — per-user serialized chat with a tool-calling model."""
    settings = Settings()
    configure_logging(settings.log_level, json=settings.log_json)
    ctx.obj = {"settings": settings, "memory": memory}


def _runtime(ctx: click.Context) -> Runtime:
    return build_runtime(ctx.obj["settings"], memory=ctx.obj["memory"])


# ---------------------------------------------------------------------------
# chatqueue init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context):
    """Create the message table in CHATQUEUE_DATABASE_URL."""
    if ctx.obj["memory"]:
        click.secho("Nothing to initialize for the in-memory store.", fg="yellow")
        return
    _run(_init_db_impl(_runtime(ctx)))
    click.secho("Schema ready.", fg="green")


async def _init_db_impl(runtime: Runtime):
    try:
        await runtime.init_schema()
    finally:
        await runtime.aclose()


# ---------------------------------------------------------------------------
# chatqueue send
# ---------------------------------------------------------------------------


@main.command()
@click.argument("user_id")
@click.argument("text")
@click.pass_context
def send(ctx: click.Context, user_id: str, text: str):
    """Submit TEXT for USER_ID and print the assistant's replies."""
    try:
        replies = _run(_send_impl(_runtime(ctx), user_id, text))
    except Exception as e:
        _fail(e)
    _print_replies(replies)


async def _send_impl(runtime: Runtime, user_id: str, text: str) -> list[ChatMessage]:
    try:
        return await runtime.dispatcher.process_message(user_id, text)
    finally:
        await runtime.aclose()


# ---------------------------------------------------------------------------
# chatqueue chat
# ---------------------------------------------------------------------------


@main.command()
@click.argument("user_id")
@click.pass_context
def chat(ctx: click.Context, user_id: str):
    """Read lines from stdin and send each one as USER_ID. Ctrl-D to quit."""
    _run(_chat_impl(_runtime(ctx), user_id))


async def _chat_impl(runtime: Runtime, user_id: str):
    stdin = click.get_text_stream("stdin")
    try:
        for line in stdin:
            text = line.strip()
            if not text:
                continue
            try:
                replies = await runtime.dispatcher.process_message(user_id, text)
            except Exception as e:
                # Keep the session alive; the message stays in history
                click.secho(f"Error: {type(e).__name__}: {e}", fg="red", err=True)
                continue
            _print_replies(replies)
    finally:
        await runtime.aclose()


# ---------------------------------------------------------------------------
# chatqueue history
# ---------------------------------------------------------------------------


@main.command()
@click.argument("user_id")
@click.option("--pending", is_flag=True, help="Show pending messages instead")
@click.pass_context
def history(ctx: click.Context, user_id: str, pending: bool):
    """Print the stored conversation for USER_ID."""
    _run(_history_impl(_runtime(ctx), user_id, pending))


async def _history_impl(runtime: Runtime, user_id: str, pending: bool):
    try:
        if pending:
            messages = await runtime.store.pending_messages(user_id)
        else:
            messages = await runtime.store.read_history(user_id)
    finally:
        await runtime.aclose()

    if not messages:
        click.echo("No messages.")
        return
    for m in messages:
        role = click.style(f"{m.role:9s}", fg=_role_color(m.role))
        click.echo(f"{role} {_describe(m)}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
