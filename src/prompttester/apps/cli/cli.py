"""
prompttester CLI: manage prompt sessions, their version history and the chat transcript.

Dependencies live in ctx.obj so tests (or other front ends) can inject their own:
- "printer": Printer
- "workspace": Workspace (built lazily from settings when absent)
"""

from __future__ import annotations
from prompttester.config import settings
from prompttester.apps.cli.printer import Printer
from prompttester.domain.conversation.turn import Role
from prompttester.domain.exceptions.exceptions import PromptTesterError
from rich.markup import escape
from functools import wraps
from typing import TYPE_CHECKING
import asyncio
import logging
import sys
import click

if TYPE_CHECKING:
    from prompttester.apps.workspace import Workspace

logger = logging.getLogger(__name__)

LOG_LEVELS = {"d": logging.DEBUG, "i": logging.INFO, "w": logging.WARNING}


def _configure_logging(log_flag: str) -> None:
    root = logging.getLogger()

    # If already configured (library usage), respect existing config
    if root.handlers:
        logger.debug("Logging already configured, using existing setup")
        return

    logging.basicConfig(
        level=LOG_LEVELS.get(log_flag, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s:%(lineno)d (%(funcName)s) - %(message)s",
        stream=sys.stderr,
    )

    # Silence noisy libraries
    for lib in ["httpx", "httpcore"]:
        logging.getLogger(lib).setLevel(logging.WARNING)


def _workspace(ctx: click.Context) -> Workspace:
    obj = ctx.find_root().obj
    if obj.get("workspace") is None:
        from prompttester.apps.workspace import Workspace

        store = None
        if obj.get("ephemeral"):
            from prompttester.storage.kv.memory_store import MemoryStore

            store = MemoryStore()
        obj["workspace"] = Workspace.open(settings, store=store)
    return obj["workspace"]


def _printer(ctx: click.Context) -> Printer:
    return ctx.find_root().obj["printer"]


def refusals(func):
    """
    Refused operations print a red message and exit 1.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        try:
            return func(*args, **kwargs)
        except PromptTesterError as e:
            logger.info(f"Refused: {e}")
            _printer(ctx).print_error(str(e))
            ctx.exit(1)

    return wrapper


@click.group(invoke_without_command=True)
@click.option("--version", "show_version", is_flag=True, help="Show version and exit.")
@click.option(
    "--log",
    "log_flag",
    type=click.Choice(list(LOG_LEVELS)),
    default="w",
    help="Log level: d(ebug), i(nfo), w(arning).",
)
@click.option("--ephemeral", is_flag=True, help="Keep state in memory only.")
@click.pass_context
def cli(ctx: click.Context, show_version: bool, log_flag: str, ephemeral: bool):
    """Prompt Tester: prompt sessions with version history and chat."""
    _configure_logging(log_flag)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("printer", Printer())
    ctx.obj["ephemeral"] = ephemeral

    if show_version:
        click.echo(settings.version)
        ctx.exit()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Sessions
@cli.command("list")
@click.pass_context
@refusals
def list_sessions(ctx: click.Context):
    """List sessions; the active one is starred."""
    _printer(ctx).print_sessions(_workspace(ctx).sessions.sessions)


@cli.command()
@click.pass_context
@refusals
def add(ctx: click.Context):
    """Create a new session and make it active."""
    session = _workspace(ctx).sessions.create()
    _printer(ctx).print_pretty(f"[green]Created {escape(session.name)} ({session.id})[/green]")


@cli.command()
@click.argument("session_id")
@click.pass_context
@refusals
def remove(ctx: click.Context, session_id: str):
    """Remove a session (the last one cannot be removed)."""
    removed = _workspace(ctx).sessions.remove(session_id)
    _printer(ctx).print_pretty(f"[green]Removed {escape(removed.name)}[/green]")


@cli.command()
@click.argument("session_id")
@click.argument("name")
@click.pass_context
@refusals
def rename(ctx: click.Context, session_id: str, name: str):
    """Rename a session."""
    session = _workspace(ctx).sessions.rename(session_id, name)
    _printer(ctx).print_pretty(f"[green]Renamed to {escape(session.name)}[/green]")


@cli.command()
@click.argument("session_id")
@click.pass_context
@refusals
def select(ctx: click.Context, session_id: str):
    """Make a session active; starts a fresh conversation."""
    session = _workspace(ctx).sessions.select(session_id)
    _printer(ctx).print_pretty(f"[green]Active: {escape(session.name)}[/green]")


@cli.command()
@click.argument("session_ids", nargs=-1, required=True)
@click.pass_context
@refusals
def move(ctx: click.Context, session_ids: tuple[str, ...]):
    """Reorder sessions: pass every session id in the new order."""
    workspace = _workspace(ctx)
    workspace.sessions.reorder(session_ids)
    _printer(ctx).print_sessions(workspace.sessions.sessions)


@cli.command()
@click.pass_context
@refusals
def show(ctx: click.Context):
    """Print the active session's content."""
    _printer(ctx).print_session(_workspace(ctx).active)


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.pass_context
@refusals
def edit(ctx: click.Context, source):
    """Replace the active session's content from a file (or stdin)."""
    workspace = _workspace(ctx)
    content = source.read()
    workspace.sessions.set_content(workspace.active.id, content)
    _printer(ctx).print_pretty(f"[green]Updated {escape(workspace.active.name)}[/green]")


# Versions
@cli.command()
@click.option("--capture", is_flag=True, help="Capture the current content first.")
@click.pass_context
@refusals
def versions(ctx: click.Context, capture: bool):
    """Show the active session's version history."""
    workspace = _workspace(ctx)
    if capture:
        asyncio.run(workspace.capture_version())
    _printer(ctx).print_versions(workspace.active)


@cli.command()
@click.argument("snapshot_id")
@click.pass_context
@refusals
def restore(ctx: click.Context, snapshot_id: str):
    """Set the active content back to a saved version."""
    session = _workspace(ctx).restore(snapshot_id)
    _printer(ctx).print_session(session)


# Conversation
@cli.command()
@click.pass_context
@refusals
def history(ctx: click.Context):
    """Print the conversation for the active session."""
    _printer(ctx).print_conversation(_workspace(ctx).sessions.conversation)


@cli.command()
@click.argument("text", nargs=-1, required=True)
@click.pass_context
@refusals
def say(ctx: click.Context, text: tuple[str, ...]):
    """Send a message using the active session's content as system prompt."""
    workspace = _workspace(ctx)
    asyncio.run(workspace.say(" ".join(text)))
    _finish_submit(ctx, workspace)


@cli.command()
@click.argument("index", type=int)
@click.argument("text", nargs=-1)
@click.pass_context
@refusals
def resubmit(ctx: click.Context, index: int, text: tuple[str, ...]):
    """Resubmit user turn INDEX (optionally rewriting it); later turns are dropped."""
    workspace = _workspace(ctx)
    if not 0 <= index < len(workspace.sessions.conversation):
        _printer(ctx).print_error(f"No turn at index {index}.")
        ctx.exit(1)
    if workspace.sessions.conversation[index].role != Role.USER:
        _printer(ctx).print_error(f"Turn {index} is not a user message.")
        ctx.exit(1)
    if text:
        workspace.orchestrator.edit(index, " ".join(text))
    submitted = asyncio.run(workspace.submit(index))
    if not submitted:
        _printer(ctx).print_error(f"Turn {index} is not a user message with content.")
        ctx.exit(1)
    _finish_submit(ctx, workspace)


def _finish_submit(ctx: click.Context, workspace: Workspace) -> None:
    printer = _printer(ctx)
    printer.print_conversation(workspace.sessions.conversation)
    if workspace.orchestrator.error:
        ctx.exit(1)


@cli.command()
@click.pass_context
@refusals
def clear(ctx: click.Context):
    """Start a fresh conversation."""
    _workspace(ctx).orchestrator.clear()
    _printer(ctx).print_pretty("[green]Conversation cleared.[/green]")


# Models
@cli.group()
def model():
    """Configure the completion model and token."""


@model.command("list")
@click.pass_context
@refusals
def model_list(ctx: click.Context):
    """List configured models; the selected one is starred."""
    configs = _workspace(ctx).models.configs
    selected = configs.selected_model
    printer = _printer(ctx)
    if not configs.models:
        printer.print_pretty("[yellow]No models configured.[/yellow]")
    for m in configs.models:
        marker = "*" if selected is not None and m.model_id == selected.model_id else " "
        printer.print_pretty(f"{marker} {escape(m.model_id)}  {escape(m.model_name)}")
    printer.print_pretty(f"Token: {'set' if configs.api_token else 'not set'}")


@model.command("add")
@click.argument("model_id")
@click.argument("model_name", required=False, default="")
@click.pass_context
@refusals
def model_add(ctx: click.Context, model_id: str, model_name: str):
    """Add a model by id, with an optional display name."""
    added = _workspace(ctx).models.add_model(model_id, model_name)
    _printer(ctx).print_pretty(f"[green]Added {escape(added.model_name)}[/green]")


@model.command("remove")
@click.argument("model_id")
@click.pass_context
@refusals
def model_remove(ctx: click.Context, model_id: str):
    """Remove a configured model."""
    _workspace(ctx).models.remove_model(model_id)
    _printer(ctx).print_pretty(f"[green]Removed {escape(model_id)}[/green]")


@model.command("select")
@click.argument("model_id")
@click.pass_context
@refusals
def model_select(ctx: click.Context, model_id: str):
    """Select the model used for completions."""
    selected = _workspace(ctx).models.select_model(model_id)
    _printer(ctx).print_pretty(f"[green]Selected {escape(selected.model_name)}[/green]")


@model.command("token")
@click.argument("token")
@click.pass_context
@refusals
def model_token(ctx: click.Context, token: str):
    """Set the API token."""
    _workspace(ctx).models.set_token(token)
    _printer(ctx).print_pretty("[green]Token saved.[/green]")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
