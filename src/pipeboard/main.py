"""CLI handling for pipeboard.

This module provides the command-line interface for pipeboard, handling
argument parsing via click, logging configuration, and dispatching to the
clipboard, slot, peer, transform and history command handlers.

Usage:
    pipeboard copy [TEXT...]          pipeboard paste
    pipeboard clear                   pipeboard backend
    pipeboard doctor [--json]
    pipeboard push NAME               pipeboard pull NAME
    pipeboard show NAME               pipeboard slots [--json]
    pipeboard rm NAME
    pipeboard send [PEER]             pipeboard recv [PEER]
    pipeboard peek [PEER]             pipeboard watch [PEER] [--interval S]
    pipeboard fx NAME... [--dry-run]  pipeboard fx --list
    pipeboard history [--fx|--slots|--peer] [--json]
"""

import asyncio
import inspect
import sys
from pathlib import Path
from typing import Callable, Optional, TypeVar

import click

from pipeboard.main_logging import configure_logging
from pipeboard.main_options import MutuallyExclusiveOption
from pipeboard.watch_constants import DEFAULT_INTERVAL

T = TypeVar("T")


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $PIPEBOARD_CONFIG or ~/.config/pipeboard/config.yaml)",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
@click.pass_context
def main(ctx: click.Context, config_file: Optional[Path], verbose: bool) -> None:
    """Move clipboard contents between machines via slots and ssh peers."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("config_file", config_file)


def _app(ctx: click.Context):
    """Build (once) the AppContext for this invocation.

    Args:
        ctx: The click context of the running command.
    """
    from pipeboard.app_context import AppContext
    from pipeboard.config_loader import load_config

    obj = ctx.ensure_object(dict)
    if "app" not in obj:
        obj["app"] = AppContext(config=load_config(obj.get("config_file")))
    return obj["app"]


def _run_command(ctx: click.Context, handler: Callable[..., T], *args) -> T:
    """Run a command handler, reporting pipeboard errors on stderr.

    Async handlers are driven with asyncio.run. Any PipeboardError ends the
    process with exit status 1.

    Args:
        ctx: The click context of the running command.
        handler: Handler taking the AppContext as first argument.
        *args: Remaining handler arguments.
    """
    from pipeboard.errors import PipeboardError

    try:
        app = _app(ctx)
        result = handler(app, *args)
        if inspect.isawaitable(result):
            result = asyncio.run(result)
        return result
    except PipeboardError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _write_stdout(data: bytes) -> None:
    click.get_binary_stream("stdout").write(data)


@main.command()
@click.argument("text", nargs=-1)
@click.pass_context
def copy(ctx: click.Context, text: tuple[str, ...]) -> None:
    """Copy TEXT (or stdin) to the local clipboard."""

    async def handler(app, data: bytes) -> None:
        await app.clipboard.write(data)

    data = " ".join(text).encode("utf-8") if text else click.get_binary_stream("stdin").read()
    _run_command(ctx, handler, data)


@main.command()
@click.pass_context
def paste(ctx: click.Context) -> None:
    """Print the local clipboard to stdout."""

    async def handler(app) -> bytes:
        return await app.clipboard.read()

    _write_stdout(_run_command(ctx, handler))


@main.command()
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Empty the local clipboard."""
    from pipeboard.clipboard_commands import clear_clipboard

    _run_command(ctx, clear_clipboard)


@main.command()
@click.pass_context
def backend(ctx: click.Context) -> None:
    """Show which clipboard tools pipeboard uses here."""
    from pipeboard.clipboard_commands import describe_backend

    click.echo(_run_command(ctx, describe_backend))


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def doctor(ctx: click.Context, as_json: bool) -> None:
    """Check that the local clipboard tools are installed."""
    from pipeboard.clipboard_commands import run_doctor

    click.echo(_run_command(ctx, run_doctor, as_json))


@main.command()
@click.argument("name")
@click.pass_context
def push(ctx: click.Context, name: str) -> None:
    """Store the local clipboard in slot NAME."""
    from pipeboard.slot_commands import push_slot

    _run_command(ctx, push_slot, name)


@main.command()
@click.argument("name")
@click.pass_context
def pull(ctx: click.Context, name: str) -> None:
    """Copy slot NAME to the local clipboard."""
    from pipeboard.slot_commands import pull_slot

    _run_command(ctx, pull_slot, name)


@main.command()
@click.argument("name")
@click.pass_context
def show(ctx: click.Context, name: str) -> None:
    """Print slot NAME to stdout without touching the clipboard."""
    from pipeboard.slot_commands import show_slot

    _write_stdout(_run_command(ctx, show_slot, name))


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def slots(ctx: click.Context, as_json: bool) -> None:
    """List stored slots."""
    from pipeboard.slot_commands import list_slots

    click.echo(_run_command(ctx, list_slots, as_json))


@main.command()
@click.argument("name")
@click.pass_context
def rm(ctx: click.Context, name: str) -> None:
    """Delete slot NAME."""
    from pipeboard.slot_commands import remove_slot

    _run_command(ctx, remove_slot, name)


@main.command()
@click.argument("peer", required=False)
@click.pass_context
def send(ctx: click.Context, peer: Optional[str]) -> None:
    """Send the local clipboard to PEER."""
    from pipeboard.peer_commands import send_to_peer

    _run_command(ctx, send_to_peer, peer)


@main.command()
@click.argument("peer", required=False)
@click.pass_context
def recv(ctx: click.Context, peer: Optional[str]) -> None:
    """Copy PEER's clipboard to the local clipboard."""
    from pipeboard.peer_commands import receive_from_peer

    _run_command(ctx, receive_from_peer, peer)


@main.command()
@click.argument("peer", required=False)
@click.pass_context
def peek(ctx: click.Context, peer: Optional[str]) -> None:
    """Print PEER's clipboard to stdout."""
    from pipeboard.peer_commands import peek_peer

    _write_stdout(_run_command(ctx, peek_peer, peer))


@main.command()
@click.argument("peer", required=False)
@click.option(
    "--interval",
    type=float,
    default=DEFAULT_INTERVAL,
    show_default=True,
    help="Seconds between polls",
)
@click.pass_context
def watch(ctx: click.Context, peer: Optional[str], interval: float) -> None:
    """Keep the local clipboard and PEER's clipboard in sync."""
    from pipeboard.peer_commands import watch_peer

    _run_command(ctx, watch_peer, peer, interval)


@main.command()
@click.argument("names", nargs=-1)
@click.option("--list", "list_only", is_flag=True, help="List configured transforms")
@click.option("--dry-run", is_flag=True, help="Print the result instead of writing the clipboard")
@click.pass_context
def fx(ctx: click.Context, names: tuple[str, ...], list_only: bool, dry_run: bool) -> None:
    """Run transforms NAMES over the clipboard, in order."""
    from pipeboard.fx_commands import apply_transforms, list_transforms

    if list_only:
        click.echo(_run_command(ctx, list_transforms))
        return
    if not names:
        raise click.UsageError("Give at least one transform name, or --list")

    result = _run_command(ctx, apply_transforms, list(names), dry_run)
    if result is not None:
        _write_stdout(result)


@main.command()
@click.option(
    "--fx",
    "fx",
    is_flag=True,
    cls=MutuallyExclusiveOption,
    exclusive_with=["slots", "peer"],
    help="Only transform runs",
)
@click.option(
    "--slots",
    "slots",
    is_flag=True,
    cls=MutuallyExclusiveOption,
    exclusive_with=["fx", "peer"],
    help="Only slot operations",
)
@click.option(
    "--peer",
    "peer",
    is_flag=True,
    cls=MutuallyExclusiveOption,
    exclusive_with=["fx", "slots"],
    help="Only peer operations",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def history(ctx: click.Context, fx: bool, slots: bool, peer: bool, as_json: bool) -> None:
    """Show recent operations, newest first."""
    from pipeboard.history_commands import show_history

    click.echo(_run_command(ctx, show_history, fx, slots, peer, as_json))
