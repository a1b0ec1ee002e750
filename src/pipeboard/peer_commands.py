#!/usr/bin/env python3
"""Peer command handlers: send, recv, peek, watch."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING, Optional

import click

from pipeboard.size_format import format_size
from pipeboard.watch import WatchSession, run_watch
from pipeboard.watch_constants import DEFAULT_INTERVAL

if TYPE_CHECKING:
    from pipeboard.app_context import AppContext

logger = logging.getLogger(__name__)


async def send_to_peer(ctx: AppContext, peer_name: Optional[str]) -> None:
    """Copy the local clipboard to a peer's clipboard."""
    peer = ctx.config.resolve_peer(peer_name)
    data = await ctx.clipboard.read()
    await ctx.transport.send_to(peer, data)
    click.echo(f"sent {format_size(len(data))} to peer {peer.name!r} ({peer.ssh})", err=True)
    ctx.record("send", peer.name, len(data), data)


async def receive_from_peer(ctx: AppContext, peer_name: Optional[str]) -> None:
    """Copy a peer's clipboard to the local clipboard."""
    peer = ctx.config.resolve_peer(peer_name)
    data = await ctx.transport.read_from(peer)
    await ctx.clipboard.write(data)
    click.echo(f"received {format_size(len(data))} from peer {peer.name!r} ({peer.ssh})", err=True)
    ctx.record("recv", peer.name, len(data), data)


async def peek_peer(ctx: AppContext, peer_name: Optional[str]) -> bytes:
    """Return a peer's clipboard without touching the local one."""
    peer = ctx.config.resolve_peer(peer_name)
    data = await ctx.transport.read_from(peer)
    ctx.record("peek", peer.name, len(data), data)
    return data


async def watch_peer(
    ctx: AppContext, peer_name: Optional[str], interval: float = DEFAULT_INTERVAL
) -> None:
    """Synchronize both clipboards with a peer until SIGINT/SIGTERM."""
    peer = ctx.config.resolve_peer(peer_name)
    session = WatchSession(
        peer=peer,
        clipboard=ctx.clipboard,
        transport=ctx.transport,
        interval=interval,
        history=ctx.history,
        notify=lambda line: click.echo(line, err=True),
    )

    # Register signal handlers for clean shutdown
    shutdown_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_requested.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_requested.set)

    click.echo(f"Watching clipboard with peer {peer.name!r} ({peer.ssh})", err=True)
    click.echo("Press Ctrl+C to stop", err=True)
    try:
        await run_watch(session, shutdown_requested)
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)
    click.echo("Stopped watching.", err=True)
