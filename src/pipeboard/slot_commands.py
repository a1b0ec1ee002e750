#!/usr/bin/env python3
"""Slot command handlers: push, pull, show, slots, rm."""

from __future__ import annotations

import json
import logging
import socket
from typing import TYPE_CHECKING

import click

from pipeboard.size_format import format_age, format_size, format_time_until

if TYPE_CHECKING:
    from pipeboard.app_context import AppContext
    from pipeboard.slot_store import SlotInfo

logger = logging.getLogger(__name__)


async def push_slot(ctx: AppContext, name: str, data: bytes | None = None) -> None:
    """Store the clipboard (or given data) in a slot."""
    if data is None:
        data = await ctx.clipboard.read()
    ctx.slot_store().push(name, data, {"hostname": socket.gethostname()})
    click.echo(f"pushed {format_size(len(data))} to slot {name!r}", err=True)
    ctx.record("push", name, len(data), data)


async def pull_slot(ctx: AppContext, name: str) -> None:
    """Copy a slot's content to the local clipboard."""
    data, meta = ctx.slot_store().pull(name)
    await ctx.clipboard.write(data)
    source = meta.get("hostname")
    suffix = f" (source: {source})" if source else ""
    click.echo(f"pulled {format_size(len(data))} from slot {name!r}{suffix}", err=True)
    ctx.record("pull", name, len(data), data)


def show_slot(ctx: AppContext, name: str) -> bytes:
    """Return a slot's content for printing, leaving the clipboard alone."""
    data, _ = ctx.slot_store().pull(name)
    ctx.record("show", name, len(data), data)
    return data


def remove_slot(ctx: AppContext, name: str) -> None:
    """Delete a slot; deleting a missing slot succeeds."""
    ctx.slot_store().delete(name)
    click.echo(f"deleted slot {name!r}", err=True)
    ctx.record("rm", name)


def _slot_json(slot: SlotInfo) -> dict:
    entry = {
        "name": slot.name,
        "size": slot.size,
        "size_human": format_size(slot.size),
        "created_at": slot.created_at.isoformat(),
        "age": format_age(slot.created_at),
    }
    if slot.expires_at is not None:
        entry["expires_at"] = slot.expires_at.isoformat()
        entry["expires_in"] = format_time_until(slot.expires_at)
    return entry


def render_slots(slots: list[SlotInfo], as_json: bool = False) -> str:
    """Format a slot listing, sorted by name."""
    slots = sorted(slots, key=lambda s: s.name)
    if as_json:
        return json.dumps([_slot_json(s) for s in slots], indent=2)
    if not slots:
        return "No slots found."

    has_expiry = any(s.expires_at is not None for s in slots)
    header = f"{'NAME':<20}  {'SIZE':<10}  {'AGE':<12}"
    if has_expiry:
        header += f"  {'EXPIRES':<12}"
    lines = [header]
    for s in slots:
        line = f"{s.name:<20}  {format_size(s.size):<10}  {format_age(s.created_at):<12}"
        if has_expiry:
            expires = format_time_until(s.expires_at) if s.expires_at else "-"
            line += f"  {expires:<12}"
        lines.append(line)
    return "\n".join(lines)


def list_slots(ctx: AppContext, as_json: bool = False) -> str:
    """Return the formatted listing of live slots."""
    return render_slots(ctx.slot_store().list(), as_json)
