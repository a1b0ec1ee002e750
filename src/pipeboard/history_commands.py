#!/usr/bin/env python3
"""History command handler: newest-first listing with category filters."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pipeboard.history import HistoryEntry, is_fx_command, is_peer_command, is_slot_command
from pipeboard.size_format import format_size

if TYPE_CHECKING:
    from pipeboard.app_context import AppContext


def filter_entries(
    entries: list[HistoryEntry],
    fx: bool = False,
    slots: bool = False,
    peer: bool = False,
) -> list[HistoryEntry]:
    """Keep only the requested category of entries."""
    if fx:
        return [e for e in entries if is_fx_command(e.command)]
    if slots:
        return [e for e in entries if is_slot_command(e.command)]
    if peer:
        return [e for e in entries if is_peer_command(e.command)]
    return entries


def render_history(entries: list[HistoryEntry], as_json: bool = False, filtered: bool = False) -> str:
    """Format entries most recent first."""
    newest_first = list(reversed(entries))
    if as_json:
        return json.dumps(
            [e.model_dump(mode="json", exclude={"signature"}) for e in newest_first],
            indent=2,
        )
    if not newest_first:
        return "No matching history entries." if filtered else "No history yet."

    lines = [f"{'TIME':<20}  {'COMMAND':<12}  {'TARGET':<15}  SIZE"]
    for e in newest_first:
        size = format_size(e.size) if e.size > 0 else ""
        when = e.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        lines.append(f"{when:<20}  {e.command:<12}  {e.target:<15}  {size}")
    return "\n".join(lines)


def show_history(
    ctx: AppContext,
    fx: bool = False,
    slots: bool = False,
    peer: bool = False,
    as_json: bool = False,
) -> str:
    """Return the formatted history listing."""
    entries = filter_entries(ctx.history.entries(), fx=fx, slots=slots, peer=peer)
    return render_history(entries, as_json=as_json, filtered=fx or slots or peer)
