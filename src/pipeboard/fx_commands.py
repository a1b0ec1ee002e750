#!/usr/bin/env python3
"""Transform command handlers: fx <names...> and fx --list."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from pipeboard.fx import chain_label, load_transforms, resolve_chain, run_chain
from pipeboard.size_format import format_size

if TYPE_CHECKING:
    from pipeboard.app_context import AppContext

logger = logging.getLogger(__name__)

NO_TRANSFORMS_HELP = """No transforms defined.

Add transforms to your config:
  fx:
    pretty-json:
      cmd: ["jq", "."]
      description: "Format JSON"
"""


def list_transforms(ctx: AppContext) -> str:
    """Format the configured transforms as a NAME/DESCRIPTION table."""
    transforms = load_transforms(ctx.config)
    if not transforms:
        return NO_TRANSFORMS_HELP.rstrip()
    lines = [f"{'NAME':<20}  DESCRIPTION"]
    for name in sorted(transforms):
        lines.append(f"{name:<20}  {transforms[name].summary()}")
    return "\n".join(lines)


async def apply_transforms(ctx: AppContext, names: list[str], dry_run: bool = False) -> bytes | None:
    """
    Run a transform chain over the clipboard.

    Every name is resolved before the clipboard is read. On success the
    result replaces the clipboard, or is returned for printing when
    dry_run is set. On failure TransformError propagates and the clipboard
    is never written.

    Returns:
        The transformed bytes in dry-run mode, otherwise None.
    """
    chain = resolve_chain(ctx.config, names)
    original = await ctx.clipboard.read()
    result = await run_chain(original, chain, dry_run=dry_run)

    if dry_run:
        return result

    await ctx.clipboard.write(result)
    label = chain_label(chain)
    click.echo(f"fx {label}: {format_size(len(original))} → {format_size(len(result))}", err=True)
    ctx.record(f"fx:{label}", "", len(result), result)
    return None
