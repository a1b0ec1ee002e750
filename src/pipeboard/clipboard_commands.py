#!/usr/bin/env python3
"""Local clipboard command handlers: clear, backend, doctor."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from pipeboard.app_context import AppContext
    from pipeboard.clipboard import ClipboardBackend

TIPS = [
    "On macOS:   pbcopy / pbpaste should be available by default.",
    "On Wayland: install `wl-clipboard` (wl-copy, wl-paste).",
    "On X11:     install `xclip` or `xsel`.",
    "On WSL:     ensure `clip.exe` and `powershell.exe` are in PATH.",
]


def os_name() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    return sys.platform


def backend_ok(backend: ClipboardBackend) -> bool:
    return backend.kind != "unknown" and not backend.missing


async def clear_clipboard(ctx: AppContext) -> None:
    """Empty the local clipboard."""
    await ctx.clipboard.clear()
    click.echo("clipboard cleared", err=True)


def describe_backend(ctx: AppContext) -> str:
    """Return the detected backend and the commands it runs."""
    backend = ctx.clipboard.backend
    lines = [
        f"Backend:   {backend.kind}",
        f"OS:        {os_name()}",
        f"Copy cmd:  {' '.join(backend.copy_cmd)}",
        f"Paste cmd: {' '.join(backend.paste_cmd)}",
    ]
    if backend.missing:
        lines.append(f"Missing:   {', '.join(backend.missing)}")
    return "\n".join(lines)


def doctor_report(backend: ClipboardBackend, as_json: bool = False) -> str:
    """
    Render a health report for a clipboard backend.

    Status is "ok" when a backend was detected and none of its tools are
    missing, "warning" otherwise.

    Args:
        backend: The backend to report on.
        as_json: Emit a JSON object instead of text.

    Returns:
        The report, without a trailing newline.
    """
    ok = backend_ok(backend)
    if as_json:
        report = {
            "os": os_name(),
            "backend": backend.kind,
            "status": "ok" if ok else "warning",
            "copy_cmd": backend.copy_cmd,
            "paste_cmd": backend.paste_cmd,
        }
        if backend.missing:
            report["missing"] = backend.missing
        return json.dumps(report, indent=2)

    lines = [
        "pipeboard doctor",
        "-----------------",
        f"OS:       {os_name()}",
        f"Backend:  {backend.kind}",
        "",
    ]
    if ok:
        lines.append("Status:   OK")
        lines.append("Details:  All required commands for this backend are available.")
    else:
        lines.append("Status:   WARNING")
        if backend.kind == "unknown":
            lines.append(
                "Details:  Could not detect a suitable clipboard backend for this environment."
            )
        if backend.missing:
            lines.append(f"Missing:  {', '.join(backend.missing)}")
    lines.append("")
    lines.append("Tips:")
    lines.extend(f"  - {tip}" for tip in TIPS)
    return "\n".join(lines)


def run_doctor(ctx: AppContext, as_json: bool = False) -> str:
    """Report whether the local clipboard tools are usable."""
    return doctor_report(ctx.clipboard.backend, as_json)
