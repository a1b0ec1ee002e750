#!/usr/bin/env python3
"""Local OS clipboard access through platform copy/paste commands.

This module detects which clipboard tools are usable on the current machine
and wraps them behind Clipboard.read()/Clipboard.write(). It handles:
- macOS (pbcopy/pbpaste)
- Wayland (wl-copy/wl-paste)
- X11 (xclip, falling back to xsel)
- WSL and native Windows (clip.exe + PowerShell Get-Clipboard)
"""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
from dataclasses import dataclass, field

from pipeboard.errors import ClipboardError
from pipeboard.process import run_process

# Seconds allowed for one clipboard tool invocation.
CLIPBOARD_TIMEOUT: float = 10.0


@dataclass
class ClipboardBackend:
    """Commands used to copy to and paste from the local clipboard.

    Attributes:
        kind: Short name of the platform mechanism.
        copy_cmd: argv that reads new clipboard content from stdin.
        paste_cmd: argv that writes clipboard content to stdout.
        missing: Tools that were expected but not found on PATH.
    """

    kind: str
    copy_cmd: list[str] = field(default_factory=list)
    paste_cmd: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def usable(self) -> bool:
        return bool(self.copy_cmd) and not self.missing


def _has(cmd: str) -> bool:
    return shutil.which(cmd) is not None


def _tools(kind: str, copy_cmd: list[str], paste_cmd: list[str]) -> ClipboardBackend:
    missing = [argv[0] for argv in (copy_cmd, paste_cmd) if not _has(argv[0])]
    return ClipboardBackend(kind, copy_cmd, paste_cmd, sorted(set(missing)))


def detect_backend() -> ClipboardBackend:
    """Pick the clipboard mechanism for this platform and environment."""
    if sys.platform == "darwin":
        return _tools("darwin-pasteboard", ["pbcopy"], ["pbpaste"])

    if sys.platform.startswith("win"):
        return _tools(
            "windows-clip",
            ["clip.exe"],
            ["powershell.exe", "-NoProfile", "-Command", "Get-Clipboard"],
        )

    candidates: list[ClipboardBackend] = []
    if os.environ.get("WAYLAND_DISPLAY"):
        candidates.append(_tools("wayland-wl-copy", ["wl-copy"], ["wl-paste", "--no-newline"]))
    if os.environ.get("DISPLAY"):
        if _has("xclip") or not _has("xsel"):
            candidates.append(
                _tools(
                    "x11-xclip",
                    ["xclip", "-selection", "clipboard"],
                    ["xclip", "-selection", "clipboard", "-o"],
                )
            )
        else:
            candidates.append(
                _tools(
                    "x11-xsel",
                    ["xsel", "--clipboard", "--input"],
                    ["xsel", "--clipboard", "--output"],
                )
            )
    if _has("clip.exe"):
        candidates.append(
            _tools(
                "wsl-clip",
                ["clip.exe"],
                ["powershell.exe", "-NoProfile", "-Command", "Get-Clipboard"],
            )
        )

    for backend in candidates:
        if backend.usable:
            return backend
    return ClipboardBackend("unknown")


class Clipboard:
    """Async read/write access to the local clipboard."""

    def __init__(self, backend: ClipboardBackend | None = None, timeout: float = CLIPBOARD_TIMEOUT):
        self.backend = backend or detect_backend()
        self.timeout = timeout

    def _require(self) -> ClipboardBackend:
        if self.backend.kind == "unknown":
            raise ClipboardError(
                "no clipboard tool found; install wl-clipboard, xclip or xsel"
            )
        if self.backend.missing:
            raise ClipboardError(
                f"clipboard backend {self.backend.kind} is missing: "
                f"{', '.join(self.backend.missing)}"
            )
        return self.backend

    async def read(self) -> bytes:
        """Return the current clipboard content.

        Raises:
            ClipboardError: If the paste command fails or times out.
        """
        backend = self._require()
        try:
            result = await run_process(backend.paste_cmd, timeout=self.timeout)
        except (OSError, asyncio.TimeoutError) as e:
            raise ClipboardError(f"reading clipboard: {e!r}") from e
        if not result.ok:
            raise ClipboardError(f"reading clipboard: {result.stderr_text() or result.returncode}")
        return result.stdout

    async def write(self, data: bytes) -> None:
        """Replace the clipboard content.

        Raises:
            ClipboardError: If the copy command fails or times out.
        """
        backend = self._require()
        try:
            result = await run_process(backend.copy_cmd, stdin=data, timeout=self.timeout)
        except (OSError, asyncio.TimeoutError) as e:
            raise ClipboardError(f"writing clipboard: {e!r}") from e
        if not result.ok:
            raise ClipboardError(f"writing clipboard: {result.stderr_text() or result.returncode}")

    async def clear(self) -> None:
        """Empty the clipboard by copying zero bytes."""
        await self.write(b"")
