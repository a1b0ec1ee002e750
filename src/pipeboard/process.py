#!/usr/bin/env python3
"""
Call-and-capture subprocess primitive.

Every external program pipeboard talks to (clipboard tools, ssh, transform
commands) is run the same way: argv plus stdin bytes in, stdout, stderr and
exit status out, with a timeout. Nothing keeps a process or connection open
between calls.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Default ceiling for a single external call in seconds.
DEFAULT_TIMEOUT: float = 30.0


@dataclass
class ProcessResult:
    """Captured outcome of one subprocess run."""

    stdout: bytes
    stderr: bytes
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace").strip()


def shell_argv(command: str) -> list[str]:
    """Wrap a shell string so it is interpreted by a POSIX shell."""
    return ["sh", "-c", command]


async def run_process(
    argv: list[str],
    stdin: bytes | None = None,
    timeout: float | None = DEFAULT_TIMEOUT,
) -> ProcessResult:
    """
    Run argv to completion, feeding stdin and capturing both output streams.

    Args:
        argv: Program and arguments; no shell interpretation.
        stdin: Bytes for the child's standard input, or None for /dev/null.
        timeout: Seconds before the child is killed; None waits forever.

    Returns:
        ProcessResult with the child's output and exit status.

    Raises:
        FileNotFoundError: If the program does not exist.
        asyncio.TimeoutError: If the child outlives the timeout (it is killed).
    """
    logger.debug("Running %s (%d bytes stdin)", argv[0], len(stdin or b""))
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(stdin), timeout=timeout)
    except asyncio.TimeoutError:
        with suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        raise
    return ProcessResult(stdout=stdout, stderr=stderr, returncode=proc.returncode or 0)
