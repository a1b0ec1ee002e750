#!/usr/bin/env python3
"""Transform pipeline: run a chain of external processors over a buffer.

Each step receives the previous step's stdout on its stdin. A step is either
an argv list (run directly, no shell) or a shell string (run with `sh -c`).

The chain is all-or-nothing. If any step exits non-zero, times out, cannot
be started, or produces empty output, the chain raises TransformError naming
that step and the caller's original buffer is what remains. The pipeline
only ever sees buffers; writing the result to a clipboard or slot is the
caller's job, which is what makes a failed chain leave the target untouched.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from pipeboard.config import Config
from pipeboard.errors import TransformError
from pipeboard.process import run_process, shell_argv

logger = logging.getLogger(__name__)

# Seconds allowed for one transform step.
TRANSFORM_TIMEOUT: float = 60.0

# Longest description shown by `fx --list` before truncation.
DESCRIPTION_WIDTH: int = 50


@dataclass(frozen=True)
class Transform:
    """A named external data processor.

    Attributes:
        name: Key under `fx:` in the configuration.
        cmd: argv list, run without a shell.
        shell: Shell command string, run with `sh -c`.
        description: Free text for listings.
    """

    name: str
    cmd: tuple[str, ...] = ()
    shell: str = ""
    description: str = ""

    def argv(self) -> list[str]:
        if self.shell:
            return shell_argv(self.shell)
        return list(self.cmd)

    def summary(self) -> str:
        """Description for listings, derived from the command if unset."""
        text = self.description
        if not text:
            text = f"sh -c {self.shell!r}" if self.shell else " ".join(self.cmd)
            if len(text) > DESCRIPTION_WIDTH:
                text = text[: DESCRIPTION_WIDTH - 3] + "..."
        return text


def load_transforms(config: Config) -> dict[str, Transform]:
    """Build Transform objects for every configured fx entry."""
    return {
        name: Transform(
            name=name,
            cmd=tuple(fx.cmd or ()),
            shell=fx.shell or "",
            description=fx.description,
        )
        for name, fx in config.fx.items()
    }


def resolve_chain(config: Config, names: list[str]) -> list[Transform]:
    """
    Look up each named transform, failing before anything runs.

    Raises:
        ConfigError: If any name is not configured.
    """
    transforms = load_transforms(config)
    for name in names:
        config.get_fx(name)
    return [transforms[name] for name in names]


async def run_transform(
    transform: Transform, data: bytes, index: int = 1, timeout: float = TRANSFORM_TIMEOUT
) -> bytes:
    """
    Run one step with data on stdin.

    Args:
        transform: The step to run.
        data: Input bytes.
        index: 1-based position in the chain, for error messages.
        timeout: Seconds before the step is killed.

    Returns:
        The step's stdout.

    Raises:
        TransformError: On start failure, timeout, non-zero exit, or empty
            output.
    """
    argv = transform.argv()
    try:
        result = await run_process(argv, stdin=data, timeout=timeout)
    # TimeoutError subclasses OSError on Python 3.11+.
    except asyncio.TimeoutError as e:
        raise TransformError(transform.name, index, f"timed out after {timeout:g}s") from e
    except FileNotFoundError as e:
        raise TransformError(transform.name, index, f"could not start {argv[0]!r}") from e
    except OSError as e:
        raise TransformError(transform.name, index, f"could not start: {e}") from e

    if not result.ok:
        detail = f"failed with exit status {result.returncode}"
        stderr = result.stderr_text()
        if stderr:
            detail = f"{detail}: {stderr}"
        raise TransformError(transform.name, index, detail)
    if not result.stdout:
        raise TransformError(transform.name, index, "produced empty output")
    return result.stdout


async def run_chain(
    data: bytes,
    chain: list[Transform],
    dry_run: bool = False,
    timeout: float = TRANSFORM_TIMEOUT,
) -> bytes:
    """
    Pipe data through every transform in order.

    dry_run does not change how the chain runs; it is carried so callers
    and logs can tell a preview from a real run. The caller decides whether
    the result is displayed or written.

    Args:
        data: Original input; never modified.
        chain: Steps to run, in order.
        dry_run: True when the result will only be displayed.
        timeout: Per-step timeout in seconds.

    Returns:
        The final step's output.

    Raises:
        TransformError: From the first failing step.
    """
    result = data
    for index, transform in enumerate(chain, start=1):
        result = await run_transform(transform, result, index, timeout)
        logger.debug("fx %s (step %d): %d bytes", transform.name, index, len(result))
    logger.debug(
        "fx chain %s finished%s: %d -> %d bytes",
        chain_label(chain), " (dry run)" if dry_run else "", len(data), len(result),
    )
    return result


def chain_label(chain: list[Transform]) -> str:
    """Render a chain as 'a → b → c'."""
    return " → ".join(transform.name for transform in chain)
