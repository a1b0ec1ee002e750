#!/usr/bin/env python3
"""Bidirectional clipboard synchronization with a peer by polling.

Each tick reads the local clipboard and the peer's clipboard, compares both
fingerprints with the last observed ones, and copies whichever side changed
to the other. Only one tick runs at a time and every external call inside a
tick is sequential, so the order of reads and writes is deterministic.

Conflict policy: if both sides changed in the same tick, LOCAL WINS. The
local content is sent to the peer and the overwritten peer content is
reported as a ConflictError (logged at WARNING and recorded in history as
"watch:conflict") rather than discarded silently.

Transient failures (peer unreachable, clipboard tool failing) abort the
current tick with fingerprints untouched and are retried with exponential
backoff via tenacity. Encryption and configuration errors end the loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_when_event_set,
    wait_exponential,
)

from pipeboard.clipboard import Clipboard
from pipeboard.config import PeerConfig
from pipeboard.errors import BackendUnavailable, ClipboardError, ConflictError, PeerUnreachable
from pipeboard.hashing import compute_hash
from pipeboard.history import HistoryTracker
from pipeboard.peer import PeerTransport
from pipeboard.size_format import format_size
from pipeboard.watch_constants import (
    DEFAULT_INTERVAL,
    INITIAL_WAIT,
    MAX_WAIT,
    MIN_INTERVAL,
    WAIT_MULTIPLIER,
)
from pipeboard.watch_state import ChangeKind, WatchPhase, WatchState

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (PeerUnreachable, BackendUnavailable, ClipboardError)


def clamp_interval(interval: float) -> float:
    """Raise intervals below MIN_INTERVAL to the floor."""
    if interval < MIN_INTERVAL:
        logger.warning("Watch interval %.3fs below minimum, using %.1fs", interval, MIN_INTERVAL)
        return MIN_INTERVAL
    return interval


@dataclass
class WatchSession:
    """Everything one watch session needs, passed through the loop.

    Attributes:
        peer: The peer being synchronized with.
        clipboard: Local clipboard access.
        transport: Remote clipboard access.
        state: Fingerprints and phase for this session only.
        interval: Seconds between ticks (floored at MIN_INTERVAL).
        history: Where propagations are recorded, or None.
        notify: Receives one human-readable line per propagation.
    """

    peer: PeerConfig
    clipboard: Clipboard
    transport: PeerTransport
    state: WatchState = field(default_factory=WatchState)
    interval: float = DEFAULT_INTERVAL
    history: HistoryTracker | None = None
    notify: Callable[[str], None] | None = None

    def __post_init__(self) -> None:
        self.interval = clamp_interval(self.interval)


def _record(session: WatchSession, command: str, data: bytes) -> None:
    if session.history is None:
        return
    try:
        session.history.record(command, session.peer.name, len(data), data)
    except OSError as e:
        logger.warning("Could not record %s in history: %s", command, e)


def _notify(session: WatchSession, line: str) -> None:
    logger.info(line)
    if session.notify is not None:
        session.notify(line)


async def prime(session: WatchSession) -> None:
    """Establish baseline fingerprints for whichever sides are readable now."""
    local_hash = remote_hash = None
    try:
        local_hash = compute_hash(await session.clipboard.read())
    except ClipboardError as e:
        logger.warning("Initial local clipboard read failed: %s", e)
    try:
        remote_hash = compute_hash(await session.transport.read_from(session.peer))
    except PeerUnreachable as e:
        logger.warning("Initial read from peer failed: %s", e)
    session.state.record_baseline(local_hash, remote_hash)


async def poll_once(session: WatchSession) -> ChangeKind:
    """
    Run one poll-and-propagate cycle.

    Returns:
        What was detected and acted on.

    Raises:
        PeerUnreachable, ClipboardError: Transient; fingerprints unchanged.
    """
    state = session.state
    state.phase = WatchPhase.POLLING
    try:
        local = await session.clipboard.read()
        local_hash = compute_hash(local)
        remote = await session.transport.read_from(session.peer)
        remote_hash = compute_hash(remote)

        change = state.classify(local_hash, remote_hash)
        if change is ChangeKind.NONE:
            state.record_baseline(local_hash, remote_hash)
            return change
        if change is ChangeKind.BOTH and local_hash == remote_hash:
            # Both sides moved to the same content; nothing to copy.
            state.record_propagated(local_hash)
            return ChangeKind.NONE

        state.phase = WatchPhase.PROPAGATING
        if change is ChangeKind.REMOTE:
            await session.clipboard.write(remote)
            state.record_propagated(remote_hash)
            _record(session, "watch:recv", remote)
            _notify(session, f"← received {format_size(len(remote))} from {session.peer.name}")
            return change

        if change is ChangeKind.BOTH:
            conflict = ConflictError(
                f"both clipboards changed; keeping local {format_size(len(local))}, "
                f"overwriting {format_size(len(remote))} on {session.peer.name}"
            )
            logger.warning("%s", conflict)
            _record(session, "watch:conflict", remote)

        await session.transport.send_to(session.peer, local)
        state.record_propagated(local_hash)
        _record(session, "watch:send", local)
        _notify(session, f"→ sent {format_size(len(local))} to {session.peer.name}")
        return change
    finally:
        state.phase = WatchPhase.IDLE


async def sleep_or_shutdown(shutdown: asyncio.Event, seconds: float) -> None:
    """Sleep for seconds, returning early if shutdown is set."""
    with suppress(asyncio.TimeoutError):
        await asyncio.wait_for(shutdown.wait(), timeout=seconds)


async def poll_with_backoff(session: WatchSession, shutdown: asyncio.Event) -> ChangeKind | None:
    """
    Run poll_once, retrying transient failures with exponential backoff.

    Returns:
        The ChangeKind of the successful poll, or None if shutdown was
        requested before one succeeded.
    """

    async def attempt() -> ChangeKind | None:
        if shutdown.is_set():
            return None
        return await poll_once(session)

    async def interruptible_sleep(seconds: float) -> None:
        await sleep_or_shutdown(shutdown, seconds)

    retrying = AsyncRetrying(
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        wait=wait_exponential(
            multiplier=INITIAL_WAIT, exp_base=WAIT_MULTIPLIER, min=INITIAL_WAIT, max=MAX_WAIT
        ),
        stop=stop_when_event_set(shutdown),
        sleep=interruptible_sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    try:
        return await retrying(attempt)
    except TRANSIENT_ERRORS:
        if shutdown.is_set():
            return None
        raise


async def run_watch(session: WatchSession, shutdown: asyncio.Event) -> None:
    """
    Synchronize until shutdown is set.

    The shutdown event is checked between ticks; a tick in progress always
    completes, so no clipboard write is left half-done.

    Raises:
        EncryptionError, ConfigError: Fatal; the loop stops.
    """
    try:
        await prime(session)
        while not shutdown.is_set():
            await poll_with_backoff(session, shutdown)
            await sleep_or_shutdown(shutdown, session.interval)
    finally:
        session.state.phase = WatchPhase.STOPPED
