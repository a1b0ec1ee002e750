#!/usr/bin/env python3
"""Shared collaborators for command handlers.

Groups what every command needs: the parsed configuration, the local
clipboard, the history log, and (built on first use) the slot store and
peer transport. Commands receive one AppContext instead of reaching for
globals, which keeps each handler testable with mocks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from pipeboard.clipboard import Clipboard
from pipeboard.config import Config
from pipeboard.history import HistoryTracker
from pipeboard.peer import PeerTransport
from pipeboard.slot_store import SlotStore, create_store

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Collaborators for one CLI invocation.

    Attributes:
        config: Parsed configuration.
        clipboard: Local clipboard access.
        history: Operation log.
        transport: Remote-shell transport for peers.
        store: Slot store; created from config on first access when unset.
    """

    config: Config
    clipboard: Clipboard = field(default_factory=Clipboard)
    history: Optional[HistoryTracker] = None
    transport: PeerTransport = field(default_factory=PeerTransport)
    store: Optional[SlotStore] = None

    def __post_init__(self) -> None:
        if self.history is None:
            self.history = HistoryTracker(config=self.config.history)

    def slot_store(self) -> SlotStore:
        """Return the configured slot store, creating it once.

        Raises:
            ConfigError: If the sync section is incomplete.
        """
        if self.store is None:
            self.store = create_store(self.config.sync)
            logger.debug("Using %s slot store", self.store.name)
        return self.store

    def record(self, command: str, target: str = "", size: int = 0, content: bytes | None = None) -> None:
        """Append to history; a write failure is logged, never raised."""
        try:
            self.history.record(command, target, size, content)
        except OSError as e:
            logger.warning("Could not record %s in history: %s", command, e)
