#!/usr/bin/env python3
"""
Operation history log.

Every mutating command appends one entry (time, command, target, size) to a
JSON file. After each append, retention is applied in this order:

1. ttl_days: entries older than the TTL are dropped.
2. no_duplicates: every earlier entry with the same (target, size,
   content signature) as the new one is dropped, across ALL retained
   entries, so the newest occurrence is the one kept. The command is not
   part of the key: `pull kube` of the same content replaces an earlier
   `push kube` entry.
3. limit: only the newest `limit` entries are kept.

The whole file is rewritten atomically on each update. There is no
cross-process lock; two pipeboard processes recording at the same moment
may lose one of the two entries.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from pipeboard.atomic_file import atomic_write
from pipeboard.config import HistoryConfig
from pipeboard.config_loader import config_home
from pipeboard.hashing import compute_hash
from pipeboard.slot_payload import utc_now

logger = logging.getLogger(__name__)

SLOT_COMMANDS = frozenset({"push", "pull", "show", "rm"})
PEER_COMMANDS = frozenset({"send", "recv", "peek", "watch:send", "watch:recv", "watch:conflict"})
FX_PREFIX = "fx:"


class HistoryEntry(BaseModel):
    """One recorded operation."""

    timestamp: datetime
    command: str
    target: str = ""
    size: int = 0
    signature: Optional[str] = None

    def duplicate_key(self) -> tuple[str, int, Optional[str]]:
        """Identity used by no_duplicates: (target, size, signature), any command."""
        return (self.target, self.size, self.signature)


_ENTRIES = TypeAdapter(list[HistoryEntry])


def default_history_path() -> Path:
    """Return ~/.config/pipeboard/history.json (honouring XDG_CONFIG_HOME)."""
    return config_home() / "history.json"


def is_slot_command(command: str) -> bool:
    return command in SLOT_COMMANDS


def is_peer_command(command: str) -> bool:
    return command in PEER_COMMANDS


def is_fx_command(command: str) -> bool:
    return command.startswith(FX_PREFIX)


class HistoryTracker:
    """Append-only, bounded log of pipeboard operations."""

    def __init__(
        self,
        path: Optional[Path] = None,
        config: Optional[HistoryConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.path = path or default_history_path()
        self.config = config or HistoryConfig()
        self._clock = clock

    def _load(self) -> list[HistoryEntry]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        try:
            return _ENTRIES.validate_json(raw)
        except ValidationError as e:
            logger.warning("History file %s is unreadable, starting fresh: %s", self.path, e)
            return []

    def _save(self, entries: list[HistoryEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = json.dumps(
            [entry.model_dump(mode="json", exclude_none=True) for entry in entries],
            indent=2,
        )
        atomic_write(self.path, data.encode("utf-8"))

    def _apply_ttl(self, entries: list[HistoryEntry], now: datetime) -> list[HistoryEntry]:
        if self.config.ttl_days <= 0:
            return entries
        cutoff = now - timedelta(days=self.config.ttl_days)
        return [entry for entry in entries if entry.timestamp > cutoff]

    def record(
        self,
        command: str,
        target: str = "",
        size: int = 0,
        content: Optional[bytes] = None,
    ) -> HistoryEntry:
        """
        Append an entry and apply retention.

        Args:
            command: Command name, e.g. "push" or "fx:upper".
            target: Slot or peer name, empty when not applicable.
            size: Payload size in bytes.
            content: Payload bytes; only its SHA-256 is stored, for
                duplicate detection.

        Returns:
            The entry that was recorded.

        Raises:
            OSError: If the history file cannot be written.
        """
        now = self._clock()
        entry = HistoryEntry(
            timestamp=now,
            command=command,
            target=target,
            size=size,
            signature=compute_hash(content) if content is not None else None,
        )
        entries = self._apply_ttl(self._load(), now)

        if self.config.no_duplicates:
            key = entry.duplicate_key()
            entries = [e for e in entries if e.duplicate_key() != key]

        entries.append(entry)
        entries = entries[-self.config.limit:]
        self._save(entries)
        return entry

    def entries(self) -> list[HistoryEntry]:
        """Return retained entries, oldest first, with TTL applied on read."""
        return self._apply_ttl(self._load(), self._clock())
