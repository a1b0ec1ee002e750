#!/usr/bin/env python3
"""Local filesystem slot store for single-machine use, USB drives, or NAS mounts."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Optional

from pipeboard.atomic_file import atomic_write
from pipeboard.config_loader import config_home
from pipeboard.errors import (
    BackendUnavailable,
    CorruptSlot,
    InvalidSlotName,
    SlotNotFound,
    TTLExpired,
)
from pipeboard.slot_payload import (
    decode_envelope,
    encode_slot,
    is_expired,
    open_payload,
    utc_now,
    validate_slot_name,
)
from pipeboard.slot_store import SLOT_SUFFIX, SlotInfo, SlotStore

logger = logging.getLogger(__name__)


def default_slot_dir() -> Path:
    """Return ~/.config/pipeboard/slots (honouring XDG_CONFIG_HOME)."""
    return config_home() / "slots"


class LocalSlotStore(SlotStore):
    """Directory of <name>.pb JSON envelopes."""

    def __init__(
        self,
        path: Path,
        passphrase: Optional[str] = None,
        ttl_days: int = 0,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.path = path
        self.passphrase = passphrase
        self.ttl_days = ttl_days
        self._clock = clock
        try:
            self.path.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise BackendUnavailable(f"creating slot directory {path}: {e}") from e

    @property
    def name(self) -> str:
        return "local"

    def _slot_path(self, slot: str) -> Path:
        validate_slot_name(slot)
        return self.path / f"{slot}{SLOT_SUFFIX}"

    def push(self, name: str, data: bytes, meta: dict[str, str]) -> None:
        target = self._slot_path(name)
        raw = encode_slot(
            data,
            meta,
            passphrase=self.passphrase,
            ttl_days=self.ttl_days,
            now=self._clock(),
        )
        try:
            atomic_write(target, raw)
        except OSError as e:
            raise BackendUnavailable(f"writing slot {name!r}: {e}") from e
        logger.debug("Wrote slot %s (%d bytes on disk)", target, len(raw))

    def pull(self, name: str) -> tuple[bytes, dict[str, str]]:
        target = self._slot_path(name)
        try:
            raw = target.read_bytes()
        except FileNotFoundError:
            raise SlotNotFound(name) from None
        except OSError as e:
            raise BackendUnavailable(f"reading slot {name!r}: {e}") from e

        payload = decode_envelope(raw, name)
        if is_expired(payload, self.ttl_days, self._clock()):
            logger.info("Slot %s expired, deleting", name)
            self.delete(name)
            raise TTLExpired(name)
        return open_payload(payload, name, self.passphrase)

    def list(self) -> list[SlotInfo]:
        slots: list[SlotInfo] = []
        now = self._clock()
        try:
            entries = list(self.path.glob(f"*{SLOT_SUFFIX}"))
        except OSError as e:
            raise BackendUnavailable(f"reading slot directory {self.path}: {e}") from e

        for entry in entries:
            name = entry.name[: -len(SLOT_SUFFIX)]
            try:
                validate_slot_name(name)
            except InvalidSlotName:
                logger.debug("Skipping foreign file %s", entry.name)
                continue
            try:
                payload = decode_envelope(entry.read_bytes(), name)
            except (OSError, CorruptSlot) as e:
                logger.warning("Skipping unreadable slot %s: %s", entry.name, e)
                continue
            if is_expired(payload, self.ttl_days, now):
                logger.info("Slot %s expired, deleting", name)
                self.delete(name)
                continue
            slots.append(
                SlotInfo(
                    name=name,
                    size=payload.len,
                    created_at=payload.created_at,
                    expires_at=payload.expires_at,
                )
            )
        return slots

    def delete(self, name: str) -> None:
        target = self._slot_path(name)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise BackendUnavailable(f"deleting slot {name!r}: {e}") from e
