#!/usr/bin/env python3
"""
Slot storage backends: where named clipboard payloads live.

Each backend knows how to push, pull, list, and delete slots. Exactly one
is chosen at startup from configuration by create_store().

Local: a directory of <name>.pb envelopes, written atomically.
Object store: S3 (or compatible) keys <prefix>/<name>.pb via boto3.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pipeboard.config import SyncBackendType, SyncConfig
from pipeboard.errors import ConfigError

logger = logging.getLogger(__name__)

SLOT_SUFFIX = ".pb"


@dataclass
class SlotInfo:
    """Listing entry for a stored slot."""

    name: str
    size: int
    created_at: datetime
    expires_at: Optional[datetime] = None


class SlotStore(ABC):
    """Abstract slot storage backend."""

    @abstractmethod
    def push(self, name: str, data: bytes, meta: dict[str, str]) -> None:
        """Store data under name, replacing any existing slot atomically.

        Raises:
            InvalidSlotName: If name is not a safe slot name.
            EncryptionError: If encryption fails (nothing is written).
            BackendUnavailable: If the storage cannot be reached.
        """

    @abstractmethod
    def pull(self, name: str) -> tuple[bytes, dict[str, str]]:
        """Fetch and decode a slot.

        Raises:
            SlotNotFound: If the slot does not exist.
            TTLExpired: If the slot has outlived its TTL (it is deleted).
            EncryptionError: If decryption fails.
            BackendUnavailable: If the storage cannot be reached.
        """

    @abstractmethod
    def list(self) -> list[SlotInfo]:
        """Enumerate live slots. Order is not specified."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove a slot. Deleting a missing slot is not an error."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name."""


def _passphrase_for(sync: SyncConfig) -> Optional[str]:
    if not sync.encrypted:
        return None
    if not sync.passphrase:
        raise ConfigError("sync.passphrase is required when sync.encryption is aes256")
    return sync.passphrase


def create_store(sync: SyncConfig) -> SlotStore:
    """
    Build the configured backend.

    Args:
        sync: The sync section of the configuration.

    Returns:
        A LocalSlotStore or S3SlotStore.

    Raises:
        ConfigError: If no backend is configured, required settings are
            missing, or encryption is enabled without a passphrase.
    """
    passphrase = _passphrase_for(sync)

    if sync.backend is None:
        raise ConfigError(
            "sync.backend not configured (set it to 'local' or 'object-store')"
        )
    if sync.backend == SyncBackendType.LOCAL:
        from pipeboard.slot_store_local import LocalSlotStore, default_slot_dir

        path = sync.local.path.expanduser() if sync.local.path else default_slot_dir()
        return LocalSlotStore(path, passphrase=passphrase, ttl_days=sync.ttl_days)

    from pipeboard.slot_store_s3 import S3SlotStore, make_s3_client

    if not sync.s3.bucket:
        raise ConfigError("sync.s3.bucket is required for the object-store backend")
    if not sync.s3.region and not sync.s3.endpoint_url:
        raise ConfigError("sync.s3.region is required for the object-store backend")
    return S3SlotStore(
        make_s3_client(sync.s3),
        bucket=sync.s3.bucket,
        prefix=sync.s3.prefix,
        sse=sync.s3.sse,
        passphrase=passphrase,
        ttl_days=sync.ttl_days,
    )
