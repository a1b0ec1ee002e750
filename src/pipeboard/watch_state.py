#!/usr/bin/env python3
"""
Fingerprint state for watch-mode loop prevention.

Loop prevention is critical for bidirectional clipboard synchronization to
avoid infinite echo loops. When content is copied from one side to the
other, the receiving side's clipboard changes. Without tracking, the next
poll would see that as a new change and send it straight back.

The state tracks two values:
- last_local_hash: fingerprint of the local clipboard as last observed
- last_remote_hash: fingerprint of the peer clipboard as last observed

Critical ordering: after a successful propagation BOTH fingerprints are set
to the propagated content before the next poll, so the target side reads
back as unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WatchPhase(str, Enum):
    """Watch session lifecycle."""

    IDLE = "idle"
    POLLING = "polling"
    PROPAGATING = "propagating"
    STOPPED = "stopped"


class ChangeKind(str, Enum):
    """What a single poll detected."""

    NONE = "none"
    LOCAL = "local"
    REMOTE = "remote"
    BOTH = "both"


@dataclass
class WatchState:
    """
    Per-session fingerprints and phase.

    Never persisted; created when a watch session starts and discarded on
    exit.

    Attributes:
        phase: Current lifecycle phase.
        last_local_hash: SHA-256 hex digest last seen locally, or None.
        last_remote_hash: SHA-256 hex digest last seen on the peer, or None.
    """

    phase: WatchPhase = WatchPhase.IDLE
    last_local_hash: str | None = None
    last_remote_hash: str | None = None

    def local_changed(self, current_hash: str) -> bool:
        """
        Check whether the local clipboard differs from the last observation.

        An unknown baseline (None) is not a change; the first successful
        read only establishes it.
        """
        return self.last_local_hash is not None and current_hash != self.last_local_hash

    def remote_changed(self, current_hash: str) -> bool:
        """Check whether the peer clipboard differs from the last observation."""
        return self.last_remote_hash is not None and current_hash != self.last_remote_hash

    def classify(self, local_hash: str, remote_hash: str) -> ChangeKind:
        """Combine both comparisons into one ChangeKind."""
        local = self.local_changed(local_hash)
        remote = self.remote_changed(remote_hash)
        if local and remote:
            return ChangeKind.BOTH
        if local:
            return ChangeKind.LOCAL
        if remote:
            return ChangeKind.REMOTE
        return ChangeKind.NONE

    def record_baseline(self, local_hash: str | None, remote_hash: str | None) -> None:
        """Fill in whichever fingerprints are still unknown."""
        if self.last_local_hash is None and local_hash is not None:
            self.last_local_hash = local_hash
        if self.last_remote_hash is None and remote_hash is not None:
            self.last_remote_hash = remote_hash

    def record_propagated(self, hash_value: str) -> None:
        """
        Record content that now sits on both sides.

        CRITICAL: Must be called right after a successful propagation and
        before the next poll, so the target side is not seen as changed.

        Args:
            hash_value: SHA-256 hex digest of the propagated content.
        """
        self.last_local_hash = hash_value
        self.last_remote_hash = hash_value
