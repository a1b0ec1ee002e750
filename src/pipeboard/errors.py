#!/usr/bin/env python3
"""
Exception taxonomy for pipeboard.

Every failure the core can report is a PipeboardError subclass so the
command layer can print a one-line message and exit non-zero without
catching unrelated exceptions. The watch loop splits these into transient
errors (retried with backoff) and fatal errors (end the loop).
"""

from __future__ import annotations


class PipeboardError(Exception):
    """Base class for all pipeboard failures."""


class ConfigError(PipeboardError):
    """Raised when backend, peer, or transform configuration is missing or invalid."""


class BackendUnavailable(PipeboardError):
    """Raised when the slot storage cannot be reached (credentials, network)."""


class EncryptionError(PipeboardError):
    """
    Raised when key derivation or authenticated decryption fails.

    Never falls back to plaintext: a wrong passphrase or a tampered blob
    always surfaces as this error.
    """


class SlotNotFound(PipeboardError):
    """Raised when a named slot does not exist in the backend."""

    def __init__(self, name: str, message: str | None = None):
        self.name = name
        super().__init__(message or f"slot {name!r} not found")


class TTLExpired(SlotNotFound):
    """Raised when a slot exists but is older than its time-to-live."""

    def __init__(self, name: str):
        super().__init__(name, f"slot {name!r} has expired")


class InvalidSlotName(PipeboardError):
    """Raised when a slot name cannot be stored safely."""


class CorruptSlot(PipeboardError):
    """Raised when a stored slot envelope cannot be decoded."""


class PeerUnreachable(PipeboardError):
    """
    Raised when the remote-shell call to a peer fails.

    Carries the peer name and ssh target so the message identifies which
    machine could not be reached.
    """

    def __init__(self, peer_name: str, target: str, detail: str):
        self.peer_name = peer_name
        self.target = target
        self.detail = detail
        super().__init__(f"peer {peer_name!r} ({target}) unreachable: {detail}")


class TransformError(PipeboardError):
    """Raised when a step of a transform chain fails or produces no output."""

    def __init__(self, step_name: str, step_index: int, detail: str):
        self.step_name = step_name
        self.step_index = step_index
        self.detail = detail
        super().__init__(
            f"transform {step_name!r} (step {step_index}) {detail}; content unchanged"
        )


class ConflictError(PipeboardError):
    """Raised (and logged) when both sides of a watch session changed in one tick."""


class ClipboardError(PipeboardError):
    """Raised when the local clipboard adapter cannot read or write."""
