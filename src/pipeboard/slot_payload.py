#!/usr/bin/env python3
"""
JSON envelope for stored slots.

A slot on disk or in the object store is a small JSON document: metadata
(creation time, source host, original length, MIME type, flags) plus the
payload as base64. The payload is transformed in this order on push:

    raw -> gzip (only if > 1 KiB and smaller) -> AES-256-GCM (if enabled) -> base64

and reversed on pull. Encoding is done entirely in memory, so a failed
encryption can never leave a partial slot behind.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import platform
import re
import socket
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ValidationError

from pipeboard.crypto import decrypt, encrypt
from pipeboard.errors import CorruptSlot, EncryptionError, InvalidSlotName

PAYLOAD_VERSION: int = 1

# Payloads at or below this size are stored uncompressed.
COMPRESS_THRESHOLD: int = 1024

_SLOT_NAME_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]*$")

_MAGIC_MIME = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/x-gzip"),
)


class SlotPayload(BaseModel):
    """Wire format of a stored slot."""

    version: int = PAYLOAD_VERSION
    created_at: datetime
    expires_at: Optional[datetime] = None
    hostname: str = ""
    os: str = ""
    len: int
    mime: str = "application/octet-stream"
    encrypted: bool = False
    compressed: bool = False
    data_b64: str


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def validate_slot_name(name: str) -> None:
    """
    Reject slot names that are empty or could escape the slot namespace.

    Raises:
        InvalidSlotName: If name contains path separators, starts with a
            dot, or uses characters outside [A-Za-z0-9._-].
    """
    if not name or not _SLOT_NAME_RE.match(name):
        raise InvalidSlotName(
            f"invalid slot name {name!r}: use letters, digits, '.', '_' or '-'"
        )


def detect_mime(data: bytes) -> str:
    """Guess a MIME type from leading bytes; text if it decodes as UTF-8."""
    if not data:
        return "text/plain; charset=utf-8"
    for magic, mime in _MAGIC_MIME:
        if data.startswith(magic):
            return mime
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def encode_slot(
    data: bytes,
    meta: dict[str, str],
    passphrase: Optional[str] = None,
    ttl_days: int = 0,
    now: Optional[datetime] = None,
) -> bytes:
    """
    Build the serialized envelope for a slot.

    Args:
        data: Raw clipboard bytes.
        meta: Caller metadata; "hostname" is honoured if present.
        passphrase: Encrypt the payload when given.
        ttl_days: Stamp an expiry this many days ahead when > 0.
        now: Creation time, for tests.

    Returns:
        UTF-8 JSON bytes ready to be written in one operation.

    Raises:
        EncryptionError: If encryption fails; nothing has been written.
    """
    now = now or utc_now()
    store = data
    compressed = False
    if len(data) > COMPRESS_THRESHOLD:
        packed = gzip.compress(data)
        if len(packed) < len(data):
            store = packed
            compressed = True

    encrypted = False
    if passphrase:
        store = encrypt(store, passphrase)
        encrypted = True

    payload = SlotPayload(
        created_at=now,
        expires_at=now + timedelta(days=ttl_days) if ttl_days > 0 else None,
        hostname=meta.get("hostname") or socket.gethostname(),
        os=platform.system().lower(),
        len=len(data),
        mime=detect_mime(data),
        encrypted=encrypted,
        compressed=compressed,
        data_b64=base64.b64encode(store).decode("ascii"),
    )
    return payload.model_dump_json(exclude_none=True).encode("utf-8")


def decode_envelope(raw: bytes, name: str) -> SlotPayload:
    """
    Parse stored bytes into a SlotPayload without touching the payload.

    Raises:
        CorruptSlot: If the JSON is malformed or fields are missing.
    """
    try:
        return SlotPayload.model_validate_json(raw)
    except ValidationError as e:
        raise CorruptSlot(f"slot {name!r} is corrupt: {e}") from e


def is_expired(
    payload: SlotPayload, ttl_days: int = 0, now: Optional[datetime] = None
) -> bool:
    """
    Check both the stamped expiry and the reader's configured TTL.

    Args:
        payload: Decoded envelope.
        ttl_days: Reader-side TTL; 0 disables the age check.
        now: Current time, for tests.
    """
    now = now or utc_now()
    if payload.expires_at is not None and now >= payload.expires_at:
        return True
    if ttl_days > 0 and now - payload.created_at >= timedelta(days=ttl_days):
        return True
    return False


def open_payload(
    payload: SlotPayload, name: str, passphrase: Optional[str] = None
) -> tuple[bytes, dict[str, str]]:
    """
    Recover the original bytes and metadata from an envelope.

    Args:
        payload: Decoded envelope.
        name: Slot name, for error messages.
        passphrase: Required if the payload is encrypted.

    Returns:
        (data, meta) where meta has hostname, os, created_at, mime, size
        and, if set, expires_at.

    Raises:
        EncryptionError: If the slot is encrypted and no passphrase is
            configured, or decryption fails.
        CorruptSlot: If base64 or gzip decoding fails.
    """
    try:
        data = base64.b64decode(payload.data_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CorruptSlot(f"slot {name!r} has invalid base64 data") from e

    if payload.encrypted:
        if not passphrase:
            raise EncryptionError(
                f"slot {name!r} is encrypted but no passphrase is configured"
            )
        data = decrypt(data, passphrase)

    if payload.compressed:
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError) as e:
            raise CorruptSlot(f"slot {name!r} failed to decompress") from e

    meta = {
        "hostname": payload.hostname,
        "os": payload.os,
        "created_at": payload.created_at.isoformat(),
        "mime": payload.mime,
        "size": str(payload.len),
    }
    if payload.expires_at is not None:
        meta["expires_at"] = payload.expires_at.isoformat()
    return data, meta
