#!/usr/bin/env python3
"""
Object-store slot backend (Amazon S3 or an S3-compatible endpoint).

Slots are stored as <prefix>/<name>.pb keys, one PUT per push, so readers
see either the previous object or the complete new one. Transient request
failures are retried with exponential backoff via tenacity; authorization
and missing-key errors fail immediately.

Bucket lifecycle rules may also expire slots, but nothing here relies on
them: age is re-checked on every pull and list.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from pipeboard.config import S3Config
from pipeboard.errors import BackendUnavailable, InvalidSlotName, SlotNotFound, TTLExpired
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

# Attempts per request, including the first.
MAX_ATTEMPTS: int = 3

# Error codes that retrying cannot fix.
NON_TRANSIENT_CODES = frozenset({
    "NoSuchKey",
    "NoSuchBucket",
    "AccessDenied",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "404",
})

_SSE_VALUES = {"AES256", "aws:kms"}


def make_s3_client(config: S3Config) -> Any:
    """
    Create a boto3 S3 client from configuration.

    Uses the named profile when given; otherwise boto3's default credential
    chain (environment, shared config, instance role).

    Raises:
        BackendUnavailable: If the session cannot be created.
    """
    import boto3

    try:
        session = boto3.Session(
            profile_name=config.profile or None,
            region_name=config.region or None,
        )
        return session.client("s3", endpoint_url=config.endpoint_url or None)
    except BotoCoreError as e:
        raise BackendUnavailable(f"creating S3 client: {e}") from e


def _error_code(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return ""


def is_transient(exc: BaseException) -> bool:
    """Return True for failures worth retrying (network, throttling, 5xx)."""
    if isinstance(exc, ClientError):
        return _error_code(exc) not in NON_TRANSIENT_CODES
    if isinstance(exc, NoCredentialsError):
        return False
    return isinstance(exc, BotoCoreError)


class S3SlotStore(SlotStore):
    """Slots as JSON envelopes in an S3 bucket."""

    def __init__(
        self,
        client: Any,
        bucket: str,
        prefix: str = "",
        sse: Optional[str] = None,
        passphrase: Optional[str] = None,
        ttl_days: int = 0,
        clock: Callable[[], datetime] = utc_now,
        wait: Any = None,
    ):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix
        self.sse = sse if sse in _SSE_VALUES else None
        self.passphrase = passphrase
        self.ttl_days = ttl_days
        self._clock = clock
        self._wait = wait or (wait_exponential(multiplier=1, min=1, max=8) + wait_random(0, 1))

    @property
    def name(self) -> str:
        return "object-store"

    def _key(self, slot: str) -> str:
        validate_slot_name(slot)
        return posixpath.join(self.prefix, f"{slot}{SLOT_SUFFIX}")

    def _list_prefix(self) -> str:
        return self.prefix.rstrip("/") + "/" if self.prefix else ""

    def _slot_name(self, key: str) -> Optional[str]:
        """Map a listed key back to a slot name, or None if it is not one of ours."""
        prefix = self._list_prefix()
        if not key.startswith(prefix):
            return None
        rest = key[len(prefix):]
        if not rest.endswith(SLOT_SUFFIX) or "/" in rest:
            return None
        name = rest[: -len(SLOT_SUFFIX)]
        try:
            validate_slot_name(name)
        except InvalidSlotName:
            return None
        return name

    def _call(self, description: str, fn: Callable[[], Any]) -> Any:
        """Run one S3 request with retry, mapping botocore errors."""
        retrying = Retrying(
            retry=retry_if_exception(is_transient),
            wait=self._wait,
            stop=stop_after_attempt(MAX_ATTEMPTS),
            reraise=True,
        )
        try:
            return retrying(fn)
        except ClientError as e:
            raise BackendUnavailable(f"{description}: {e}") from e
        except BotoCoreError as e:
            raise BackendUnavailable(f"{description}: {e}") from e

    def push(self, name: str, data: bytes, meta: dict[str, str]) -> None:
        key = self._key(name)
        body = encode_slot(
            data,
            meta,
            passphrase=self.passphrase,
            ttl_days=self.ttl_days,
            now=self._clock(),
        )
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": "application/json",
        }
        if self.sse:
            params["ServerSideEncryption"] = self.sse
        self._call(f"uploading slot {name!r}", lambda: self.client.put_object(**params))
        logger.debug("Uploaded s3://%s/%s (%d bytes)", self.bucket, key, len(body))

    def _fetch(self, name: str, key: str) -> bytes:
        def get() -> bytes:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()

        try:
            return self._call(f"fetching slot {name!r}", get)
        except BackendUnavailable as e:
            if _error_code(e.__cause__) in ("NoSuchKey", "404"):
                raise SlotNotFound(name) from None
            raise

    def pull(self, name: str) -> tuple[bytes, dict[str, str]]:
        key = self._key(name)
        payload = decode_envelope(self._fetch(name, key), name)
        if is_expired(payload, self.ttl_days, self._clock()):
            logger.info("Slot %s expired, deleting", name)
            self.delete(name)
            raise TTLExpired(name)
        return open_payload(payload, name, self.passphrase)

    def _pages(self) -> list[dict]:
        def collect() -> list[dict]:
            paginator = self.client.get_paginator("list_objects_v2")
            objects: list[dict] = []
            for page in paginator.paginate(Bucket=self.bucket, Prefix=self._list_prefix()):
                objects.extend(page.get("Contents", []))
            return objects

        return self._call("listing slots", collect)

    def list(self) -> list[SlotInfo]:
        # Expiry here uses LastModified against the configured TTL; a
        # per-object expires_at stamp is only seen on pull, which would
        # otherwise need one GET per slot.
        now = self._clock()
        slots: list[SlotInfo] = []
        for obj in self._pages():
            name = self._slot_name(obj["Key"])
            if name is None:
                logger.debug("Skipping foreign key %s", obj["Key"])
                continue
            created = obj["LastModified"]
            if self.ttl_days > 0 and now - created >= timedelta(days=self.ttl_days):
                logger.info("Slot %s expired, deleting", name)
                self.delete(name)
                continue
            expires = created + timedelta(days=self.ttl_days) if self.ttl_days > 0 else None
            slots.append(
                SlotInfo(name=name, size=int(obj.get("Size", 0)), created_at=created, expires_at=expires)
            )
        return slots

    def delete(self, name: str) -> None:
        key = self._key(name)
        self._call(
            f"deleting slot {name!r}",
            lambda: self.client.delete_object(Bucket=self.bucket, Key=key),
        )
