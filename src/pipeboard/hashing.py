#!/usr/bin/env python3
"""
SHA-256 content fingerprints.

Used by the watch loop to detect clipboard changes on either side without
keeping the content itself, and by the history log to recognise repeated
content.
"""
import hashlib

__all__ = ["compute_hash"]


def compute_hash(data: bytes) -> str:
    """
    Compute SHA-256 hash of clipboard content.

    Args:
        data: Raw clipboard content bytes to hash.

    Returns:
        Hexadecimal string representation of the SHA-256 digest.
    """
    return hashlib.sha256(data).hexdigest()
