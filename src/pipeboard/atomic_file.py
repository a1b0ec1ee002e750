#!/usr/bin/env python3
"""Crash-safe file replacement shared by the slot store and history log."""

from __future__ import annotations

import os
import tempfile
from contextlib import suppress
from pathlib import Path


def atomic_write(path: Path, data: bytes, mode: int = 0o600) -> None:
    """
    Write data to path so readers see either the old or the new file.

    Writes a temp file in the same directory, fsyncs it, then renames it
    over the destination. There is no cross-process locking: two writers
    racing on the same path each succeed and the last rename wins.

    Args:
        path: Destination file; its directory must exist.
        data: Full new contents.
        mode: Permission bits for the new file.

    Raises:
        OSError: If any step fails; the temp file is removed.
    """
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        with suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise
