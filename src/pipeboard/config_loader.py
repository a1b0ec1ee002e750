#!/usr/bin/env python3
"""Locate, parse, and validate the pipeboard YAML configuration."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from pipeboard.config import Config
from pipeboard.errors import ConfigError

logger = logging.getLogger(__name__)

# Environment variable -> (section, key) for scalar overrides.
_SYNC_OVERRIDES = {
    "PIPEBOARD_BACKEND": "backend",
    "PIPEBOARD_PASSPHRASE": "passphrase",
}
_S3_OVERRIDES = {
    "PIPEBOARD_S3_BUCKET": "bucket",
    "PIPEBOARD_S3_REGION": "region",
    "PIPEBOARD_S3_PREFIX": "prefix",
    "PIPEBOARD_S3_PROFILE": "profile",
    "PIPEBOARD_S3_SSE": "sse",
}


def config_home() -> Path:
    """Return the pipeboard directory under XDG_CONFIG_HOME (or ~/.config)."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "pipeboard"


def config_path() -> Path:
    """Return the config file path, honouring PIPEBOARD_CONFIG."""
    override = os.environ.get("PIPEBOARD_CONFIG")
    if override:
        return Path(override)
    return config_home() / "config.yaml"


def _migrate_legacy(data: dict) -> dict:
    """Move a top-level backend/s3 layout under the sync section."""
    if "backend" not in data and "s3" not in data:
        return data
    sync = dict(data.get("sync") or {})
    if "backend" in data:
        sync.setdefault("backend", data.pop("backend"))
    if "s3" in data:
        sync.setdefault("s3", data.pop("s3"))
    data["sync"] = sync
    logger.debug("Migrated legacy top-level backend config into 'sync'")
    return data


def _apply_env_overrides(data: dict) -> dict:
    sync = dict(data.get("sync") or {})
    s3 = dict(sync.get("s3") or {})
    for env_name, key in _SYNC_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            sync[key] = value
    for env_name, key in _S3_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            s3[key] = value
    if s3.get("bucket") and not sync.get("backend"):
        sync["backend"] = "object-store"
    if s3:
        sync["s3"] = s3
    if sync:
        data["sync"] = sync
    return data


def parse_config(data: Optional[dict]) -> Config:
    """
    Build a Config from already-parsed YAML data.

    Args:
        data: Mapping from yaml.safe_load, or None for an empty file.

    Returns:
        Validated Config with environment overrides applied.

    Raises:
        ConfigError: If the data does not validate.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")
    data = _apply_env_overrides(_migrate_legacy(dict(data)))
    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigError(f"invalid config: {e}") from e


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from disk.

    A missing file yields default settings (no backend, no peers, no
    transforms); commands that need those raise ConfigError later.

    Args:
        path: Explicit config file; defaults to config_path().

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    path = path or config_path()
    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
        return parse_config({})
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"reading config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"parsing config {path}: {e}") from e
    return parse_config(data)
