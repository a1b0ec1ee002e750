#!/usr/bin/env python3
"""
Configuration models for pipeboard.

The YAML file is parsed into these pydantic models by config_loader. The
core only ever consumes the parsed Config; nothing below reads files.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from pipeboard.errors import ConfigError

DEFAULT_REMOTE_CMD = "pipeboard"
DEFAULT_HISTORY_LIMIT = 50


class SyncBackendType(str, Enum):
    """Supported slot storage backends."""

    LOCAL = "local"
    OBJECT_STORE = "object-store"


class EncryptionMode(str, Enum):
    """Client-side encryption modes for slot payloads."""

    NONE = "none"
    AES256 = "aes256"


class LocalConfig(BaseModel):
    """Filesystem slot directory."""

    path: Optional[Path] = None


class S3Config(BaseModel):
    """Object store location and credentials profile."""

    bucket: str = ""
    region: str = ""
    prefix: str = ""
    profile: Optional[str] = None
    sse: Optional[str] = None  # "AES256" or "aws:kms"
    endpoint_url: Optional[str] = None


class SyncConfig(BaseModel):
    """Slot store selection plus encryption and TTL settings."""

    backend: Optional[SyncBackendType] = None
    encryption: EncryptionMode = EncryptionMode.NONE
    passphrase: Optional[str] = None
    ttl_days: int = Field(default=0, ge=0)
    local: LocalConfig = Field(default_factory=LocalConfig)
    s3: S3Config = Field(default_factory=S3Config)

    @field_validator("backend", mode="before")
    @classmethod
    def _accept_s3_alias(cls, value):
        if value == "s3":
            return SyncBackendType.OBJECT_STORE.value
        return value

    @property
    def encrypted(self) -> bool:
        return self.encryption == EncryptionMode.AES256


class PeerConfig(BaseModel):
    """A remote machine reachable over ssh that runs pipeboard."""

    name: str = ""
    ssh: str
    remote_cmd: str = DEFAULT_REMOTE_CMD


class FxConfig(BaseModel):
    """One external transform: either an argv list or a shell string."""

    cmd: Optional[list[str]] = None
    shell: Optional[str] = None
    description: str = ""

    @model_validator(mode="after")
    def _exactly_one_invocation(self) -> "FxConfig":
        if bool(self.cmd) == bool(self.shell):
            raise ValueError("transform needs exactly one of 'cmd' or 'shell'")
        return self


class HistoryConfig(BaseModel):
    """Retention policy for the operation history log."""

    limit: int = Field(default=DEFAULT_HISTORY_LIMIT, gt=0)
    ttl_days: int = Field(default=0, ge=0)
    no_duplicates: bool = False


class DefaultsConfig(BaseModel):
    """Fallbacks used when a command omits an optional argument."""

    peer: Optional[str] = None


class Config(BaseModel):
    """Complete parsed pipeboard configuration."""

    version: int = 1
    sync: SyncConfig = Field(default_factory=SyncConfig)
    peers: dict[str, PeerConfig] = Field(default_factory=dict)
    fx: dict[str, FxConfig] = Field(default_factory=dict)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)

    def get_peer(self, name: str) -> PeerConfig:
        """
        Look up a peer by name.

        Raises:
            ConfigError: If the peer is not configured.
        """
        peer = self.peers.get(name)
        if peer is None:
            known = ", ".join(sorted(self.peers)) or "none"
            raise ConfigError(f"unknown peer {name!r} (configured: {known})")
        return peer.model_copy(update={"name": name})

    def resolve_peer(self, name: Optional[str]) -> PeerConfig:
        """Return the named peer, or defaults.peer when name is None."""
        if name:
            return self.get_peer(name)
        if self.defaults.peer:
            return self.get_peer(self.defaults.peer)
        if len(self.peers) == 1:
            return self.get_peer(next(iter(self.peers)))
        raise ConfigError("no peer given and no defaults.peer configured")

    def get_fx(self, name: str) -> FxConfig:
        """
        Look up a transform by name.

        Raises:
            ConfigError: If the transform is not configured.
        """
        fx = self.fx.get(name)
        if fx is None:
            raise ConfigError(f"unknown transform {name!r} (see 'pipeboard fx --list')")
        return fx
