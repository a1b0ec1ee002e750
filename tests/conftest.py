#!/usr/bin/env python3
"""Pytest fixtures for pipeboard tests.

Provides fixtures for watch state, a fixed clock, temporary config and
history locations, and in-memory stand-ins for the clipboard and peer.
"""

from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from pipeboard.app_context import AppContext
from pipeboard.config import Config, HistoryConfig, PeerConfig
from pipeboard.history import HistoryTracker
from pipeboard.watch_state import WatchState

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for TTL tests."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeClipboard:
    """In-memory clipboard with the same async interface as Clipboard."""

    def __init__(self, content: bytes = b""):
        self.content = content
        self.writes: list[bytes] = []

    async def read(self) -> bytes:
        return self.content

    async def write(self, data: bytes) -> None:
        self.content = data
        self.writes.append(data)

    async def clear(self) -> None:
        await self.write(b"")


class FakePeerLink:
    """Peer transport that reads and writes another FakeClipboard."""

    def __init__(self, remote: FakeClipboard):
        self.remote = remote
        self.sent: list[bytes] = []

    async def send_to(self, peer: PeerConfig, data: bytes) -> None:
        self.sent.append(data)
        await self.remote.write(data)

    async def read_from(self, peer: PeerConfig) -> bytes:
        return await self.remote.read()


@pytest.fixture
def watch_state() -> WatchState:
    """Create a fresh WatchState instance for testing."""
    return WatchState()


@pytest.fixture
def clock() -> FakeClock:
    """Clock pinned to FIXED_NOW; tests advance it by assigning .now."""
    return FakeClock()


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point XDG_CONFIG_HOME at a temp dir and clear PIPEBOARD_* overrides."""
    import os

    for name in list(os.environ):
        if name.startswith("PIPEBOARD_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    yield tmp_path / "pipeboard"


@pytest.fixture
def peer() -> PeerConfig:
    return PeerConfig(name="dev", ssh="devbox")


@pytest.fixture
def fake_clipboard() -> FakeClipboard:
    return FakeClipboard(b"local text")


@pytest.fixture
def history(tmp_path: Path, clock: FakeClock) -> HistoryTracker:
    return HistoryTracker(path=tmp_path / "history.json", config=HistoryConfig(), clock=clock)


@pytest.fixture
def app(fake_clipboard: FakeClipboard, history: HistoryTracker) -> AppContext:
    """AppContext wired to fakes: one peer 'dev', a mocked transport and store."""
    config = Config(peers={"dev": PeerConfig(ssh="devbox")})
    transport = MagicMock()
    transport.send_to = AsyncMock()
    transport.read_from = AsyncMock(return_value=b"remote text")
    return AppContext(
        config=config,
        clipboard=fake_clipboard,
        history=history,
        transport=transport,
        store=MagicMock(),
    )
