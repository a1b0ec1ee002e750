"""Tests for the slot, peer, fx and history command handlers."""
import json
import sys
from datetime import timedelta

import pytest

from pipeboard.config import Config, FxConfig, HistoryConfig, PeerConfig
from pipeboard.errors import PeerUnreachable, SlotNotFound, TransformError
from pipeboard.fx_commands import apply_transforms, list_transforms
from pipeboard.history import HistoryTracker
from pipeboard.history_commands import filter_entries, render_history, show_history
from pipeboard.peer_commands import peek_peer, receive_from_peer, send_to_peer
from pipeboard.slot_commands import list_slots, pull_slot, push_slot, remove_slot, render_slots, show_slot
from pipeboard.slot_store import SlotInfo
from conftest import FIXED_NOW

UPPER = FxConfig(cmd=[sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read().upper())"])
FAIL = FxConfig(cmd=[sys.executable, "-c", "import sys; sys.exit(1)"])


def commands(app) -> list[str]:
    return [e.command for e in app.history.entries()]


class TestSlotCommands:
    @pytest.mark.asyncio
    async def test_push_reads_clipboard(self, app):
        await push_slot(app, "kube")
        name, data, meta = app.store.push.call_args.args
        assert (name, data) == ("kube", b"local text")
        assert "hostname" in meta
        assert commands(app) == ["push"]

    @pytest.mark.asyncio
    async def test_pull_writes_clipboard(self, app, fake_clipboard):
        app.store.pull.return_value = (b"slot data", {"hostname": "laptop"})
        await pull_slot(app, "kube")
        assert fake_clipboard.content == b"slot data"
        assert commands(app) == ["pull"]

    @pytest.mark.asyncio
    async def test_pull_missing_slot_leaves_clipboard(self, app, fake_clipboard):
        app.store.pull.side_effect = SlotNotFound("kube")
        with pytest.raises(SlotNotFound):
            await pull_slot(app, "kube")
        assert fake_clipboard.writes == []
        assert commands(app) == []

    def test_show_does_not_touch_clipboard(self, app, fake_clipboard):
        app.store.pull.return_value = (b"slot data", {})
        assert show_slot(app, "kube") == b"slot data"
        assert fake_clipboard.writes == []

    def test_remove(self, app):
        remove_slot(app, "kube")
        app.store.delete.assert_called_once_with("kube")
        assert commands(app) == ["rm"]

    def test_list_sorted_by_name(self, app):
        app.store.list.return_value = [
            SlotInfo("zeta", 10, FIXED_NOW),
            SlotInfo("alpha", 2048, FIXED_NOW),
        ]
        lines = list_slots(app).splitlines()
        assert lines[0].startswith("NAME")
        assert lines[1].startswith("alpha")
        assert "2.0 KiB" in lines[1]
        assert lines[2].startswith("zeta")

    def test_list_json_with_expiry(self):
        slots = [SlotInfo("a", 1, FIXED_NOW, FIXED_NOW + timedelta(days=1))]
        (entry,) = json.loads(render_slots(slots, as_json=True))
        assert entry["name"] == "a"
        assert entry["expires_at"] == (FIXED_NOW + timedelta(days=1)).isoformat()

    def test_list_empty(self):
        assert render_slots([]) == "No slots found."


class TestPeerCommands:
    @pytest.mark.asyncio
    async def test_send(self, app):
        await send_to_peer(app, None)
        peer, data = app.transport.send_to.call_args.args
        assert peer.name == "dev"
        assert data == b"local text"
        assert commands(app) == ["send"]

    @pytest.mark.asyncio
    async def test_recv(self, app, fake_clipboard):
        await receive_from_peer(app, "dev")
        assert fake_clipboard.content == b"remote text"
        assert commands(app) == ["recv"]

    @pytest.mark.asyncio
    async def test_peek_leaves_clipboard(self, app, fake_clipboard):
        assert await peek_peer(app, "dev") == b"remote text"
        assert fake_clipboard.writes == []

    @pytest.mark.asyncio
    async def test_unreachable_peer_leaves_clipboard(self, app, fake_clipboard):
        app.transport.read_from.side_effect = PeerUnreachable("dev", "devbox", "refused")
        with pytest.raises(PeerUnreachable):
            await receive_from_peer(app, "dev")
        assert fake_clipboard.writes == []


class TestFxCommands:
    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_apply_writes_clipboard(self, app, fake_clipboard):
        app.config = Config(fx={"upper": UPPER})
        assert await apply_transforms(app, ["upper"]) is None
        assert fake_clipboard.content == b"LOCAL TEXT"
        assert commands(app) == ["fx:upper"]

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_dry_run_leaves_clipboard(self, app, fake_clipboard):
        app.config = Config(fx={"upper": UPPER})
        assert await apply_transforms(app, ["upper"], dry_run=True) == b"LOCAL TEXT"
        assert fake_clipboard.writes == []
        assert commands(app) == []

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_failed_chain_leaves_clipboard(self, app, fake_clipboard):
        app.config = Config(fx={"upper": UPPER, "fail": FAIL})
        with pytest.raises(TransformError):
            await apply_transforms(app, ["upper", "fail", "upper"])
        assert fake_clipboard.content == b"local text"
        assert fake_clipboard.writes == []

    def test_list(self, app):
        app.config = Config(fx={"upper": FxConfig(shell="tr a-z A-Z", description="Uppercase")})
        listing = list_transforms(app)
        assert "upper" in listing
        assert "Uppercase" in listing

    def test_list_empty_shows_help(self, app):
        assert "No transforms defined" in list_transforms(app)


class TestHistoryCommands:
    @pytest.fixture
    def filled(self, tmp_path, clock) -> HistoryTracker:
        history = HistoryTracker(tmp_path / "h.json", HistoryConfig(), clock=clock)
        for command, target in [("push", "kube"), ("send", "dev"), ("fx:upper", ""), ("watch:recv", "dev")]:
            history.record(command, target, 4)
            clock.now += timedelta(seconds=1)
        return history

    def test_newest_first(self, filled):
        lines = render_history(filled.entries()).splitlines()
        assert "watch:recv" in lines[1]
        assert "push" in lines[-1]

    @pytest.mark.parametrize(
        "flags,expected",
        [
            ({"fx": True}, ["fx:upper"]),
            ({"slots": True}, ["push"]),
            ({"peer": True}, ["send", "watch:recv"]),
            ({}, ["push", "send", "fx:upper", "watch:recv"]),
        ],
    )
    def test_filters(self, filled, flags, expected):
        assert [e.command for e in filter_entries(filled.entries(), **flags)] == expected

    def test_json_output(self, app, filled):
        app.history = filled
        data = json.loads(show_history(app, as_json=True))
        assert [e["command"] for e in data] == ["watch:recv", "fx:upper", "send", "push"]
        assert "signature" not in data[0]

    def test_empty(self, app):
        assert show_history(app) == "No history yet."
        assert show_history(app, fx=True) == "No matching history entries."
